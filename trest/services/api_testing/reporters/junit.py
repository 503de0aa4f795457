"""JUnit XML report files, one per suite."""

import logging
import re
from pathlib import Path
from xml.etree import ElementTree as ET

from trest.services.api_testing.engine import TestResult

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME = re.compile(r"[^\w.-]+")


class JUnitReporter:
    """
    Collects results and writes TEST-<suite>.xml files on flush.

    Each call becomes a testcase named "<case> / call <n>"; failed calls
    carry a failure element with the cause.
    """

    def __init__(self, report_dir: str | Path):
        self.report_dir = Path(report_dir)
        self._suites: dict[str, list[TestResult]] = {}

    def report(self, result: TestResult):
        self._suites.setdefault(result.suite.name, []).append(result)

    def flush(self):
        if not self._suites:
            return

        self.report_dir.mkdir(parents=True, exist_ok=True)
        for suite_name, results in self._suites.items():
            path = self.report_dir / f"TEST-{_UNSAFE_FILENAME.sub('_', suite_name)}.xml"
            ET.ElementTree(self.build_suite(suite_name, results)).write(
                path, encoding="utf-8", xml_declaration=True
            )
            logger.debug("Report written: %s", path)

    @staticmethod
    def build_suite(suite_name: str, results: list[TestResult]) -> ET.Element:
        failures = sum(1 for r in results if not r.passed)
        total_ms = sum(r.duration_ms or 0 for r in results)

        testsuite = ET.Element(
            "testsuite",
            {
                "name": suite_name,
                "tests": str(len(results)),
                "failures": str(failures),
                "errors": "0",
                "time": f"{total_ms / 1000:.3f}",
            },
        )

        for result in results:
            testcase = ET.SubElement(
                testsuite,
                "testcase",
                {
                    "classname": suite_name,
                    "name": f"{result.case.name} / call {result.call_index + 1}",
                    "time": f"{(result.duration_ms or 0) / 1000:.3f}",
                },
            )
            if result.cause:
                failure = ET.SubElement(
                    testcase,
                    "failure",
                    {"message": str(result.cause).splitlines()[0], "type": result.cause.kind},
                )
                failure.text = str(result.cause)

        return testsuite
