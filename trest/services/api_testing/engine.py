"""Suite execution engine: calls, cases and suites."""

import logging
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any, Protocol

import httpx

from trest.config import Settings
from trest.schemas.suite import Call, Suite, TestCase
from trest.services.api_testing.assertion_engine import (
    AssertionEngine,
    ResponseContext,
    SchemaLoader,
    build_expectations,
)
from trest.services.api_testing.body import NOT_FOUND, resolve
from trest.services.api_testing.errors import CaptureError, TransportError, TrestError
from trest.services.api_testing.http_client import APIHttpClient, ConcreteRequest, HTTPResponse
from trest.services.api_testing.variable_resolver import RequestTemplater, VariableStore

logger = logging.getLogger(__name__)


class TestResult:
    """Outcome of one call. Produced once, never modified."""

    __test__ = False

    def __init__(
        self,
        suite: Suite,
        case: TestCase,
        call_index: int,
        cause: TrestError | None = None,
        request: ConcreteRequest | None = None,
        response: HTTPResponse | None = None,
        remembered: dict[str, Any] | None = None,
        started_at: datetime | None = None,
        finished_at: datetime | None = None,
    ):
        self.suite = suite
        self.case = case
        self.call_index = call_index
        self.cause = cause
        self.request = request
        self.response = response
        self.remembered = remembered or {}
        self.started_at = started_at
        self.finished_at = finished_at

    @property
    def passed(self) -> bool:
        return self.cause is None

    @property
    def status(self) -> str:
        return "passed" if self.passed else "failed"

    @property
    def error_type(self) -> str | None:
        return self.cause.kind if self.cause else None

    @property
    def description(self) -> str:
        return f"{self.suite.name} / {self.case.name} / call {self.call_index + 1}"

    @property
    def duration_ms(self) -> int | None:
        if self.response:
            return self.response.elapsed_ms
        if self.started_at and self.finished_at:
            return int((self.finished_at - self.started_at).total_seconds() * 1000)
        return None

    def __repr__(self) -> str:
        return f"<TestResult {self.description} {self.status}>"


class Reporter(Protocol):
    """Receives every result, then one flush once all suites ran."""

    def report(self, result: TestResult) -> None: ...

    def flush(self) -> None: ...


class RunResult:
    """Summary of one execution pass over a set of suites."""

    def __init__(self):
        self.results: list[TestResult] = []
        self.skipped_cases: list[TestCase] = []
        self.started_at: datetime | None = None
        self.finished_at: datetime | None = None

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def passed(self) -> int:
        return sum(1 for r in self.results if r.passed)

    @property
    def failed(self) -> int:
        return self.total - self.passed

    @property
    def all_passed(self) -> bool:
        return all(r.passed for r in self.results)

    @property
    def duration_ms(self) -> int | None:
        if self.started_at and self.finished_at:
            return int((self.finished_at - self.started_at).total_seconds() * 1000)
        return None

    @property
    def summary(self) -> dict:
        return {
            "total": self.total,
            "passed": self.passed,
            "failed": self.failed,
            "skipped_cases": len(self.skipped_cases),
            "duration_ms": self.duration_ms,
            "all_passed": self.all_passed,
        }


class CallExecutor:
    """
    Runs a single call: build, dispatch, evaluate, capture.

    Any failure along the way ends the call as failed; the caller always gets
    exactly one TestResult back.
    """

    def __init__(
        self,
        settings: Settings,
        http_client: APIHttpClient,
        templater: RequestTemplater | None = None,
        assertion_engine: AssertionEngine | None = None,
    ):
        self.settings = settings
        self.http_client = http_client
        self.templater = templater or RequestTemplater(settings.host)
        self.assertion_engine = assertion_engine or AssertionEngine(SchemaLoader(http_client))

    def execute(
        self,
        suite: Suite,
        case: TestCase,
        call: Call,
        call_index: int,
        variables: VariableStore,
    ) -> TestResult:
        """
        Execute one call against the current variables of its case.

        The store is updated only when every expectation and every remember
        path succeeded.
        """
        logger.debug("--- Starting call %d of case '%s'", call_index + 1, case.name)
        started_at = datetime.now(timezone.utc)
        request = None
        response = None

        try:
            request = self.templater.build(call.on, suite, variables)
            if self.settings.debug:
                logger.debug("Request: %s %s headers=%s", request.method, request.url, request.headers)

            response = self.http_client.send(request)
            if response.error:
                raise TransportError(response.error)
            if self.settings.debug:
                logger.debug("Response: %s %s", response.status_code, response.body)

            context = ResponseContext(response)
            expectations = build_expectations(call.expect, suite, self.settings.host)
            self.assertion_engine.run_all(expectations, context)

            remembered = self._remember(call.remember, context)

        except TrestError as e:
            logger.debug("Call failed (%s): %s", e.kind, e)
            return TestResult(
                suite=suite,
                case=case,
                call_index=call_index,
                cause=e,
                request=request,
                response=response,
                started_at=started_at,
                finished_at=datetime.now(timezone.utc),
            )

        variables.update(remembered)
        if remembered and self.settings.debug:
            logger.debug("Remember: %s", variables.snapshot())

        return TestResult(
            suite=suite,
            case=case,
            call_index=call_index,
            request=request,
            response=response,
            remembered=remembered,
            started_at=started_at,
            finished_at=datetime.now(timezone.utc),
        )

    def _remember(self, remember: dict[str, str], context: ResponseContext) -> dict[str, Any]:
        remembered = {}
        if not remember:
            return remembered

        body = context.body
        for name, path in remember.items():
            value = resolve(body, path)
            if value is NOT_FOUND:
                raise CaptureError(name, path)
            remembered[name] = value
        return remembered


class SuiteRunner:
    """
    Runs suites, their cases and calls strictly in order.

    Every case starts with an empty VariableStore that is dropped when the
    case ends. Ignored cases are skipped without producing results.
    """

    def __init__(
        self,
        settings: Settings,
        reporter: Reporter,
        transport: httpx.BaseTransport | None = None,
    ):
        self.settings = settings
        self.reporter = reporter
        self.http_client = APIHttpClient(
            timeout=settings.timeout,
            follow_redirects=settings.follow_redirects,
            verify_ssl=settings.verify_ssl,
            transport=transport,
        )
        self.executor = CallExecutor(settings, self.http_client)

    def close(self):
        """Close the HTTP client."""
        self.http_client.close()

    def run(self, suites: Iterable[Suite]) -> RunResult:
        result = RunResult()
        result.started_at = datetime.now(timezone.utc)

        for suite in suites:
            logger.info("Running suite '%s' (%d cases)", suite.name, len(suite.cases))
            for case in suite.cases:
                if case.ignored:
                    logger.info("Skipping case '%s': %s", case.name, case.ignore_reason)
                    result.skipped_cases.append(case)
                    continue
                result.results.extend(self.run_case(suite, case))

        result.finished_at = datetime.now(timezone.utc)
        self.reporter.flush()
        return result

    def run_case(self, suite: Suite, case: TestCase) -> list[TestResult]:
        variables = VariableStore()
        results = []

        for index, call in enumerate(case.calls):
            test_result = self.executor.execute(suite, case, call, index, variables)
            self.reporter.report(test_result)
            results.append(test_result)

        return results
