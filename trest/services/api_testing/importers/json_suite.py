"""Loader for suites stored as JSON files under a root directory."""

import json
import logging
import os
from pathlib import Path

from jsonschema import Draft4Validator
from pydantic import ValidationError

from trest.schemas.suite import Suite, TestCase
from trest.services.api_testing.errors import SuiteValidationError

logger = logging.getLogger(__name__)

# Cheap check: is this file a suite at all?
SUITE_SHAPE_SCHEMA = {
    "$schema": "http://json-schema.org/draft-04/schema#",
    "type": "array",
    "items": {
        "type": "object",
        "properties": {
            "name": {"type": "string"},
            "calls": {"type": "array"},
        },
        "required": ["name", "calls"],
    },
}

_STRING_MAP = {"type": "object", "additionalProperties": {"type": "string"}}

# Full validation of files that passed the shape check
SUITE_DETAILED_SCHEMA = {
    "$schema": "http://json-schema.org/draft-04/schema#",
    "type": "array",
    "items": {
        "type": "object",
        "properties": {
            "name": {"type": "string"},
            "ignoreReason": {"type": "string"},
            "calls": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "on": {
                            "type": "object",
                            "properties": {
                                "method": {"type": "string"},
                                "url": {"type": "string"},
                                "headers": _STRING_MAP,
                                "params": _STRING_MAP,
                                "body": {"type": "string"},
                                "bodyFile": {"type": "string"},
                            },
                            "required": ["method", "url"],
                        },
                        "expect": {
                            "type": "object",
                            "properties": {
                                "statusCode": {"type": "integer"},
                                "contentType": {"type": "string"},
                                "headers": _STRING_MAP,
                                "body": {"type": "object"},
                                "bodySchemaFile": {"type": "string"},
                                "bodySchemaURI": {"type": "string"},
                                "absent": {"type": "array", "items": {"type": "string"}},
                            },
                            "additionalProperties": False,
                        },
                        "remember": _STRING_MAP,
                    },
                    "required": ["on", "expect"],
                },
            },
        },
        "required": ["name", "calls"],
    },
}

_shape_validator = Draft4Validator(SUITE_SHAPE_SCHEMA)
_detailed_validator = Draft4Validator(SUITE_DETAILED_SCHEMA)


def is_suite(document) -> bool:
    """Shape detection only; says nothing about the calls themselves."""
    return _shape_validator.is_valid(document)


def validate_suite(document, path: str):
    """
    Raises:
        SuiteValidationError: with every violation found
    """
    errors = sorted(_detailed_validator.iter_errors(document), key=lambda error: error.json_path)
    if errors:
        raise SuiteValidationError(path, [f"{error.json_path}: {error.message}" for error in errors])


class JSONSuiteLoader:
    """
    Loads suites stored as JSON files.

    Walks every directory under root_dir and parses the .json files that have
    a suite shape. Files that look like suites but fail detailed validation
    are logged and collected in invalid_files.
    """

    def __init__(self, root_dir: str | Path):
        self.root_dir = Path(root_dir)
        self.invalid_files: list[SuiteValidationError] = []

    def load(self) -> list[Suite]:
        """Load all suites, ordered by path."""
        suites = []

        for dirpath, dirnames, filenames in os.walk(self.root_dir):
            dirnames.sort()
            for filename in sorted(filenames):
                if not filename.endswith(".json"):
                    continue
                suite = self.load_file(Path(dirpath) / filename)
                if suite is not None:
                    suites.append(suite)

        return suites

    def load_file(self, path: Path) -> Suite | None:
        """Load a single suite file, None when it is not a valid suite."""
        try:
            document = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.debug("Skipping %s: %s", path, e)
            return None

        if not is_suite(document):
            return None

        try:
            validate_suite(document, str(path))
            cases = [TestCase.model_validate(case) for case in document]
        except SuiteValidationError as e:
            logger.warning("%s", e)
            self.invalid_files.append(e)
            return None
        except ValidationError as e:
            error = SuiteValidationError(str(path), [str(err["msg"]) for err in e.errors()])
            logger.warning("%s", error)
            self.invalid_files.append(error)
            return None

        logger.debug("Process file: %s", path.name)
        return Suite(
            name=path.stem,
            directory=os.path.relpath(path.parent, self.root_dir),
            cases=cases,
            root_dir=self.root_dir,
        )
