"""Suite loaders."""

from trest.services.api_testing.importers.json_suite import JSONSuiteLoader, is_suite, validate_suite

__all__ = [
    "JSONSuiteLoader",
    "is_suite",
    "validate_suite",
]
