"""API test suite execution."""

from trest.services.api_testing.engine import CallExecutor, RunResult, SuiteRunner, TestResult
from trest.services.api_testing.http_client import APIHttpClient, ConcreteRequest, HTTPResponse
from trest.services.api_testing.variable_resolver import RequestTemplater, VariableResolver, VariableStore
from trest.services.api_testing.assertion_engine import AssertionEngine, build_expectations

__all__ = [
    "APIHttpClient",
    "AssertionEngine",
    "CallExecutor",
    "ConcreteRequest",
    "HTTPResponse",
    "RequestTemplater",
    "RunResult",
    "SuiteRunner",
    "TestResult",
    "VariableResolver",
    "VariableStore",
    "build_expectations",
]
