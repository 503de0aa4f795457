"""
Shared fixtures: settings pointing at a fake host and an in-process server
built on httpx.MockTransport.
"""

import json

import httpx
import pytest

from trest.config import Settings
from trest.schemas.suite import Call, Suite, TestCase

HOST = "http://api.test"


class FakeServer:
    """Records every request and answers through a routing function."""

    def __init__(self, handler):
        self.handler = handler
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    @property
    def paths(self) -> list[str]:
        return [request.url.path for request in self.requests]


def json_response(payload, status_code: int = 200, headers: dict | None = None) -> httpx.Response:
    return httpx.Response(
        status_code,
        content=json.dumps(payload).encode(),
        headers={"Content-Type": "application/json; charset=utf-8", **(headers or {})},
    )


def make_suite(*cases: TestCase, name: str = "suite", root_dir=".", directory: str = ".") -> Suite:
    return Suite(name=name, directory=directory, cases=list(cases), root_dir=root_dir)


def make_case(name: str, *calls: dict, ignore_reason: str = "") -> TestCase:
    return TestCase(
        name=name,
        ignoreReason=ignore_reason,
        calls=[Call.model_validate(call) for call in calls],
    )


@pytest.fixture
def settings(tmp_path):
    return Settings(host=HOST, report_dir=str(tmp_path / "report"))
