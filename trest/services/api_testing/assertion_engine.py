"""Expectation checks run against completed responses."""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Union
from urllib.parse import urljoin, urlparse
from urllib.request import url2pathname

import jsonschema
from jsonschema.validators import validator_for
from referencing import Registry, Resource, Specification
from referencing.exceptions import Unresolvable
from referencing.jsonschema import DRAFT202012, specification_with

from trest.schemas.suite import Expect, Suite
from trest.services.api_testing.body import (
    NOT_FOUND,
    NormalizedBody,
    normalize,
    parse_media_type,
    resolve,
    values_equal,
)
from trest.services.api_testing.errors import AssetReadError, ExpectationError, MalformedBodyError
from trest.services.api_testing.http_client import APIHttpClient, HTTPResponse

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StatusCodeExpectation:
    status_code: int


@dataclass(frozen=True)
class ContentTypeExpectation:
    content_type: str


@dataclass(frozen=True)
class HeaderExpectation:
    name: str
    value: str


@dataclass(frozen=True)
class BodySchemaExpectation:
    """Schema addressed either by a local file or by an http(s) URI."""
    schema_file: Path | None = None
    schema_uri: str | None = None

    @property
    def location(self) -> str:
        return str(self.schema_file) if self.schema_file else self.schema_uri or ""

    @property
    def uri(self) -> str:
        if self.schema_file:
            return self.schema_file.absolute().as_uri()
        return self.schema_uri or ""


@dataclass(frozen=True)
class BodyPathExpectation:
    path: str
    expected: Any


@dataclass(frozen=True)
class AbsentExpectation:
    path: str


Expectation = Union[
    StatusCodeExpectation,
    ContentTypeExpectation,
    HeaderExpectation,
    BodySchemaExpectation,
    BodyPathExpectation,
    AbsentExpectation,
]


def build_expectations(expect: Expect, suite: Suite, host: str) -> list[Expectation]:
    """
    Turn an expect block into checks, in evaluation order.

    Order: status code, content type, headers, body schema, body paths, absent.
    Fields left out of the expect block produce no check.
    """
    expectations: list[Expectation] = []

    if expect.status_code is not None:
        expectations.append(StatusCodeExpectation(expect.status_code))

    if expect.content_type:
        expectations.append(ContentTypeExpectation(expect.content_type))

    for name, value in expect.headers.items():
        expectations.append(HeaderExpectation(name, value))

    if expect.has_schema:
        # URI wins when both are given
        if expect.body_schema_uri:
            uri = expect.body_schema_uri
            if not uri.startswith(("http://", "https://")):
                uri = f"{host.rstrip('/')}/{uri.lstrip('/')}"
            expectations.append(BodySchemaExpectation(schema_uri=uri))
        else:
            expectations.append(BodySchemaExpectation(schema_file=suite.resolve_path(expect.body_schema_file)))

    for path, expected in expect.body.items():
        expectations.append(BodyPathExpectation(path, expected))

    for path in expect.absent:
        expectations.append(AbsentExpectation(path))

    return expectations


class ResponseContext:
    """A completed response plus its lazily normalized body."""

    def __init__(self, response: HTTPResponse):
        self.response = response
        self._body: NormalizedBody = None
        self._normalized = False

    @property
    def body(self) -> NormalizedBody:
        if not self._normalized:
            self._body = normalize(self.response.body_bytes, self.response.headers.get("content-type"))
            self._normalized = True
        return self._body


class SchemaLoader:
    """
    Loads JSON Schema documents from files or URLs, once per URI.

    Local files are addressed by their file:// URI so that relative $refs
    inside a schema resolve against the directory or URL it was loaded from.
    """

    def __init__(self, http_client: APIHttpClient):
        self.http_client = http_client
        self._cache: dict[str, dict] = {}

    def load(self, expectation: BodySchemaExpectation) -> dict:
        return self.load_uri(expectation.uri)

    def load_uri(self, uri: str) -> dict:
        if uri not in self._cache:
            if urlparse(uri).scheme == "file":
                self._cache[uri] = self._load_file(Path(url2pathname(urlparse(uri).path)))
            else:
                self._cache[uri] = self._load_remote(uri)
        return self._cache[uri]

    def registry(self, base_uri: str, specification: Specification) -> Registry:
        """Registry that fetches referenced schemas relative to base_uri."""

        def retrieve(uri: str) -> Resource:
            contents = self.load_uri(urljoin(base_uri, uri))
            return Resource.from_contents(contents, default_specification=specification)

        return Registry(retrieve=retrieve)

    def _load_file(self, path: Path) -> dict:
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise AssetReadError(f"Can't read schema file: {path}: {e}") from e

    def _load_remote(self, uri: str) -> dict:
        response = self.http_client.get(uri, headers={"Accept": "application/json"})
        if response.error:
            raise AssetReadError(f"Can't load schema {uri}: {response.error}")
        if response.status_code != 200:
            raise AssetReadError(f"Can't load schema {uri}: status {response.status_code}")
        try:
            return json.loads(response.body_bytes)
        except ValueError as e:
            raise AssetReadError(f"Schema {uri} is not valid JSON: {e}") from e


class AssertionEngine:
    """
    Runs expectations against a response in order, stopping at the first failure.

    Supported checks:
    - StatusCodeExpectation: exact status code
    - ContentTypeExpectation: media type without parameters
    - HeaderExpectation: header value, name matched case-insensitively
    - BodySchemaExpectation: JSON Schema validation of the raw body
    - BodyPathExpectation: value at a dotted path
    - AbsentExpectation: dotted path must not exist
    """

    def __init__(self, schema_loader: SchemaLoader):
        self.schema_loader = schema_loader
        self.handlers = {
            StatusCodeExpectation: self._assert_status,
            ContentTypeExpectation: self._assert_content_type,
            HeaderExpectation: self._assert_header,
            BodySchemaExpectation: self._assert_schema,
            BodyPathExpectation: self._assert_body_path,
            AbsentExpectation: self._assert_absent,
        }

    def run_all(self, expectations: list[Expectation], context: ResponseContext):
        """
        Raises:
            ExpectationError: first failing check
            UnsupportedContentTypeError, MalformedBodyError: body could not be inspected
            AssetReadError: schema document could not be loaded
        """
        for expectation in expectations:
            self.run_one(expectation, context)

    def run_one(self, expectation: Expectation, context: ResponseContext):
        handler = self.handlers[type(expectation)]
        handler(expectation, context)
        logger.debug("Passed: %s", expectation)

    def _assert_status(self, expectation: StatusCodeExpectation, context: ResponseContext):
        actual = context.response.status_code
        if actual != expectation.status_code:
            raise ExpectationError(
                "statusCode",
                expectation.status_code,
                actual,
                f"Unexpected status code: expected {expectation.status_code}, got {actual}",
            )

    def _assert_content_type(self, expectation: ContentTypeExpectation, context: ResponseContext):
        actual = context.response.content_type
        if actual != parse_media_type(expectation.content_type):
            raise ExpectationError(
                "contentType",
                expectation.content_type,
                actual,
                f"Unexpected content type: expected '{expectation.content_type}', got '{actual}'",
            )

    def _assert_header(self, expectation: HeaderExpectation, context: ResponseContext):
        actual = context.response.headers.get(expectation.name)
        if actual != expectation.value:
            raise ExpectationError(
                "header",
                expectation.value,
                actual,
                f"Unexpected value of header '{expectation.name}': expected '{expectation.value}', got '{actual}'",
            )

    def _assert_schema(self, expectation: BodySchemaExpectation, context: ResponseContext):
        schema = self.schema_loader.load(expectation)

        try:
            body = json.loads(context.response.body_bytes)
        except ValueError as e:
            raise MalformedBodyError(f"Response is not valid JSON: {e}") from e

        validator_cls = validator_for(schema)
        try:
            validator_cls.check_schema(schema)
        except jsonschema.SchemaError as e:
            raise ExpectationError(
                "bodySchema", expectation.location, None, f"Invalid schema {expectation.location}: {e.message}"
            ) from e

        specification = specification_with(validator_cls.META_SCHEMA.get("$schema", ""), default=DRAFT202012)
        validator = validator_cls(schema, registry=self.schema_loader.registry(expectation.uri, specification))
        try:
            errors = sorted(validator.iter_errors(body), key=lambda error: error.json_path)
        except Unresolvable as e:
            raise AssetReadError(f"Can't resolve reference in schema {expectation.location}: {e}") from e

        if errors:
            messages = [f"{error.json_path}: {error.message}" for error in errors]
            raise ExpectationError(
                "bodySchema",
                expectation.location,
                messages,
                "Body does not match schema " + expectation.location + ":\n" + "\n".join(messages),
            )

    def _assert_body_path(self, expectation: BodyPathExpectation, context: ResponseContext):
        actual = resolve(context.body, expectation.path)
        if actual is NOT_FOUND:
            raise ExpectationError(
                "body",
                expectation.expected,
                actual,
                f"Expected value not found in body, path: {expectation.path}",
            )
        if not values_equal(expectation.expected, actual):
            raise ExpectationError(
                "body",
                expectation.expected,
                actual,
                f"Unexpected value at '{expectation.path}': expected {expectation.expected!r}, got {actual!r}",
            )

    def _assert_absent(self, expectation: AbsentExpectation, context: ResponseContext):
        actual = resolve(context.body, expectation.path)
        if actual is not NOT_FOUND:
            raise ExpectationError(
                "absent",
                NOT_FOUND,
                actual,
                f"Unexpected value at '{expectation.path}': expected no value, got {actual!r}",
            )
