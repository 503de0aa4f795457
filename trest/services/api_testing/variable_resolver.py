"""Remembered variables and request templating."""

import json
import re
from collections.abc import Iterator, Mapping
from typing import Any

import httpx

from trest.schemas.suite import On, Suite
from trest.services.api_testing.errors import AssetReadError, TransportError
from trest.services.api_testing.http_client import ConcreteRequest


class VariableStore(Mapping):
    """
    Values remembered from earlier calls of one test case.

    Only grows: update() overwrites existing names and never removes any.
    """

    def __init__(self, initial: Mapping[str, Any] | None = None):
        self._values: dict[str, Any] = dict(initial or {})

    def __getitem__(self, name: str) -> Any:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"VariableStore({self._values!r})"

    def update(self, values: Mapping[str, Any]):
        self._values.update(values)

    def snapshot(self) -> dict[str, Any]:
        return dict(self._values)


class VariableResolver:
    """
    Resolves {variable} placeholders in strings with remembered values.

    Unknown names are left in place so the mismatch surfaces in the response.
    """

    VARIABLE_PATTERN = re.compile(r"\{([^{}]+)\}")

    def resolve(self, template: str | None, variables: Mapping[str, Any]) -> str:
        if not template:
            return template or ""

        def replacer(match: re.Match) -> str:
            name = match.group(1)
            if name not in variables:
                return match.group(0)
            return self.stringify(variables[name])

        return self.VARIABLE_PATTERN.sub(replacer, template)

    def resolve_dict(self, obj: Mapping[str, str] | None, variables: Mapping[str, Any]) -> dict[str, str]:
        """Resolve placeholders in the values of a flat mapping; keys are kept."""
        return {key: self.resolve(value, variables) for key, value in (obj or {}).items()}

    @staticmethod
    def stringify(value: Any) -> str:
        if isinstance(value, str):
            return value
        return json.dumps(value)

    def extract_variables(self, template: str | None) -> list[str]:
        """Extract all placeholder names from a template."""
        if not template:
            return []
        return [match.group(1) for match in self.VARIABLE_PATTERN.finditer(template)]


class RequestTemplater:
    """Builds concrete requests from call specifications."""

    def __init__(self, host: str, resolver: VariableResolver | None = None):
        self.host = host
        self.variable_resolver = resolver or VariableResolver()

    def build(self, on: On, suite: Suite, variables: Mapping[str, Any]) -> ConcreteRequest:
        """
        Build the request for a call.

        Args:
            on: Request specification
            suite: Owning suite, used to resolve a relative body file
            variables: Values remembered so far in the test case

        Raises:
            AssetReadError: body file is missing or unreadable
        """
        body = self.variable_resolver.resolve(self._read_body(on, suite), variables)
        headers = self.variable_resolver.resolve_dict(on.headers, variables)
        params = self.variable_resolver.resolve_dict(on.params, variables)

        url = self.full_url(on.url)
        if params:
            try:
                url = str(httpx.URL(url).copy_merge_params(params))
            except httpx.InvalidURL as e:
                raise TransportError(f"Invalid URL: {url}: {e}") from e

        return ConcreteRequest(
            method=on.method.upper(),
            url=url,
            headers=headers,
            params=params,
            body=body.encode("utf-8"),
        )

    def full_url(self, url: str) -> str:
        """Use absolute URLs as-is, append anything else to the host."""
        if url.startswith(("http://", "https://")):
            return url
        return f"{self.host.rstrip('/')}/{url.lstrip('/')}"

    def _read_body(self, on: On, suite: Suite) -> str:
        if not on.body_file:
            return on.body

        path = suite.resolve_path(on.body_file)
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise AssetReadError(f"Can't read body file: {path}: {e}") from e
