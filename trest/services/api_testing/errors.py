"""Failure kinds raised while executing a single call."""

from typing import Any


class TrestError(Exception):
    """Base class for every failure that ends a call as failed."""

    kind = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class AssetReadError(TrestError):
    """Body file or schema document could not be read."""

    kind = "asset"


class TransportError(TrestError):
    """Request could not be sent or the response could not be read."""

    kind = "transport"


class UnsupportedContentTypeError(TrestError):
    """Response media type is neither JSON nor XML."""

    kind = "content_type"

    def __init__(self, content_type: str):
        super().__init__(f"Unsupported content type for body inspection: '{content_type}'")
        self.content_type = content_type


class MalformedBodyError(TrestError):
    """Response body could not be parsed in its declared format."""

    kind = "malformed_body"


class ExpectationError(TrestError):
    """A single expectation check failed."""

    kind = "expectation"

    def __init__(self, check: str, expected: Any, actual: Any, message: str | None = None):
        if message is None:
            message = f"{check}: expected {expected!r}, got {actual!r}"
        super().__init__(message)
        self.check = check
        self.expected = expected
        self.actual = actual


class CaptureError(TrestError):
    """A remember path did not resolve against the response body."""

    kind = "capture"

    def __init__(self, variable: str, path: str):
        super().__init__(f"Remembered value not found, variable: {variable}, path: {path}")
        self.variable = variable
        self.path = path


class SuiteValidationError(TrestError):
    """Suite file failed detailed validation."""

    kind = "suite"

    def __init__(self, path: str, messages: list[str]):
        super().__init__(f"Invalid suite file: {path}\n" + "\n".join(messages))
        self.path = path
        self.messages = messages
