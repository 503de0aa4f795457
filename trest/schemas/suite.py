"""Pydantic schemas for test suites, cases and calls."""

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field


class On(BaseModel):
    """Request specification of a call."""
    method: str
    url: str = Field(..., description="Absolute URL or path relative to the target host")
    headers: dict[str, str] = Field(default_factory=dict)
    params: dict[str, str] = Field(default_factory=dict)
    body: str = ""
    body_file: str = Field("", alias="bodyFile")  # takes precedence over body

    model_config = {"populate_by_name": True, "frozen": True}


class Expect(BaseModel):
    """Expectations checked against the response of a call."""
    status_code: int | None = Field(None, alias="statusCode")
    content_type: str | None = Field(None, alias="contentType")
    headers: dict[str, str] = Field(default_factory=dict)
    body: dict[str, Any] = Field(default_factory=dict)  # dotted path -> expected value
    body_schema_file: str = Field("", alias="bodySchemaFile")
    body_schema_uri: str = Field("", alias="bodySchemaURI")
    absent: list[str] = Field(default_factory=list)

    model_config = {"populate_by_name": True, "frozen": True}

    @property
    def has_schema(self) -> bool:
        return bool(self.body_schema_file or self.body_schema_uri)


class Call(BaseModel):
    """A single HTTP round trip with its expectations and captures."""
    on: On
    expect: Expect = Field(default_factory=Expect)
    remember: dict[str, str] = Field(default_factory=dict)  # variable -> dotted path

    model_config = {"frozen": True}


class TestCase(BaseModel):
    """An ordered sequence of calls sharing one variable scope."""
    __test__ = False

    name: str
    ignore_reason: str = Field("", alias="ignoreReason")
    calls: list[Call] = Field(default_factory=list)

    model_config = {"populate_by_name": True, "frozen": True}

    @property
    def ignored(self) -> bool:
        return bool(self.ignore_reason)


class Suite(BaseModel):
    """A named collection of test cases loaded from one suite file."""
    name: str
    directory: str = "."  # relative to root_dir
    cases: list[TestCase] = Field(default_factory=list)
    root_dir: Path = Path(".")

    model_config = {"frozen": True}

    def resolve_path(self, asset_path: str) -> Path:
        """Resolve an asset path against the suite directory unless absolute."""
        path = Path(asset_path)
        if path.is_absolute():
            return path
        return (self.root_dir / self.directory / path).absolute()
