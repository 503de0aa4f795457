"""Response body normalization and dotted-path resolution."""

import json
import re
from typing import Any, Union
from xml.etree import ElementTree

from trest.services.api_testing.errors import MalformedBodyError, UnsupportedContentTypeError

# Generic structure shared by JSON and XML bodies
NormalizedBody = Union[None, bool, int, float, str, list["NormalizedBody"], dict[str, "NormalizedBody"]]

JSON_MEDIA_TYPES = {"application/json"}
XML_MEDIA_TYPES = {"application/xml", "text/xml"}

ATTRIBUTE_PREFIX = "-"
TEXT_KEY = "#text"

_JSON_NUMBER = re.compile(r"-?(?:0|[1-9]\d*)(\.\d+)?([eE][+-]?\d+)?")


class _NotFound:
    """Sentinel returned when a path does not resolve."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NOT_FOUND"


NOT_FOUND = _NotFound()


def parse_media_type(content_type: str | None) -> str:
    """Strip parameters (e.g. charset) from a Content-Type header value."""
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def normalize(raw: bytes, content_type: str | None) -> NormalizedBody:
    """
    Convert a raw response payload into a generic nested structure.

    Args:
        raw: Response body bytes
        content_type: Content-Type header value, parameters allowed

    Returns:
        Mappings, lists and scalars, identical in shape for JSON and XML

    Raises:
        UnsupportedContentTypeError: media type is neither JSON nor XML
        MalformedBodyError: body does not parse in the declared format
    """
    media_type = parse_media_type(content_type)

    if media_type in JSON_MEDIA_TYPES:
        try:
            return json.loads(raw)
        except (UnicodeDecodeError, ValueError) as e:
            raise MalformedBodyError(f"Response is not valid JSON: {e}") from e

    if media_type in XML_MEDIA_TYPES:
        try:
            root = ElementTree.fromstring(raw)
        except ElementTree.ParseError as e:
            raise MalformedBodyError(f"Response is not valid XML: {e}") from e
        return {_local_name(root.tag): _element_to_value(root)}

    raise UnsupportedContentTypeError(media_type)


def _local_name(tag: str) -> str:
    # "{namespace}name" -> "name"
    if tag.startswith("{"):
        return tag.rsplit("}", 1)[1]
    return tag


def _scalar(text: str) -> NormalizedBody:
    """Map XML text onto the closest JSON scalar."""
    if _JSON_NUMBER.fullmatch(text):
        return float(text) if any(c in text for c in ".eE") else int(text)
    if text == "true":
        return True
    if text == "false":
        return False
    return text


def _element_to_value(element: ElementTree.Element) -> NormalizedBody:
    """
    Map an XML element onto a mapping.

    Children become keys (repeated siblings collapse into a list), attributes
    become "-name" keys and text becomes "#text". An element with text only
    maps to a scalar.
    """
    text = (element.text or "").strip()
    children = list(element)

    if not children and not element.attrib:
        return _scalar(text)

    result: dict[str, NormalizedBody] = {}
    for name, value in element.attrib.items():
        result[ATTRIBUTE_PREFIX + _local_name(name)] = _scalar(value)

    for child in children:
        key = _local_name(child.tag)
        value = _element_to_value(child)
        if key not in result:
            result[key] = value
        elif isinstance(result[key], list):
            result[key].append(value)
        else:
            result[key] = [result[key], value]

    if text:
        result[TEXT_KEY] = _scalar(text)

    return result


def resolve(structure: Any, path: str) -> Any:
    """
    Resolve a dotted path against a nested structure.

    Numeric segments index into lists, other segments are mapping keys.

    Returns:
        The value at path, or NOT_FOUND when any segment does not resolve

    Examples:
        - "data.id" -> structure["data"]["id"]
        - "users.0.name" -> structure["users"][0]["name"]
    """
    current = structure

    for part in path.split("."):
        if isinstance(current, dict):
            if part not in current:
                return NOT_FOUND
            current = current[part]

        elif isinstance(current, list):
            if not part.isdecimal():
                return NOT_FOUND
            index = int(part)
            if index >= len(current):
                return NOT_FOUND
            current = current[index]

        else:
            return NOT_FOUND

    return current


def values_equal(expected: Any, actual: Any) -> bool:
    """Type-aware equality: numbers by value, booleans never equal numbers."""
    if isinstance(expected, bool) or isinstance(actual, bool):
        return isinstance(expected, bool) and isinstance(actual, bool) and expected == actual

    if isinstance(expected, (int, float)) and isinstance(actual, (int, float)):
        return expected == actual

    if isinstance(expected, dict):
        return (
            isinstance(actual, dict)
            and expected.keys() == actual.keys()
            and all(values_equal(value, actual[key]) for key, value in expected.items())
        )

    if isinstance(expected, list):
        return (
            isinstance(actual, list)
            and len(expected) == len(actual)
            and all(values_equal(e, a) for e, a in zip(expected, actual))
        )

    return type(expected) is type(actual) and expected == actual
