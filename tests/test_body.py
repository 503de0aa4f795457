"""Tests for body normalization and dotted-path resolution."""

import pytest

from trest.services.api_testing.body import NOT_FOUND, normalize, parse_media_type, resolve, values_equal
from trest.services.api_testing.errors import MalformedBodyError, UnsupportedContentTypeError


class TestResolve:
    structure = {
        "data": {"id": 5, "token": "abc123", "active": False, "missing": None},
        "users": [{"name": "Ann"}, {"name": "Bob"}],
    }

    def test_nested_key(self):
        assert resolve(self.structure, "data.token") == "abc123"

    def test_list_index(self):
        assert resolve(self.structure, "users.1.name") == "Bob"

    def test_falsy_values_are_found(self):
        assert resolve(self.structure, "data.active") is False
        assert resolve(self.structure, "data.missing") is None

    @pytest.mark.parametrize(
        "path",
        ["nope", "data.nope", "users.2.name", "users.-1", "users.first", "data.id.value", "data.token.0"],
    )
    def test_unresolvable_paths(self, path):
        assert resolve(self.structure, path) is NOT_FOUND

    def test_scalar_root(self):
        assert resolve("text", "a") is NOT_FOUND
        assert resolve(None, "a") is NOT_FOUND

    def test_does_not_modify_structure(self):
        before = repr(self.structure)
        resolve(self.structure, "users.0.name")
        resolve(self.structure, "users.9")
        assert repr(self.structure) == before

    def test_not_found_is_falsy_singleton(self):
        assert not NOT_FOUND
        assert repr(NOT_FOUND) == "NOT_FOUND"
        assert type(NOT_FOUND)() is NOT_FOUND


class TestNormalize:
    def test_json(self):
        body = normalize(b'{"a": {"b": 5}}', "application/json")
        assert resolve(body, "a.b") == 5

    def test_json_with_charset(self):
        assert normalize(b"[1, 2]", "application/json; charset=utf-8") == [1, 2]

    def test_xml(self):
        body = normalize(b"<a><b>5</b></a>", "application/xml")
        assert body == {"a": {"b": 5}}
        assert values_equal(5, resolve(body, "a.b"))

    def test_text_xml(self):
        assert normalize(b"<a>hello</a>", "text/xml") == {"a": "hello"}

    def test_xml_repeated_siblings_become_list(self):
        body = normalize(b"<items><item>1</item><item>2</item><item>3</item></items>", "application/xml")
        assert body == {"items": {"item": [1, 2, 3]}}
        assert resolve(body, "items.item.2") == 3

    def test_xml_attributes_and_text(self):
        body = normalize(
            b'<order id="7"><price currency="EUR">9.5</price><paid>true</paid></order>',
            "application/xml",
        )
        assert resolve(body, "order.-id") == 7
        assert resolve(body, "order.price.-currency") == "EUR"
        assert resolve(body, "order.price.#text") == 9.5
        assert resolve(body, "order.paid") is True

    def test_xml_keeps_non_numeric_text(self):
        body = normalize(b"<a><zip>007</zip><empty/></a>", "application/xml")
        assert body == {"a": {"zip": "007", "empty": ""}}

    def test_xml_namespaces_are_stripped(self):
        body = normalize(b'<r:root xmlns:r="urn:x"><r:id>1</r:id></r:root>', "application/xml")
        assert body == {"root": {"id": 1}}

    def test_unsupported_content_type(self):
        with pytest.raises(UnsupportedContentTypeError) as exc:
            normalize(b"hello", "text/plain; charset=utf-8")
        assert exc.value.content_type == "text/plain"

    def test_missing_content_type(self):
        with pytest.raises(UnsupportedContentTypeError):
            normalize(b"{}", None)

    def test_malformed_json(self):
        with pytest.raises(MalformedBodyError):
            normalize(b"{not json", "application/json")

    def test_malformed_xml(self):
        with pytest.raises(MalformedBodyError):
            normalize(b"<a><b></a>", "application/xml")


def test_parse_media_type():
    assert parse_media_type("Application/JSON; charset=UTF-8") == "application/json"
    assert parse_media_type("") == ""
    assert parse_media_type(None) == ""


class TestValuesEqual:
    @pytest.mark.parametrize(
        "expected, actual",
        [
            (5, 5),
            (5, 5.0),
            ("abc", "abc"),
            (True, True),
            (None, None),
            ({"a": [1, {"b": "c"}]}, {"a": [1, {"b": "c"}]}),
        ],
    )
    def test_equal(self, expected, actual):
        assert values_equal(expected, actual)

    @pytest.mark.parametrize(
        "expected, actual",
        [
            (5, "5"),
            ("5", 5),
            (True, 1),
            (1, True),
            (None, ""),
            ([1, 2], [1, 2, 3]),
            ({"a": 1}, {"a": 1, "b": 2}),
        ],
    )
    def test_not_equal(self, expected, actual):
        assert not values_equal(expected, actual)
