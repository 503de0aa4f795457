"""Tests for placeholder substitution and request building."""

import pytest

from trest.schemas.suite import On
from trest.services.api_testing.errors import AssetReadError
from trest.services.api_testing.variable_resolver import RequestTemplater, VariableResolver, VariableStore
from tests.conftest import HOST, make_suite


class TestVariableStore:
    def test_starts_empty(self):
        assert len(VariableStore()) == 0

    def test_update_is_additive_and_overwrites(self):
        store = VariableStore({"a": "1", "b": "2"})
        store.update({"b": "3", "c": "4"})
        assert store.snapshot() == {"a": "1", "b": "3", "c": "4"}

    def test_snapshot_is_a_copy(self):
        store = VariableStore({"a": "1"})
        snapshot = store.snapshot()
        snapshot["a"] = "changed"
        assert store["a"] == "1"


class TestVariableResolver:
    resolver = VariableResolver()

    def test_replaces_known_placeholders(self):
        assert self.resolver.resolve("Bearer {token}", {"token": "abc123"}) == "Bearer abc123"

    def test_replaces_every_occurrence(self):
        assert self.resolver.resolve("{a}-{a}-{b}", {"a": "x", "b": "y"}) == "x-x-y"

    def test_leaves_unknown_placeholders(self):
        assert self.resolver.resolve("{token} {other}", {"token": "t"}) == "t {other}"

    def test_json_body_braces_are_untouched(self):
        template = '{"id": "{id}", "nested": {"x": 1}}'
        assert self.resolver.resolve(template, {"id": "42"}) == '{"id": "42", "nested": {"x": 1}}'

    @pytest.mark.parametrize(
        "value, expected",
        [(5, "5"), (1.5, "1.5"), (True, "true"), (None, "null"), ({"a": 1}, '{"a": 1}'), ("s", "s")],
    )
    def test_stringifies_captured_values(self, value, expected):
        assert self.resolver.resolve("{v}", {"v": value}) == expected

    def test_empty_template(self):
        assert self.resolver.resolve("", {"a": "b"}) == ""
        assert self.resolver.resolve(None, {}) == ""

    def test_extract_variables(self):
        assert self.resolver.extract_variables("/users/{id}?q={name}") == ["id", "name"]


class TestRequestTemplater:
    templater = RequestTemplater(HOST)

    def test_relative_url_joins_host(self):
        request = self.templater.build(On(method="get", url="/users"), make_suite(), {})
        assert request.method == "GET"
        assert request.url == "http://api.test/users"

    def test_absolute_url_used_as_is(self):
        for url in ("http://other.test/ping", "https://secure.test/ping"):
            request = self.templater.build(On(method="GET", url=url), make_suite(), {})
            assert request.url == url

    def test_url_is_not_templated(self):
        request = self.templater.build(On(method="GET", url="/users/{id}"), make_suite(), {"id": "7"})
        assert request.url == "http://api.test/users/{id}"

    def test_headers_params_and_body_are_templated(self):
        on = On(
            method="POST",
            url="/search",
            headers={"Authorization": "Bearer {token}", "X-Static": "plain"},
            params={"q": "{name}", "page": "1"},
            body='{"owner": "{name}"}',
        )
        request = self.templater.build(on, make_suite(), {"token": "abc123", "name": "ann"})

        assert request.headers == {"Authorization": "Bearer abc123", "X-Static": "plain"}
        assert request.params == {"q": "ann", "page": "1"}
        assert request.url == "http://api.test/search?q=ann&page=1"
        assert request.body == b'{"owner": "ann"}'

    def test_params_merge_with_existing_query(self):
        on = On(method="GET", url="/search?a=1", params={"b": "2"})
        request = self.templater.build(on, make_suite(), {})
        assert request.url == "http://api.test/search?a=1&b=2"

    def test_build_is_idempotent(self):
        on = On(method="PUT", url="/items", headers={"X-Id": "{id}"}, params={"v": "{id}"}, body="{id}")
        store = VariableStore({"id": 9})
        assert self.templater.build(on, make_suite(), store) == self.templater.build(on, make_suite(), store)

    def test_body_file_relative_to_suite_directory(self, tmp_path):
        (tmp_path / "users").mkdir()
        (tmp_path / "users" / "new_user.json").write_text('{"name": "{name}"}', encoding="utf-8")
        suite = make_suite(root_dir=tmp_path, directory="users")

        on = On(method="POST", url="/users", body="ignored", bodyFile="new_user.json")
        request = self.templater.build(on, suite, {"name": "Ann"})

        assert request.body == b'{"name": "Ann"}'

    def test_absolute_body_file(self, tmp_path):
        body_file = tmp_path / "payload.txt"
        body_file.write_text("payload", encoding="utf-8")

        on = On(method="POST", url="/users", bodyFile=str(body_file))
        request = self.templater.build(on, make_suite(root_dir=tmp_path / "elsewhere"), {})

        assert request.body == b"payload"

    def test_missing_body_file(self, tmp_path):
        on = On(method="POST", url="/users", bodyFile="missing.json")
        with pytest.raises(AssetReadError) as exc:
            self.templater.build(on, make_suite(root_dir=tmp_path), {})
        assert "missing.json" in str(exc.value)
