"""Tests for roost.routing.router: trie matching and named-route lookups."""

import pytest

from roost.errors import (
    ConfigurationError,
    MethodNotAllowed,
    NotFound,
    RouteNotFound,
    URLGenerationError,
)
from roost.routing.route import Route
from roost.routing.router import Router, parse_path


def _handler() -> str:
    return "ok"


def _route(
    path: str,
    methods: frozenset[str] | None = None,
    name: str | None = None,
    action: object = None,
) -> Route:
    return Route(
        path=path,
        handler=_handler,
        methods=methods or frozenset({"GET"}),
        name=name,
        action=action,
    )


class TestParsePath:
    def test_static(self) -> None:
        segments = parse_path("/users")
        assert len(segments) == 1
        assert segments[0].value == "users"
        assert segments[0].is_param is False

    def test_param(self) -> None:
        segments = parse_path("/users/{id}")
        assert segments[1].is_param is True
        assert segments[1].param_name == "id"
        assert segments[1].param_type == "str"

    def test_typed_param(self) -> None:
        segments = parse_path("/users/{id:int}")
        assert segments[1].param_type == "int"

    def test_path_param(self) -> None:
        segments = parse_path("/files/{filepath:path}")
        assert segments[1].param_type == "path"
        assert segments[1].param_name == "filepath"

    def test_root(self) -> None:
        assert parse_path("/") == []

    def test_unknown_converter_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="Unknown path converter 'uuid'"):
            parse_path("/items/{id:uuid}")


class TestRouterMatching:
    def test_root(self) -> None:
        r = Router()
        r.add(_route("/"))
        assert r.match("GET", "/").path_params == {}

    def test_static_beats_param(self) -> None:
        r = Router()
        r.add(_route("/users/{id}", name="show"))
        r.add(_route("/users/new", name="new"))

        assert r.match("GET", "/users/new").route.name == "new"
        assert r.match("GET", "/users/7").route.name == "show"

    def test_int_param(self) -> None:
        r = Router()
        r.add(_route("/users/{id:int}"))

        assert r.match("GET", "/users/42").path_params == {"id": "42"}
        with pytest.raises(NotFound):
            r.match("GET", "/users/abc")

    def test_catch_all(self) -> None:
        r = Router()
        r.add(_route("/files/{path:path}"))

        match = r.match("GET", "/files/a/b/c.txt")
        assert match.path_params == {"path": "a/b/c.txt"}

    def test_not_found(self) -> None:
        r = Router()
        r.add(_route("/users"))
        with pytest.raises(NotFound):
            r.match("GET", "/posts")

    def test_method_not_allowed(self) -> None:
        r = Router()
        r.add(_route("/users", frozenset({"GET", "POST"})))

        with pytest.raises(MethodNotAllowed) as exc_info:
            r.match("DELETE", "/users")
        assert exc_info.value.status == 405
        assert dict(exc_info.value.headers)["Allow"] == "GET, POST"

    def test_added_routes_match_immediately(self) -> None:
        r = Router()
        r.compile()
        r.add(_route("/late"))
        assert r.match("GET", "/late").route.path == "/late"


class TestNameLookups:
    def test_get_by_name(self) -> None:
        r = Router()
        r.add(_route("/users", name="users.index"))
        assert r.get_by_name("users.index").path == "/users"

    def test_unknown_name(self) -> None:
        r = Router()
        with pytest.raises(RouteNotFound, match=r"Route \[missing\] not defined"):
            r.get_by_name("missing")

    def test_route_not_found_is_lookup_error(self) -> None:
        r = Router()
        with pytest.raises(LookupError):
            r.get_by_name("missing")

    def test_lookup_is_stale_until_refreshed(self) -> None:
        r = Router()
        r.add(_route("/a", name="a"))
        r.compile()
        r.add(_route("/b", name="b"))

        assert r.has("a")
        assert not r.has("b")
        with pytest.raises(RouteNotFound):
            r.url_for("b")

        r.refresh_name_lookups()
        assert r.url_for("b") == "/b"

    def test_later_registration_wins(self) -> None:
        r = Router()
        r.add(_route("/first", name="dup"))
        r.add(_route("/second", name="dup"))
        assert r.get_by_name("dup").path == "/second"

    def test_action_lookup(self) -> None:
        marker = object()
        r = Router()
        r.add(_route("/screen", action=marker))
        r.compile()
        r.add(_route("/other", action="late"))

        assert r.get_by_action(marker).path == "/screen"
        assert r.get_by_action("late") is None

        r.refresh_action_lookups()
        assert r.get_by_action("late").path == "/other"

    def test_action_defaults_to_handler(self) -> None:
        r = Router()
        r.add(_route("/plain"))
        assert r.get_by_action(_handler).path == "/plain"


class TestUrlFor:
    def test_static(self) -> None:
        r = Router()
        r.add(_route("/users", name="users"))
        assert r.url_for("users") == "/users"

    def test_path_params(self) -> None:
        r = Router()
        r.add(_route("/users/{id:int}/posts/{slug}", name="post"))
        assert r.url_for("post", {"id": 3, "slug": "hello"}) == "/users/3/posts/hello"

    def test_extra_params_become_query_string(self) -> None:
        r = Router()
        r.add(_route("/users/{id}", name="user"))
        url = r.url_for("user", {"id": 1, "tab": "posts", "method": "save"})
        assert url == "/users/1?tab=posts&method=save"

    def test_none_values_dropped(self) -> None:
        r = Router()
        r.add(_route("/search", name="search"))
        assert r.url_for("search", {"q": "roost", "page": None}) == "/search?q=roost"

    def test_list_values_repeat(self) -> None:
        r = Router()
        r.add(_route("/search", name="search"))
        assert r.url_for("search", {"tag": ["a", "b"]}) == "/search?tag=a&tag=b"

    def test_path_segments_are_quoted(self) -> None:
        r = Router()
        r.add(_route("/tags/{name}", name="tag"))
        r.add(_route("/files/{path:path}", name="file"))

        assert r.url_for("tag", {"name": "a b/c"}) == "/tags/a%20b%2Fc"
        assert r.url_for("file", {"path": "docs/read me.txt"}) == "/files/docs/read%20me.txt"

    def test_missing_param(self) -> None:
        r = Router()
        r.add(_route("/users/{id}", name="user"))
        with pytest.raises(URLGenerationError, match="Missing required parameter 'id'"):
            r.url_for("user")
