"""Tests for roost.app.App: registration, middleware groups, freezing, errors."""

import logging

import pytest

from roost.app import App
from roost.config import AppConfig
from roost.errors import ConfigurationError, NotFound, RouteNotFound
from roost.http.request import Request
from roost.http.response import Response
from roost.middleware.protocol import Next
from roost.screen import Screen
from roost.testing import TestClient


class HelloScreen(Screen):
    name = "Hello"

    def query(self) -> dict:
        return {"greeting": "hi"}


def _stamp(value: str):
    async def stamp(request: Request, next: Next) -> Response:
        response = await next(request)
        return response.with_header("X-Stamp", value)

    return stamp


class TestConfig:
    def test_defaults(self) -> None:
        config = AppConfig()
        assert config.debug is False
        assert config.test_route_prefix == "/_test"
        assert config.max_redirects == 10

    def test_frozen(self) -> None:
        config = AppConfig()
        with pytest.raises(AttributeError):
            config.debug = True  # type: ignore[misc]


class TestRoutes:
    async def test_route_decorator(self) -> None:
        app = App()

        @app.route("/")
        def index():
            return "Hello"

        async with TestClient(app) as client:
            response = await client.get("/")
            assert response.status == 200
            assert response.text == "Hello"

    async def test_path_params_converted_by_annotation(self) -> None:
        app = App()

        @app.route("/users/{id:int}")
        def show(id: int):
            return {"id": id, "type": type(id).__name__}

        async with TestClient(app) as client:
            response = await client.get("/users/5")
            assert response.text == '{"id": 5, "type": "int"}'

    async def test_unknown_path_is_404(self) -> None:
        app = App()
        async with TestClient(app) as client:
            response = await client.get("/missing")
            assert response.status == 404

    async def test_wrong_method_is_405(self) -> None:
        app = App()

        @app.route("/only-get")
        def only_get():
            return "ok"

        async with TestClient(app) as client:
            response = await client.post("/only-get")
            assert response.status == 405
            assert response.header("allow") == "GET"

    def test_url_for(self) -> None:
        app = App()

        @app.route("/posts/{id}", name="posts.show")
        def show(id: str):
            return id

        assert app.url_for("posts.show", id=4, ref="home") == "/posts/4?ref=home"


class TestScreens:
    async def test_screen_route_serves_get_and_post(self) -> None:
        app = App()
        app.screen("/hello", HelloScreen, name="hello")

        route = app.router.get_by_name("hello")
        assert route.methods == frozenset({"GET", "POST"})
        assert app.router.get_by_action(HelloScreen) is route

        async with TestClient(app) as client:
            response = await client.get("/hello")
            assert response.status == 200
            assert "<dd>hi</dd>" in response.text

    async def test_screen_after_freeze_matches_immediately(self) -> None:
        app = App()
        async with TestClient(app) as client:
            app.screen("/late", HelloScreen, name="late")
            response = await client.get("/late")
            assert response.status == 200

    def test_screen_after_freeze_needs_name_refresh(self) -> None:
        app = App()
        app.router  # freeze
        app.screen("/late", HelloScreen, name="late")

        with pytest.raises(RouteNotFound):
            app.url_for("late")

        app.router.refresh_name_lookups()
        assert app.url_for("late") == "/late"

    def test_register_and_resolve_screen(self) -> None:
        app = App()
        app.register_screen("hello", HelloScreen)
        assert app.resolve_screen("hello") is HelloScreen
        assert app.resolve_screen(HelloScreen) is HelloScreen

    def test_screen_by_identifier(self) -> None:
        app = App()
        app.register_screen("hello", HelloScreen)
        assert app.screen("/hello", "hello") is HelloScreen

    def test_register_non_screen_raises(self) -> None:
        app = App()
        with pytest.raises(ConfigurationError, match="is not a Screen subclass"):
            app.register_screen("bad", dict)  # type: ignore[arg-type]


class TestMiddleware:
    async def test_global_middleware_wraps_everything(self) -> None:
        app = App()
        app.add_middleware(_stamp("global"))

        @app.route("/")
        def index():
            return "ok"

        async with TestClient(app) as client:
            assert (await client.get("/")).header("x-stamp") == "global"
            assert (await client.get("/missing")).status == 404

    async def test_route_group_only_applies_to_its_routes(self) -> None:
        app = App()
        app.middleware_group("stamped", _stamp("group"))

        @app.route("/plain")
        def plain():
            return "plain"

        @app.route("/stamped", middleware="stamped")
        def stamped():
            return "stamped"

        async with TestClient(app) as client:
            assert (await client.get("/plain")).header("x-stamp") is None
            assert (await client.get("/stamped")).header("x-stamp") == "group"

    async def test_groups_run_in_listed_order(self) -> None:
        app = App()
        app.middleware_group("inner", _stamp("inner"))
        app.middleware_group("outer", _stamp("outer"))

        @app.route("/", middleware=("outer", "inner"))
        def index():
            return "ok"

        async with TestClient(app) as client:
            response = await client.get("/")
            assert response.header_list("x-stamp") == ["inner", "outer"]

    async def test_screens_use_web_group_by_default(self) -> None:
        app = App()
        app.add_middleware(_stamp("web"), group="web")
        app.screen("/hello", HelloScreen)

        async with TestClient(app) as client:
            response = await client.get("/hello")
            assert response.header("x-stamp") == "web"

    def test_web_group_exists_by_default(self) -> None:
        app = App()
        app.add_route("/", lambda: "ok", middleware="web")

    def test_unknown_group_raises(self) -> None:
        app = App()
        with pytest.raises(ConfigurationError, match="Unknown middleware group 'admin'"):
            app.add_route("/", lambda: "ok", middleware="admin")

    def test_global_middleware_after_freeze_raises(self) -> None:
        app = App()
        app.router
        with pytest.raises(RuntimeError, match="Cannot modify"):
            app.add_middleware(_stamp("late"))


class TestErrorHandling:
    async def test_custom_404_handler(self) -> None:
        app = App()

        @app.error(404)
        def not_found(request: Request):
            return f"Nothing at {request.path}"

        async with TestClient(app) as client:
            response = await client.get("/nope")
            assert response.status == 404
            assert response.text == "Nothing at /nope"

    async def test_http_error_raised_by_handler(self) -> None:
        app = App()

        @app.route("/gone")
        def gone():
            raise NotFound("Post was deleted")

        async with TestClient(app) as client:
            response = await client.get("/gone")
            assert response.status == 404
            assert response.text == "Post was deleted"

    async def test_unexpected_exception_is_500_and_logged(self, caplog) -> None:
        app = App()

        @app.route("/boom")
        def boom():
            raise ValueError("kaboom")

        async with TestClient(app) as client:
            with caplog.at_level(logging.ERROR, logger="roost.server"):
                response = await client.get("/boom")

        assert response.status == 500
        assert response.text == "Internal Server Error"
        assert any("500 GET /boom" in record.getMessage() for record in caplog.records)

    async def test_debug_shows_traceback(self) -> None:
        app = App(AppConfig(debug=True))

        @app.route("/boom")
        def boom():
            raise ValueError("kaboom")

        async with TestClient(app) as client:
            response = await client.get("/boom")
            assert response.status == 500
            assert "ValueError: kaboom" in response.text


class TestLifecycle:
    async def test_startup_and_shutdown_hooks(self) -> None:
        app = App()
        calls: list[str] = []

        @app.on_startup
        async def start():
            calls.append("start")

        @app.on_shutdown
        def stop():
            calls.append("stop")

        async with TestClient(app):
            assert calls == ["start"]
        assert calls == ["start", "stop"]

    async def test_asgi_lifespan(self) -> None:
        app = App()
        messages = [{"type": "lifespan.startup"}, {"type": "lifespan.shutdown"}]
        sent: list[dict] = []

        async def receive():
            return messages.pop(0)

        async def send(message):
            sent.append(message)

        await app({"type": "lifespan"}, receive, send)
        assert [m["type"] for m in sent] == [
            "lifespan.startup.complete",
            "lifespan.shutdown.complete",
        ]
