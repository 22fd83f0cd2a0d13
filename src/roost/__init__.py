"""Roost: screens on ASGI.

A screen is a page and its actions in one class. GET renders it, POST
runs one of its methods.

Basic usage::

    from roost import App, Screen

    app = App()

    class Dashboard(Screen):
        name = "Dashboard"

        def query(self):
            return {"visits": 3}

    app.screen("/dashboard", Dashboard, name="dashboard")

Testing a screen on a throwaway route::

    from roost.testing import DynamicTestScreen, TestClient

    async with TestClient(app) as client:
        response = await DynamicTestScreen(client).register(Dashboard).display()
"""

__version__ = "0.1.0"
__all__ = [
    "App",
    "AppConfig",
    "ConfigurationError",
    "Forbidden",
    "HTTPError",
    "MethodNotAllowed",
    "Middleware",
    "Next",
    "NotFound",
    "Redirect",
    "Request",
    "Response",
    "RoostError",
    "RouteNotFound",
    "Screen",
    "ScreenNotFound",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import roost`` fast while providing a clean top-level API.
    """
    if name == "App":
        from roost.app import App

        return App

    if name == "AppConfig":
        from roost.config import AppConfig

        return AppConfig

    if name == "Request":
        from roost.http.request import Request

        return Request

    if name in ("Response", "Redirect"):
        from roost.http import response as _resp

        return getattr(_resp, name)

    if name == "Screen":
        from roost.screen import Screen

        return Screen

    if name in ("Middleware", "Next"):
        from roost.middleware import protocol as _mw

        return getattr(_mw, name)

    if name in (
        "ConfigurationError",
        "Forbidden",
        "HTTPError",
        "MethodNotAllowed",
        "NotFound",
        "RoostError",
        "RouteNotFound",
        "ScreenNotFound",
    ):
        from roost import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
