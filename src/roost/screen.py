"""Screens: a page and its actions in one class.

A screen answers GET by rendering itself and POST by running one of its
public methods, picked with the ``method`` query parameter::

    class PostEditScreen(Screen):
        name = "Edit post"
        permission = ("posts.edit",)

        async def query(self, request: Request) -> dict:
            return {"post": await load_post(request.path_params["id"])}

        async def save(self, form: FormData):
            await store_post(form)
            # returning None redirects back to the previous page

    app.screen("/posts/{id}/edit", PostEditScreen, name="posts.edit")

    # GET  /posts/1/edit              -> query() + render()
    # POST /posts/1/edit?method=save  -> save()
"""

import importlib
import inspect
from collections.abc import Callable, Mapping
from html import escape
from typing import Any, ClassVar

from roost._internal.invoke import invoke
from roost.errors import ConfigurationError, Forbidden, NotFound, ScreenNotFound
from roost.http.forms import FormData
from roost.http.request import Request
from roost.http.response import Response
from roost.middleware.auth import User, current_user
from roost.middleware.sessions import get_session, redirect_back
from roost.server.negotiation import negotiate

# Query-string key naming the action on POST
ACTION_PARAMETER = "method"


class Screen:
    """Base class for screens.

    Subclasses override ``query()`` to build the context and ``render()``
    to turn it into HTML. Every other public method is an action.
    Both ``query()`` and actions may be sync or async and receive
    arguments by name: ``request``, ``form``, ``session``, ``user``, or
    any path parameter.
    """

    name: ClassVar[str | None] = None
    description: ClassVar[str | None] = None
    permission: ClassVar[tuple[str, ...]] = ()

    def query(self) -> Mapping[str, Any]:
        return {}

    def render(self, context: Mapping[str, Any]) -> Any:
        """Render the context. The default is a bare definition list."""
        title = escape(self.name or type(self).__name__)
        rows = "".join(
            f"<dt>{escape(str(key))}</dt><dd>{escape(str(value))}</dd>"
            for key, value in context.items()
        )
        description = f"<p>{escape(self.description)}</p>" if self.description else ""
        return (
            "<!doctype html><html><head>"
            f"<title>{title}</title></head><body>"
            f'<main data-screen="{escape(type(self).__name__)}">'
            f"<h1>{title}</h1>{description}<dl>{rows}</dl>"
            "</main></body></html>"
        )

    # -- Dispatch --

    async def handle(self, request: Request) -> Response:
        """Render on GET, run the named action otherwise."""
        self.check_access()

        if request.method in ("GET", "HEAD"):
            kwargs = await _resolve_arguments(self.query, request)
            context = await invoke(self.query, **kwargs)
            return negotiate(await invoke(self.render, context))

        action = self.action(request.query.get(ACTION_PARAMETER))
        kwargs = await _resolve_arguments(action, request)
        result = await invoke(action, **kwargs)
        if result is None:
            return negotiate(redirect_back(fallback=request.path))
        return negotiate(result)

    def check_access(self) -> None:
        """Raise ``Forbidden`` unless the current user holds every permission."""
        if not self.permission:
            return
        granted = getattr(current_user(), "permissions", frozenset())
        missing = [perm for perm in self.permission if perm not in granted]
        if missing:
            raise Forbidden(f"Missing permission: {', '.join(missing)}")

    def action(self, name: str | None) -> Callable[..., Any]:
        """Return the bound action called *name*, or raise ``NotFound``."""
        if not name or name.startswith("_") or name in RESERVED_NAMES:
            raise NotFound(f"Method: {name} not found")
        method = getattr(self, name, None)
        if method is None or not inspect.ismethod(method):
            raise NotFound(f"Method: {name} not found")
        return method


RESERVED_NAMES: frozenset[str] = frozenset(
    name for name in vars(Screen) if not name.startswith("_")
)


def bind_screen(screen_cls: type[Screen]) -> Callable[[Request], Any]:
    """Build the route handler that serves *screen_cls*, one instance per request."""

    async def screen_handler(request: Request) -> Response:
        return await screen_cls().handle(request)

    screen_handler.__name__ = f"{screen_cls.__name__}_handler"
    screen_handler.__qualname__ = screen_handler.__name__
    return screen_handler


class ScreenRegistry:
    """Maps string identifiers to screen classes.

    ``resolve()`` accepts a screen class, a registered identifier, or an
    import path (``"package.module:ScreenClass"`` or
    ``"package.module.ScreenClass"``).
    """

    __slots__ = ("_screens",)

    def __init__(self) -> None:
        self._screens: dict[str, type[Screen]] = {}

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._screens

    def __len__(self) -> int:
        return len(self._screens)

    def register(self, identifier: str, screen_cls: type[Screen]) -> None:
        _ensure_screen(screen_cls, identifier)
        self._screens[identifier] = screen_cls

    def resolve(self, ref: str | type[Screen]) -> type[Screen]:
        """Return the screen class for *ref*.

        Raises ``ScreenNotFound`` when a string identifier resolves to
        nothing, and ``ConfigurationError`` when it resolves to something
        that is not a ``Screen`` subclass.
        """
        if isinstance(ref, type):
            return _ensure_screen(ref, ref.__name__)
        if ref in self._screens:
            return self._screens[ref]
        return _ensure_screen(_import_screen(ref), ref)


def _import_screen(path: str) -> Any:
    module_name, sep, attr = path.partition(":")
    if not sep:
        module_name, _, attr = path.rpartition(".")
    if not module_name or not attr:
        raise ScreenNotFound(path)
    try:
        module = importlib.import_module(module_name)
    except ModuleNotFoundError:
        raise ScreenNotFound(path) from None
    try:
        return getattr(module, attr)
    except AttributeError:
        raise ScreenNotFound(path) from None


def _ensure_screen(candidate: Any, label: str) -> type[Screen]:
    if not (isinstance(candidate, type) and issubclass(candidate, Screen)):
        msg = f"{label!r} is not a Screen subclass."
        raise ConfigurationError(msg)
    return candidate


async def _resolve_arguments(func: Callable[..., Any], request: Request) -> dict[str, Any]:
    """Build keyword arguments for a screen query or action.

    Resolution by parameter name or annotation:
    ``request``/``Request``, ``form``/``FormData``, ``session``,
    ``user``/``User``, then path parameters.
    """
    sig = inspect.signature(func, eval_str=True)
    kwargs: dict[str, Any] = {}

    for name, param in sig.parameters.items():
        annotation = param.annotation
        if name == "request" or annotation is Request:
            kwargs[name] = request
        elif name == "form" or annotation is FormData:
            kwargs[name] = await request.form()
        elif name == "session":
            kwargs[name] = get_session()
        elif name == "user" or annotation is User:
            kwargs[name] = current_user()
        elif name in request.path_params:
            kwargs[name] = request.path_params[name]

    return kwargs
