"""Value types shared by the router and the app."""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class PathSegment:
    """One ``/``-separated piece of a route path.

    ``users`` is static; ``{id}`` and ``{id:int}`` are parameters named
    ``id`` with converter ``str`` and ``int``.
    """

    value: str
    is_param: bool = False
    param_name: str | None = None
    param_type: str = "str"


@dataclass(frozen=True, slots=True)
class Route:
    """A registered route.

    ``middleware`` holds route-level middleware callables, already
    resolved from group names; they run inside the app's global
    middleware. ``action`` is the screen class for screen routes.
    """

    path: str
    handler: Callable[..., Any]
    methods: frozenset[str]
    name: str | None = None
    middleware: tuple[Callable[..., Any], ...] = ()
    action: Any = None

    @property
    def action_key(self) -> Any:
        """What the action lookup indexes this route by."""
        return self.handler if self.action is None else self.action


@dataclass(frozen=True, slots=True)
class RouteMatch:
    route: Route
    path_params: dict[str, str]
