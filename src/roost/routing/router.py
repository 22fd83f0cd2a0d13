"""Router with trie-based path matching and named-route URL generation.

Matching sees every added route immediately. Name and action lookups are
indexes built on first use; routes added afterwards are invisible to
them until ``refresh_name_lookups()`` / ``refresh_action_lookups()`` is
called. Registering a route at test time therefore ends with a refresh.
"""

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote, urlencode

from roost.errors import (
    ConfigurationError,
    MethodNotAllowed,
    NotFound,
    RouteNotFound,
    URLGenerationError,
)
from roost.routing.params import CONVERTERS
from roost.routing.route import PathSegment, Route, RouteMatch

logger = logging.getLogger("roost.routing")


def parse_path(path: str) -> list[PathSegment]:
    """Parse a route path string into segments.

    Examples::

        "/users"          -> [PathSegment("users")]
        "/users/{id}"     -> [PathSegment("users"), PathSegment("{id}", is_param=True, ...)]
        "/users/{id:int}" -> [PathSegment("{id:int}", is_param=True, param_type="int")]
        "/files/{path:path}" -> [PathSegment("{path:path}", is_param=True, param_type="path")]

    Raises ``ConfigurationError`` for unknown converters.
    """
    segments: list[PathSegment] = []
    for part in path.strip("/").split("/"):
        if not part:
            continue
        if part.startswith("{") and part.endswith("}"):
            inner = part[1:-1]
            if ":" in inner:
                param_name, param_type = inner.split(":", 1)
            else:
                param_name = inner
                param_type = "str"
            if param_type not in CONVERTERS:
                msg = f"Unknown path converter {param_type!r} in route {path!r}."
                raise ConfigurationError(msg)
            segments.append(
                PathSegment(
                    value=part,
                    is_param=True,
                    param_name=param_name,
                    param_type=param_type,
                )
            )
        else:
            segments.append(PathSegment(value=part))
    return segments


class _TrieNode:
    """A node in the route trie."""

    __slots__ = ("catch_all_route", "children", "param_child", "routes_by_method")

    def __init__(self) -> None:
        self.children: dict[str, _TrieNode] = {}
        # Single parameter child (only one param pattern per level)
        self.param_child: _ParamEdge | None = None
        self.catch_all_route: _CatchAllEdge | None = None
        self.routes_by_method: dict[str, Route] = {}


@dataclass(slots=True)
class _ParamEdge:
    param_name: str
    param_type: str
    regex: re.Pattern[str]
    node: _TrieNode


@dataclass(slots=True)
class _CatchAllEdge:
    """A catch-all (path) edge that consumes remaining path."""

    param_name: str
    route_by_method: dict[str, Route]


class Router:
    """Trie router with named-route URL generation.

    Usage::

        router = Router()
        router.add(Route("/users/{id:int}", handler, frozenset({"GET"}), name="users.show"))
        router.match("GET", "/users/42")
        router.url_for("users.show", {"id": 42, "tab": "posts"})  # /users/42?tab=posts
    """

    __slots__ = ("_actions", "_names", "_root", "_routes")

    def __init__(self) -> None:
        self._root = _TrieNode()
        self._routes: list[Route] = []
        self._names: dict[str, Route] | None = None
        self._actions: dict[Any, Route] | None = None

    def add(self, route: Route) -> None:
        """Add a route. Matching sees it at once; lookups after a refresh."""
        segments = parse_path(route.path)
        self._routes.append(route)
        node = self._root

        for seg in segments:
            if seg.is_param and seg.param_type == "path":
                # Catch-all: consumes rest of path, must be last segment
                if node.catch_all_route is None:
                    node.catch_all_route = _CatchAllEdge(
                        param_name=seg.param_name or "path",
                        route_by_method={},
                    )
                for method in route.methods:
                    node.catch_all_route.route_by_method[method] = route
                return

            if seg.is_param:
                if node.param_child is None:
                    converter = CONVERTERS[seg.param_type]
                    node.param_child = _ParamEdge(
                        param_name=seg.param_name or "",
                        param_type=seg.param_type,
                        regex=re.compile(f"^{converter.pattern}$"),
                        node=_TrieNode(),
                    )
                node = node.param_child.node
            else:
                if seg.value not in node.children:
                    node.children[seg.value] = _TrieNode()
                node = node.children[seg.value]

        for method in route.methods:
            node.routes_by_method[method] = route

    @property
    def routes(self) -> list[Route]:
        """All added routes, in registration order."""
        return list(self._routes)

    def compile(self) -> None:
        """Index names and actions for every route added so far."""
        self.refresh_name_lookups()
        self.refresh_action_lookups()

    # -- Lookups --

    def refresh_name_lookups(self) -> None:
        """Rebuild the name index. Later registrations win on duplicate names."""
        self._names = {route.name: route for route in self._routes if route.name}
        logger.debug("Indexed %d named routes", len(self._names))

    def refresh_action_lookups(self) -> None:
        """Rebuild the action index."""
        self._actions = {route.action_key: route for route in self._routes}
        logger.debug("Indexed %d route actions", len(self._actions))

    def has(self, name: str) -> bool:
        if self._names is None:
            self.refresh_name_lookups()
        assert self._names is not None
        return name in self._names

    def get_by_name(self, name: str) -> Route:
        """Return the route registered as *name*.

        Raises ``RouteNotFound`` if no route carries that name as of the
        last name-lookup refresh.
        """
        if self._names is None:
            self.refresh_name_lookups()
        assert self._names is not None
        try:
            return self._names[name]
        except KeyError:
            raise RouteNotFound(name) from None

    def get_by_action(self, action: Any) -> Route | None:
        """Return the route bound to *action* (screen class or handler)."""
        if self._actions is None:
            self.refresh_action_lookups()
        assert self._actions is not None
        return self._actions.get(action)

    def url_for(self, name: str, params: Mapping[str, Any] | None = None) -> str:
        """Build the URL for the route named *name*.

        Path placeholders are filled from *params*. Every remaining
        parameter is appended as a query string, in insertion order.
        ``None`` values are dropped.

        Raises ``RouteNotFound`` for unknown names and
        ``URLGenerationError`` when a path placeholder has no value.
        """
        route = self.get_by_name(name)
        remaining = {k: v for k, v in (params or {}).items() if v is not None}

        parts: list[str] = []
        for seg in parse_path(route.path):
            if not seg.is_param:
                parts.append(seg.value)
                continue
            assert seg.param_name is not None
            if seg.param_name not in remaining:
                msg = f"Missing required parameter {seg.param_name!r} for route [{name}]."
                raise URLGenerationError(msg)
            value = remaining.pop(seg.param_name)
            parts.append(quote(str(value), safe=CONVERTERS[seg.param_type].safe))

        url = "/" + "/".join(parts)
        if remaining:
            url = f"{url}?{urlencode(_query_pairs(remaining))}"
        return url

    # -- Matching --

    def match(self, method: str, path: str) -> RouteMatch:
        """Match a request path and method against the trie.

        Returns a ``RouteMatch`` on success.
        Raises ``NotFound`` if no route matches the path.
        Raises ``MethodNotAllowed`` if the path matches but the method doesn't.
        """
        parts = [p for p in path.strip("/").split("/") if p]
        result = self._match_node(self._root, parts, 0, {})

        if result is None:
            raise NotFound(f"No route matches {method} {path!r}")

        node, params = result

        if method in node.routes_by_method:
            return RouteMatch(route=node.routes_by_method[method], path_params=params)

        if node.routes_by_method:
            raise MethodNotAllowed(frozenset(node.routes_by_method))

        raise NotFound(f"No route matches {method} {path!r}")

    def _match_node(
        self,
        node: _TrieNode,
        parts: list[str],
        index: int,
        params: dict[str, str],
    ) -> tuple[_TrieNode, dict[str, str]] | None:
        if index == len(parts):
            if node.routes_by_method:
                return node, params
            return None

        part = parts[index]

        # 1. Static child first (exact match)
        if part in node.children:
            result = self._match_node(node.children[part], parts, index + 1, params)
            if result is not None:
                return result

        # 2. Parameter child
        if node.param_child is not None:
            edge = node.param_child
            if edge.regex.match(part):
                new_params = {**params, edge.param_name: part}
                result = self._match_node(edge.node, parts, index + 1, new_params)
                if result is not None:
                    return result

        # 3. Catch-all
        if node.catch_all_route is not None:
            remaining = "/".join(parts[index:])
            new_params = {**params, node.catch_all_route.param_name: remaining}
            synthetic = _TrieNode()
            synthetic.routes_by_method = node.catch_all_route.route_by_method
            return synthetic, new_params

        return None


def _query_pairs(params: Mapping[str, Any]) -> list[tuple[str, str]]:
    pairs: list[tuple[str, str]] = []
    for key, value in params.items():
        if isinstance(value, (list, tuple)):
            pairs.extend((key, str(item)) for item in value)
        elif isinstance(value, bool):
            pairs.append((key, "1" if value else "0"))
        else:
            pairs.append((key, str(value)))
    return pairs
