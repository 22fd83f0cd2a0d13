"""Roost exception hierarchy.

Shared across Router, App, screens, middleware, and the test client so
every module raises and catches the same types.
"""

from dataclasses import dataclass


class RoostError(Exception):
    """Base for all roost-specific errors."""


class ConfigurationError(RoostError):
    """Raised when app, route, or middleware configuration is invalid."""


class RouteNotFound(RoostError, LookupError):  # noqa: N818
    """No route is registered under the requested name.

    Raised by URL generation, not by request matching (that is ``NotFound``).
    A route added after the last name-lookup refresh is also reported here.
    """

    def __init__(self, name: str) -> None:
        super().__init__(f"Route [{name}] not defined.")
        self.name = name


class URLGenerationError(RoostError):
    """A named route exists but its URL cannot be built from the parameters."""


class ScreenNotFound(RoostError, LookupError):  # noqa: N818
    """A screen identifier does not resolve to a registered screen class."""

    def __init__(self, identifier: str) -> None:
        super().__init__(f"Screen [{identifier}] is not registered.")
        self.identifier = identifier


class TooManyRedirects(RoostError):  # noqa: N818
    """The test client gave up following a redirect chain."""


@dataclass(frozen=True, slots=True)
class HTTPError(RoostError):
    """An exception that becomes a response with *status*.

    Anything serving a request may raise one; ``@app.error(status)``
    handlers can replace the default plain-text body.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404: nothing here. Raised by the router and by screens for unknown actions."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class MethodNotAllowed(HTTPError):  # noqa: N818
    """405: the path matched, the method did not. Carries an ``Allow`` header."""

    def __init__(self, allowed: frozenset[str], detail: str = "") -> None:
        allow_value = ", ".join(sorted(allowed))
        default_detail = f"Method not allowed. Allowed methods: {allow_value}"
        super().__init__(
            status=405,
            detail=detail or default_detail,
            headers=(("Allow", allow_value),),
        )


class Forbidden(HTTPError):  # noqa: N818
    """403: raised by screens when the user lacks a listed permission."""

    def __init__(self, detail: str = "Forbidden") -> None:
        super().__init__(status=403, detail=detail)
