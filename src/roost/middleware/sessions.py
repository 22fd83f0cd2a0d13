"""Session middleware: signed cookie sessions.

Session data is serialized as JSON and signed using ``itsdangerous``.
The session dict is stored in a ContextVar, accessible via
``get_session()`` from any handler, screen, or middleware.

The middleware also remembers the previous URL: after a successful
full-page GET it stores the request URL, and ``redirect_back()`` sends
the browser there. The test client can seed both the session and the
previous URL through the ``roost.testing`` ASGI extension.
"""

import logging
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any

from itsdangerous import BadData, URLSafeTimedSerializer

from roost._internal.asgi import TESTING_EXTENSION
from roost.errors import ConfigurationError
from roost.http.request import Request
from roost.http.response import Redirect, Response
from roost.middleware.protocol import Next

logger = logging.getLogger("roost.server")

PREVIOUS_URL_KEY = "_previous.url"

# -- Session ContextVar --

_session_var: ContextVar[dict[str, Any] | None] = ContextVar("roost_session", default=None)


def get_session() -> dict[str, Any]:
    """Return the current session dict.

    Raises ``LookupError`` if called outside a request with
    ``SessionMiddleware`` active.
    """
    session = _session_var.get()
    if session is None:
        msg = (
            "No active session. Ensure SessionMiddleware is added "
            "to the app (or the route's middleware group) before "
            "accessing the session."
        )
        raise LookupError(msg)
    return session


def regenerate_session() -> dict[str, Any]:
    """Clear the session and return the same, now empty, dict.

    Called by ``login()`` and ``logout()`` to prevent session fixation.
    """
    session = get_session()
    session.clear()
    return session


def previous_url(default: str | None = None) -> str | None:
    """Return the URL stored as the previous page, or *default*."""
    return get_session().get(PREVIOUS_URL_KEY, default)


def set_previous_url(url: str) -> None:
    """Overwrite the previous URL for the current session."""
    get_session()[PREVIOUS_URL_KEY] = url


def redirect_back(fallback: str = "/", *, status: int = 302) -> Redirect:
    """Redirect to the previous URL, or *fallback* when there is none.

    Works without ``SessionMiddleware`` too; it then always uses *fallback*.
    """
    try:
        url = previous_url()
    except LookupError:
        url = None
    return Redirect(url or fallback, status=status)


# -- Configuration --


@dataclass(frozen=True, slots=True)
class SessionConfig:
    """Session middleware configuration.

    ``secret_key`` is required; sessions are signed, not encrypted.
    """

    secret_key: str
    cookie_name: str = "roost_session"
    max_age: int = 86400  # 24 hours
    path: str = "/"
    domain: str | None = None
    secure: bool = False
    httponly: bool = True
    samesite: str = "lax"
    track_previous_url: bool = True


# -- Middleware --


class SessionMiddleware:
    """Signed cookie session middleware.

    Usage::

        from roost.middleware.sessions import SessionConfig, SessionMiddleware

        app.add_middleware(
            SessionMiddleware(SessionConfig(secret_key="my-secret-key")),
            group="web",
        )

        # In a handler:
        from roost.middleware.sessions import get_session

        @app.route("/dashboard", middleware="web")
        def dashboard():
            session = get_session()
            session["visits"] = session.get("visits", 0) + 1
            return f"Visits: {session['visits']}"
    """

    __slots__ = ("_config", "_serializer")

    def __init__(self, config: SessionConfig) -> None:
        if not config.secret_key:
            msg = "SessionConfig.secret_key must not be empty."
            raise ConfigurationError(msg)

        self._config = config
        self._serializer = URLSafeTimedSerializer(config.secret_key)

    @property
    def config(self) -> SessionConfig:
        return self._config

    def _load_session(self, request: Request) -> dict[str, Any]:
        """Deserialize and verify the session cookie."""
        cookie_value = request.cookies.get(self._config.cookie_name)
        if not cookie_value:
            return {}

        try:
            data = self._serializer.loads(cookie_value, max_age=self._config.max_age)
        except BadData:
            logger.debug("Discarding session cookie with a bad signature")
            return {}

        if not isinstance(data, dict):
            return {}
        return data

    def _apply_test_injection(self, request: Request, session: dict[str, Any]) -> None:
        """Merge session data the test client attached to this request."""
        injected = request.extensions.get(TESTING_EXTENSION)
        if not injected:
            return
        data = injected.get("session")
        if data:
            session.update(data)
        url = injected.get("previous_url")
        if url:
            session[PREVIOUS_URL_KEY] = url

    def _save_session(self, response: Response, session: dict[str, Any]) -> Response:
        """Serialize the session dict and set the cookie on the response."""
        cfg = self._config
        value = self._serializer.dumps(session)
        return response.with_cookie(
            name=cfg.cookie_name,
            value=value,
            max_age=cfg.max_age,
            path=cfg.path,
            domain=cfg.domain,
            secure=cfg.secure,
            httponly=cfg.httponly,
            samesite=cfg.samesite,
        )

    async def __call__(self, request: Request, next: Next) -> Response:
        """Load session, dispatch, then save session to response."""
        session = self._load_session(request)
        self._apply_test_injection(request, session)
        token = _session_var.set(session)

        try:
            response = await next(request)
        finally:
            _session_var.reset(token)

        if (
            self._config.track_previous_url
            and request.method == "GET"
            and not request.is_fragment
            and 200 <= response.status < 300
        ):
            session[PREVIOUS_URL_KEY] = request.url

        return self._save_session(response, session)
