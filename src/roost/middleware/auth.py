"""Authentication middleware: guard-aware session + token auth.

Each ``AuthMiddleware`` serves one named guard (``"web"`` by default).
Requests are authenticated via bearer tokens (API clients) or session
cookies (browsers). Authenticated users are stored per guard in a
ContextVar, accessible via ``get_user()``.

Tests can skip credentials entirely: principals attached by the test
client (``client.acting_as(user, guard)``) travel in the
``roost.testing`` ASGI extension and take precedence.

Usage::

    from roost.middleware.auth import AuthConfig, AuthMiddleware, get_user
    from roost.middleware.sessions import SessionConfig, SessionMiddleware

    app.middleware_group(
        "web",
        SessionMiddleware(SessionConfig(secret_key="...")),
        AuthMiddleware(AuthConfig(load_user=my_load_user)),
    )

    user = get_user()
    if user.is_authenticated:
        ...
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from roost._internal.asgi import TESTING_EXTENSION
from roost.errors import ConfigurationError
from roost.http.request import Request
from roost.http.response import Response
from roost.middleware.protocol import Next

logger = logging.getLogger("roost.security")

# ---------------------------------------------------------------------------
# User protocols
# ---------------------------------------------------------------------------


@runtime_checkable
class User(Protocol):
    """Minimal user protocol.

    Any object with ``id`` and ``is_authenticated`` satisfies this.
    """

    @property
    def id(self) -> str: ...

    @property
    def is_authenticated(self) -> bool: ...


@runtime_checkable
class UserWithPermissions(User, Protocol):
    """User protocol with permission support, checked by screens."""

    @property
    def permissions(self) -> frozenset[str]: ...


@dataclass(frozen=True, slots=True)
class AnonymousUser:
    """Sentinel for unauthenticated requests. ``get_user()`` never returns ``None``."""

    id: str = ""
    is_authenticated: bool = False
    permissions: frozenset[str] = frozenset()


_ANONYMOUS: AnonymousUser = AnonymousUser()

# guard name -> user, for every guard entered on this request
_users_var: ContextVar[dict[str, Any]] = ContextVar("roost_users")
# the innermost guard, used when no guard is named
_guard_var: ContextVar[str] = ContextVar("roost_guard")
_active_config: ContextVar[AuthConfig | None] = ContextVar("roost_auth_config", default=None)


def get_user(guard: str | None = None) -> User:
    """Return the user for *guard* (or the innermost guard).

    Returns ``AnonymousUser`` when nobody is authenticated.
    Raises ``LookupError`` outside a request with ``AuthMiddleware``
    active, or when *guard* names a guard that is not active.
    """
    try:
        users = _users_var.get()
        name = guard or _guard_var.get()
    except LookupError:
        msg = (
            "No auth context. Ensure AuthMiddleware is added "
            "to the app before accessing the user."
        )
        raise LookupError(msg) from None
    try:
        return users[name]
    except KeyError:
        msg = f"Auth guard [{name}] is not active on this request."
        raise LookupError(msg) from None


def current_user(guard: str | None = None) -> User:
    """Like ``get_user()`` but never raises; falls back to ``AnonymousUser``."""
    try:
        return get_user(guard)
    except LookupError:
        return _ANONYMOUS


def login(user: User) -> None:
    """Log in *user* on the innermost guard.

    Regenerates the session to prevent fixation, stores the user ID,
    and updates the current request's user. Requires ``SessionMiddleware``.
    """
    from roost.middleware.sessions import regenerate_session

    config = _active_config.get()
    if config is None:
        msg = "login() requires AuthMiddleware to be active."
        raise LookupError(msg)

    session = regenerate_session()
    session[config.session_key] = user.id
    _users_var.get()[config.guard] = user
    logger.info("Login user=%s guard=%s", user.id, config.guard)


def logout() -> None:
    """Log out the innermost guard's user and discard the session."""
    from roost.middleware.sessions import regenerate_session

    config = _active_config.get()
    if config is None:
        msg = "logout() requires AuthMiddleware to be active."
        raise LookupError(msg)

    regenerate_session()
    _users_var.get()[config.guard] = _ANONYMOUS
    logger.info("Logout guard=%s", config.guard)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class AuthConfig:
    """Authentication middleware configuration.

    Attributes:
        guard: Name of the guard this middleware serves.
        session_key: Session dict key for the user ID.
        token_header: HTTP header for bearer tokens.
        token_scheme: Expected scheme prefix (e.g. ``"Bearer"``).
        load_user: Async callback to load a user by ID (session auth).
        verify_token: Async callback to verify a bearer token (token auth).
    """

    guard: str = "web"
    session_key: str = "user_id"
    token_header: str = "Authorization"
    token_scheme: str = "Bearer"
    load_user: Callable[[str], Awaitable[User | None]] | None = None
    verify_token: Callable[[str], Awaitable[User | None]] | None = None


# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------


class AuthMiddleware:
    """Guard-aware authentication middleware.

    Resolution order: test-injected principal, bearer token, session.

    Middleware ordering::

        app.add_middleware(SessionMiddleware(...), group="web")  # 1st: sessions
        app.add_middleware(AuthMiddleware(...), group="web")     # 2nd: auth
    """

    __slots__ = ("_config",)

    def __init__(self, config: AuthConfig | None = None) -> None:
        self._config = config or AuthConfig()

        if self._config.load_user is None and self._config.verify_token is None:
            msg = (
                "AuthConfig requires at least one of 'load_user' (session auth) "
                "or 'verify_token' (token auth) to be set."
            )
            raise ConfigurationError(msg)

    @property
    def guard(self) -> str:
        return self._config.guard

    def _injected_user(self, request: Request) -> User | None:
        """Return the principal the test client attached for this guard."""
        injected = request.extensions.get(TESTING_EXTENSION) or {}
        users = injected.get("users") or {}
        if self._config.guard in users:
            return users[self._config.guard]
        return users.get(None)

    def _extract_token(self, request: Request) -> str | None:
        header = request.headers.get(self._config.token_header.lower())
        if header is None:
            return None

        prefix = f"{self._config.token_scheme} "
        if not header.startswith(prefix):
            return None

        token = header[len(prefix) :].strip()
        return token if token else None

    async def _authenticate_token(self, token: str | None) -> User | None:
        if self._config.verify_token is None or token is None:
            return None
        return await self._config.verify_token(token)

    async def _authenticate_session(self) -> User | None:
        if self._config.load_user is None:
            return None

        from roost.middleware.sessions import get_session

        try:
            session = get_session()
        except LookupError:
            msg = (
                "AuthMiddleware session auth requires SessionMiddleware. "
                "Add SessionMiddleware before AuthMiddleware, or use "
                "token auth only (set load_user=None)."
            )
            raise ConfigurationError(msg) from None

        user_id = session.get(self._config.session_key)
        if not user_id:
            return None
        return await self._config.load_user(str(user_id))

    async def _resolve(self, request: Request) -> User | None:
        user = self._injected_user(request)
        if user is not None:
            logger.debug("Acting as user=%s guard=%s", user.id, self._config.guard)
            return user

        raw_token = self._extract_token(request)
        user = await self._authenticate_token(raw_token)
        if raw_token is not None and user is None:
            logger.info("Invalid %s token on %s %s", self._config.token_scheme, request.method, request.path)

        if user is None:
            user = await self._authenticate_session()
        return user

    async def __call__(self, request: Request, next: Next) -> Response:
        """Authenticate the request, then dispatch."""
        user = await self._resolve(request)

        try:
            users = dict(_users_var.get())
        except LookupError:
            users = {}
        users[self._config.guard] = user if user is not None else _ANONYMOUS

        users_token = _users_var.set(users)
        guard_token = _guard_var.set(self._config.guard)
        config_token = _active_config.set(self._config)
        try:
            return await next(request)
        finally:
            _users_var.reset(users_token)
            _guard_var.reset(guard_token)
            _active_config.reset(config_token)
