"""Middleware: Protocol-based, no inheritance required.

A middleware is any callable matching:
    async def mw(request: Request, next: Next) -> Response

Built-in middleware:
    AuthMiddleware -- Guard-aware authentication (session + token)
    SessionMiddleware -- Signed cookie sessions with previous-URL tracking
"""

from roost.middleware.auth import AuthConfig, AuthMiddleware
from roost.middleware.protocol import Middleware, Next
from roost.middleware.sessions import SessionConfig, SessionMiddleware

__all__ = [
    "AuthConfig",
    "AuthMiddleware",
    "Middleware",
    "Next",
    "SessionConfig",
    "SessionMiddleware",
]
