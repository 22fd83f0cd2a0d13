"""The middleware shape.

Middleware is any async callable taking the request and the next
handler in the chain. Functions and objects with ``__call__`` both fit::

    async def stamp(request: Request, next: Next) -> Response:
        response = await next(request)
        return response.with_header("X-Served-By", "roost")

    app.add_middleware(stamp)                 # every request
    app.add_middleware(stamp, group="web")    # routes using the web group
"""

from collections.abc import Awaitable, Callable
from typing import Protocol, TypeAlias

from roost.http.request import Request
from roost.http.response import Response

Next: TypeAlias = Callable[[Request], Awaitable[Response]]


class Middleware(Protocol):
    async def __call__(self, request: Request, next: Next) -> Response: ...
