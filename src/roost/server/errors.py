"""Turn exceptions raised while serving a request into responses.

``HTTPError`` subclasses become their status code. Anything else is a
500, logged with its traceback. A handler registered with
``@app.error(...)`` for the status or exception type takes precedence.
"""

import inspect
import logging
import traceback
from collections.abc import Callable
from html import escape
from typing import Any

from roost._internal.invoke import invoke
from roost.errors import HTTPError
from roost.http.request import Request
from roost.http.response import Response
from roost.server.negotiation import negotiate

logger = logging.getLogger("roost.server")


async def call_error_handler(
    handler: Callable[..., Any],
    request: Request,
    exc: Exception,
) -> Response:
    """Call *handler* with as many of ``(request, exc)`` as it accepts."""
    arity = len(inspect.signature(handler).parameters)
    args = (request, exc)[: min(arity, 2)]
    return negotiate(await invoke(handler, *args))


async def handle_http_error(
    exc: HTTPError,
    request: Request,
    error_handlers: dict[int | type, Callable[..., Any]],
    debug: bool,
) -> Response:
    logger.debug("%d %s %s: %s", exc.status, request.method, request.path, exc.detail)

    handler = error_handlers.get(type(exc)) or error_handlers.get(exc.status)
    if handler is not None:
        response = await call_error_handler(handler, request, exc)
        # A plain 200 from the handler keeps the error's status
        return response if response.status != 200 else response.with_status(exc.status)

    body = exc.detail or f"Error {exc.status}"
    if debug:
        body = str(exc)
    response = Response(body=body, status=exc.status, content_type="text/plain; charset=utf-8")
    return response.with_headers(dict(exc.headers)) if exc.headers else response


async def handle_internal_error(
    exc: Exception,
    request: Request,
    error_handlers: dict[int | type, Callable[..., Any]],
    debug: bool,
) -> Response:
    logger.exception("500 %s %s", request.method, request.path)

    handler = error_handlers.get(type(exc)) or error_handlers.get(500)
    if handler is not None:
        return await call_error_handler(handler, request, exc)

    if debug:
        return Response(body=f"<pre>{escape(traceback.format_exc())}</pre>", status=500)
    return Response(body="Internal Server Error", status=500, content_type="text/plain; charset=utf-8")
