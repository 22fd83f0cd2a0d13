"""The request as handlers and screens see it.

Everything known when the ASGI scope arrives is frozen on the instance.
The body is read lazily, once, and shared by every copy made with
``with_path_params()``.
"""

from __future__ import annotations

import json
from collections.abc import AsyncGenerator, Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from roost._internal.asgi import Receive
from roost.http.cookies import parse_cookies
from roost.http.forms import FORM_CONTENT_TYPE, FormData, parse_form_data
from roost.http.headers import Headers
from roost.http.query import QueryParams


@dataclass(frozen=True, slots=True)
class Request:
    """An incoming HTTP request.

    ``extensions`` mirrors the ASGI ``extensions`` scope entry; the test
    client hands session data and principals to the middleware through it.
    """

    method: str
    path: str
    headers: Headers
    query: QueryParams
    path_params: dict[str, str]
    cookies: Mapping[str, str]
    extensions: Mapping[str, Any]
    server: tuple[str, int] | None = None
    client: tuple[str, int] | None = None
    http_version: str = "1.1"

    _receive: Receive | None = field(default=None, repr=False, compare=False)
    # Shared between copies: body bytes and parsed form
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_asgi(cls, scope: Mapping[str, Any], receive: Receive) -> Request:
        """Build a Request from an ASGI ``http`` scope."""
        headers = Headers(scope.get("headers") or ())
        server = scope.get("server")
        client = scope.get("client")
        return cls(
            method=scope["method"].upper(),
            path=scope["path"],
            headers=headers,
            query=QueryParams(scope.get("query_string", b"")),
            path_params={},
            cookies=parse_cookies(headers.get("cookie", "")),
            extensions=scope.get("extensions") or {},
            server=tuple(server) if server else None,
            client=tuple(client) if client else None,
            http_version=scope.get("http_version", "1.1"),
            _receive=receive,
        )

    @property
    def content_type(self) -> str | None:
        return self.headers.get("content-type")

    @property
    def is_fragment(self) -> bool:
        """True for htmx partial requests (``HX-Request: true``)."""
        return self.headers.get("hx-request") == "true"

    @property
    def url(self) -> str:
        """Path plus query string, as the browser asked for it."""
        if not self.query.raw:
            return self.path
        return f"{self.path}?{self.query.raw.decode('latin-1')}"

    def with_path_params(self, path_params: dict[str, str]) -> Request:
        return replace(self, path_params=path_params)

    # -- Body --

    async def stream(self) -> AsyncGenerator[bytes]:
        """Yield body chunks straight from ASGI ``receive``. Not cached."""
        if self._receive is None:
            return
        more_body = True
        while more_body:
            message = await self._receive()
            more_body = message.get("more_body", False)
            chunk = message.get("body", b"")
            if chunk:
                yield chunk

    async def body(self) -> bytes:
        if "body" not in self._cache:
            self._cache["body"] = b"".join([chunk async for chunk in self.stream()])
        return self._cache["body"]

    async def text(self) -> str:
        return (await self.body()).decode("utf-8")

    async def json(self) -> Any:
        return json.loads(await self.body())

    async def form(self) -> FormData:
        """The URL-encoded body as ``FormData``.

        An empty body is an empty form, whatever the Content-Type says.
        """
        if "form" not in self._cache:
            raw = await self.body()
            self._cache["form"] = (
                parse_form_data(raw, self.content_type or FORM_CONTENT_TYPE) if raw else FormData()
            )
        return self._cache["form"]
