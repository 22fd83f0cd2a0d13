"""Responses, built by chaining ``.with_*()`` calls on frozen values.

The test client returns the same ``Response`` type the app produced,
so tests inspect ``status``, ``headers``, ``location`` and ``text``
directly.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace

from roost.http.cookies import SetCookie


@dataclass(frozen=True, slots=True)
class Response:
    """An HTTP response. Every ``with_*`` call returns a modified copy::

        Response("Saved").with_status(201).with_header("X-Post", "7")
    """

    body: str | bytes = ""
    status: int = 200
    content_type: str = "text/html; charset=utf-8"
    headers: tuple[tuple[str, str], ...] = ()
    cookies: tuple[SetCookie, ...] = ()

    def with_status(self, status: int) -> Response:
        return replace(self, status=status)

    def with_header(self, name: str, value: str) -> Response:
        """Append a header; existing headers with the same name stay."""
        return replace(self, headers=(*self.headers, (name, value)))

    def with_headers(self, headers: Mapping[str, str]) -> Response:
        return replace(self, headers=(*self.headers, *headers.items()))

    def with_content_type(self, content_type: str) -> Response:
        return replace(self, content_type=content_type)

    def with_cookie(
        self,
        name: str,
        value: str,
        *,
        max_age: int | None = None,
        path: str = "/",
        domain: str | None = None,
        secure: bool = False,
        httponly: bool = True,
        samesite: str = "lax",
    ) -> Response:
        """Attach a ``Set-Cookie``."""
        cookie = SetCookie(name, value, max_age, path, domain, secure, httponly, samesite)
        return replace(self, cookies=(*self.cookies, cookie))

    def without_cookie(self, name: str, path: str = "/") -> Response:
        """Attach a ``Set-Cookie`` that expires *name* immediately."""
        return replace(self, cookies=(*self.cookies, SetCookie(name, "", max_age=0, path=path)))

    # -- Inspection --

    def header_list(self, name: str) -> list[str]:
        """Every value of header *name*, compared case-insensitively."""
        wanted = name.lower()
        return [value for key, value in self.headers if key.lower() == wanted]

    def header(self, name: str, default: str | None = None) -> str | None:
        values = self.header_list(name)
        return values[0] if values else default

    @property
    def location(self) -> str | None:
        return self.header("location")

    @property
    def is_redirect(self) -> bool:
        """A 3xx status with somewhere to go."""
        return 300 <= self.status < 400 and self.location is not None

    @property
    def body_bytes(self) -> bytes:
        return self.body.encode("utf-8") if isinstance(self.body, str) else self.body

    @property
    def text(self) -> str:
        return self.body.decode("utf-8") if isinstance(self.body, bytes) else self.body


@dataclass(frozen=True, slots=True)
class Redirect:
    """Return value that becomes a redirect to *url*.

    Screen actions returning ``None`` get ``redirect_back()`` instead.
    """

    url: str
    status: int = 302
    headers: tuple[tuple[str, str], ...] = ()
