"""Cookie parsing and serialization.

Read side: ``parse_cookies`` (Request) and ``parse_set_cookie`` (the
test client's cookie jar). Write side: ``SetCookie`` (Response).
"""

from dataclasses import dataclass


def parse_cookies(header: str) -> dict[str, str]:
    """Parse a ``Cookie`` header value into a name-value dict."""
    if not header:
        return {}
    cookies: dict[str, str] = {}
    for pair in header.split(";"):
        pair = pair.strip()
        if "=" in pair:
            key, _, value = pair.partition("=")
            cookies[key.strip()] = value.strip()
    return cookies


def format_cookie_header(cookies: dict[str, str]) -> str:
    """Serialize a name-value dict into a ``Cookie`` request header value."""
    return "; ".join(f"{name}={value}" for name, value in cookies.items())


@dataclass(frozen=True, slots=True)
class SetCookie:
    """A ``Set-Cookie`` directive attached to a Response."""

    name: str
    value: str
    max_age: int | None = None
    path: str = "/"
    domain: str | None = None
    secure: bool = False
    httponly: bool = True
    samesite: str = "lax"

    @property
    def expired(self) -> bool:
        """True when the directive deletes the cookie."""
        return self.max_age is not None and self.max_age <= 0

    def to_header_value(self) -> str:
        """Serialize to a ``Set-Cookie`` header value string."""
        parts = [f"{self.name}={self.value}"]
        if self.max_age is not None:
            parts.append(f"Max-Age={self.max_age}")
        if self.path:
            parts.append(f"Path={self.path}")
        if self.domain:
            parts.append(f"Domain={self.domain}")
        if self.secure:
            parts.append("Secure")
        if self.httponly:
            parts.append("HttpOnly")
        if self.samesite:
            parts.append(f"SameSite={self.samesite}")
        return "; ".join(parts)


def parse_set_cookie(header: str) -> SetCookie:
    """Parse a ``Set-Cookie`` header value back into a ``SetCookie``."""
    first, *attributes = [part.strip() for part in header.split(";")]
    name, _, value = first.partition("=")
    options: dict[str, object] = {"httponly": False, "samesite": ""}
    for attribute in attributes:
        key, _, raw = attribute.partition("=")
        key = key.lower()
        if key == "max-age":
            try:
                options["max_age"] = int(raw)
            except ValueError:
                continue
        elif key == "path":
            options["path"] = raw
        elif key == "domain":
            options["domain"] = raw
        elif key == "secure":
            options["secure"] = True
        elif key == "httponly":
            options["httponly"] = True
        elif key == "samesite":
            options["samesite"] = raw
    return SetCookie(name=name.strip(), value=value.strip(), **options)  # type: ignore[arg-type]
