"""Write a roost Response out as the two ASGI response messages."""

from collections.abc import Iterator

from roost._internal.asgi import Send
from roost.http.response import Response

# Statuses that never carry a message body
_BODYLESS = frozenset({204, 205, 304})


def _encode_headers(response: Response, length: int) -> Iterator[tuple[bytes, bytes]]:
    yield b"content-type", response.content_type.encode("latin-1")
    for name, value in response.headers:
        yield name.lower().encode("latin-1"), value.encode("latin-1")
    for cookie in response.cookies:
        yield b"set-cookie", cookie.to_header_value().encode("latin-1")
    yield b"content-length", str(length).encode("latin-1")


async def send_response(response: Response, send: Send) -> None:
    """Send *response*; informational and bodyless statuses go out empty."""
    if response.status < 200 or response.status in _BODYLESS:
        body = b""
    else:
        body = response.body_bytes

    await send(
        {
            "type": "http.response.start",
            "status": response.status,
            "headers": list(_encode_headers(response, len(body))),
        }
    )
    await send({"type": "http.response.body", "body": body, "more_body": False})
