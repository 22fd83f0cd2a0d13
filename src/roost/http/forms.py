"""URL-encoded form data.

Screen actions receive their POST body as ``FormData``. The test client
encodes ``data=`` mappings with ``encode_form`` so both directions use
the same rules.
"""

from collections.abc import Mapping
from typing import Any
from urllib.parse import parse_qs, urlencode

from roost.http.multidict import MultiDict

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


class FormData(MultiDict):
    """Parsed form fields. Checkboxes and multi-selects repeat a key::

        form = await request.form()
        title = form["title"]
        tags = form.get_list("tags")
    """

    __slots__ = ()


def parse_form_data(body: bytes, content_type: str) -> FormData:
    """Parse a URL-encoded body into ``FormData``.

    Raises ``ValueError`` for any other content type.
    """
    ct_lower = content_type.lower().split(";")[0].strip()
    if ct_lower != FORM_CONTENT_TYPE:
        msg = f"Unsupported form content type: {content_type!r}"
        raise ValueError(msg)
    return FormData(parse_qs(body.decode("utf-8"), keep_blank_values=True))


def encode_form(data: Mapping[str, Any]) -> bytes:
    """Encode a mapping as a URL-encoded body.

    List and tuple values become repeated keys; ``None`` becomes an
    empty string.
    """
    pairs: list[tuple[str, str]] = []
    for key, value in data.items():
        if isinstance(value, (list, tuple)):
            pairs.extend((key, _stringify(item)) for item in value)
        else:
            pairs.append((key, _stringify(value)))
    return urlencode(pairs).encode("utf-8")


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "1" if value else "0"
    return str(value)
