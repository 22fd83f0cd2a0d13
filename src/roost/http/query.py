"""Parsed query string parameters."""

from urllib.parse import parse_qs

from roost.http.multidict import MultiDict


class QueryParams(MultiDict):
    """Query string parameters; keeps the raw bytes for rebuilding URLs.

    Screens read the action name from here (``?method=save``).
    """

    __slots__ = ("_raw",)

    def __init__(self, query_string: bytes = b"") -> None:
        super().__init__(parse_qs(query_string.decode("latin-1"), keep_blank_values=True))
        object.__setattr__(self, "_raw", query_string)

    @property
    def raw(self) -> bytes:
        return self._raw
