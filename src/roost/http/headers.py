"""Case-insensitive request headers, decoded once from the ASGI scope."""

from collections.abc import Iterable, Mapping

from roost.http.multidict import MultiDict


class Headers(MultiDict):
    """Request headers keyed by lowercase name.

    ``headers["Content-Type"]`` and ``headers["content-type"]`` are the
    same lookup. Repeated headers keep every value for ``get_list``.
    """

    __slots__ = ()

    def __init__(self, raw: Iterable[tuple[bytes, bytes]] = ()) -> None:
        grouped: dict[str, list[str]] = {}
        for name, value in raw:
            grouped.setdefault(name.decode("latin-1").lower(), []).append(value.decode("latin-1"))
        super().__init__(grouped)

    @classmethod
    def from_mapping(cls, headers: Mapping[str, str] | None) -> "Headers":
        """Build from a plain ``{name: value}`` mapping."""
        return cls((name.encode("latin-1"), value.encode("latin-1")) for name, value in (headers or {}).items())

    def _key(self, key: str) -> str:
        return key.lower()
