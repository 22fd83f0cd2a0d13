"""Path parameter converters: ``{name}`` defaults to ``str``."""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Converter:
    """How a converter matches a segment and which characters ``url_for`` leaves unquoted."""

    pattern: str
    safe: str = ""


CONVERTERS: dict[str, Converter] = {
    "str": Converter(r"[^/]+"),
    "int": Converter(r"\d+"),
    "float": Converter(r"\d+(?:\.\d+)?"),
    "path": Converter(r".+", safe="/"),
}
