"""Type aliases for user-supplied callables and route options."""

from collections.abc import Callable
from typing import Any, TypeAlias

# Signature varies; arguments are injected by name
Handler: TypeAlias = Callable[..., Any]

# Called with (), (request) or (request, exc)
ErrorHandler: TypeAlias = Callable[..., Any]

# One middleware group name, or several applied outermost first
MiddlewareRef: TypeAlias = str | tuple[str, ...] | list[str]
