"""Raw ASGI type aliases.

Only the request handler and the test client speak raw ASGI.
Everything else works with ``Request`` and ``Response``.
"""

from collections.abc import Awaitable, Callable, MutableMapping
from typing import Any, TypeAlias

Scope: TypeAlias = MutableMapping[str, Any]
Receive: TypeAlias = Callable[[], Awaitable[MutableMapping[str, Any]]]
Send: TypeAlias = Callable[[MutableMapping[str, Any]], Awaitable[None]]

# Scope ``extensions`` key carrying test-only injections
# (session payload, previous URL, acting-as principals).
TESTING_EXTENSION = "roost.testing"
