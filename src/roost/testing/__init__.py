"""Test utilities for roost applications.

Provides the async test client, the ``DynamicTestScreen`` helper for
exercising a screen on a throwaway route, and response assertions::

    from roost.testing import DynamicTestScreen, TestClient, assert_ok
"""

from roost.testing.assertions import (
    assert_dont_see,
    assert_header,
    assert_ok,
    assert_redirect,
    assert_see,
    assert_status,
)
from roost.testing.client import TestClient
from roost.testing.dynamic_screen import DynamicTestScreen

__all__ = [
    "DynamicTestScreen",
    "TestClient",
    "assert_dont_see",
    "assert_header",
    "assert_ok",
    "assert_redirect",
    "assert_see",
    "assert_status",
]
