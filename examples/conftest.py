"""Shared pytest configuration for the roost examples.

``example_module`` executes the ``app.py`` beside the requesting test in
a fresh module namespace, so in-memory stores start clean for every
test. ``example_app`` is its ``app`` attribute.
"""

import importlib.util
from pathlib import Path
from types import ModuleType

import pytest


@pytest.fixture
def example_module(request: pytest.FixtureRequest) -> ModuleType:
    """Load a fresh copy of the sibling app.py."""
    app_path = Path(request.path).parent / "app.py"
    spec = importlib.util.spec_from_file_location(f"example_{app_path.parent.name}", app_path)
    assert spec is not None
    assert spec.loader is not None
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def example_app(example_module: ModuleType):
    return example_module.app
