"""Pytest fixtures for SplitUI tests."""

import logging

import pytest

from splitui.capabilities.catalog import default_registry
from splitui.capabilities.registry import CapabilityRegistry
from splitui.dispatch.controller import DispatchController
from splitui.foundation.config import reset_config
from splitui.models.mock import MockModel
from splitui.store.base import DomainStores
from splitui.store.native import memory_stores
from splitui.surface.views import ViewContext


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path):
    """Keep user config, credentials, SPLITUI_* variables and root logging out of tests."""
    import os

    for key in list(os.environ):
        if key.startswith("SPLITUI_"):
            monkeypatch.delenv(key)
    for key in (
        "ANTHROPIC_API_KEY",
        "AWS_BEARER_TOKEN_BEDROCK",
        "AWS_ACCESS_KEY_ID",
        "AWS_SECRET_ACCESS_KEY",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))

    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    reset_config()
    yield
    reset_config()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def registry() -> CapabilityRegistry:
    """Registry holding the built-in catalog."""
    return default_registry()


@pytest.fixture
def stores() -> DomainStores:
    """Fresh in-memory task and bonus stores."""
    return memory_stores()


@pytest.fixture
def view_context(stores: DomainStores) -> ViewContext:
    return ViewContext(stores=stores)


@pytest.fixture
def controller(registry: CapabilityRegistry) -> DispatchController:
    """Controller whose countdown is driven by explicit tick() calls."""
    return DispatchController(registry, auto_tick=False)


@pytest.fixture
def mock_model() -> MockModel:
    """Mock model with empty scripts (declines, echoes)."""
    return MockModel()
