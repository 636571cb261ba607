"""Pytest configuration and fixtures.

Provides environment isolation, logging configuration, marker registration,
and automatic API test skipping. Fixtures without ``autouse`` are opt-in
test doubles for the transport seam.
"""

from __future__ import annotations

from contextlib import suppress
import logging
import os
from typing import Any

import httpx
import pytest

from schemachat.config import Config
from schemachat.transport import HttpxTransport, MockTransport


# =============================================================================
# Environment Isolation (Autouse)
# =============================================================================


@pytest.fixture(autouse=True)
def block_dotenv(request, monkeypatch):
    """Prevent python-dotenv from loading project .env files during tests.

    Opt-out: @pytest.mark.allow_dotenv
    """
    if request.node.get_closest_marker("allow_dotenv"):
        return
    with suppress(Exception):
        monkeypatch.setattr(
            "dotenv.load_dotenv", lambda *_args, **_kwargs: False, raising=False
        )


@pytest.fixture(autouse=True)
def isolate_provider_env(request, monkeypatch):
    """Ensure a clean OPENAI_* environment for each test.

    Opt-out: @pytest.mark.allow_env_pollution or @pytest.mark.api
    """
    if request.node.get_closest_marker("allow_env_pollution") or (
        "api" in request.node.keywords
    ):
        return

    for key in list(os.environ.keys()):
        if key.startswith("OPENAI_"):
            monkeypatch.delenv(key, raising=False)


# =============================================================================
# Logging
# =============================================================================


@pytest.fixture(scope="session", autouse=True)
def quiet_noisy_libraries():
    """Suppress noisy third-party loggers."""
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


# =============================================================================
# Test Doubles
# =============================================================================


@pytest.fixture
def config() -> Config:
    """A real-mode config with an explicit test key."""
    return Config(api_key="sk-test-key")


@pytest.fixture
def reply_with():
    """Factory: a MockTransport that answers every request with *envelope*."""

    def _make(envelope: dict[str, Any]) -> MockTransport:
        return MockTransport(reply=lambda _payload: envelope)

    return _make


@pytest.fixture
def httpx_transport():
    """Factory: an HttpxTransport whose client is driven by *handler*.

    The handler receives each ``httpx.Request`` and returns an
    ``httpx.Response`` or raises an ``httpx`` exception.
    """

    def _make(handler) -> HttpxTransport:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return HttpxTransport(timeout_s=5.0, client=client)

    return _make


# =============================================================================
# Pytest Hooks
# =============================================================================

API_TESTS_REASON = "API tests require ENABLE_API_TESTS=1"


def _api_tests_enabled() -> bool:
    return bool(os.getenv("ENABLE_API_TESTS"))


def pytest_collection_modifyitems(items):
    """Automatically skip API tests when not explicitly enabled."""
    if _api_tests_enabled():
        return
    skip_api = pytest.mark.skip(reason=API_TESTS_REASON)
    for item in items:
        if "api" in item.keywords:
            item.add_marker(skip_api)


@pytest.fixture
def openai_api_key():
    """Return OPENAI_API_KEY or skip the test if unavailable."""
    key = os.getenv("OPENAI_API_KEY")
    if not key:
        pytest.skip("OPENAI_API_KEY not set")
    return key
