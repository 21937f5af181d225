"""
Shared pytest fixtures and configuration for onu tests.

This module provides:
- Paths to the fixture task directories under ``tests/``
- Fresh registries / clients per test
- ``FakeRequest``, a host-framework style request (pre-parsed ``body``)

Usage:
    @pytest.mark.asyncio
    async def test_something(client, make_request):
        response = await client.handle_request(make_request("/?action=list"))
"""

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest

# Ensure onu package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from onu.client import OnuClient  # noqa: E402
from onu.registry import TaskRegistry  # noqa: E402

TESTS_DIR = Path(__file__).parent
TEST_TASKS_DIR = TESTS_DIR / "_test_tasks"
VALIDATION_TASKS_DIR = TESTS_DIR / "_validation_tasks"
DUPLICATE_TASKS_DIR = TESTS_DIR / "_duplicate_tasks"
BROKEN_TASKS_DIR = TESTS_DIR / "_broken_tasks"

# Slugs registered from TEST_TASKS_DIR (reserved top-level files excluded)
TEST_TASK_SLUGS = {"test-slug", "echo", "boom", "nested-init", "nested-report", "shout"}


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their module."""
    for item in items:
        markers = {mark.name for mark in item.iter_markers()}
        if markers.intersection({"unit", "integration"}):
            continue
        if item.module.__name__ in {"test_app", "test_client"}:
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Helpers
# =============================================================================


@dataclass
class FakeRequest:
    """Request object as handed over by a host framework that parsed the body."""

    url: str
    method: str = "GET"
    headers: dict[str, str] = field(default_factory=lambda: {"onu-signature": "test", "host": "test.com"})
    body: dict[str, Any] | None = None


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def registry() -> TaskRegistry:
    return TaskRegistry()


@pytest.fixture
def client() -> OnuClient:
    """Embedded-mode client over the general fixture tasks."""
    return OnuClient(onu_path=TEST_TASKS_DIR, api_key="test")


@pytest.fixture
def validation_client() -> OnuClient:
    """Embedded-mode client over the validation fixture tasks."""
    return OnuClient(onu_path=VALIDATION_TASKS_DIR, api_key="test")


@pytest.fixture
def make_request():
    """Factory for ``FakeRequest`` with the signature header set."""

    def _make(url: str, method: str = "GET", body: dict[str, Any] | None = None, **headers: str) -> FakeRequest:
        request = FakeRequest(url=f"http://test.com{url}", method=method, body=body)
        request.headers.update(headers)
        return request

    return _make
