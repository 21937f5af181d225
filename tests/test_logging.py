"""
Tests for onu.logging.

Tests verify:
- LogContext binds and unbinds context vars (sync and async)
- configure_logging accepts both renderers
- The pipeline binds slug and execution_id while a task runs
"""

from __future__ import annotations

import pytest
import structlog

from onu.logging import LogContext, bind_context, clear_context, configure_logging, get_logger, unbind_context
from onu.pipeline import run_task
from onu.task import RunContext, Task


def _bound() -> dict:
    return structlog.contextvars.get_contextvars()


class TestContext:
    def setup_method(self):
        clear_context()

    def teardown_method(self):
        clear_context()

    def test_bind_and_unbind(self):
        bind_context(slug="send-report", execution_id="exec-1")
        assert _bound() == {"slug": "send-report", "execution_id": "exec-1"}
        unbind_context("slug")
        assert _bound() == {"execution_id": "exec-1"}

    def test_log_context_sync(self):
        with LogContext(request_id="req-1"):
            assert _bound()["request_id"] == "req-1"
        assert "request_id" not in _bound()

    @pytest.mark.asyncio
    async def test_log_context_async(self):
        async def scenario():
            async with LogContext(slug="echo"):
                return dict(_bound())

        assert await scenario() == {"slug": "echo"}
        assert "slug" not in _bound()

    @pytest.mark.asyncio
    async def test_pipeline_binds_task_context(self):
        seen = {}

        def run(input, ctx):
            seen.update(_bound())
            return None

        task = Task(name="Spy", slug="spy", run=run)
        await run_task(task, {}, RunContext(execution_id="exec-9"))
        assert seen["slug"] == "spy"
        assert seen["execution_id"] == "exec-9"
        assert "slug" not in _bound()


class TestConfigure:
    def teardown_method(self):
        structlog.reset_defaults()

    def test_json(self):
        configure_logging(level="INFO", json_format=True)
        get_logger("test").info("hello", slug="x")

    def test_console(self):
        configure_logging(level="DEBUG", json_format=False, service="onu-test", add_timestamp=False)
        get_logger("test").debug("hello")
