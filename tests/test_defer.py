"""Tests for scoped deferred cleanup."""

import importlib
from unittest.mock import MagicMock

import anyio
import pytest

from pyconcur.defer import DeferScope, defer
from pyconcur.errors import PyconcurError


@pytest.mark.asyncio
async def test_defer_calls_registered_cleanup():
    """Test that a registered cleanup runs."""
    state = {"val": 0}

    async def body(register):
        register(lambda: state.update(val=1))

    await defer(body)
    assert state["val"] == 1


@pytest.mark.asyncio
async def test_defer_returns_body_result():
    """Test that defer returns the body's result after cleanups."""
    state = {"val": 0}

    async def body(register):
        register(lambda: state.update(val=1))
        return "x"

    result = await defer(body)
    assert state["val"] == 1
    assert result == "x"


@pytest.mark.asyncio
async def test_defer_calls_all_cleanups():
    """Test that every registered cleanup runs exactly once."""
    calls = []

    async def body(register):
        register(lambda: calls.append("one"))
        register(lambda: calls.append("two"))
        register(lambda: calls.append("three"))
        return "x"

    assert await defer(body) == "x"
    assert sorted(calls) == ["one", "three", "two"]
    assert len(calls) == 3


@pytest.mark.asyncio
async def test_defer_runs_cleanups_in_reverse_order():
    """Test that cleanups unwind newest first."""
    calls = []

    async def body(register):
        for name in ("one", "two", "three"):
            register(lambda name=name: calls.append(name))

    await defer(body)
    assert calls == ["three", "two", "one"]


@pytest.mark.asyncio
async def test_defer_calls_all_cleanups_when_body_raises():
    """Test that cleanups still run when the body fails."""
    calls = []

    async def body(register):
        register(lambda: calls.append("one"))
        register(lambda: calls.append("two"))
        register(lambda: calls.append("three"))
        raise RuntimeError("soooo broken")

    with pytest.raises(RuntimeError):
        await defer(body)
    assert sorted(calls) == ["one", "three", "two"]


@pytest.mark.asyncio
async def test_defer_rethrows_the_original_error():
    """Test that the body's exception object is re-raised unchanged."""
    error = RuntimeError("soooo broken")

    def body(register):
        raise error

    with pytest.raises(RuntimeError, match="soooo broken") as exc_info:
        await defer(body)
    assert exc_info.value is error


@pytest.mark.asyncio
async def test_defer_awaits_result_of_sync_body():
    """Test that a plain body returning an awaitable is awaited."""

    async def compute():
        await anyio.sleep(0)
        return "x"

    result = await defer(lambda register: compute())
    assert result == "x"


@pytest.mark.asyncio
async def test_defer_awaits_async_cleanups_before_returning():
    """Test that async cleanups finish before defer settles."""
    events = []

    async def close():
        await anyio.sleep(0.01)
        events.append("closed")

    async def body(register):
        register(close)
        events.append("body")
        return "done"

    assert await defer(body) == "done"
    assert events == ["body", "closed"]


@pytest.mark.asyncio
async def test_defer_cleanup_error_does_not_replace_body_error():
    """Test that a failing cleanup neither stops others nor masks the body error."""
    calls = []

    def bad_cleanup():
        raise ValueError("cleanup failed")

    async def body(register):
        register(lambda: calls.append("first"))
        register(bad_cleanup)
        raise RuntimeError("body failed")

    with pytest.raises(RuntimeError, match="body failed"):
        await defer(body)
    assert calls == ["first"]


@pytest.mark.asyncio
async def test_defer_cleanup_error_raised_after_successful_body():
    """Test that a cleanup failure surfaces when the body succeeded."""
    calls = []

    def bad_cleanup():
        raise ValueError("cleanup failed")

    async def body(register):
        register(lambda: calls.append("first"))
        register(bad_cleanup)
        return "x"

    with pytest.raises(ValueError, match="cleanup failed"):
        await defer(body)
    assert calls == ["first"]


@pytest.mark.asyncio
async def test_defer_with_no_cleanups():
    """Test that registering nothing is fine."""
    assert await defer(lambda register: 42) == 42


@pytest.mark.asyncio
async def test_register_can_be_used_as_decorator():
    """Test that register returns the callback it was given."""
    calls = []

    async def body(register):
        @register
        def cleanup():
            calls.append("cleanup")

        assert callable(cleanup)

    await defer(body)
    assert calls == ["cleanup"]


@pytest.mark.asyncio
async def test_cleanups_run_when_body_is_cancelled():
    """Test that cleanups still run, shielded, when the body is cancelled."""
    calls = []

    async def close():
        await anyio.sleep(0.01)
        calls.append("closed")

    async def body(register):
        register(close)
        await anyio.sleep(1)

    with anyio.move_on_after(0.05) as scope:
        await defer(body)

    assert scope.cancelled_caught
    assert calls == ["closed"]


@pytest.mark.asyncio
async def test_scope_rejects_registration_after_unwind():
    """Test that a settled scope no longer accepts cleanups."""
    scope = DeferScope()
    scope.register(lambda: None)
    assert len(scope) == 1

    assert await scope.unwind() is None
    assert len(scope) == 0

    with pytest.raises(PyconcurError):
        scope.register(lambda: None)


@pytest.mark.asyncio
async def test_defer_logs_cleanup_failures(mock_telemetry):
    """Test that failing cleanups are logged when telemetry is on."""
    _, _, mock_logger = mock_telemetry

    def bad_cleanup():
        raise ValueError("cleanup failed")

    async def body(register):
        register(bad_cleanup)
        raise RuntimeError("body failed")

    with pytest.raises(RuntimeError):
        await defer(body)

    mock_logger.error.assert_called_once_with(
        "defer.cleanup_failed", error="cleanup failed", error_type="ValueError"
    )


@pytest.mark.asyncio
async def test_defer_logs_cleanup_failures_without_telemetry(monkeypatch):
    """Test that a failing cleanup is logged even when telemetry is off."""
    mock_logger = MagicMock()
    monkeypatch.setattr(importlib.import_module("pyconcur.defer"), "_logger", mock_logger)

    def bad_cleanup():
        raise ValueError("cleanup failed")

    async def body(register):
        register(bad_cleanup)
        raise RuntimeError("body failed")

    with pytest.raises(RuntimeError, match="body failed"):
        await defer(body)

    mock_logger.error.assert_called_once_with(
        "defer.cleanup_failed", error="cleanup failed", error_type="ValueError"
    )
