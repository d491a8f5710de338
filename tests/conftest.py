"""
Pytest configuration for pyconcur tests.

This module contains fixtures and configuration for pytest.
"""

import importlib
from unittest.mock import MagicMock

import pytest

from pyconcur.telemetry import set_telemetry_enabled

# pytest-asyncio provides the event loop fixture


@pytest.fixture(autouse=True)
def reset_telemetry():
    """Keep library telemetry off unless a test turns it on."""
    set_telemetry_enabled(None)
    yield
    set_telemetry_enabled(None)


@pytest.fixture(autouse=True)
def clear_pyconcur_env(monkeypatch):
    """Remove PYCONCUR_* variables so defaults are predictable."""
    for name in (
        "PYCONCUR_RETRY_MAX_ATTEMPTS",
        "PYCONCUR_RETRY_DELAY_MS",
        "PYCONCUR_TELEMETRY_ENABLED",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def mock_telemetry(monkeypatch):
    """Fixture providing mock telemetry for every instrumented module."""
    mock_tracer = MagicMock()
    mock_span = MagicMock()
    mock_span_cm = mock_tracer.start_as_current_async_span.return_value
    mock_span_cm.__aenter__.return_value = mock_span

    mock_logger = MagicMock()

    mock_get_telemetry = MagicMock(return_value=(mock_tracer, mock_logger))
    for module in ("pyconcur.parallel", "pyconcur.retry", "pyconcur.defer"):
        # The package re-exports functions named like these modules
        monkeypatch.setattr(
            importlib.import_module(module), "get_telemetry", mock_get_telemetry
        )

    return mock_tracer, mock_span, mock_logger


def pytest_configure(config):
    """Register custom marks with pytest."""
    config.addinivalue_line("markers", "performance: mark test as a timing-sensitive test")
