"""
Telemetry module for pyconcur.

This module provides observability for the concurrency helpers: tracing
through OpenTelemetry and structured logging through structlog. Library
telemetry is off unless enabled through configuration
(``PYCONCUR_TELEMETRY_ENABLED``) or by calling ``configure_telemetry``.
"""

from typing import Optional, Tuple

from pyconcur.config import get_config
from pyconcur.telemetry.config import configure_telemetry
from pyconcur.telemetry.facade import LoggingFacade, TracingFacade
from pyconcur.telemetry.tracing import AsyncSpanWrapper

_enabled_override: Optional[bool] = None


def set_telemetry_enabled(enabled: Optional[bool]) -> None:
    """
    Force library telemetry on or off.

    Args:
        enabled: True or False to override configuration, None to defer
            to the ``telemetry_enabled`` configuration key again
    """
    global _enabled_override
    _enabled_override = enabled


def telemetry_enabled() -> bool:
    """Return whether library call sites should emit logs and spans."""
    if _enabled_override is not None:
        return _enabled_override
    return get_config("telemetry_enabled")


def get_telemetry(
    name: str,
) -> Tuple[Optional[TracingFacade], Optional[LoggingFacade]]:
    """
    Get tracer and logger instances for the given name.

    Args:
        name: The name to use for the tracer and logger

    Returns:
        A (tracer, logger) tuple, or (None, None) when telemetry is disabled
    """
    if not telemetry_enabled():
        return None, None
    return TracingFacade(name), LoggingFacade(name)


__all__ = [
    "AsyncSpanWrapper",
    "LoggingFacade",
    "TracingFacade",
    "configure_telemetry",
    "get_telemetry",
    "set_telemetry_enabled",
    "telemetry_enabled",
]
