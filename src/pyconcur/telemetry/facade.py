"""
Facades over OpenTelemetry tracing and structlog logging.

Library code talks to these facades only, so the underlying tracer and
logger can be swapped or mocked in one place.
"""

from typing import Any, Dict, Optional

import structlog
from opentelemetry import trace
from opentelemetry.trace.status import Status, StatusCode

from pyconcur.telemetry.tracing import AsyncSpanWrapper


class TracingFacade:
    """Facade for OpenTelemetry tracing."""

    def __init__(self, name: str):
        """
        Initialize a new tracing facade.

        Args:
            name: The name of the tracer
        """
        self.name = name
        self.tracer = trace.get_tracer(name)

    def start_as_current_async_span(
        self, name: str, attributes: Optional[Dict[str, Any]] = None
    ) -> AsyncSpanWrapper:
        """
        Start a new span as the current span, for use with ``async with``.

        Args:
            name: The name of the span
            attributes: Optional attributes to set on the span

        Returns:
            An async context manager yielding the span
        """
        return AsyncSpanWrapper(
            self.tracer.start_as_current_span(name, attributes=attributes)
        )


class LoggingFacade:
    """Facade for structlog logging with trace context."""

    def __init__(self, name: str):
        """
        Initialize a new logging facade.

        Args:
            name: The name of the logger
        """
        self.name = name
        self.logger = structlog.get_logger(name)

    def _add_trace_context(self, kwargs: Dict[str, Any]) -> Dict[str, Any]:
        context = trace.get_current_span().get_span_context()
        if context.is_valid:
            kwargs["trace_id"] = format(context.trace_id, "032x")
            kwargs["span_id"] = format(context.span_id, "016x")
        return kwargs

    def _mark_span_error(self, event: str) -> None:
        span = trace.get_current_span()
        if span.get_span_context().is_valid:
            span.set_status(Status(StatusCode.ERROR, event))

    def debug(self, event: str, **kwargs: Any) -> None:
        """Log a debug message."""
        self.logger.debug(event, **self._add_trace_context(kwargs))

    def info(self, event: str, **kwargs: Any) -> None:
        """Log an info message."""
        self.logger.info(event, **self._add_trace_context(kwargs))

    def warning(self, event: str, **kwargs: Any) -> None:
        """Log a warning message."""
        self.logger.warning(event, **self._add_trace_context(kwargs))

    def error(self, event: str, **kwargs: Any) -> None:
        """Log an error message and mark the current span as failed."""
        self._mark_span_error(event)
        self.logger.error(event, **self._add_trace_context(kwargs))
