"""
Async span support for the telemetry module.
"""

from opentelemetry.context import attach, detach, get_current


class AsyncSpanWrapper:
    """
    Drive a synchronous span context manager from ``async with``.

    The current context is attached when the block is entered, not when the
    wrapper is built, so a wrapper that is never entered leaves the context
    untouched. Entering yields the span itself.
    """

    def __init__(self, span_cm):
        """
        Initialize a new async span wrapper.

        Args:
            span_cm: The span context manager to drive
        """
        self.span_cm = span_cm
        self.span = None
        self._token = None

    async def __aenter__(self):
        """Attach the current context and open the span."""
        self._token = attach(get_current())
        self.span = self.span_cm.__enter__()
        return self.span

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Close the span, then restore the context attached on entry."""
        try:
            self.span_cm.__exit__(exc_type, exc_val, exc_tb)
        finally:
            detach(self._token)
            self._token = None
