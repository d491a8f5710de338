"""
Retry engine with an early-bail escape hatch.

``retry`` calls a function up to ``max_attempts`` times, waiting between
failures. The function receives a ``bail`` callback; calling it marks the
run as aborted so no further attempts are made, and ``retry`` raises the
bail value once the current attempt settles.
"""

import enum
from typing import Any, Awaitable, Callable, Optional, TypeVar, Union

from pyconcur.config import get_config
from pyconcur.errors import BailError, InvalidInputError
from pyconcur.telemetry import get_telemetry
from pyconcur.timing import sleep
from pyconcur.utils import call_maybe_async

T = TypeVar("T")

Bail = Callable[[Any], None]

_UNSET = object()


class RetryStatus(enum.Enum):
    """Lifecycle of a retry run."""

    ATTEMPTING = "attempting"
    SUCCEEDED = "succeeded"
    BAILED = "bailed"
    EXHAUSTED = "exhausted"


class RetryState:
    """Per-call retry bookkeeping."""

    def __init__(self, max_attempts: int):
        self.max_attempts = max_attempts
        self.attempt = 1
        self.last_error: Optional[Exception] = None
        self.status = RetryStatus.ATTEMPTING
        self.bailed = False
        self.bail_value: Any = None

    @property
    def attempts_remaining(self) -> int:
        return self.max_attempts - self.attempt

    def bail(self, error: Any = None) -> None:
        """Abort the run. Only the first call has an effect."""
        if not self.bailed:
            self.bailed = True
            self.bail_value = error

    def bail_exception(self) -> BaseException:
        """The exception ``retry`` raises for a bailed run."""
        if isinstance(self.bail_value, BaseException):
            return self.bail_value
        return BailError(self.bail_value)


def _resolve_max_attempts(max_attempts: Any) -> int:
    if max_attempts is _UNSET or max_attempts is None:
        max_attempts = get_config("retry_max_attempts")
    if isinstance(max_attempts, bool) or not isinstance(max_attempts, int) or max_attempts < 1:
        raise InvalidInputError(f"max_attempts must be a positive integer, got {max_attempts!r}")
    return max_attempts


def _validate_delay(delay_ms: Any, name: str = "delay_ms") -> Any:
    if delay_ms is None:
        return None
    if isinstance(delay_ms, bool) or not isinstance(delay_ms, (int, float)) or delay_ms < 0:
        raise InvalidInputError(f"{name} must be None or a non-negative number, got {delay_ms!r}")
    return delay_ms


async def retry(
    fn: Callable[[Bail], Union[T, Awaitable[T]]],
    max_attempts: Any = _UNSET,
    delay_ms: Any = _UNSET,
    *,
    backoff: Optional[Callable[[int], float]] = None,
) -> T:
    """
    Call ``fn(bail)`` until it succeeds, bails, or runs out of attempts.

    Args:
        fn: A sync or async function taking a ``bail`` callback
        max_attempts: Total number of calls allowed; defaults to the
            ``retry_max_attempts`` configuration value
        delay_ms: Wait between a failure and the next attempt, in
            milliseconds; defaults to ``retry_delay_ms``. None or 0 skips
            waiting.
        backoff: Optional function of the failed attempt number returning
            an extra wait in milliseconds

    Returns:
        The value of the first successful call

    Raises:
        BaseException: The value passed to ``bail`` when it is an exception
        BailError: Wrapping the value passed to ``bail`` otherwise
        Exception: The last error raised by ``fn`` once attempts run out
        InvalidInputError: If ``max_attempts`` is not a positive integer,
            ``delay_ms`` is negative, or ``backoff`` returns a negative wait

    Example:
        >>> async def fetch(bail):
        ...     response = await client.get(url)
        ...     if response.status_code == 404:
        ...         bail(NotFound(url))
        ...         return None
        ...     response.raise_for_status()
        ...     return response.json()
        >>> data = await retry(fetch, 5, 500)
    """
    state = RetryState(_resolve_max_attempts(max_attempts))
    if delay_ms is _UNSET:
        delay_ms = get_config("retry_delay_ms")
    delay_ms = _validate_delay(delay_ms)

    tracer, logger = get_telemetry("pyconcur.retry")

    if tracer:
        attributes = {"retry.max_attempts": state.max_attempts}
        async with tracer.start_as_current_async_span("pyconcur.retry", attributes) as span:
            try:
                return await _run_attempts(fn, state, delay_ms, backoff, logger, span)
            finally:
                span.set_attribute("retry.attempts", state.attempt)
                span.set_attribute("retry.status", state.status.value)
    return await _run_attempts(fn, state, delay_ms, backoff, logger)


async def _run_attempts(fn, state: RetryState, delay_ms, backoff, logger, span=None):
    while True:
        try:
            result = await call_maybe_async(fn, state.bail)
        except Exception as e:
            error = e
        else:
            error = None

        if state.bailed:
            state.status = RetryStatus.BAILED
            if logger:
                logger.info("retry.bailed", attempt=state.attempt)
            raise state.bail_exception()

        if error is None:
            state.status = RetryStatus.SUCCEEDED
            if logger:
                logger.debug("retry.succeeded", attempt=state.attempt)
            return result

        state.last_error = error
        if span is not None:
            span.record_exception(error)

        if state.attempts_remaining <= 0:
            state.status = RetryStatus.EXHAUSTED
            if logger:
                logger.error(
                    "retry.exhausted",
                    attempts=state.attempt,
                    error=str(error),
                    error_type=type(error).__name__,
                )
            raise error

        if logger:
            logger.warning(
                "retry.attempt_failed",
                attempt=state.attempt,
                max_attempts=state.max_attempts,
                error=str(error),
                error_type=type(error).__name__,
            )
        if delay_ms:
            await sleep(delay_ms)
        if backoff is not None:
            try:
                extra_ms = _validate_delay(backoff(state.attempt), "backoff")
            except InvalidInputError as e:
                raise e from error
            if extra_ms:
                await sleep(extra_ms)
        state.attempt += 1
