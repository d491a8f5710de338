"""
Bounded-concurrency parallel execution.

``parallel`` runs a worker over every item with at most ``limit`` calls in
flight. Slots are filled greedily: the moment a call settles, the same
slot picks up the next unstarted item, so the in-flight count holds at
``limit`` until the tail of the input is reached. Per-item failures are
captured as data and never abort sibling calls.
"""

import enum
from typing import Any, Awaitable, Callable, Iterable, List, NamedTuple, Optional, Union

import anyio

from pyconcur.errors import InvalidInputError, PyconcurError
from pyconcur.telemetry import get_telemetry
from pyconcur.utils import call_maybe_async


class Outcome(NamedTuple):
    """Result slot for one item: ``(None, result)`` or ``(error, None)``."""

    error: Optional[Exception]
    result: Any

    @property
    def ok(self) -> bool:
        return self.error is None


class LimiterState(enum.Enum):
    """Lifecycle of a ``ConcurrencyLimiter`` run."""

    IDLE = "idle"
    FILLING = "filling"
    DRAINING = "draining"
    DONE = "done"


Worker = Callable[[Any], Union[Any, Awaitable[Any]]]


def _validate_limit(limit: Any) -> int:
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        raise InvalidInputError(f"Concurrency limit must be a positive integer, got {limit!r}")
    return limit


class ConcurrencyLimiter:
    """
    Greedy slot-filling executor over an ordered list of items.

    Each slot is a task that runs one item, then advances the shared cursor
    and runs the next item itself without yielding its slot. The cursor and
    counters are only touched between suspension points, so no locking is
    needed.

    Attributes:
        limit: Maximum number of worker calls in flight
        items: The materialized input items
        outcomes: Index-aligned outcomes, filled in as calls settle
        state: Current ``LimiterState``
        in_flight: Number of worker calls currently running
        peak_in_flight: Highest ``in_flight`` value observed
    """

    def __init__(self, limit: int, items: Iterable[Any], worker: Worker):
        if items is None:
            raise InvalidInputError("Expected a sequence of items, got None")
        self.limit = _validate_limit(limit)
        try:
            self.items = list(items)
        except TypeError as e:
            raise InvalidInputError(
                f"Expected an iterable of items, got {type(items).__name__}"
            ) from e
        self.worker = worker
        self.outcomes: List[Optional[Outcome]] = [None] * len(self.items)
        self.state = LimiterState.IDLE
        self.in_flight = 0
        self.peak_in_flight = 0
        self._cursor = 0

    def _next_index(self) -> Optional[int]:
        """Advance the cursor; None once every item has been dispatched."""
        if self._cursor >= len(self.items):
            return None
        index = self._cursor
        self._cursor += 1
        if self._cursor == len(self.items):
            self.state = LimiterState.DRAINING
        return index

    async def _run_slot(self, index: Optional[int]) -> None:
        while index is not None:
            self.in_flight += 1
            self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
            try:
                result = await call_maybe_async(self.worker, self.items[index])
            except Exception as e:
                self.outcomes[index] = Outcome(e, None)
            else:
                self.outcomes[index] = Outcome(None, result)
            finally:
                self.in_flight -= 1
            index = self._next_index()

    async def run(self) -> List[Outcome]:
        """
        Run the worker over every item exactly once.

        Returns:
            Outcomes in input order

        Raises:
            PyconcurError: If this limiter has already been run
        """
        if self.state is not LimiterState.IDLE:
            raise PyconcurError("ConcurrencyLimiter can only be run once")

        if self.items:
            self.state = LimiterState.FILLING
            async with anyio.create_task_group() as tg:
                for _ in range(min(self.limit, len(self.items))):
                    tg.start_soon(self._run_slot, self._next_index())

        self.state = LimiterState.DONE
        return list(self.outcomes)


async def parallel(limit: int, items: Iterable[Any], worker: Worker) -> List[Outcome]:
    """
    Run ``worker`` over ``items`` with at most ``limit`` calls in flight.

    Args:
        limit: Maximum concurrent worker calls, a positive integer
        items: The items to process; any iterable, consumed once
        worker: A sync or async function called with one item

    Returns:
        A list of ``Outcome(error, result)`` aligned with ``items``. A failed
        call yields ``Outcome(error, None)``; the call as a whole does not
        raise because of worker failures.

    Raises:
        InvalidInputError: If ``limit`` is not a positive integer or
            ``items`` is None or not iterable
    """
    limiter = ConcurrencyLimiter(limit, items, worker)
    tracer, logger = get_telemetry("pyconcur.parallel")

    if logger:
        logger.debug("parallel.start", limit=limiter.limit, item_count=len(limiter.items))

    if tracer:
        attributes = {"parallel.limit": limiter.limit, "parallel.item_count": len(limiter.items)}
        async with tracer.start_as_current_async_span("pyconcur.parallel", attributes) as span:
            outcomes = await limiter.run()
            errors = [o.error for o in outcomes if o.error is not None]
            for error in errors:
                span.record_exception(error)
            span.set_attribute("parallel.error_count", len(errors))
    else:
        outcomes = await limiter.run()

    if logger:
        error_count = sum(1 for o in outcomes if o.error is not None)
        logger.debug(
            "parallel.complete",
            item_count=len(outcomes),
            error_count=error_count,
            peak_in_flight=limiter.peak_in_flight,
        )
        if error_count:
            logger.warning("parallel.item_failures", error_count=error_count)

    return outcomes


def irange(start: int, end: Optional[int] = None, step: int = 1) -> List[int]:
    """
    Build an inclusive list of integers.

    ``irange(3)`` is ``[0, 1, 2, 3]``; ``irange(1, 3)`` is ``[1, 2, 3]``;
    when ``start > end`` the list counts down.

    Raises:
        InvalidInputError: If ``step`` is not a positive integer
    """
    if end is None:
        start, end = 0, start
    if isinstance(step, bool) or not isinstance(step, int) or step < 1:
        raise InvalidInputError(f"Step must be a positive integer, got {step!r}")
    if start <= end:
        return list(range(start, end + 1, step))
    return list(range(start, end - 1, -step))
