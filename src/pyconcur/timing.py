"""Timing primitives."""

import anyio

from pyconcur.errors import InvalidInputError


async def sleep(ms: float) -> None:
    """
    Suspend the current task for at least ``ms`` milliseconds.

    The duration is a lower bound only; the scheduler may resume the task
    later, never earlier.

    Args:
        ms: The duration in milliseconds, must be non-negative

    Raises:
        InvalidInputError: If ``ms`` is negative or None
    """
    if ms is None or ms < 0:
        raise InvalidInputError(f"Sleep duration must be non-negative, got {ms!r}")
    deadline = anyio.current_time() + ms / 1000
    await anyio.sleep(ms / 1000)
    # Event loops may fire timers up to one clock tick early.
    remaining = deadline - anyio.current_time()
    while remaining > 0:
        await anyio.sleep(remaining)
        remaining = deadline - anyio.current_time()
