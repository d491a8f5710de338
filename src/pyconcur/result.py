"""
Exception-to-data wrapper.

``try_`` turns a function that may raise into one that always returns a
``Result`` pair, so failures can be handled by inspecting data instead of
with ``try``/``except`` blocks.
"""

import functools
from typing import Any, Awaitable, Callable, NamedTuple, Optional

from pyconcur.utils import call_maybe_async


class Result(NamedTuple):
    """An ``(error, value)`` pair; ``value`` is meaningless when ``error`` is set."""

    error: Optional[Exception]
    value: Any

    @property
    def ok(self) -> bool:
        """True when the call completed without raising."""
        return self.error is None


def try_(fn: Callable[..., Any]) -> Callable[..., Awaitable[Result]]:
    """
    Wrap ``fn`` so that calling it never raises.

    ``fn`` may be a plain function or a coroutine function. Arguments given
    to the wrapper are forwarded to ``fn``.

    Args:
        fn: The function to wrap

    Returns:
        A coroutine function resolving to ``Result(error, None)`` when ``fn``
        raises and ``Result(None, value)`` when it returns

    Example:
        >>> err, user = await try_(fetch_user)(user_id)
        >>> if err:
        ...     return None
    """

    @functools.wraps(fn)
    async def wrapper(*args: Any, **kwargs: Any) -> Result:
        try:
            value = await call_maybe_async(fn, *args, **kwargs)
        except Exception as e:
            return Result(e, None)
        return Result(None, value)

    return wrapper
