"""Helpers shared by the concurrency primitives."""

import inspect
from typing import Any, Callable


async def maybe_await(value: Any) -> Any:
    """Await ``value`` if it is awaitable, otherwise return it unchanged."""
    if inspect.isawaitable(value):
        return await value
    return value


async def call_maybe_async(func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """Call a sync or async function and return its settled result."""
    return await maybe_await(func(*args, **kwargs))


def positional_arity(func: Callable[..., Any]) -> int:
    """
    Count how many positional arguments ``func`` accepts.

    Returns -1 when the function takes ``*args`` or its signature
    cannot be inspected.
    """
    try:
        signature = inspect.signature(func)
    except (TypeError, ValueError):
        return -1
    count = 0
    for param in signature.parameters.values():
        if param.kind == param.VAR_POSITIONAL:
            return -1
        if param.kind in (param.POSITIONAL_ONLY, param.POSITIONAL_OR_KEYWORD):
            count += 1
    return count
