"""
Sequential fold and map over sync or async step functions.

Step functions are invoked strictly one at a time in input order: call
``i + 1`` does not start until call ``i`` has settled.
"""

from typing import Any, Awaitable, Callable, Iterable, Iterator, List, TypeVar, Union

from pyconcur.errors import EmptyInputError, InvalidInputError
from pyconcur.utils import call_maybe_async, positional_arity

T = TypeVar("T")
R = TypeVar("R")
Acc = TypeVar("Acc")

_MISSING = object()


def _iterate(sequence: Any) -> Iterator[Any]:
    if sequence is None:
        raise InvalidInputError("Expected a sequence, got None")
    try:
        return iter(sequence)
    except TypeError as e:
        raise InvalidInputError(
            f"Expected an iterable sequence, got {type(sequence).__name__}"
        ) from e


async def reduce(
    sequence: Iterable[T],
    reducer: Callable[..., Union[Acc, Awaitable[Acc]]],
    initial: Any = _MISSING,
) -> Acc:
    """
    Fold ``sequence`` into a single value with a sync or async reducer.

    The reducer is called as ``reducer(acc, item, index)`` when it accepts
    three positional parameters, and as ``reducer(acc, item)`` otherwise.

    Args:
        sequence: The items to fold
        reducer: The step function
        initial: The starting accumulator. When omitted, the first item is
            used and folding starts from the second item.

    Returns:
        The final accumulator

    Raises:
        InvalidInputError: If ``sequence`` is None or not iterable
        EmptyInputError: If ``sequence`` is empty and ``initial`` is omitted
    """
    iterator = _iterate(sequence)
    with_index = positional_arity(reducer) >= 3

    index = 0
    if initial is _MISSING:
        try:
            acc = next(iterator)
        except StopIteration:
            raise EmptyInputError(
                "Cannot reduce an empty sequence without an initial value"
            ) from None
        index = 1
    else:
        acc = initial

    for item in iterator:
        if with_index:
            acc = await call_maybe_async(reducer, acc, item, index)
        else:
            acc = await call_maybe_async(reducer, acc, item)
        index += 1
    return acc


async def map(
    sequence: Iterable[T],
    mapper: Callable[[T], Union[R, Awaitable[R]]],
) -> List[R]:
    """
    Project every item of ``sequence`` through a sync or async mapper.

    Built on ``reduce`` with a list accumulator, so the output has the same
    length and order as the input.

    Raises:
        InvalidInputError: If ``sequence`` is None or not iterable
    """

    async def append(acc: List[R], item: T) -> List[R]:
        acc.append(await call_maybe_async(mapper, item))
        return acc

    return await reduce(sequence, append, [])
