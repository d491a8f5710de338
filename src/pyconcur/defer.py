"""
Scoped deferred cleanup.

``defer`` runs a body that can register cleanup callbacks. Every registered
callback runs exactly once after the body settles, whether it returned or
raised, and before ``defer`` itself returns.
"""

from typing import Any, Awaitable, Callable, List, Optional, TypeVar, Union

import anyio
import structlog

from pyconcur.errors import PyconcurError
from pyconcur.telemetry import get_telemetry
from pyconcur.utils import call_maybe_async

T = TypeVar("T")

Cleanup = Callable[[], Any]
Register = Callable[[Cleanup], Cleanup]

_logger = structlog.get_logger(__name__)


class DeferScope:
    """
    Cleanup registry owned by a single ``defer`` call.

    Callbacks run in reverse registration order (LIFO), the same order
    ``contextlib.ExitStack`` unwinds in. Registration is only allowed while
    the body is running.
    """

    def __init__(self):
        self._cleanups: List[Cleanup] = []
        self._closed = False

    def __len__(self) -> int:
        return len(self._cleanups)

    def register(self, fn: Cleanup) -> Cleanup:
        """
        Register a zero-argument cleanup callback, sync or async.

        Returns ``fn`` so the method can be used as a decorator.

        Raises:
            PyconcurError: If the scope has already been unwound
        """
        if self._closed:
            raise PyconcurError("Cannot register a cleanup after the scope has settled")
        self._cleanups.append(fn)
        return fn

    async def unwind(self, logger=None) -> Optional[Exception]:
        """
        Run every registered cleanup once, newest first.

        Cleanups run shielded from cancellation. A failing cleanup does not
        stop the remaining ones and is always logged, through ``logger``
        when given and the module logger otherwise.

        Returns:
            The first exception raised by a cleanup, or None
        """
        self._closed = True
        cleanups, self._cleanups = self._cleanups, []
        log = logger or _logger
        first_error = None
        with anyio.CancelScope(shield=True):
            for fn in reversed(cleanups):
                try:
                    await call_maybe_async(fn)
                except Exception as e:
                    log.error(
                        "defer.cleanup_failed",
                        error=str(e),
                        error_type=type(e).__name__,
                    )
                    if first_error is None:
                        first_error = e
        return first_error


async def defer(body: Callable[[Register], Union[T, Awaitable[T]]]) -> T:
    """
    Run ``body`` with a cleanup registrar and unwind it afterwards.

    Args:
        body: A sync or async function taking ``register``; each call to
            ``register(fn)`` schedules ``fn`` to run after the body settles

    Returns:
        The body's result, available only after every cleanup has run

    Raises:
        Exception: The body's own exception, re-raised unchanged after all
            cleanups have run. If the body succeeded but a cleanup failed,
            the first cleanup error is raised instead.

    Example:
        >>> async def body(register):
        ...     conn = await connect()
        ...     register(conn.close)
        ...     return await conn.fetch()
        >>> rows = await defer(body)
    """
    _, logger = get_telemetry("pyconcur.defer")
    scope = DeferScope()

    try:
        result = await call_maybe_async(body, scope.register)
    except BaseException:
        await scope.unwind(logger)
        raise

    cleanup_error = await scope.unwind(logger)
    if cleanup_error is not None:
        raise cleanup_error
    return result
