"""Structured concurrency helpers for pyconcur.

This package provides small async building blocks using AnyIO: sequential
fold and map, scoped deferred cleanup, an exception-to-data wrapper, a
minimum-duration sleep, a bounded-concurrency parallel executor and a
retry engine with early bail.
"""

from pyconcur.config import DEFAULT_DELAY_MS, DEFAULT_MAX_ATTEMPTS
from pyconcur.defer import DeferScope, defer
from pyconcur.errors import (
    BailError,
    ConfigurationError,
    EmptyInputError,
    InvalidInputError,
    PyconcurError,
)
from pyconcur.parallel import ConcurrencyLimiter, LimiterState, Outcome, irange, parallel
from pyconcur.result import Result, try_
from pyconcur.retry import RetryState, RetryStatus, retry
from pyconcur.sequential import map, reduce
from pyconcur.telemetry import configure_telemetry
from pyconcur.timing import sleep

__version__ = "0.1.0"

__all__ = [
    "reduce",
    "map",
    "defer",
    "DeferScope",
    "try_",
    "Result",
    "sleep",
    "parallel",
    "irange",
    "Outcome",
    "ConcurrencyLimiter",
    "LimiterState",
    "retry",
    "RetryState",
    "RetryStatus",
    "DEFAULT_MAX_ATTEMPTS",
    "DEFAULT_DELAY_MS",
    "configure_telemetry",
    "PyconcurError",
    "ConfigurationError",
    "InvalidInputError",
    "EmptyInputError",
    "BailError",
]
