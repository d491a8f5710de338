"""
Error hierarchy for pyconcur.

Failures of caller-supplied code are never wrapped: they propagate (or are
captured) as the original exception objects. The classes here cover only
the errors the library raises itself.
"""

from typing import Any


class PyconcurError(Exception):
    """Base class for all pyconcur errors."""


class ConfigurationError(PyconcurError):
    """Error raised when a configuration value is invalid."""


class InvalidInputError(PyconcurError, ValueError):
    """Error raised when an argument is missing or has the wrong shape.

    Raised for a ``None`` sequence, a non-iterable sequence, a negative
    sleep duration, a non-positive concurrency limit or attempt budget.
    """


class EmptyInputError(PyconcurError, ValueError):
    """Error raised when reducing an empty sequence without an initial value."""


class BailError(PyconcurError):
    """Error raised by ``retry`` when the attempted function bails.

    Only used when the bail value is not itself an exception instance.
    The bail value is kept verbatim on ``value``.
    """

    def __init__(self, value: Any):
        super().__init__(value)
        self.value = value
