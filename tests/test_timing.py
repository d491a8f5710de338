"""Tests for sleep."""

import time

import pytest

from pyconcur.errors import InvalidInputError
from pyconcur.timing import sleep


@pytest.mark.asyncio
@pytest.mark.performance
async def test_sleep_waits_at_least_duration():
    """Test that sleep never resumes before the requested duration."""
    before = time.monotonic()
    await sleep(200)
    after = time.monotonic()
    assert after - before >= 0.2


@pytest.mark.asyncio
async def test_sleep_zero():
    """Test that a zero duration returns without error."""
    assert await sleep(0) is None


@pytest.mark.asyncio
async def test_sleep_rejects_negative_duration():
    """Test that negative durations are invalid input."""
    with pytest.raises(InvalidInputError):
        await sleep(-1)

    with pytest.raises(InvalidInputError):
        await sleep(None)
