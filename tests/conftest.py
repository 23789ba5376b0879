"""Shared test fixtures for all test modules."""

from __future__ import annotations

import pytest
from helpers import FakeClock

from kkp_provisioner.config import PollBounds
from kkp_provisioner.wait import ConditionWaiter


@pytest.fixture
def clock() -> FakeClock:
    """Return a clock that advances only when the waiter sleeps."""
    return FakeClock()


@pytest.fixture
def waiter(clock: FakeClock) -> ConditionWaiter:
    """Return a waiter driven by the fake clock."""
    return ConditionWaiter(clock=clock, sleep=clock.sleep)


@pytest.fixture
def bounds() -> PollBounds:
    return PollBounds(interval=5, timeout=60)
