"""Pytest configuration for compute_reconciler tests."""
import sys
from pathlib import Path

# Add src/ to path for src-layout imports
_PROJECT_ROOT = Path(__file__).parent.parent
_SRC = _PROJECT_ROOT / 'src'
if str(_SRC) not in sys.path:
    sys.path.insert(0, str(_SRC))

import pytest

from compute_reconciler.providers.in_memory import InMemoryComputeAPI


class FakeClock:
    """Monotonic clock whose sleep advances time instantly."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def api():
    return InMemoryComputeAPI()


@pytest.fixture
def wait_overrides(clock):
    """Waiter keyword arguments that keep tests off the wall clock."""
    return {'clock': clock, 'sleep': clock.sleep}
