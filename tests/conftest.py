"""Pytest fixtures for chrometrace tests."""
import pytest

from chrometrace.engine import Chrometrace
from chrometrace.frames import Frame, Sample


class FakeClock:
    """Monotonic nanosecond clock advanced by hand."""

    def __init__(self, start_ns=1_000_000_000):
        self.now_ns = start_ns

    def advance_us(self, us):
        self.now_ns += us * 1000

    def __call__(self):
        return self.now_ns


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def engine(clock):
    """Engine without line tracking, driven by the fake clock."""
    return Chrometrace(show_linenumbers=False, clock=clock)


@pytest.fixture
def line_engine(clock):
    """Engine with line tracking, driven by the fake clock."""
    return Chrometrace(show_linenumbers=True, clock=clock)


def make_sample(*names, thread_id=1, pid=100, thread_name="MainThread", filename="app.py", lines=None):
    """Build a Sample from innermost-first function names."""
    lines = lines or [0] * len(names)
    frames = [Frame(name, filename, line) for name, line in zip(names, lines)]
    return Sample(pid=pid, thread_id=thread_id, frames=frames, thread_name=thread_name)
