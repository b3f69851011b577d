import pytest


class FakeClock:
    """Clock that advances only when slept on or told to."""

    def __init__(self, start: float = 100.0):
        self.t = start
        self.sleeps = []

    def now(self) -> float:
        return self.t

    def sleep(self, seconds: float, cancel=None) -> None:
        self.sleeps.append(seconds)
        if cancel is not None and cancel.is_set():
            return
        self.t += seconds

    def advance(self, seconds: float) -> None:
        self.t += seconds


@pytest.fixture
def clock():
    return FakeClock()
