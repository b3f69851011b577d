"""
Time source used by the rate controller.

Swapped out in tests so pacing can be checked without sleeping.
"""

import threading
import time
from typing import Optional, Protocol


class Clock(Protocol):
    def now(self) -> float:
        """Current time in seconds. Only differences are meaningful."""
        ...

    def sleep(self, seconds: float, cancel: Optional[threading.Event] = None) -> None:
        """Block for `seconds`, returning early once `cancel` is set."""
        ...


class MonotonicClock:
    """Default clock: `time.monotonic` plus an interruptible sleep."""

    def now(self) -> float:
        return time.monotonic()

    def sleep(self, seconds: float, cancel: Optional[threading.Event] = None) -> None:
        if seconds <= 0:
            return
        if cancel is None:
            time.sleep(seconds)
        else:
            cancel.wait(seconds)
