"""
Virtual clock rate controller.

Turns "bytes transferred" into "time that must have elapsed" and blocks
the caller until it has.
"""

import logging
import math
import numbers
import threading
from typing import Optional

from .clock import Clock, MonotonicClock
from .errors import InvalidRateError

logger = logging.getLogger(__name__)


def validate_rate(rate) -> float:
    """Return `rate` as a float, raising InvalidRateError unless it is finite and > 0."""
    if isinstance(rate, bool) or not isinstance(rate, numbers.Real):
        raise InvalidRateError(rate)
    try:
        value = float(rate)
    except OverflowError:
        raise InvalidRateError(rate) from None
    if not math.isfinite(value) or value <= 0:
        raise InvalidRateError(rate)
    return value


class RateController:
    """
    Paces transfers to a fixed number of bytes per second.

    The controller keeps a virtual clock: the time by which the traffic seen
    so far would be justified at the configured rate. Every `pace(n)` pushes
    the virtual clock forward by `n / rate` seconds and sleeps until real
    time catches up with it.

    Notes:
    - The first transfer is never delayed; the virtual clock starts at the
      moment of the first non-empty transfer.
    - A single transfer may burst beyond the rate; the delay is charged after
      it, so the *next* call waits.
    - When the caller is slower than the rate, the virtual clock falls behind
      real time and is left there. That slack is credit a later burst can
      spend without delay. Credit is not capped.
    - Not thread-safe. Serialize calls on one controller yourself.
    """

    def __init__(self, rate_per_second: float, clock: Optional[Clock] = None):
        self.bytes_per_second = validate_rate(rate_per_second)
        self.clock = clock if clock is not None else MonotonicClock()
        self._virtual_clock: Optional[float] = None
        self._cancel = threading.Event()

    @property
    def rate(self) -> float:
        return self.bytes_per_second

    @property
    def virtual_clock(self) -> Optional[float]:
        """Current virtual time, or None before the first paced transfer."""
        return self._virtual_clock

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def debt(self, now: Optional[float] = None) -> float:
        """
        Seconds the virtual clock is ahead of `now`.

        Positive means the next transfer will wait; negative is banked credit.
        Zero before the first transfer.
        """
        if self._virtual_clock is None:
            return 0.0
        if now is None:
            now = self.clock.now()
        return self._virtual_clock - now

    def cancel(self):
        """Wake any caller blocked in `pace` and stop sleeping from now on."""
        self._cancel.set()

    def pace(self, transferred_bytes: int):
        """Block until `transferred_bytes` more bytes are allowed by the rate."""
        if transferred_bytes < 0:
            raise ValueError(f"transferred_bytes must be >= 0, got {transferred_bytes}")
        if transferred_bytes == 0:
            return

        now = self.clock.now()
        if self._virtual_clock is None:
            self._virtual_clock = now

        self._virtual_clock += transferred_bytes / self.bytes_per_second

        wait_for = self._virtual_clock - now
        if wait_for <= 0:
            return
        if self._cancel.is_set():
            logger.debug(f"Pacing cancelled, skipping {wait_for:.3f}s delay")
            return

        logger.debug(
            f"Pacing {transferred_bytes} bytes at {self.bytes_per_second:g} B/s: "
            f"sleeping {wait_for:.3f}s"
        )
        self.clock.sleep(wait_for, self._cancel)
