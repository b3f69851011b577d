"""
Rate limited wrappers around binary file-like objects.

PacedReader and PacedWriter behave like the stream they wrap, plus a
delay after each successful transfer so the long-run throughput stays at
or below the configured bytes per second. Exceptions from the wrapped
stream pass through untouched and never cost any delay.
"""

import io
from typing import Optional

from .clock import Clock
from .rate_controller import RateController


class _PacedStream(io.RawIOBase):
    """Shared plumbing: owns one RateController, never closes the wrapped stream."""

    def __init__(self, stream, rate_per_second: float, clock: Optional[Clock] = None):
        super().__init__()
        self.stream = stream
        self.controller = RateController(rate_per_second, clock=clock)

    @property
    def rate(self) -> float:
        return self.controller.rate

    def close(self):
        # Wake a caller stuck in a pacing delay; the wrapped stream is left open.
        controller = getattr(self, "controller", None)
        if controller is not None:
            controller.cancel()
        super().close()

    def _check_open(self):
        if self.closed:
            raise ValueError("I/O operation on closed file.")

    def isatty(self):
        if self.closed or getattr(self.stream, "closed", False):
            return False
        isatty = getattr(self.stream, "isatty", None)
        return bool(isatty()) if isatty else False


class PacedReader(_PacedStream):
    """
    A readable stream limited to `rate_per_second` bytes per second.

    Usage:
        with open("big.bin", "rb") as f:
            slow = PacedReader(f, 64 * 1024)
            while chunk := slow.read(8192):
                ...
    """

    def readable(self):
        return True

    def readinto(self, b):
        self._check_open()
        readinto = getattr(self.stream, "readinto", None)
        if readinto is not None:
            n = readinto(b)
        else:
            data = self.stream.read(len(b))
            if data is None:
                return None
            n = len(data)
            memoryview(b).cast("B")[:n] = data
        if n is None:
            return None
        self.controller.pace(n)
        return n

    def read(self, size=-1):
        self._check_open()
        data = self.stream.read(size)
        if data is None:
            return None
        self.controller.pace(len(data))
        return data

    def readall(self):
        return self.read(-1)


class PacedWriter(_PacedStream):
    """
    A writable stream limited to `rate_per_second` bytes per second.

    Only the bytes the wrapped stream reports as written are paced. A short
    write is returned as-is; writing the remainder is up to the caller.
    """

    def writable(self):
        return True

    def write(self, b):
        self._check_open()
        n = self.stream.write(b)
        if n is None:
            return None
        self.controller.pace(n)
        return n

    def flush(self):
        if not self.closed and not getattr(self.stream, "closed", False):
            flush = getattr(self.stream, "flush", None)
            if flush is not None:
                flush()


def pace_reader(stream, rate_per_second: float, clock: Optional[Clock] = None) -> PacedReader:
    """Wrap `stream` so reads go no faster than `rate_per_second` bytes/s."""
    return PacedReader(stream, rate_per_second, clock=clock)


def pace_writer(stream, rate_per_second: float, clock: Optional[Clock] = None) -> PacedWriter:
    """Wrap `stream` so writes go no faster than `rate_per_second` bytes/s."""
    return PacedWriter(stream, rate_per_second, clock=clock)
