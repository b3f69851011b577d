"""
pacer - rate controlled readers and writers.

Wrap a binary stream in a PacedReader or PacedWriter and reads or writes
block as needed to hold it to a fixed number of bytes per second. Each
call may burst past the rate; the next call waits until the rate allows.

Useful for testing clients against slow links and disks.
"""

import logging

from .clock import Clock, MonotonicClock
from .errors import ConfigError, InvalidRateError, PacerError
from .rate_controller import RateController
from .streams import PacedReader, PacedWriter, pace_reader, pace_writer

__all__ = [
    "Clock",
    "MonotonicClock",
    "RateController",
    "PacedReader",
    "PacedWriter",
    "pace_reader",
    "pace_writer",
    "PacerError",
    "InvalidRateError",
    "ConfigError",
]

__version__ = "1.0.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())
