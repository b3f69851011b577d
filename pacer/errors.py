"""
Exceptions raised by pacer.

Pacing itself never fails; these cover bad configuration only. Errors
from a wrapped stream are never wrapped and reach the caller as-is.
"""


class PacerError(Exception):
    """Base class for pacer errors."""


class InvalidRateError(PacerError, ValueError):
    """A throughput that is not a finite number greater than zero."""

    def __init__(self, rate):
        self.rate = rate
        super().__init__(f"rate must be a finite number of bytes per second > 0, got {rate!r}")


class ConfigError(PacerError, ValueError):
    """Malformed configuration file or size string."""
