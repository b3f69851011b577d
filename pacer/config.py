"""
Configuration for the pacer command line tool.

Settings come from an optional YAML file (section `pacer:`) and are then
overridden by command-line flags. Sizes and rates are human readable:
`65536`, `64k`, `64KiB`, `1.5MB/s`.
"""

import logging
import math
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import yaml

from .errors import ConfigError, InvalidRateError
from .rate_controller import validate_rate

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024

# Decimal suffixes are powers of 1000, binary (xiB) are powers of 1024.
_UNITS = {
    "": 1,
    "b": 1,
    "k": 1000,
    "kb": 1000,
    "m": 1000**2,
    "mb": 1000**2,
    "g": 1000**3,
    "gb": 1000**3,
    "kib": 1024,
    "mib": 1024**2,
    "gib": 1024**3,
}

_SIZE_RE = re.compile(r"^\s*(\d+(?:\.\d*)?|\.\d+)\s*([a-z]*)\s*(?:/\s*s(?:ec)?)?\s*$", re.IGNORECASE)


def parse_size(value: Union[str, int, float]) -> float:
    """
    Parse a byte count such as `512`, `64k`, `1.5MB` or `4MiB/s`.

    Returns a float so fractional rates survive; callers that need whole
    bytes round themselves.
    """
    if isinstance(value, bool):
        raise ConfigError(f"Invalid size: {value!r}")
    if isinstance(value, (int, float)):
        try:
            size = float(value)
        except OverflowError:
            raise ConfigError(f"Invalid size: {value!r}") from None
    elif isinstance(value, str):
        size = _parse_size_string(value)
    else:
        raise ConfigError(f"Invalid size: {value!r}")
    if not math.isfinite(size) or size < 0:
        raise ConfigError(f"Invalid size: {value!r}")
    return size


def _parse_size_string(value: str) -> float:
    match = _SIZE_RE.match(value)
    if not match:
        raise ConfigError(f"Invalid size: {value!r}")
    number, unit = match.groups()
    multiplier = _UNITS.get(unit.lower())
    if multiplier is None:
        raise ConfigError(f"Unknown size unit {unit!r} in {value!r}")
    return float(number) * multiplier


def parse_rate(value: Union[str, int, float]) -> float:
    """Parse a throughput in bytes per second and check it is usable."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        rate = value
    else:
        rate = parse_size(value)
    try:
        return validate_rate(rate)
    except InvalidRateError:
        raise InvalidRateError(value) from None


_TRUE_WORDS = {"true", "yes", "on", "1"}
_FALSE_WORDS = {"false", "no", "off", "0"}


def parse_flag(value, name: str) -> bool:
    """Read a yes/no setting. Quoted YAML strings like "false" count as false."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        word = value.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
    raise ConfigError(f"{name} must be true or false, got {value!r}")


def load_config(config_path: str) -> dict:
    """Load configuration from YAML file."""
    path = Path(config_path)
    if not path.exists():
        return {}
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Could not parse {config_path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{config_path} must contain a mapping at the top level")
    return data


@dataclass
class CopySettings:
    """Resolved settings for one throttled copy."""

    rate: float
    chunk_size: int = DEFAULT_CHUNK_SIZE
    pace_reads: bool = False

    @classmethod
    def from_sources(
        cls,
        config: dict,
        rate: Optional[str] = None,
        chunk_size: Optional[str] = None,
        pace_reads: Optional[bool] = None,
    ) -> "CopySettings":
        """Merge the `pacer:` section of `config` with command-line overrides."""
        section = config.get("pacer", {}) or {}
        if not isinstance(section, dict):
            raise ConfigError("'pacer' section must be a mapping")

        raw_rate = rate if rate is not None else section.get("rate")
        if raw_rate is None:
            raise ConfigError("No rate given (use --rate or set pacer.rate in the config file)")

        raw_chunk = chunk_size if chunk_size is not None else section.get("chunk_size")
        chunk = DEFAULT_CHUNK_SIZE if raw_chunk is None else int(parse_size(raw_chunk))
        if chunk <= 0:
            raise ConfigError(f"chunk_size must be at least 1 byte, got {raw_chunk!r}")

        if pace_reads is None:
            pace_reads = parse_flag(section.get("pace_reads", False), "pace_reads")

        settings = cls(rate=parse_rate(raw_rate), chunk_size=chunk, pace_reads=pace_reads)
        logger.debug(f"Resolved copy settings: {settings}")
        return settings
