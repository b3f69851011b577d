"""
Terminal logging for the pacer command line tool.

Output goes to stderr: stdout is usually the data stream being copied.
"""

import sys
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Optional, TextIO


class LogLevel(Enum):
    """Icon and ANSI color per level; the member name is the plain-text tag."""

    DEBUG = ("🔍", "\033[90m")
    INFO = ("ℹ️", "\033[94m")
    SUCCESS = ("✓", "\033[92m")
    WARNING = ("⚠️", "\033[93m")
    ERROR = ("❌", "\033[91m")


RESET = "\033[0m"


@dataclass
class LogEntry:
    level: LogLevel
    message: str
    timestamp: datetime = field(default_factory=datetime.now)

    def render(self, use_color: bool) -> str:
        stamp = self.timestamp.strftime("%H:%M:%S")
        if use_color:
            icon, color = self.level.value
            return f"{color}[{stamp}] {icon} {self.message}{RESET}"
        return f"[{stamp}] [{self.level.name}] {self.message}"


class CopyLogger:
    """
    Logger for a throttled copy run.

    Usage:
        logger = CopyLogger(verbose=True)
        logger.info("Copying at 1 MB/s...")
        logger.success("Done")
    """

    def __init__(
        self,
        verbose: bool = False,
        quiet: bool = False,
        use_color: bool = True,
        stream: Optional[TextIO] = None,
        on_log: Optional[Callable[[LogEntry], None]] = None,
    ):
        """
        Args:
            verbose: If True, show DEBUG level messages
            quiet: If True, only show ERROR messages
            use_color: If True, use ANSI colors when the stream is a terminal
            stream: Where to write (default: sys.stderr)
            on_log: Optional callback called for each log entry
        """
        self.verbose = verbose
        self.quiet = quiet
        self.stream = stream if stream is not None else sys.stderr
        self.use_color = use_color and self.stream.isatty()
        self.on_log = on_log
        self._entries: list[LogEntry] = []

    def _log(self, level: LogLevel, message: str):
        if self.quiet and level is not LogLevel.ERROR:
            return
        if level is LogLevel.DEBUG and not self.verbose:
            return

        entry = LogEntry(level=level, message=message)
        self._entries.append(entry)
        print(entry.render(self.use_color), file=self.stream)

        if self.on_log:
            self.on_log(entry)

    def debug(self, message: str):
        """Log a debug message (only shown in verbose mode)."""
        self._log(LogLevel.DEBUG, message)

    def info(self, message: str):
        self._log(LogLevel.INFO, message)

    def success(self, message: str):
        self._log(LogLevel.SUCCESS, message)

    def warning(self, message: str):
        self._log(LogLevel.WARNING, message)

    def error(self, message: str):
        self._log(LogLevel.ERROR, message)

    def get_entries(self) -> list[LogEntry]:
        return self._entries.copy()


def format_bytes(count: float) -> str:
    """Human readable byte count, e.g. `1.5 MB`."""
    for unit in ("B", "kB", "MB", "GB"):
        if abs(count) < 1000 or unit == "GB":
            return f"{count:.0f} {unit}" if unit == "B" else f"{count:.1f} {unit}"
        count /= 1000
    return f"{count:.1f} GB"


class UserErrors:
    """Pre-defined user-friendly error messages with guidance."""

    @staticmethod
    def invalid_rate(original_error: str) -> str:
        return (
            f"❌ Invalid rate: {original_error}\n\n"
            "💡 Give a positive number of bytes per second, e.g.:\n"
            "   --rate 1000      (1000 bytes/s)\n"
            "   --rate 64k       (64 000 bytes/s)\n"
            "   --rate 1MiB/s    (1 048 576 bytes/s)"
        )

    @staticmethod
    def config_not_found(path: str) -> str:
        return (
            f"❌ Configuration file not found: {path}\n\n"
            "💡 Create a pacer.yml file or pass --rate on the command line.\n"
            "   Example:\n"
            "     pacer:\n"
            "       rate: 1MB\n"
            "       chunk_size: 64k"
        )

    @staticmethod
    def config_error(original_error: str) -> str:
        return f"❌ Configuration error: {original_error}"

    @staticmethod
    def io_error(operation: str, original_error: str) -> str:
        return (
            f"❌ I/O error while {operation}: {original_error}\n\n"
            "💡 Check that the source exists and the destination is writable."
        )
