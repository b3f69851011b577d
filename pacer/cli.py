"""
Command-line interface for pacer.

Copies a file or stdin to a file or stdout at a fixed throughput, for
simulating slow pipes, disks or links in integration tests.
"""

import argparse
import contextlib
import sys
import time
from pathlib import Path
from typing import Callable, Optional

from tqdm import tqdm

from .config import CopySettings, load_config
from .errors import ConfigError, InvalidRateError
from .logging_utils import CopyLogger, UserErrors, format_bytes
from .streams import PacedReader, PacedWriter

DEFAULT_CONFIG = "pacer.yml"

# Back-off when a non-blocking endpoint has nothing to give or no room to take.
IDLE_WAIT = 0.01


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all CLI options."""
    parser = argparse.ArgumentParser(
        prog="pacer",
        description="Copy bytes from SOURCE to DEST no faster than a given rate",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  producer | pacer --rate 1MB | consumer     # 1 MB/s pipe
  pacer --rate 56k dump.bin copy.bin         # dial-up speed file copy
  pacer --rate 10KiB/s --pace-reads in out   # throttle reads instead of writes

Rates and sizes accept k/M/G (powers of 1000) and KiB/MiB/GiB (powers of 1024).
""",
    )

    parser.add_argument("source", nargs="?", default="-", help="Input file (default: stdin)")
    parser.add_argument("dest", nargs="?", default="-", help="Output file (default: stdout)")
    parser.add_argument(
        "--config",
        "-c",
        default=DEFAULT_CONFIG,
        help=f"Path to config file (default: {DEFAULT_CONFIG})",
    )
    parser.add_argument("--rate", "-r", help="Throughput in bytes per second, e.g. 64k or 1MiB")
    parser.add_argument(
        "--chunk-size",
        "-s",
        help="Bytes per read/write call (default: 64KiB); also the largest single burst",
    )
    parser.add_argument(
        "--pace-reads",
        action="store_true",
        default=None,
        help="Throttle reads from SOURCE rather than writes to DEST",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose debug output")
    parser.add_argument("--quiet", "-q", action="store_true", help="Quiet mode - only show errors")
    parser.add_argument("--no-color", action="store_true", help="Disable colored output")
    parser.add_argument("--no-progress", action="store_true", help="Hide the progress bar")

    return parser


def write_all(writer, data) -> None:
    """Write every byte of `data`, retrying after short writes."""
    view = memoryview(data)
    while view:
        written = writer.write(view)
        if written is None:
            time.sleep(IDLE_WAIT)
            continue
        view = view[written:]


def copy_stream(
    reader,
    writer,
    chunk_size: int,
    on_chunk: Optional[Callable[[int], None]] = None,
) -> int:
    """Copy `reader` to `writer` in `chunk_size` pieces. Returns bytes copied."""
    total = 0
    while True:
        chunk = reader.read(chunk_size)
        if chunk is None:
            time.sleep(IDLE_WAIT)
            continue
        if not chunk:
            break
        write_all(writer, chunk)
        total += len(chunk)
        if on_chunk:
            on_chunk(len(chunk))
    writer.flush()
    return total


def _source_size(path: str) -> Optional[int]:
    if path == "-":
        return None
    try:
        return Path(path).stat().st_size
    except OSError:
        return None


def run_copy(args, settings: CopySettings, logger: CopyLogger) -> int:
    """Open the endpoints, wrap one side in a pacer and copy. Returns bytes copied."""
    with contextlib.ExitStack() as stack:
        if args.source == "-":
            source = sys.stdin.buffer
        else:
            source = stack.enter_context(open(args.source, "rb"))
        if args.dest == "-":
            dest = sys.stdout.buffer
        else:
            dest = stack.enter_context(open(args.dest, "wb"))

        if settings.pace_reads:
            reader, writer = stack.enter_context(PacedReader(source, settings.rate)), dest
        else:
            reader, writer = source, stack.enter_context(PacedWriter(dest, settings.rate))

        size = _source_size(args.source)
        if size is not None:
            logger.debug(
                f"Source is {format_bytes(size)}, expect about {size / settings.rate:.1f}s"
            )

        progress = stack.enter_context(
            tqdm(
                total=size,
                unit="B",
                unit_scale=True,
                desc="Copying",
                file=sys.stderr,
                disable=args.no_progress or args.quiet,
            )
        )
        return copy_stream(reader, writer, settings.chunk_size, on_chunk=progress.update)


def main(argv=None):
    parser = create_parser()
    args = parser.parse_args(argv)

    logger = CopyLogger(
        verbose=args.verbose,
        quiet=args.quiet,
        use_color=not args.no_color,
    )

    # Load config
    if not Path(args.config).exists() and args.config != DEFAULT_CONFIG:
        # User specified a config file that doesn't exist
        logger.error(UserErrors.config_not_found(args.config))
        sys.exit(1)

    try:
        config = load_config(args.config)
        settings = CopySettings.from_sources(
            config,
            rate=args.rate,
            chunk_size=args.chunk_size,
            pace_reads=args.pace_reads,
        )
    except InvalidRateError as e:
        logger.error(UserErrors.invalid_rate(str(e)))
        sys.exit(1)
    except ConfigError as e:
        logger.error(UserErrors.config_error(str(e)))
        sys.exit(1)

    side = "reads" if settings.pace_reads else "writes"
    logger.info(
        f"Copying {args.source} -> {args.dest} at {format_bytes(settings.rate)}/s "
        f"(pacing {side}, chunk {format_bytes(settings.chunk_size)})"
    )

    try:
        copied = run_copy(args, settings, logger)
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        sys.exit(130)
    except OSError as e:
        logger.error(UserErrors.io_error("copying", str(e)))
        sys.exit(1)

    logger.success(f"Finished! Copied {format_bytes(copied)}")


if __name__ == "__main__":
    main()
