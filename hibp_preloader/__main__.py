"""
Entry point for the hibp_preloader component.
"""

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import Callable, Optional

from .application.domain import CheckpointStore
from .application.exceptions import ConfigurationError, PreloaderError
from .application.shutdown import ShutdownController
from .infrastructure.containers import Container
from .infrastructure.lockfile import LockFile
from .infrastructure.options import RunOptions
from .infrastructure.output import BinaryOutputFile, lookup
from .settings import PROJECT_NAME, PROJECT_VERSION

logger = logging.getLogger(__name__)

Ask = Callable[[str], str]

_MAX_PREFIX_ARG = 0xFFFF


def setup_logging(level: str, verbosity: int = 0):
    """Applies basic logging configuration."""
    logging.basicConfig(level="DEBUG" if verbosity > 0 else level)
    # httpx logs every request at INFO
    if verbosity < 2:
        logging.getLogger("httpx").setLevel(logging.WARNING)


def hex_prefix(value: str) -> int:
    """Parses a hexadecimal prefix argument within [0000, FFFF]."""
    try:
        number = int(value, 16)
    except ValueError:
        raise argparse.ArgumentTypeError(f"{value!r} is not a hexadecimal number")
    if not 0 <= number <= _MAX_PREFIX_ARG:
        raise argparse.ArgumentTypeError("invalid value, must be <= FFFFh")
    return number


def sha1_hex(value: str) -> bytes:
    """Parses a 40-character hexadecimal SHA-1 digest argument."""
    try:
        digest = bytes.fromhex(value)
    except ValueError:
        digest = b""
    if len(digest) != 20:
        raise argparse.ArgumentTypeError(f"{value!r} is not a SHA-1 hex digest")
    return digest


def _prompt(ask: Ask, text: str) -> str:
    try:
        return ask(text).strip().lower()
    except EOFError:
        return ""


def confirm_stale_lock(lock: LockFile, assume_yes: bool, ask: Ask = input) -> bool:
    """
    Checks for a lock left by another run.

    Returns:
        True if the run may proceed, False if the operator declined.
    """
    pid = lock.holder()
    if pid is None or assume_yes:
        return True

    answer = _prompt(
        ask,
        f"A lock file is present, indicating that {PROJECT_NAME} is already "
        f"running with process ID {pid}.\n"
        f"If you think that the lock is stale, you can delete {lock.path} "
        f"and retry.\n\n"
        f"Do you want to delete the lock file and proceed? [n/y] ",
    )
    if answer != "y":
        return False
    lock.release()
    return True


def _resume_at(start: int, checkpoint_output: Path, resumable: bool) -> int:
    if not resumable:
        raise ConfigurationError(
            f"The checkpoint belongs to {checkpoint_output}; "
            f"pass -o {checkpoint_output} to continue it, or start over."
        )
    return start


def resolve_start_prefix(
    checkpoints: CheckpointStore,
    sink: BinaryOutputFile,
    first_prefix: int,
    assume_yes: bool,
    ask: Ask = input,
) -> Optional[int]:
    """
    Decides where the run starts, consulting the operator when a checkpoint
    or a previous output file is found. With `assume_yes` a checkpoint is
    resumed and an existing output overwritten without asking.

    Returns:
        The 4-nibble group to start at, or None if the operator chose to
        quit.

    Raises:
        ConfigurationError: If the operator typed an invalid prefix, or
            asked to continue a checkpoint written for another output file.
    """

    checkpoint = checkpoints.load()
    if checkpoint is not None and checkpoint.output_path.exists():
        resumable = checkpoint.output_path.resolve() == sink.path.resolve()
        end = checkpoint.batch.end
        if assume_yes:
            answer = "y"
        else:
            answer = _prompt(
                ask,
                f"Found a checkpoint file stating that the last saved block "
                f"ranges from {checkpoint.batch.start:04x} to {end:04x} and "
                f"was written to {checkpoint.output_path}.\n\n"
                f"Do you want to continue from {end:04x}?\n\n"
                f"  (y) to continue from checkpoint.\n"
                f"  (r) to start over from {first_prefix:04x}.\n"
                f"  (q) to quit.\n\n"
                f"  or type a 4-digit hex number to continue from there.\n"
                f"\n[y/r/q/number]? ",
            )
        if answer == "y":
            return _resume_at(end, checkpoint.output_path, resumable)
        if answer == "r":
            sink.truncate()
            checkpoints.clear()
            return first_prefix
        if answer in ("q", ""):
            return None
        try:
            start = hex_prefix(answer)
        except argparse.ArgumentTypeError as e:
            raise ConfigurationError(str(e)) from e
        return _resume_at(start, checkpoint.output_path, resumable)

    if sink.path.exists():
        if not assume_yes:
            answer = _prompt(
                ask,
                f"The output file {sink.path} already exists.\n"
                f"Do you want to overwrite it? [n/y] ",
            )
            if answer != "y":
                return None
        sink.truncate()

    return first_prefix


def install_signal_handler(shutdown: ShutdownController):
    """Maps SIGINT to a cooperative shutdown request."""
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, shutdown.request_stop)
    except NotImplementedError:
        signal.signal(signal.SIGINT, lambda signum, frame: shutdown.request_stop())


def build_options(args: argparse.Namespace, config) -> RunOptions:
    """Merges command line arguments over the configured defaults."""
    return RunOptions.build(
        output_path=args.output or config.paths.output_file,
        first_prefix=args.first_prefix,
        last_prefix=args.last_prefix,
        prefix_step=(
            args.prefix_step
            if args.prefix_step is not None
            else config.preloader.prefix_step
        ),
        threads=(
            args.threads
            if args.threads is not None
            else config.preloader.threads or None
        ),
        verbosity=args.verbose,
        quiet=args.quiet,
    )


async def run_application(args: argparse.Namespace) -> int:
    """Wires and runs the application using the DI container."""

    container = Container()
    config = container.config()
    setup_logging(level=config.logging.level, verbosity=args.verbose)

    try:
        options = build_options(args, config)
    except ConfigurationError as e:
        logger.error(f"{e}")
        return 1

    if args.lookup is not None:
        try:
            record = lookup(options.output_path, args.lookup)
        except OSError as e:
            logger.error(f"Cannot read {options.output_path}: {e}")
            return 1
        print(record if record is not None else "not found")
        return 0 if record is not None else 1

    container.cli_args.from_dict(options.model_dump())
    lock = container.lock_file()
    if not confirm_stale_lock(lock, args.yes):
        return 1

    try:
        start = resolve_start_prefix(
            container.checkpoint_store(),
            container.record_sink(),
            options.first_prefix,
            args.yes,
        )
        if start is None:
            return 0
        if start == options.first_prefix:
            container.checkpoint_store().clear()
        else:
            logger.info(f"OK, continuing from {start:04x}.")
        options = RunOptions.build(**{**options.model_dump(), "start_prefix": start})

        shutdown = container.shutdown()
        install_signal_handler(shutdown)
        preloader_service = container.preloader_service()

        with lock:
            summary = await preloader_service.run(
                first=options.effective_first,
                last=options.last_prefix,
                step=options.prefix_step,
            )
    except PreloaderError as e:
        logger.error(f"An application error occurred: {e}")
        return 1
    finally:
        await container.http_client().aclose()

    logger.info(
        f"{'Stopped' if summary.cancelled else 'Finished'}: "
        f"{summary.records_written} hashes in {summary.batches_completed} "
        f"batches written to {options.output_path}"
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=PROJECT_NAME,
        description=(
            "Fast, concurrent downloader for \"have i been pwned?\" "
            "password hashes."
        ),
    )

    parser.add_argument(
        "-o", "--output",
        help="Write result to FILENAME (default from settings.toml).",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity of output.",
    )
    parser.add_argument(
        "-t", "--threads",
        type=int,
        help="Number of concurrent workers (default: max(CPU count, 4)).",
    )
    parser.add_argument(
        "-P", "--first-prefix",
        type=hex_prefix,
        help="Begin reading at prefix PREFIX (hexadecimal).",
    )
    parser.add_argument(
        "-L", "--last-prefix",
        type=hex_prefix,
        help="Read until prefix PREFIX, exclusive (hexadecimal).",
    )
    parser.add_argument(
        "-S", "--prefix-step",
        type=hex_prefix,
        help="Read data in chunks of STEP prefixes (hexadecimal, default 0040).",
    )
    parser.add_argument(
        "-y", "--yes",
        action="store_true",
        help="Answer YES to all questions.",
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Don't display the progress bar.",
    )
    parser.add_argument(
        "--lookup",
        type=sha1_hex,
        metavar="SHA1",
        help="Look up a digest in the output file instead of downloading.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"{PROJECT_NAME} {PROJECT_VERSION}",
    )
    return parser


def main() -> int:
    cli_args = build_parser().parse_args()
    return asyncio.run(run_application(cli_args))


if __name__ == "__main__":
    sys.exit(main())
