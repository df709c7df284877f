"""CLI entry point for visca2uvc.

Provides the ``visca2uvc`` console script. Driver and logging options come
first, then the zoom command and its arguments, which are passed through
untouched (negative numbers included)::

    # Print libuvc diagnostics and the absolute zoom range
    visca2uvc get_zoom_abs

    # Zoom out at speed 3
    visca2uvc set_zoom_rel -1 0 3

    # Same, against the simulated camera with debug logging
    visca2uvc --mode digital_twin --log-level debug set_zoom_rel -1 0 3

Exit codes:
    0: Success, usage shown, or unknown command
    1: Device-control failure or unexpected exception
    2: Bad command arguments
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from pathlib import Path

from visca2uvc.commands import CommandDispatcher
from visca2uvc.drivers import DriverConfig, DriverFactory, DriverMode
from visca2uvc.errors import ArgumentError, ControlError
from visca2uvc.observability import configure_logging, get_logger

logger = get_logger(__name__)

PROG = "visca2uvc"

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser.

    The zoom command is an optional positional; everything after it is
    collected verbatim so the dispatcher sees the same tokens the user
    typed. One exception: a single "--" directly after the command is an
    end-of-options marker and is dropped (see command_arguments()).

    Returns:
        Configured ArgumentParser.

    Example:
        >>> ns = build_parser().parse_args(["set_zoom_rel", "-5", "1", "3"])
        >>> ns.command, ns.args
        ('set_zoom_rel', ['-5', '1', '3'])
    """
    parser = argparse.ArgumentParser(
        prog=PROG,
        description="Control the zoom of the first attached UVC camera",
    )
    parser.add_argument(
        "--mode",
        type=str,
        choices=[mode.value for mode in DriverMode],
        default=DriverMode.HARDWARE.value,
        help="Driver mode: hardware (libuvc) or digital_twin (simulated camera)",
    )
    parser.add_argument(
        "--library",
        type=Path,
        default=None,
        help="Path to the libuvc shared library (default: search the system)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["critical", "error", "warning", "info", "debug"],
        default="error",
        help="Log level for diagnostic logging on stderr (default: error)",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        help="Emit log records as JSON lines",
    )
    parser.add_argument("command", nargs="?", default=None, help="Zoom command")
    parser.add_argument(
        "args", nargs=argparse.REMAINDER, help="Arguments for the command"
    )
    return parser


def command_arguments(args: Sequence[str]) -> list[str]:
    """Strip one leading "--" from the tokens after the command.

    Depending on the Python version argparse either keeps or drops that
    marker under REMAINDER; doing it here gives the same argument list on
    every interpreter.

    Example:
        >>> command_arguments(["--", "-5", "1", "3"])
        ['-5', '1', '3']
    """
    if args and args[0] == "--":
        return list(args[1:])
    return list(args)


def main(argv: Sequence[str] | None = None) -> int:
    """Run one zoom command and return the process exit code.

    Args:
        argv: Arguments without the program name. None uses sys.argv[1:].

    Returns:
        EXIT_OK, EXIT_FAILURE or EXIT_USAGE.

    Example:
        >>> main(["--mode", "digital_twin", "get_zoom_abs"])
        0
    """
    ns = build_parser().parse_args(argv)
    configure_logging(level=ns.log_level, json_format=ns.log_json, force=True)

    command_argv = [PROG]
    if ns.command is not None:
        command_argv += [ns.command, *command_arguments(ns.args)]

    config = DriverConfig(mode=DriverMode(ns.mode), library_path=ns.library)
    try:
        library = DriverFactory(config).create_library()
        CommandDispatcher(library).run(command_argv)
    except ControlError as e:
        print(e, file=sys.stderr)
        return EXIT_FAILURE
    except ArgumentError as e:
        print(e, file=sys.stderr)
        return EXIT_USAGE
    except Exception as e:
        logger.debug("Unhandled exception", exc_info=True)
        print(f"Exception: {e}", file=sys.stderr)
        return EXIT_FAILURE
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
