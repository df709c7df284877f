"""Zoom commands: argument parsing, device setup and result rendering.

One run handles one command:

    get_zoom_abs                                  min/max/cur focal length
    set_zoom_abs <focal_length>                   move, then read back cur
    get_zoom_rel                                  min/max/cur relative triple
    set_zoom_rel <zoom_rel> <digital_zoom> <speed>  move, then read back cur

Arguments are validated before any device call. The device session
(context, first device, open handle, diagnostics dump) is then set up
for every command, including unknown ones, and torn down in reverse order
however the command ends.

Example:
    from visca2uvc.commands import CommandDispatcher
    from visca2uvc.drivers.uvc import DigitalTwinUvcLibrary

    CommandDispatcher(DigitalTwinUvcLibrary()).run(["visca2uvc", "get_zoom_abs"])
    # ...diagnostics...
    # min: 100
    # max: 500
    # cur: 100
"""

from __future__ import annotations

import re
import sys
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from functools import partial
from typing import TextIO

from visca2uvc.devices import Context, DeviceHandle
from visca2uvc.drivers.uvc.types import (
    INT8_RANGE,
    UINT8_RANGE,
    UINT16_RANGE,
    RequestCode,
    UvcLibrary,
    ZoomRelative,
)
from visca2uvc.errors import ArgumentError, UnknownCommandError
from visca2uvc.observability import LogContext, get_logger

logger = get_logger(__name__)

__all__ = ["CommandDispatcher", "USAGE", "parse_int"]

USAGE = """\
Usage: visca2uvc [cmd] ...

  get_zoom_abs
  set_zoom_abs focal_length

  get_zoom_rel
  set_zoom_rel zoom_rel digital_zoom speed
"""

# MIN, MAX, CUR are always queried in this order.
_RANGE_QUERIES = (
    ("min", RequestCode.MIN),
    ("max", RequestCode.MAX),
    ("cur", RequestCode.CUR),
)

Action = Callable[[DeviceHandle], None]

# ASCII decimal with optional sign and surrounding blanks. int() alone would
# also take "1_000" and non-ASCII digits.
_DECIMAL = re.compile(r"\s*[+-]?[0-9]+\s*", re.ASCII)


def parse_int(text: str, type_name: str, bounds: tuple[int, int]) -> int:
    """Parse a decimal command-line argument into a fixed-width integer.

    Args:
        text: Raw argument.
        type_name: C type name used in the error ("uint16", "int8", ...).
        bounds: Inclusive (low, high) range of that type.

    Returns:
        Parsed integer.

    Raises:
        ArgumentError: Not an ASCII decimal integer, or outside ``bounds``.

    Example:
        >>> parse_int("-5", "int8", INT8_RANGE)
        -5
        >>> parse_int("abc", "uint16", UINT16_RANGE)
        Traceback (most recent call last):
        ArgumentError: Cannot parse as uint16: abc
    """
    if not _DECIMAL.fullmatch(text):
        raise ArgumentError(f"Cannot parse as {type_name}: {text}")
    value = int(text, 10)
    low, high = bounds
    if not low <= value <= high:
        raise ArgumentError(f"Cannot parse as {type_name}: {text}")
    return value


def _require_args(command: str, extra: Sequence[str], count: int) -> None:
    if len(extra) != count:
        noun = "argument" if count == 1 else "arguments"
        raise ArgumentError(f"{command} needs {count} {noun}.")


class CommandDispatcher:
    """Runs one zoom command against the first UVC device.

    Business context: Mirrors how the camera is operated from a shell or a
    VISCA bridge script: one process, one command, plain-text results on
    stdout that are easy to scrape. Errors propagate to the caller as
    visca2uvc exceptions, except unknown commands which are reported on
    ``err`` and otherwise ignored.

    Args:
        library: Device-control library (native or digital twin).
        out: Stream for diagnostics and results. Default sys.stdout.
        err: Stream for the unknown-command message. Default sys.stderr.

    Example:
        >>> dispatcher = CommandDispatcher(DigitalTwinUvcLibrary())
        >>> dispatcher.run(["visca2uvc", "set_zoom_abs", "300"])
    """

    def __init__(
        self,
        library: UvcLibrary,
        out: TextIO | None = None,
        err: TextIO | None = None,
    ) -> None:
        self._library = library
        self._out = out if out is not None else sys.stdout
        self._err = err if err is not None else sys.stderr

    def run(self, args: Sequence[str]) -> None:
        """Run the command in ``args`` (``args[0]`` is the program name).

        Args:
            args: Full argument vector.

        Raises:
            ArgumentError: Wrong argument count or malformed number. No
                device call has been made.
            SessionError: libuvc init failed or no device was found.
            OpenError: The device could not be opened.
            ControlTransferError: A zoom request failed. Requests after
                the failing one were not issued.
        """
        if len(args) <= 1:
            self._out.write(USAGE)
            return

        command, extra = args[1], args[2:]
        with LogContext(command=command):
            unknown: UnknownCommandError | None = None
            action: Action | None = None
            try:
                action = self._parse(command, extra)
            except UnknownCommandError as e:
                unknown = e

            with self._session() as handle:
                if action is not None:
                    logger.debug("Running command", command_args=list(extra))
                    action(handle)
                else:
                    logger.warning("Unknown command")
                    print(unknown, file=self._err)

    @contextmanager
    def _session(self) -> Iterator[DeviceHandle]:
        """Open the first device and print its diagnostics.

        Yields the handle; context, device and handle are released in
        reverse order when the block exits, normally or by exception.
        """
        with (
            Context.create(self._library) as ctx,
            ctx.find_device() as dev,
            dev.open() as handle,
        ):
            handle.print_diagnostics(self._out)
            yield handle

    def _parse(self, command: str, extra: Sequence[str]) -> Action:
        """Validate arguments and bind them to the command's action.

        Raises:
            ArgumentError: Bad argument count or value.
            UnknownCommandError: ``command`` is not a zoom command.
        """
        if command == "get_zoom_abs":
            return self._get_zoom_abs
        if command == "set_zoom_abs":
            _require_args(command, extra, 1)
            focal_length = parse_int(extra[0], "uint16", UINT16_RANGE)
            return partial(self._set_zoom_abs, focal_length=focal_length)
        if command == "get_zoom_rel":
            return self._get_zoom_rel
        if command == "set_zoom_rel":
            _require_args(command, extra, 3)
            value = ZoomRelative(
                zoom_rel=parse_int(extra[0], "int8", INT8_RANGE),
                digital_zoom=parse_int(extra[1], "uint8", UINT8_RANGE),
                speed=parse_int(extra[2], "uint8", UINT8_RANGE),
            )
            return partial(self._set_zoom_rel, value=value)
        raise UnknownCommandError(command)

    def _emit(self, label: str, value: object) -> None:
        print(f"{label}: {value}", file=self._out)

    def _get_zoom_abs(self, handle: DeviceHandle) -> None:
        for label, request in _RANGE_QUERIES:
            self._emit(label, handle.get_zoom_absolute(request))

    def _set_zoom_abs(self, handle: DeviceHandle, focal_length: int) -> None:
        handle.set_zoom_absolute(focal_length)
        self._emit("set", focal_length)
        self._emit("cur", handle.get_zoom_absolute(RequestCode.CUR))

    def _get_zoom_rel(self, handle: DeviceHandle) -> None:
        for label, request in _RANGE_QUERIES:
            self._emit(label, handle.get_zoom_relative(request))

    def _set_zoom_rel(self, handle: DeviceHandle, value: ZoomRelative) -> None:
        handle.set_zoom_relative(value)
        self._emit("set", value)
        self._emit("cur", handle.get_zoom_relative(RequestCode.CUR))
