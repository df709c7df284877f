"""UVC session ownership chain: Context -> Device -> DeviceHandle.

Each class owns exactly one opaque libuvc pointer and releases it exactly
once, from ``close()`` or from ``__exit__``. Nothing is shared and nothing
is reference counted: a Context produces Devices, a Device produces
DeviceHandles, and every layer is released independently in reverse order
of acquisition by the ``with`` blocks that own them.

Every fallible libuvc primitive goes through ``_invoke()``, which turns a
negative status code into a ControlError subclass carrying the operation
name and ``uvc_strerror()`` text. Callers never see raw status codes.

Classes:
    Context: libuvc session (uvc_init / uvc_exit)
    Device: unopened device reference (uvc_find_device / uvc_unref_device)
    DeviceHandle: open device with zoom controls (uvc_open / uvc_close)

Example:
    from visca2uvc.devices import Context
    from visca2uvc.drivers.uvc import RequestCode

    with Context.create(library) as ctx:
        with ctx.find_device() as dev:
            with dev.open() as handle:
                handle.print_diagnostics(sys.stdout)
                print(handle.get_zoom_absolute(RequestCode.CUR))
"""

from __future__ import annotations

import sys
from abc import ABC, abstractmethod
from collections.abc import Callable
from types import TracebackType
from typing import Any, ClassVar, Self, TextIO, TypeVar, final

from visca2uvc.drivers.uvc.types import (
    UINT16_RANGE,
    RequestCode,
    UvcLibrary,
    ZoomRelative,
    check_range,
)
from visca2uvc.errors import (
    ControlError,
    ControlTransferError,
    OpenError,
    SessionError,
)
from visca2uvc.observability import get_logger

logger = get_logger(__name__)

__all__ = ["Context", "Device", "DeviceHandle"]

T = TypeVar("T")


def _invoke(
    library: UvcLibrary,
    operation: str,
    call: Callable[[], tuple[int, T]],
    error_type: type[ControlError],
) -> T:
    """Run one raw libuvc call and translate its status code.

    The single place where status codes become exceptions. ``call`` performs
    the primitive and returns ``(status, value)``; the operation name is
    attached to any failure so it can be diagnosed from the message alone.

    Args:
        library: Library used to render the status code.
        operation: Name reported in the error (e.g. "get_zoom_rel").
        call: Zero-argument closure performing the primitive.
        error_type: ControlError subclass raised on failure.

    Returns:
        The value produced by the call.

    Raises:
        ControlError: ``error_type`` when status is negative.

    Example:
        >>> _invoke(lib, "get_zoom_abs",
        ...         lambda: lib.get_zoom_abs(devh, RequestCode.MIN),
        ...         ControlTransferError)
        100
    """
    status, value = call()
    if status < 0:
        code = int(status)
        message = library.strerror(code)
        logger.warning(
            "Device-control call failed",
            operation=operation,
            code=code,
            reason=message,
        )
        raise error_type(operation, message, code=code)
    return value


class _Owned(ABC):
    """Exclusive owner of one libuvc pointer.

    Subclasses set ``_kind`` (used in messages) and implement ``_release``.
    """

    _kind: ClassVar[str] = "resource"

    __slots__ = ("_library", "_ptr")

    def __init__(self, library: UvcLibrary, ptr: Any) -> None:
        self._library = library
        self._ptr = ptr
        logger.debug("Acquired libuvc resource", kind=self._kind)

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"{type(self).__name__}({state})"

    @property
    def closed(self) -> bool:
        """True once the underlying pointer has been released."""
        return self._ptr is None

    def close(self) -> None:
        """Release the pointer. Safe to call more than once."""
        if self._ptr is None:
            return
        ptr, self._ptr = self._ptr, None
        self._release(ptr)
        logger.debug("Released libuvc resource", kind=self._kind)

    @abstractmethod
    def _release(self, ptr: Any) -> None:
        """Hand ``ptr`` back to libuvc. Called at most once."""

    def _live(self, operation: str, error_type: type[ControlError]) -> Any:
        """Return the pointer, or raise if this layer was already closed."""
        if self._ptr is None:
            raise error_type(operation, f"{self._kind} is closed")
        return self._ptr


@final
class DeviceHandle(_Owned):
    """Open UVC device session with zoom controls.

    Created by Device.open(). Closing it calls ``uvc_close`` exactly once,
    regardless of how many operations failed before.
    """

    _kind = "device handle"

    __slots__ = ()

    def _release(self, ptr: Any) -> None:
        self._library.close(ptr)

    def get_zoom_absolute(self, request: RequestCode) -> int:
        """Query the absolute zoom (focal length) MIN, MAX or CUR value.

        Args:
            request: Which of the device's values to read.

        Returns:
            Focal length as an unsigned 16-bit value.

        Raises:
            ControlTransferError: Device rejected the request or the
                handle is closed.

        Example:
            >>> handle.get_zoom_absolute(RequestCode.MAX)
            500
        """
        request = RequestCode(request)
        devh = self._live("get_zoom_abs", ControlTransferError)
        return _invoke(
            self._library,
            "get_zoom_abs",
            lambda: self._library.get_zoom_abs(devh, request),
            ControlTransferError,
        )

    def set_zoom_absolute(self, focal_length: int) -> None:
        """Move to an absolute focal length.

        There is no check against the device's MIN/MAX here; the camera
        reports out-of-range values through the error channel.

        Args:
            focal_length: Target value, must fit in uint16.

        Raises:
            ArgumentError: Value doesn't fit in uint16.
            ControlTransferError: Device rejected the value or the handle
                is closed.
        """
        check_range("focal_length", focal_length, UINT16_RANGE)
        devh = self._live("set_zoom_abs", ControlTransferError)
        _invoke(
            self._library,
            "set_zoom_abs",
            lambda: (self._library.set_zoom_abs(devh, focal_length), None),
            ControlTransferError,
        )

    def get_zoom_relative(self, request: RequestCode) -> ZoomRelative:
        """Query the relative zoom MIN, MAX or CUR triple.

        Args:
            request: Which of the device's values to read.

        Returns:
            ZoomRelative(zoom_rel, digital_zoom, speed).

        Raises:
            ControlTransferError: Device rejected the request or the
                handle is closed.
        """
        request = RequestCode(request)
        devh = self._live("get_zoom_rel", ControlTransferError)
        triple = _invoke(
            self._library,
            "get_zoom_rel",
            lambda: self._library.get_zoom_rel(devh, request),
            ControlTransferError,
        )
        return ZoomRelative(*triple)

    def set_zoom_relative(self, value: ZoomRelative) -> None:
        """Start, change or stop a relative zoom move.

        Args:
            value: Direction, digital zoom flag and speed. A zero
                ``zoom_rel`` stops the move.

        Raises:
            ControlTransferError: Device rejected the value or the handle
                is closed.
        """
        devh = self._live("set_zoom_rel", ControlTransferError)
        _invoke(
            self._library,
            "set_zoom_rel",
            lambda: (
                self._library.set_zoom_rel(
                    devh, value.zoom_rel, value.digital_zoom, value.speed
                ),
                None,
            ),
            ControlTransferError,
        )

    def print_diagnostics(self, stream: TextIO | None = None) -> None:
        """Write libuvc's descriptor dump for this device to ``stream``.

        Best effort: the format belongs to libuvc and nothing here parses
        it. Failures are logged and never raised.

        Args:
            stream: Destination text stream. Defaults to sys.stdout.
        """
        if stream is None:
            stream = sys.stdout
        if self._ptr is None:
            logger.warning("Skipping diagnostics, device handle is closed")
            return
        try:
            self._library.print_diag(self._ptr, stream)
        except OSError as e:
            logger.warning("Could not print device diagnostics", error=str(e))


@final
class Device(_Owned):
    """Unopened UVC device reference found through a Context.

    Closing it calls ``uvc_unref_device`` exactly once. A DeviceHandle
    opened from it manages its own lifetime and is not closed here.
    """

    _kind = "device"

    __slots__ = ()

    def _release(self, ptr: Any) -> None:
        self._library.unref_device(ptr)

    def open(self) -> DeviceHandle:
        """Open the device for control requests.

        Returns:
            DeviceHandle owning the new ``uvc_device_handle_t``.

        Raises:
            OpenError: Device busy, permission denied or disconnected, or
                this Device is already closed.

        Example:
            >>> with device.open() as handle:
            ...     handle.get_zoom_absolute(RequestCode.CUR)
        """
        dev = self._live("open", OpenError)
        devh = _invoke(
            self._library,
            "open",
            lambda: self._library.open(dev),
            OpenError,
        )
        return DeviceHandle(self._library, devh)


@final
class Context(_Owned):
    """libuvc session.

    Owns the library's process-wide state for as long as the value lives.
    Closing it calls ``uvc_exit`` exactly once, whether or not a device
    was ever found.

    Business context: There is no module-level session. Whoever creates
    the Context decides how long libuvc stays initialized, and tests can
    run any number of independent sessions against separate libraries.
    """

    _kind = "context"

    __slots__ = ()

    @classmethod
    def create(cls, library: UvcLibrary) -> Context:
        """Initialize a libuvc session.

        Args:
            library: Device-control library to drive.

        Returns:
            Context owning the new ``uvc_context_t``.

        Raises:
            SessionError: libuvc could not start (e.g. no USB backend).

        Example:
            >>> with Context.create(DigitalTwinUvcLibrary()) as ctx:
            ...     ...
        """
        ctx = _invoke(library, "init", library.init, SessionError)
        return cls(library, ctx)

    def _release(self, ptr: Any) -> None:
        self._library.exit(ptr)

    def find_device(
        self,
        vendor_id: int = 0,
        product_id: int = 0,
        serial: str | None = None,
    ) -> Device:
        """Find the first device matching the filters, without opening it.

        Args:
            vendor_id: USB vendor ID, 0 for any.
            product_id: USB product ID, 0 for any.
            serial: Serial number, None for any.

        Returns:
            Device owning the found ``uvc_device_t``.

        Raises:
            SessionError: No matching device, the search failed, or this
                Context is already closed.

        Example:
            >>> with ctx.find_device() as dev:  # first UVC device
            ...     ...
        """
        ctx = self._live("find_device", SessionError)
        dev = _invoke(
            self._library,
            "find_device",
            lambda: self._library.find_device(ctx, vendor_id, product_id, serial),
            SessionError,
        )
        return Device(self._library, dev)
