"""Types shared by the libuvc binding, the digital twin and the device layer.

Enums:
    RequestCode: ``uvc_req_code`` selector for control queries
    UvcError: ``uvc_error_t`` status codes

Dataclasses:
    ZoomRelative: Relative zoom triple (zoom_rel, digital_zoom, speed)

Protocols:
    UvcLibrary: The raw libuvc primitives used by visca2uvc. Implemented by
        NativeUvcLibrary (ctypes) and DigitalTwinUvcLibrary (simulation).

Every fallible primitive on UvcLibrary returns the libuvc status code,
paired with the out-parameter value where the C call has one. Negative
status means failure. Translating that into exceptions is the device
layer's job (see visca2uvc.devices.camera).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import IntEnum
from types import MappingProxyType
from typing import Any, Protocol, TextIO, runtime_checkable

from visca2uvc.errors import ArgumentError

__all__ = [
    "RequestCode",
    "UvcError",
    "ERROR_MESSAGES",
    "strerror",
    "ZoomRelative",
    "UvcLibrary",
    "INT8_RANGE",
    "UINT8_RANGE",
    "UINT16_RANGE",
    "check_range",
]

# Inclusive bounds of the C field types used on the wire.
INT8_RANGE = (-128, 127)
UINT8_RANGE = (0, 255)
UINT16_RANGE = (0, 65535)


class RequestCode(IntEnum):
    """UVC request codes (``enum uvc_req_code``).

    The zoom commands only issue MIN, MAX and CUR; the remaining values
    exist so any code returned or logged by libuvc has a name.
    """

    UNDEFINED = 0x00
    SET_CUR = 0x01
    CUR = 0x81
    MIN = 0x82
    MAX = 0x83
    RES = 0x84
    LEN = 0x85
    INFO = 0x86
    DEF = 0x87


class UvcError(IntEnum):
    """libuvc status codes (``enum uvc_error``)."""

    SUCCESS = 0
    IO = -1
    INVALID_PARAM = -2
    ACCESS = -3
    NO_DEVICE = -4
    NOT_FOUND = -5
    BUSY = -6
    TIMEOUT = -7
    OVERFLOW = -8
    PIPE = -9
    INTERRUPTED = -10
    NO_MEM = -11
    NOT_SUPPORTED = -12
    INVALID_DEVICE = -50
    INVALID_MODE = -51
    CALLBACK_EXISTS = -52
    OTHER = -99


# Same strings uvc_strerror() returns, so twin and hardware runs print
# identical error lines.
ERROR_MESSAGES: Mapping[int, str] = MappingProxyType(
    {
        UvcError.SUCCESS: "Success",
        UvcError.IO: "I/O error",
        UvcError.INVALID_PARAM: "Invalid parameter",
        UvcError.ACCESS: "Access denied",
        UvcError.NO_DEVICE: "No such device",
        UvcError.NOT_FOUND: "Not found",
        UvcError.BUSY: "Resource busy",
        UvcError.TIMEOUT: "Operation timed out",
        UvcError.OVERFLOW: "Overflow",
        UvcError.PIPE: "Pipe error",
        UvcError.INTERRUPTED: "System call interrupted",
        UvcError.NO_MEM: "Insufficient memory",
        UvcError.NOT_SUPPORTED: "Operation not supported",
        UvcError.INVALID_DEVICE: "Device is not UVC-compliant",
        UvcError.INVALID_MODE: "Mode not supported",
        UvcError.CALLBACK_EXISTS: "Resource has a callback (can't use polling and async)",
    }
)


def strerror(code: int) -> str:
    """Return the libuvc description of a status code.

    Args:
        code: libuvc status code.

    Returns:
        Message text, or "Unknown error" for codes libuvc doesn't define.

    Example:
        >>> strerror(-3)
        'Access denied'
    """
    return ERROR_MESSAGES.get(code, "Unknown error")


def check_range(name: str, value: int, bounds: tuple[int, int]) -> int:
    """Ensure ``value`` fits the C type described by ``bounds``.

    Args:
        name: Field name used in the error message.
        value: Integer to check.
        bounds: Inclusive (low, high) pair, e.g. UINT8_RANGE.

    Returns:
        The value unchanged.

    Raises:
        ArgumentError: If value falls outside bounds.
    """
    low, high = bounds
    if not low <= value <= high:
        raise ArgumentError(f"{name} must be in [{low}, {high}], got {value}")
    return value


@dataclass(frozen=True, slots=True)
class ZoomRelative:
    """Relative zoom control value (CT_ZOOM_RELATIVE_CONTROL).

    Attributes:
        zoom_rel: Signed direction. 0 stops, positive zooms in (tele),
            negative zooms out (wide). Magnitude is device-defined.
        digital_zoom: 0 for optical only, 1 to allow digital zoom.
        speed: Zoom speed, within the device's MIN..MAX speed range.

    Raises:
        ArgumentError: If a field doesn't fit its C type (int8/uint8/uint8).

    Example:
        >>> value = ZoomRelative(-5, 1, 3)
        >>> str(value)
        'zoom_rel: -5, digital_zoom: 1, speed: 3'
    """

    zoom_rel: int
    digital_zoom: int
    speed: int

    def __post_init__(self) -> None:
        check_range("zoom_rel", self.zoom_rel, INT8_RANGE)
        check_range("digital_zoom", self.digital_zoom, UINT8_RANGE)
        check_range("speed", self.speed, UINT8_RANGE)

    def __str__(self) -> str:
        return (
            f"zoom_rel: {self.zoom_rel}, "
            f"digital_zoom: {self.digital_zoom}, "
            f"speed: {self.speed}"
        )


@runtime_checkable
class UvcLibrary(Protocol):  # pragma: no cover
    """Raw libuvc primitives used by the device layer.

    Opaque pointers are passed around as ``Any``: ctypes ``c_void_p``
    values for the native binding, plain objects for the digital twin.
    Calls that return a value report ``(status, value)``; the value is
    meaningless when status is negative.

    Example:
        class FakeLibrary:
            def init(self) -> tuple[int, Any]:
                return 0, object()
            ...

        with Context.create(FakeLibrary()) as ctx:
            ...
    """

    def init(self) -> tuple[int, Any]:
        """``uvc_init(&ctx, NULL)``."""
        ...

    def exit(self, ctx: Any) -> None:
        """``uvc_exit(ctx)``."""
        ...

    def find_device(
        self, ctx: Any, vendor_id: int, product_id: int, serial: str | None
    ) -> tuple[int, Any]:
        """``uvc_find_device(ctx, &dev, vid, pid, sn)``."""
        ...

    def unref_device(self, dev: Any) -> None:
        """``uvc_unref_device(dev)``."""
        ...

    def open(self, dev: Any) -> tuple[int, Any]:
        """``uvc_open(dev, &devh)``."""
        ...

    def close(self, devh: Any) -> None:
        """``uvc_close(devh)``."""
        ...

    def get_zoom_abs(self, devh: Any, request: RequestCode) -> tuple[int, int]:
        """``uvc_get_zoom_abs(devh, &focal_length, req_code)``."""
        ...

    def set_zoom_abs(self, devh: Any, focal_length: int) -> int:
        """``uvc_set_zoom_abs(devh, focal_length)``."""
        ...

    def get_zoom_rel(
        self, devh: Any, request: RequestCode
    ) -> tuple[int, tuple[int, int, int]]:
        """``uvc_get_zoom_rel(devh, &zoom_rel, &digital_zoom, &speed, req)``."""
        ...

    def set_zoom_rel(
        self, devh: Any, zoom_rel: int, digital_zoom: int, speed: int
    ) -> int:
        """``uvc_set_zoom_rel(devh, zoom_rel, digital_zoom, speed)``."""
        ...

    def print_diag(self, devh: Any, stream: TextIO) -> None:
        """``uvc_print_diag(devh, stream)``."""
        ...

    def strerror(self, code: int) -> str:
        """``uvc_strerror(code)``."""
        ...
