"""UVC device-control library bindings.

Provides the raw libuvc primitives used by visca2uvc, either from the real
shared library or from a pure-Python simulation.

Protocols:
    UvcLibrary: Raw libuvc primitives returning status codes

Implementations:
    NativeUvcLibrary: libuvc loaded through ctypes (real hardware)
    DigitalTwinUvcLibrary: Simulated camera for development and tests

Types:
    RequestCode: MIN/MAX/CUR query selector
    UvcError: libuvc status codes
    ZoomRelative: Relative zoom triple
"""

from visca2uvc.drivers.uvc.native import NativeUvcLibrary
from visca2uvc.drivers.uvc.twin import DigitalTwinConfig, DigitalTwinUvcLibrary
from visca2uvc.drivers.uvc.types import (
    RequestCode,
    UvcError,
    UvcLibrary,
    ZoomRelative,
    strerror,
)

__all__ = [
    "DigitalTwinConfig",
    "DigitalTwinUvcLibrary",
    "NativeUvcLibrary",
    "RequestCode",
    "UvcError",
    "UvcLibrary",
    "ZoomRelative",
    "strerror",
]
