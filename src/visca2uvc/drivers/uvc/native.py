"""libuvc binding - real hardware implementation of UvcLibrary.

Loads libuvc with ctypes and exposes the handful of primitives visca2uvc
needs. Out-parameters are allocated here and returned alongside the status
code; nothing in this module raises on a negative status.

Classes:
    NativeUvcLibrary: ctypes-backed UvcLibrary

Example:
    from visca2uvc.drivers.uvc.native import NativeUvcLibrary
    from visca2uvc.drivers.uvc.types import RequestCode

    lib = NativeUvcLibrary()
    status, ctx = lib.init()
    status, dev = lib.find_device(ctx, 0, 0, None)
    status, devh = lib.open(dev)
    status, value = lib.get_zoom_abs(devh, RequestCode.CUR)
    lib.close(devh)
    lib.unref_device(dev)
    lib.exit(ctx)
"""

from __future__ import annotations

import ctypes
import ctypes.util
import os
import tempfile
from pathlib import Path
from typing import Any, TextIO, final

from visca2uvc.drivers.uvc.types import RequestCode
from visca2uvc.drivers.uvc_sdk import get_library_path
from visca2uvc.observability import get_logger

logger = get_logger(__name__)

__all__ = ["NativeUvcLibrary"]

# uvc_error_t and enum uvc_req_code are C enums (int).
_c_uvc_error = ctypes.c_int
_c_req_code = ctypes.c_int

# (name, restype, argtypes) for every libuvc symbol used.
_SIGNATURES: tuple[tuple[str, Any, list[Any]], ...] = (
    ("uvc_init", _c_uvc_error, [ctypes.POINTER(ctypes.c_void_p), ctypes.c_void_p]),
    ("uvc_exit", None, [ctypes.c_void_p]),
    (
        "uvc_find_device",
        _c_uvc_error,
        [
            ctypes.c_void_p,
            ctypes.POINTER(ctypes.c_void_p),
            ctypes.c_int,
            ctypes.c_int,
            ctypes.c_char_p,
        ],
    ),
    ("uvc_unref_device", None, [ctypes.c_void_p]),
    ("uvc_open", _c_uvc_error, [ctypes.c_void_p, ctypes.POINTER(ctypes.c_void_p)]),
    ("uvc_close", None, [ctypes.c_void_p]),
    (
        "uvc_get_zoom_abs",
        _c_uvc_error,
        [ctypes.c_void_p, ctypes.POINTER(ctypes.c_uint16), _c_req_code],
    ),
    ("uvc_set_zoom_abs", _c_uvc_error, [ctypes.c_void_p, ctypes.c_uint16]),
    (
        "uvc_get_zoom_rel",
        _c_uvc_error,
        [
            ctypes.c_void_p,
            ctypes.POINTER(ctypes.c_int8),
            ctypes.POINTER(ctypes.c_uint8),
            ctypes.POINTER(ctypes.c_uint8),
            _c_req_code,
        ],
    ),
    (
        "uvc_set_zoom_rel",
        _c_uvc_error,
        [ctypes.c_void_p, ctypes.c_int8, ctypes.c_uint8, ctypes.c_uint8],
    ),
    ("uvc_print_diag", None, [ctypes.c_void_p, ctypes.c_void_p]),
    ("uvc_strerror", ctypes.c_char_p, [_c_uvc_error]),
)


def _load_libc() -> Any:
    """Load the C runtime, needed to hand uvc_print_diag a ``FILE *``."""
    libc = ctypes.CDLL(ctypes.util.find_library("c"))
    libc.fdopen.restype = ctypes.c_void_p
    libc.fdopen.argtypes = [ctypes.c_int, ctypes.c_char_p]
    libc.fflush.argtypes = [ctypes.c_void_p]
    libc.fclose.argtypes = [ctypes.c_void_p]
    return libc


@final
class NativeUvcLibrary:
    """UvcLibrary implementation calling libuvc through ctypes.

    Business context: The only place visca2uvc touches native code. Keeping
    the binding this thin means the ownership and error-translation logic in
    visca2uvc.devices can be tested against the digital twin, and this class
    only has to get the C signatures right.

    Args:
        library_path: Explicit libuvc path. None runs discovery via
            get_library_path().
        lib: Pre-loaded library object (tests pass a mock CDLL).
        libc: Pre-loaded C runtime (tests pass a mock).

    Raises:
        RuntimeError: If libuvc can't be located.
        OSError: If the shared library exists but fails to load.

    Example:
        >>> lib = NativeUvcLibrary(library_path="/usr/lib/libuvc.so.0")
    """

    __slots__ = ("_lib", "_libc")

    def __init__(
        self,
        library_path: str | Path | None = None,
        *,
        lib: Any = None,
        libc: Any = None,
    ) -> None:
        if lib is None:
            path = get_library_path(library_path)
            logger.debug("Loading libuvc", path=path)
            lib = ctypes.CDLL(path)
        for name, restype, argtypes in _SIGNATURES:
            func = getattr(lib, name)
            func.restype = restype
            func.argtypes = argtypes
        self._lib = lib
        self._libc = libc

    def __repr__(self) -> str:
        return f"NativeUvcLibrary(lib={self._lib!r})"

    # -- context ------------------------------------------------------------

    def init(self) -> tuple[int, Any]:
        """Call ``uvc_init(&ctx, NULL)``.

        Returns:
            (status, context pointer). The pointer is NULL unless status is 0.
        """
        ctx = ctypes.c_void_p()
        status = self._lib.uvc_init(ctypes.byref(ctx), None)
        return status, ctx

    def exit(self, ctx: Any) -> None:
        """Call ``uvc_exit(ctx)``."""
        self._lib.uvc_exit(ctx)

    def find_device(
        self, ctx: Any, vendor_id: int, product_id: int, serial: str | None
    ) -> tuple[int, Any]:
        """Call ``uvc_find_device(ctx, &dev, vid, pid, sn)``.

        Zero ids and a None serial match any device. The returned device
        holds a reference that unref_device() drops.
        """
        dev = ctypes.c_void_p()
        sn = serial.encode() if serial is not None else None
        status = self._lib.uvc_find_device(
            ctx, ctypes.byref(dev), vendor_id, product_id, sn
        )
        return status, dev

    def unref_device(self, dev: Any) -> None:
        """Call ``uvc_unref_device(dev)``."""
        self._lib.uvc_unref_device(dev)

    # -- device handle ------------------------------------------------------

    def open(self, dev: Any) -> tuple[int, Any]:
        """Call ``uvc_open(dev, &devh)``."""
        devh = ctypes.c_void_p()
        status = self._lib.uvc_open(dev, ctypes.byref(devh))
        return status, devh

    def close(self, devh: Any) -> None:
        """Call ``uvc_close(devh)``."""
        self._lib.uvc_close(devh)

    def get_zoom_abs(self, devh: Any, request: RequestCode) -> tuple[int, int]:
        """Call ``uvc_get_zoom_abs(devh, &focal_length, req_code)``."""
        focal_length = ctypes.c_uint16()
        status = self._lib.uvc_get_zoom_abs(
            devh, ctypes.byref(focal_length), int(request)
        )
        return status, focal_length.value

    def set_zoom_abs(self, devh: Any, focal_length: int) -> int:
        """Call ``uvc_set_zoom_abs(devh, focal_length)``."""
        status: int = self._lib.uvc_set_zoom_abs(devh, focal_length)
        return status

    def get_zoom_rel(
        self, devh: Any, request: RequestCode
    ) -> tuple[int, tuple[int, int, int]]:
        """Call ``uvc_get_zoom_rel(devh, &zoom_rel, &digital_zoom, &speed, req)``.

        Returns:
            (status, (zoom_rel, digital_zoom, speed)).
        """
        zoom_rel = ctypes.c_int8()
        digital_zoom = ctypes.c_uint8()
        speed = ctypes.c_uint8()
        status = self._lib.uvc_get_zoom_rel(
            devh,
            ctypes.byref(zoom_rel),
            ctypes.byref(digital_zoom),
            ctypes.byref(speed),
            int(request),
        )
        return status, (zoom_rel.value, digital_zoom.value, speed.value)

    def set_zoom_rel(
        self, devh: Any, zoom_rel: int, digital_zoom: int, speed: int
    ) -> int:
        """Call ``uvc_set_zoom_rel(devh, zoom_rel, digital_zoom, speed)``."""
        status: int = self._lib.uvc_set_zoom_rel(devh, zoom_rel, digital_zoom, speed)
        return status

    def print_diag(self, devh: Any, stream: TextIO) -> None:
        """Write the uvc_print_diag() dump to a Python text stream.

        libuvc writes to a C ``FILE *``. The dump goes to a temporary file
        opened through libc and is copied into ``stream`` afterwards, so
        this works for StringIO and redirected stdout alike.

        Args:
            devh: Open device handle.
            stream: Destination text stream.

        Raises:
            OSError: If the temporary file can't be created or opened by
                libc. The device layer treats the dump as best effort and
                logs this instead of failing the command.
        """
        if self._libc is None:
            self._libc = _load_libc()

        with tempfile.TemporaryFile() as buf:
            fd = os.dup(buf.fileno())
            fp = self._libc.fdopen(fd, b"w")
            if not fp:
                os.close(fd)
                raise OSError("fdopen failed for diagnostics")
            try:
                self._lib.uvc_print_diag(devh, fp)
            finally:
                self._libc.fclose(fp)
            buf.seek(0)
            stream.write(buf.read().decode("utf-8", errors="replace"))
        stream.flush()

    def strerror(self, code: int) -> str:
        """Call ``uvc_strerror(code)``; NULL maps to "Unknown error"."""
        message: bytes | None = self._lib.uvc_strerror(code)
        if not message:
            return "Unknown error"
        return message.decode("utf-8", errors="replace")
