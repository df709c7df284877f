"""Digital Twin libuvc - Simulated UVC Camera for Testing.

Implements the UvcLibrary protocol in pure Python so the full command path
(context, device, handle, zoom requests, diagnostics) runs without a camera
or libuvc installed.

The simulated camera:
    - Reports configurable MIN/MAX/CUR absolute and relative zoom values
    - Echoes the last value set back on a CUR query
    - Stalls (UVC_ERROR_PIPE) on values outside its MIN..MAX range
    - Can be configured with no device attached
    - Fails any operation on demand via fault injection
    - Counts acquisitions and releases of every resource kind

Classes:
    DigitalTwinConfig: Simulated camera description and faults
    DigitalTwinUvcLibrary: UvcLibrary implementation

Example:
    from visca2uvc.drivers.uvc.twin import DigitalTwinConfig, DigitalTwinUvcLibrary
    from visca2uvc.drivers.uvc.types import UvcError

    # Camera whose MAX query stalls
    lib = DigitalTwinUvcLibrary(
        DigitalTwinConfig(faults={"get_zoom_abs:MAX": UvcError.PIPE})
    )
    ...
    assert lib.outstanding() == {"context": 0, "device": 0, "handle": 0}
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, TextIO, final

from visca2uvc.drivers.uvc.types import RequestCode, UvcError, strerror
from visca2uvc.observability import get_logger

logger = get_logger(__name__)

__all__ = [
    "DigitalTwinConfig",
    "DigitalTwinUvcLibrary",
    "RESOURCE_KINDS",
]

RESOURCE_KINDS = ("context", "device", "handle")

#: Relative zoom triple as (zoom_rel, digital_zoom, speed).
ZoomTriple = tuple[int, int, int]


@dataclass
class DigitalTwinConfig:
    """Description of the simulated camera.

    Attributes:
        device_present: False makes find_device report UVC_ERROR_NO_DEVICE.
        vendor_id: USB vendor ID matched by find_device filters.
        product_id: USB product ID matched by find_device filters.
        serial: Serial number matched by find_device filters.
        product: Product name shown in the diagnostics dump.
        zoom_abs_min: Lowest accepted focal length.
        zoom_abs_max: Highest accepted focal length.
        zoom_abs_cur: Initial focal length.
        zoom_rel_min: MIN triple reported for relative zoom.
        zoom_rel_max: MAX triple reported for relative zoom.
        zoom_rel_cur: Initial relative zoom state.
        faults: Operation name to negative status code. Keys are plain
            operation names ("open", "set_zoom_abs") or, for queries,
            "<operation>:<REQUEST>" to fail a single request code
            ("get_zoom_rel:CUR").
    """

    device_present: bool = True
    vendor_id: int = 0x046D
    product_id: int = 0x0853
    serial: str = "TWIN0001"
    product: str = "Digital Twin PTZ Camera"
    zoom_abs_min: int = 100
    zoom_abs_max: int = 500
    zoom_abs_cur: int = 100
    zoom_rel_min: ZoomTriple = (-10, 0, 1)
    zoom_rel_max: ZoomTriple = (10, 1, 7)
    zoom_rel_cur: ZoomTriple = (0, 0, 1)
    faults: Mapping[str, int] = field(default_factory=dict)


class _TwinResource:
    """Opaque pointer stand-in. Tracks whether it was released."""

    __slots__ = ("kind", "released")

    def __init__(self, kind: str) -> None:
        self.kind = kind
        self.released = False

    def __repr__(self) -> str:
        state = "released" if self.released else "live"
        return f"<twin {self.kind} {state}>"


@final
class DigitalTwinUvcLibrary:
    """Simulated libuvc for development and tests.

    Business context: Lets the whole CLI run in CI and on machines without a
    PTZ camera. The acquisition counters make resource-balance checks a
    one-line assertion after any scenario, success or failure.

    Attributes:
        config: Camera description and fault table.
        acquired: Counter of successful init/find_device/open per kind.
        released: Counter of exit/unref_device/close per kind.
        calls: Every primitive invoked, in order, as (operation, request)
            tuples; request is None for calls without a request code.
    """

    def __init__(self, config: DigitalTwinConfig | None = None) -> None:
        self.config = config or DigitalTwinConfig()
        self.acquired: Counter[str] = Counter()
        self.released: Counter[str] = Counter()
        self.calls: list[tuple[str, RequestCode | None]] = []
        self._zoom_abs_cur = self.config.zoom_abs_cur
        self._zoom_rel_cur: ZoomTriple = self.config.zoom_rel_cur
        logger.debug(
            "Digital twin libuvc initialized",
            device_present=self.config.device_present,
            faults=sorted(self.config.faults),
        )

    def __repr__(self) -> str:
        return (
            f"DigitalTwinUvcLibrary(product={self.config.product!r}, "
            f"device_present={self.config.device_present})"
        )

    # -- bookkeeping --------------------------------------------------------

    def outstanding(self) -> dict[str, int]:
        """Return live resources per kind (acquired minus released)."""
        return {
            kind: self.acquired[kind] - self.released[kind]
            for kind in RESOURCE_KINDS
        }

    def device_calls(self) -> list[tuple[str, RequestCode | None]]:
        """Return recorded calls except strerror lookups."""
        return [call for call in self.calls if call[0] != "strerror"]

    def _record(self, operation: str, request: RequestCode | None = None) -> int:
        """Log the call and return the injected fault code, or 0."""
        self.calls.append((operation, request))
        faults = self.config.faults
        if request is not None:
            code = faults.get(f"{operation}:{request.name}")
            if code is not None:
                return int(code)
        return int(faults.get(operation, UvcError.SUCCESS))

    def _acquire(self, kind: str) -> _TwinResource:
        self.acquired[kind] += 1
        logger.debug("Twin resource acquired", kind=kind)
        return _TwinResource(kind)

    def _release(self, resource: _TwinResource) -> None:
        if resource.released:
            # libuvc would double-free here; surface it loudly in tests.
            raise RuntimeError(f"twin {resource.kind} released twice")
        resource.released = True
        self.released[resource.kind] += 1
        logger.debug("Twin resource released", kind=resource.kind)

    @staticmethod
    def _usable(resource: Any, kind: str) -> bool:
        return (
            isinstance(resource, _TwinResource)
            and resource.kind == kind
            and not resource.released
        )

    # -- context ------------------------------------------------------------

    def init(self) -> tuple[int, Any]:
        status = self._record("init")
        if status < 0:
            return status, None
        return UvcError.SUCCESS, self._acquire("context")

    def exit(self, ctx: Any) -> None:
        self._record("exit")
        self._release(ctx)

    def find_device(
        self, ctx: Any, vendor_id: int, product_id: int, serial: str | None
    ) -> tuple[int, Any]:
        status = self._record("find_device")
        if status < 0:
            return status, None
        if not self._usable(ctx, "context"):
            return UvcError.INVALID_PARAM, None
        if not self.config.device_present:
            return UvcError.NO_DEVICE, None
        cfg = self.config
        if (
            (vendor_id and vendor_id != cfg.vendor_id)
            or (product_id and product_id != cfg.product_id)
            or (serial is not None and serial != cfg.serial)
        ):
            return UvcError.NO_DEVICE, None
        return UvcError.SUCCESS, self._acquire("device")

    def unref_device(self, dev: Any) -> None:
        self._record("unref_device")
        self._release(dev)

    # -- device handle ------------------------------------------------------

    def open(self, dev: Any) -> tuple[int, Any]:
        status = self._record("open")
        if status < 0:
            return status, None
        if not self._usable(dev, "device"):
            return UvcError.INVALID_PARAM, None
        return UvcError.SUCCESS, self._acquire("handle")

    def close(self, devh: Any) -> None:
        self._record("close")
        self._release(devh)

    def get_zoom_abs(self, devh: Any, request: RequestCode) -> tuple[int, int]:
        status = self._record("get_zoom_abs", request)
        if status < 0:
            return status, 0
        if not self._usable(devh, "handle"):
            return UvcError.INVALID_PARAM, 0
        cfg = self.config
        values = {
            RequestCode.MIN: cfg.zoom_abs_min,
            RequestCode.MAX: cfg.zoom_abs_max,
            RequestCode.CUR: self._zoom_abs_cur,
            RequestCode.DEF: cfg.zoom_abs_min,
            RequestCode.RES: 1,
        }
        if request not in values:
            return UvcError.INVALID_PARAM, 0
        return UvcError.SUCCESS, values[request]

    def set_zoom_abs(self, devh: Any, focal_length: int) -> int:
        status = self._record("set_zoom_abs")
        if status < 0:
            return status
        if not self._usable(devh, "handle"):
            return UvcError.INVALID_PARAM
        cfg = self.config
        if not cfg.zoom_abs_min <= focal_length <= cfg.zoom_abs_max:
            # Real cameras stall the control pipe on out-of-range values.
            return UvcError.PIPE
        self._zoom_abs_cur = focal_length
        return UvcError.SUCCESS

    def get_zoom_rel(
        self, devh: Any, request: RequestCode
    ) -> tuple[int, ZoomTriple]:
        status = self._record("get_zoom_rel", request)
        if status < 0:
            return status, (0, 0, 0)
        if not self._usable(devh, "handle"):
            return UvcError.INVALID_PARAM, (0, 0, 0)
        cfg = self.config
        values = {
            RequestCode.MIN: cfg.zoom_rel_min,
            RequestCode.MAX: cfg.zoom_rel_max,
            RequestCode.CUR: self._zoom_rel_cur,
            RequestCode.DEF: cfg.zoom_rel_cur,
        }
        if request not in values:
            return UvcError.INVALID_PARAM, (0, 0, 0)
        return UvcError.SUCCESS, values[request]

    def set_zoom_rel(
        self, devh: Any, zoom_rel: int, digital_zoom: int, speed: int
    ) -> int:
        status = self._record("set_zoom_rel")
        if status < 0:
            return status
        if not self._usable(devh, "handle"):
            return UvcError.INVALID_PARAM
        low, high = self.config.zoom_rel_min, self.config.zoom_rel_max
        value = (zoom_rel, digital_zoom, speed)
        if any(not lo <= v <= hi for v, lo, hi in zip(value, low, high)):
            return UvcError.PIPE
        self._zoom_rel_cur = value
        return UvcError.SUCCESS

    def print_diag(self, devh: Any, stream: TextIO) -> None:
        self._record("print_diag")
        cfg = self.config
        if not self._usable(devh, "handle"):
            stream.write("uvc_print_diag: invalid device handle\n")
            return
        stream.write(
            f"DEVICE CONFIGURATION ({cfg.vendor_id:04x}:{cfg.product_id:04x}"
            f"/{cfg.serial}) ---\n"
            "Status: idle\n"
            "VideoControl:\n"
            "\tbcdUVC: 0x0110\n"
            f"\tProduct: {cfg.product}\n"
            "\tCamera Terminal:\n"
            f"\t\tZoom (Absolute): {cfg.zoom_abs_min}..{cfg.zoom_abs_max}\n"
            "\t\tZoom (Relative)\n"
            "END DEVICE CONFIGURATION\n"
        )

    def strerror(self, code: int) -> str:
        self.calls.append(("strerror", None))
        return strerror(code)
