"""Driver configuration and factory.

Supports switching between the real libuvc binding and the digital twin
for development and testing without a camera attached.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from visca2uvc.drivers.uvc import (
    DigitalTwinConfig,
    DigitalTwinUvcLibrary,
    NativeUvcLibrary,
    UvcLibrary,
)
from visca2uvc.observability import get_logger

logger = get_logger(__name__)

__all__ = ["DriverMode", "DriverConfig", "DriverFactory"]


class DriverMode(Enum):
    """Driver mode selection."""

    HARDWARE = "hardware"  # libuvc through ctypes
    DIGITAL_TWIN = "digital_twin"  # Simulated camera


@dataclass
class DriverConfig:
    """Configuration for driver selection.

    Attributes:
        mode: HARDWARE for a real camera, DIGITAL_TWIN for simulation.
        library_path: Explicit libuvc path (None = discover).
        twin: Simulated camera description used in DIGITAL_TWIN mode.
    """

    mode: DriverMode = DriverMode.HARDWARE
    library_path: Path | None = None
    twin: DigitalTwinConfig = field(default_factory=DigitalTwinConfig)


class DriverFactory:
    """Factory creating the UvcLibrary for the configured mode.

    Example:
        >>> factory = DriverFactory(DriverConfig(mode=DriverMode.DIGITAL_TWIN))
        >>> library = factory.create_library()  # DigitalTwinUvcLibrary
    """

    def __init__(self, config: DriverConfig | None = None):
        """Store the configuration; libraries are created on demand.

        Args:
            config: Driver configuration. None uses DriverConfig() defaults
                (hardware mode, discovered libuvc).
        """
        self.config = config or DriverConfig()

    def create_library(self) -> UvcLibrary:
        """Create the device-control library for the configured mode.

        Business context: The single switch between a real camera and the
        simulation. The dispatcher and the device layer only ever see the
        UvcLibrary protocol, so both modes exercise identical code above
        this point.

        Returns:
            NativeUvcLibrary in HARDWARE mode, DigitalTwinUvcLibrary in
            DIGITAL_TWIN mode.

        Raises:
            RuntimeError: HARDWARE mode and libuvc can't be located.
            OSError: HARDWARE mode and libuvc fails to load.

        Example:
            >>> DriverFactory().create_library()
            NativeUvcLibrary(lib=<CDLL 'libuvc.so.0', ...>)
        """
        logger.debug("Creating device-control library", mode=self.config.mode.value)
        if self.config.mode == DriverMode.HARDWARE:
            return NativeUvcLibrary(self.config.library_path)
        return DigitalTwinUvcLibrary(self.config.twin)
