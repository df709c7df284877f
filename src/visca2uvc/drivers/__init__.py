"""Hardware drivers for visca2uvc.

Drivers:
    uvc: libuvc binding and digital twin
    uvc_sdk: libuvc shared library lookup

Configuration:
    DriverConfig / DriverFactory: choose hardware or digital twin mode
"""

from visca2uvc.drivers.config import DriverConfig, DriverFactory, DriverMode

__all__ = ["DriverConfig", "DriverFactory", "DriverMode"]
