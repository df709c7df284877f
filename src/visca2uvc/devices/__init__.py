"""Device layer: UVC session ownership chain.

Classes:
    Context: libuvc session
    Device: unopened device reference
    DeviceHandle: open device with zoom get/set and diagnostics

Example:
    from visca2uvc.devices import Context

    with Context.create(library) as ctx, ctx.find_device() as dev:
        with dev.open() as handle:
            handle.set_zoom_absolute(300)
"""

from visca2uvc.devices.camera import Context, Device, DeviceHandle

__all__ = ["Context", "Device", "DeviceHandle"]
