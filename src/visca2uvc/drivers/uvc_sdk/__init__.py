"""libuvc shared library location.

visca2uvc talks to cameras through libuvc (https://github.com/libuvc/libuvc),
loaded with ctypes. The library is a system dependency, not a Python
package:

    Debian/Ubuntu:  sudo apt install libuvc0
    Fedora:         sudo dnf install libuvc
    macOS:          brew install libuvc

Usage:
    from visca2uvc.drivers.uvc_sdk import get_library_path

    lib = ctypes.CDLL(get_library_path())
"""

from __future__ import annotations

import ctypes.util
import platform
from pathlib import Path

# File names tried after ctypes.util.find_library() gives up, keyed by
# platform.system().
_FALLBACK_NAMES = {
    "Linux": ("libuvc.so.0", "libuvc.so"),
    "Darwin": (
        "/opt/homebrew/lib/libuvc.dylib",
        "/usr/local/lib/libuvc.dylib",
        "libuvc.dylib",
    ),
    "Windows": ("uvc.dll", "libuvc.dll"),
}


def get_library_path(explicit: str | Path | None = None) -> str:
    """Locate the libuvc shared library.

    Resolution order: the explicit path (must exist), then
    ``ctypes.util.find_library("uvc")``, then well-known file names for the
    current platform. Bare names are returned as-is so the dynamic loader
    can search its own paths.

    Args:
        explicit: Path given by the user (``--library``). Skips discovery.

    Returns:
        Path or loader name suitable for ``ctypes.CDLL``.

    Raises:
        RuntimeError: If the explicit path doesn't exist, or nothing was
            found on an unsupported platform.

    Example:
        >>> get_library_path()
        'libuvc.so.0'
        >>> get_library_path("/opt/libuvc/lib/libuvc.so")
        '/opt/libuvc/lib/libuvc.so'
    """
    if explicit is not None:
        path = Path(explicit)
        if not path.exists():
            raise RuntimeError(f"libuvc library not found at {path}")
        return str(path)

    found = ctypes.util.find_library("uvc")
    if found:
        return found

    system = platform.system()
    candidates = _FALLBACK_NAMES.get(system)
    if candidates is None:
        raise RuntimeError(
            f"Unsupported platform: {system}. "
            f"Supported platforms: {sorted(_FALLBACK_NAMES)}. "
            "Pass --library with the path to libuvc."
        )

    for name in candidates:
        if Path(name).is_absolute() and Path(name).exists():
            return name
    # Fall back to a bare name and let the dynamic loader search for it.
    return next(name for name in candidates if not Path(name).is_absolute())
