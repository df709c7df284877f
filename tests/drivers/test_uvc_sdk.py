"""Unit tests for libuvc library discovery.

Tests get_library_path() without libuvc installed by patching the
platform lookup and ctypes.util.find_library.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from visca2uvc.drivers.uvc_sdk import get_library_path


class TestExplicitPath:
    """An explicit --library path skips discovery."""

    def test_existing_path_returned(self, tmp_path: Path) -> None:
        """Verify an existing explicit path is returned verbatim.

        Business context:
            Users with libuvc built from source pass --library; that
            choice must win over whatever the system has installed.

        Arrangement:
            Empty file standing in for the shared library.

        Action:
            get_library_path(explicit).

        Assertion Strategy:
            Returned string equals the given path and find_library is
            never consulted.
        """
        lib = tmp_path / "libuvc.so"
        lib.touch()
        with patch("ctypes.util.find_library") as find:
            assert get_library_path(lib) == str(lib)
        find.assert_not_called()

    def test_missing_path_raises(self, tmp_path: Path) -> None:
        """A typo in --library is reported, not silently ignored."""
        missing = tmp_path / "nope.so"
        with pytest.raises(RuntimeError, match="libuvc library not found at"):
            get_library_path(str(missing))


class TestDiscovery:
    """Discovery through the loader and platform fallbacks."""

    def test_find_library_wins(self) -> None:
        """Whatever ctypes finds is used first."""
        with patch("ctypes.util.find_library", return_value="libuvc.so.0"):
            assert get_library_path() == "libuvc.so.0"

    def test_linux_fallback(self) -> None:
        """On Linux the versioned soname is tried by the loader."""
        with (
            patch("ctypes.util.find_library", return_value=None),
            patch("platform.system", return_value="Linux"),
        ):
            assert get_library_path() == "libuvc.so.0"

    def test_darwin_prefers_existing_absolute(self) -> None:
        """Homebrew locations are used when present."""
        with (
            patch("ctypes.util.find_library", return_value=None),
            patch("platform.system", return_value="Darwin"),
            patch.object(Path, "exists", return_value=True),
        ):
            assert get_library_path() == "/opt/homebrew/lib/libuvc.dylib"

    def test_darwin_bare_name_when_nothing_installed(self) -> None:
        """Without Homebrew files the bare dylib name is handed to the loader."""
        with (
            patch("ctypes.util.find_library", return_value=None),
            patch("platform.system", return_value="Darwin"),
            patch.object(Path, "exists", return_value=False),
        ):
            assert get_library_path() == "libuvc.dylib"

    def test_windows_fallback(self) -> None:
        with (
            patch("ctypes.util.find_library", return_value=None),
            patch("platform.system", return_value="Windows"),
        ):
            assert get_library_path() == "uvc.dll"

    def test_unsupported_platform(self) -> None:
        """Unknown systems get a clear error pointing at --library."""
        with (
            patch("ctypes.util.find_library", return_value=None),
            patch("platform.system", return_value="Plan9"),
        ):
            with pytest.raises(RuntimeError, match="Unsupported platform: Plan9"):
                get_library_path()
