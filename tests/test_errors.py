"""Tests for the visca2uvc exception hierarchy."""

from __future__ import annotations

import pytest

from visca2uvc.errors import (
    ArgumentError,
    ControlError,
    ControlTransferError,
    OpenError,
    SessionError,
    UnknownCommandError,
    Visca2UvcError,
)


class TestControlError:
    """ControlError carries operation, reason and status code."""

    def test_message(self) -> None:
        err = ControlError("get_zoom_abs", "Pipe error", code=-9)
        assert str(err) == "get_zoom_abs: Pipe error"
        assert err.operation == "get_zoom_abs"
        assert err.message == "Pipe error"
        assert err.code == -9

    def test_code_optional(self) -> None:
        """Python-side failures have no libuvc status code."""
        assert ControlError("open", "device is closed").code is None

    def test_repr(self) -> None:
        err = OpenError("open", "Access denied", code=-3)
        assert repr(err) == (
            "OpenError(operation='open', message='Access denied', code=-3)"
        )

    @pytest.mark.parametrize("cls", [SessionError, OpenError, ControlTransferError])
    def test_subclasses(self, cls: type[ControlError]) -> None:
        """Every device-control failure can be caught as ControlError."""
        with pytest.raises(ControlError):
            raise cls("op", "reason")


class TestOtherErrors:
    """Argument and command errors."""

    def test_argument_error_is_not_control_error(self) -> None:
        """The CLI maps these to different exit codes."""
        assert not issubclass(ArgumentError, ControlError)
        assert issubclass(ArgumentError, Visca2UvcError)

    def test_unknown_command(self) -> None:
        err = UnknownCommandError("frobnicate")
        assert str(err) == "Unknown command: frobnicate"
        assert err.command == "frobnicate"
        assert isinstance(err, Visca2UvcError)
