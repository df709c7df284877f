"""Exception hierarchy for visca2uvc.

Every failure a command can hit is one of these types. Device-control
failures carry the name of the libuvc operation that failed together with
the library's own description of the status code, so a single line on
stderr is enough to tell what went wrong without a traceback.

Hierarchy::

    Visca2UvcError
    ├── ControlError(operation, message, code)
    │   ├── SessionError          init / find_device
    │   ├── OpenError             open
    │   └── ControlTransferError  get/set zoom requests
    ├── ArgumentError             bad command-line arguments
    └── UnknownCommandError       unrecognized command token

Example:
    >>> try:
    ...     handle.set_zoom_absolute(9000)
    ... except ControlError as e:
    ...     print(e.operation, e.code)
    set_zoom_abs -2
"""

from __future__ import annotations

__all__ = [
    "Visca2UvcError",
    "ControlError",
    "SessionError",
    "OpenError",
    "ControlTransferError",
    "ArgumentError",
    "UnknownCommandError",
]


class Visca2UvcError(Exception):
    """Base exception for all visca2uvc errors."""


class ControlError(Visca2UvcError):
    """A device-control call reported failure.

    Attributes:
        operation: Name of the attempted operation (e.g. "get_zoom_abs").
        message: Human-readable reason, usually ``uvc_strerror(code)``.
        code: Raw negative libuvc status code, or None when the failure
            was detected on the Python side (e.g. use after close).
    """

    def __init__(self, operation: str, message: str, code: int | None = None):
        """Create a control error for a named operation.

        Args:
            operation: Name of the libuvc call that failed.
            message: Reason string reported by the library.
            code: Optional negative status code returned by the call.

        Example:
            >>> err = ControlError("open", "Access denied", code=-3)
            >>> str(err)
            'open: Access denied'
        """
        super().__init__(f"{operation}: {message}")
        self.operation = operation
        self.message = message
        self.code = code

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(operation={self.operation!r}, "
            f"message={self.message!r}, code={self.code!r})"
        )


class SessionError(ControlError):
    """Library session could not start, or no matching device was found."""


class OpenError(ControlError):
    """Device exists but could not be opened (busy, permissions, unplugged)."""


class ControlTransferError(ControlError):
    """A zoom get/set request was rejected by the device or transport."""


class ArgumentError(Visca2UvcError):
    """Wrong argument count or malformed numeric argument for a command."""


class UnknownCommandError(Visca2UvcError):
    """Unrecognized command token.

    Raised by command parsing and handled inside the dispatcher, which
    reports it on stderr instead of failing the run.
    """

    def __init__(self, command: str):
        super().__init__(f"Unknown command: {command}")
        self.command = command
