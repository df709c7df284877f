"""visca2uvc - zoom control for UVC cameras through libuvc."""

__version__ = "0.1.0"
