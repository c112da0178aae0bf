"""Custom exceptions for the clipboard monitor."""


class ClipboardMonitorError(Exception):
    """Base exception for all clipboard monitor errors."""
    pass


class ConfigurationError(ClipboardMonitorError):
    """Raised when configuration is invalid."""
    pass


class ClipboardError(ClipboardMonitorError):
    """Base exception for clipboard read operations."""
    pass


class ClipboardNotAvailableError(ClipboardError):
    """Raised when the clipboard holds no readable text right now.

    Covers empty or non-text content and momentary lock contention.
    Never fatal.
    """
    pass


class ClipboardPlatformError(ClipboardError):
    """Raised when the clipboard backend itself fails or is missing."""
    pass


class ProtocolError(ClipboardMonitorError):
    """Base exception for wire protocol failures."""
    pass


class CommandDecodeError(ProtocolError):
    """Raised when an inbound control line is not a valid command."""
    pass


class OutputClosedError(ProtocolError):
    """Raised when the outbound stream can no longer be written."""
    pass
