"""Clipboard monitor - reports clipboard changes to a host process over stdio."""

__version__ = "0.1.0"

from .config import MonitorConfig
from .exceptions import (
    ClipboardMonitorError,
    ConfigurationError,
    ClipboardError,
    ClipboardNotAvailableError,
    ClipboardPlatformError,
    ProtocolError,
    CommandDecodeError,
    OutputClosedError,
)
from .protocol import (
    OutputMessage,
    Ready,
    ClipboardUpdate,
    TriggerXml,
    TriggerSearch,
    Error,
    InputCommand,
    encode_message,
    decode_command,
)
from .detection import (
    ClipboardSnapshot,
    TriggerScanner,
    detect,
    fingerprint,
)
from .clipboard import ClipboardSource

__all__ = [
    # Configuration
    "MonitorConfig",
    # Exceptions
    "ClipboardMonitorError",
    "ConfigurationError",
    "ClipboardError",
    "ClipboardNotAvailableError",
    "ClipboardPlatformError",
    "ProtocolError",
    "CommandDecodeError",
    "OutputClosedError",
    # Protocol
    "OutputMessage",
    "Ready",
    "ClipboardUpdate",
    "TriggerXml",
    "TriggerSearch",
    "Error",
    "InputCommand",
    "encode_message",
    "decode_command",
    # Detection
    "ClipboardSnapshot",
    "TriggerScanner",
    "detect",
    "fingerprint",
    # Clipboard
    "ClipboardSource",
]
