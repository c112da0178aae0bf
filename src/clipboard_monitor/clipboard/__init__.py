"""Clipboard access for the clipboard monitor."""

from .clipboard_source import ClipboardSource

__all__ = [
    "ClipboardSource",
]
