"""Polling service and host channels for the clipboard monitor."""

from importlib import import_module

__all__ = [
    "ClipboardMonitor",
    "ControlChannel",
    "MonitoringState",
    "OutputChannel",
    "ParentWatch",
]

_LAZY_EXPORTS = {
    "ClipboardMonitor": ("monitor", "ClipboardMonitor"),
    "ControlChannel": ("control_channel", "ControlChannel"),
    "MonitoringState": ("state", "MonitoringState"),
    "OutputChannel": ("output_channel", "OutputChannel"),
    "ParentWatch": ("parent_watch", "ParentWatch"),
}


def __getattr__(name):
    """Lazily import service modules so protocol-only users skip psutil."""
    if name in _LAZY_EXPORTS:
        module_name, attr_name = _LAZY_EXPORTS[name]
        module = import_module(f".{module_name}", __name__)
        value = getattr(module, attr_name)
        globals()[name] = value
        return value
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
