"""Monitoring state shared between the poll loop and the control listener."""

import logging
import threading

logger = logging.getLogger(__name__)


class MonitoringState:
    """Thread-safe active/paused flag.

    Created once at startup and handed to both the monitor and the control
    channel. ``control_closed`` is set when the control stream ends.
    """

    def __init__(self, active: bool = True):
        self._active = active
        self._lock = threading.Lock()
        self.control_closed = threading.Event()

    @property
    def active(self) -> bool:
        """Whether cycles should read the clipboard."""
        with self._lock:
            return self._active

    def _set_active(self, active: bool) -> bool:
        with self._lock:
            changed = self._active != active
            self._active = active
        return changed

    def pause(self) -> bool:
        """Stop observing. Returns True if the state changed."""
        changed = self._set_active(False)
        if changed:
            logger.info("Monitoring paused")
        return changed

    def resume(self) -> bool:
        """Resume observing. Returns True if the state changed."""
        changed = self._set_active(True)
        if changed:
            logger.info("Monitoring resumed")
        return changed
