"""Detect that the supervising host process has gone away."""

import logging
from typing import Optional

import psutil

logger = logging.getLogger(__name__)


class ParentWatch:
    """Remembers the parent PID at startup and reports when it disappears."""

    def __init__(self, process: Optional[psutil.Process] = None):
        self._process = process or psutil.Process()
        self.parent_pid = self._process.ppid()
        logger.debug(f"Watching parent process {self.parent_pid}")

    def parent_alive(self) -> bool:
        """False once we were re-parented or the original parent exited."""
        try:
            if self._process.ppid() != self.parent_pid:
                return False
            return psutil.pid_exists(self.parent_pid)
        except psutil.Error as e:
            logger.warning(f"Parent liveness check failed: {e}")
            return True
