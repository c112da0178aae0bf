"""Inbound control command listener."""

import logging
import sys
import threading
from typing import Optional, TextIO

from ..exceptions import CommandDecodeError
from ..protocol import InputCommand, decode_command
from .state import MonitoringState

logger = logging.getLogger(__name__)


class ControlChannel:
    """Reads pause/resume commands on a background thread.

    Malformed lines are logged and skipped. The thread stops for good when
    the stream reaches EOF or fails, and marks ``state.control_closed``.
    """

    def __init__(self, state: MonitoringState, stream: Optional[TextIO] = None):
        self.state = state
        self._stream = stream if stream is not None else sys.stdin
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the listener thread."""
        if self.is_running:
            return
        self._thread = threading.Thread(
            target=self._listen, name="clipboard-monitor-control", daemon=True
        )
        self._thread.start()
        logger.debug("Control channel started")

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def handle_line(self, line: str) -> Optional[InputCommand]:
        """
        Apply one inbound line to the monitoring state.

        Args:
            line: Raw line read from the stream

        Returns:
            The applied command, or None for blank or malformed lines
        """
        line = line.strip()
        if not line:
            return None

        try:
            command = decode_command(line)
        except CommandDecodeError as e:
            logger.warning(f"Ignoring malformed control line {line!r}: {e}")
            return None

        if command is InputCommand.PAUSE:
            self.state.pause()
        elif command is InputCommand.RESUME:
            self.state.resume()
        return command

    def _listen(self) -> None:
        try:
            while True:
                line = self._stream.readline()
                if not line:
                    logger.info("Control stream closed")
                    break
                self.handle_line(line)
        except (OSError, ValueError) as e:
            logger.warning(f"Control stream failed: {e}")
        finally:
            self.state.control_closed.set()
