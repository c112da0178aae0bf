"""Outbound protocol stream."""

import logging
import sys
import threading
from typing import Optional, TextIO

from ..exceptions import OutputClosedError
from ..protocol import OutputMessage, encode_message

logger = logging.getLogger(__name__)


class OutputChannel:
    """Writes one JSON message per line and flushes after each one.

    Each emit holds a lock for the write and flush so concurrent emitters
    never interleave partial lines.
    """

    def __init__(self, stream: Optional[TextIO] = None):
        self._stream = stream if stream is not None else sys.stdout
        self._lock = threading.Lock()

    def emit(self, message: OutputMessage) -> None:
        """
        Write a message to the host.

        Args:
            message: Message to send

        Raises:
            OutputClosedError: If the stream can no longer be written
        """
        line = encode_message(message) + "\n"
        with self._lock:
            try:
                self._stream.write(line)
                self._stream.flush()
            except OSError as e:
                raise OutputClosedError(f"Output stream closed: {e}") from e
            except ValueError as e:
                # Only "I/O operation on closed file" means the host is gone
                if not getattr(self._stream, "closed", False):
                    raise
                raise OutputClosedError(f"Output stream closed: {e}") from e
        logger.debug(f"Emitted {message.type} message")
