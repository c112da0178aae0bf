"""Read-only access to the system clipboard."""

import logging
import os
import shutil
import subprocess
import sys
from typing import List, Optional

import pyperclip

from ..exceptions import ClipboardNotAvailableError, ClipboardPlatformError

logger = logging.getLogger(__name__)

WAYLAND_COMMAND = ['wl-paste', '--no-newline', '--type', 'text']
X11_COMMAND = ['xclip', '-selection', 'clipboard', '-o', '-t', 'UTF8_STRING']

INSTALL_HINTS = {
    'wl-paste': "Install: sudo apt install wl-clipboard",
    'xclip': "Install: sudo apt install xclip",
}


class ClipboardSource:
    """Plain-text clipboard reader with a per-session backend.

    Linux sessions use the wl-clipboard or xclip command line tools; every
    other platform goes through pyperclip.
    """

    def __init__(self, timeout_seconds: float = 2.0, session_type: Optional[str] = None):
        """
        Initialize clipboard source.

        Args:
            timeout_seconds: Timeout for each clipboard tool invocation
            session_type: Force a backend instead of detecting it
        """
        self.timeout_seconds = timeout_seconds
        self._session_type = session_type or self.detect_session_type()
        logger.info(f"Clipboard source using {self._session_type} backend")

    @property
    def session_type(self) -> str:
        return self._session_type

    @staticmethod
    def detect_session_type() -> str:
        """
        Detect which clipboard backend applies to this session.

        Returns:
            'wayland', 'x11', 'unknown' (Linux without a display) or 'native'
        """
        if not sys.platform.startswith('linux'):
            return 'native'
        if os.getenv('WAYLAND_DISPLAY'):
            return 'wayland'
        elif os.getenv('DISPLAY'):
            return 'x11'
        else:
            return 'unknown'

    def _command(self) -> Optional[List[str]]:
        if self._session_type == 'wayland':
            return WAYLAND_COMMAND
        if self._session_type == 'x11':
            return X11_COMMAND
        return None

    def open(self) -> None:
        """
        Check that the backend is usable.

        A probe read that finds no text is fine; a backend failure is not.

        Raises:
            ClipboardPlatformError: If the clipboard cannot be accessed at all
        """
        command = self._command()
        if command and shutil.which(command[0]) is None:
            raise ClipboardPlatformError(
                f"{command[0]} not found. {INSTALL_HINTS[command[0]]}"
            )

        try:
            self.read()
        except ClipboardNotAvailableError as e:
            logger.debug(f"Clipboard probe found no text: {e}")

        logger.info("Clipboard access verified")

    def read(self) -> str:
        """
        Read the current clipboard text.

        Returns:
            Clipboard text (never empty)

        Raises:
            ClipboardNotAvailableError: No text right now (empty, non-text, busy)
            ClipboardPlatformError: The backend failed
        """
        command = self._command()
        if command is None:
            text = self._read_native()
        else:
            text = self._read_command(command)

        if not text:
            raise ClipboardNotAvailableError("Clipboard is empty")
        return text

    def _read_command(self, command: List[str]) -> str:
        """
        Read via a clipboard command line tool.

        Args:
            command: Tool invocation printing the clipboard to stdout

        Returns:
            Decoded clipboard text
        """
        try:
            result = subprocess.run(
                command,
                timeout=self.timeout_seconds,
                check=True,
                capture_output=True
            )
        except FileNotFoundError as e:
            raise ClipboardPlatformError(
                f"{command[0]} not found. {INSTALL_HINTS.get(command[0], '')}".strip()
            ) from e
        except subprocess.TimeoutExpired as e:
            raise ClipboardNotAvailableError(
                f"{command[0]} timeout after {self.timeout_seconds}s"
            ) from e
        except subprocess.CalledProcessError as e:
            # Empty selection or no text target
            stderr = (e.stderr or b"").decode('utf-8', errors='replace').strip()
            raise ClipboardNotAvailableError(
                f"{command[0]} exited with code {e.returncode}: {stderr}"
            ) from e
        except OSError as e:
            raise ClipboardPlatformError(f"{command[0]} failed: {e}") from e

        try:
            return result.stdout.decode('utf-8')
        except UnicodeDecodeError as e:
            raise ClipboardNotAvailableError(f"Clipboard content is not UTF-8 text: {e}") from e

    def _read_native(self) -> str:
        """Read via pyperclip's platform mechanism."""
        try:
            text = pyperclip.paste()
        except pyperclip.PyperclipWindowsException as e:
            # OpenClipboard fails while another process holds the clipboard
            raise ClipboardNotAvailableError(f"Clipboard busy: {e}") from e
        except pyperclip.PyperclipException as e:
            raise ClipboardPlatformError(f"Clipboard unavailable: {e}") from e

        if not isinstance(text, str):
            raise ClipboardNotAvailableError("Clipboard does not hold text")

        # Windows text may carry unpaired UTF-16 surrogates
        try:
            text.encode('utf-8')
        except UnicodeEncodeError as e:
            raise ClipboardNotAvailableError(f"Clipboard content is not valid Unicode text: {e}") from e
        return text
