"""Clipboard polling loop."""

import logging
import time
from enum import Enum
from typing import Callable, List, Optional

from ..clipboard import ClipboardSource
from ..config import MonitorConfig
from ..detection import ClipboardSnapshot, TriggerScanner, detect
from ..exceptions import (
    ClipboardNotAvailableError,
    ClipboardPlatformError,
    OutputClosedError,
)
from ..protocol import (
    ClipboardUpdate,
    Error,
    OutputMessage,
    Ready,
    TriggerSearch,
    TriggerXml,
)
from .control_channel import ControlChannel
from .output_channel import OutputChannel
from .parent_watch import ParentWatch
from .state import MonitoringState

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1


class MonitorStatus(Enum):
    """Monitor lifecycle."""
    INITIALIZING = "initializing"
    RUNNING = "running"
    TERMINATED = "terminated"


class ClipboardMonitor:
    """
    Watches the clipboard and reports changes to the host.

    Each cycle sleeps, then (only while active) reads the clipboard, emits a
    ``clipboard_update`` when the fingerprint changed and a trigger message
    when the new text carries command markup. Changes made while paused are
    not queued; the next active cycle compares only the then-current text.
    """

    def __init__(
        self,
        config: Optional[MonitorConfig] = None,
        source: Optional[ClipboardSource] = None,
        output: Optional[OutputChannel] = None,
        state: Optional[MonitoringState] = None,
        control: Optional[ControlChannel] = None,
        parent_watch: Optional[ParentWatch] = None,
        scanner: Optional[TriggerScanner] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize the monitor.

        Args:
            config: Cadence and trigger settings
            source: Clipboard reader (built from config if omitted)
            output: Outbound channel (stdout if omitted)
            state: Shared pause flag (shared with ``control``)
            control: Optional control listener, started by ``run``
            parent_watch: Optional host liveness check, consulted every cycle
            scanner: Markup scanner (built from config if omitted)
            sleep: Sleep function used between cycles
        """
        self.config = config or MonitorConfig()
        self.source = source or ClipboardSource(self.config.read_timeout_seconds)
        self.output = output or OutputChannel()
        self.state = state or MonitoringState()
        self.control = control
        self.parent_watch = parent_watch
        self.scanner = scanner or TriggerScanner(self.config.trigger_tags)
        self._sleep = sleep

        self._status = MonitorStatus.INITIALIZING
        self._last_fingerprint: Optional[str] = None
        self._shutdown = False

    @property
    def status(self) -> MonitorStatus:
        return self._status

    @property
    def last_fingerprint(self) -> Optional[str]:
        return self._last_fingerprint

    @property
    def interval(self) -> float:
        """Seconds to sleep before the next cycle."""
        if self.state.active:
            return self.config.poll_interval
        return self.config.paused_interval

    def start(self) -> bool:
        """
        Open the clipboard and announce readiness.

        Returns:
            True when running, False if the clipboard could not be opened

        Raises:
            OutputClosedError: If ``ready`` cannot be written
        """
        try:
            self.source.open()
        except ClipboardPlatformError as e:
            logger.error(f"Clipboard initialization failed: {e}")
            self._status = MonitorStatus.TERMINATED
            self._report_fatal(f"Failed to initialize clipboard: {e}")
            return False

        self.output.emit(Ready())
        self._status = MonitorStatus.RUNNING
        logger.info("Clipboard monitor running")
        return True

    def poll_once(self) -> Optional[ClipboardSnapshot]:
        """
        Run the read/detect/emit part of one cycle.

        Returns:
            The snapshot that was reported, or None if nothing was emitted

        Raises:
            OutputClosedError: If a message cannot be written
        """
        if not self.state.active:
            return None

        try:
            content = self.source.read()
        except ClipboardNotAvailableError as e:
            logger.debug(f"Clipboard not available: {e}")
            return None
        except ClipboardPlatformError as e:
            logger.warning(f"Clipboard read failed: {e}")
            return None

        new_fingerprint, changed = detect(content, self._last_fingerprint)
        if not changed:
            return None

        self._last_fingerprint = new_fingerprint
        self.output.emit(ClipboardUpdate.from_content(content))
        for message in self._trigger_messages(content):
            self.output.emit(message)

        return ClipboardSnapshot(content=content, fingerprint=new_fingerprint)

    def _trigger_messages(self, content: str) -> List[OutputMessage]:
        if self.config.trigger_format == "search":
            return [TriggerSearch(query=query) for query in self.scanner.scan_search_queries(content)]

        payloads = self.scanner.scan(content)
        if not payloads:
            return []
        logger.info(f"Found {len(payloads)} trigger payload(s)")
        return [TriggerXml(xml_payloads=payloads)]

    def _termination_reason(self) -> Optional[str]:
        if self._shutdown:
            return "stop requested"
        if self.config.exit_on_control_close and self.state.control_closed.is_set():
            return "control stream closed"
        if self.parent_watch is not None and not self.parent_watch.parent_alive():
            return "parent process exited"
        return None

    def run(self) -> int:
        """
        Run until a fatal condition.

        Returns:
            Process exit status
        """
        try:
            if not self.start():
                return EXIT_FAILURE

            if self.control is not None:
                self.control.start()

            while True:
                self._sleep(self.interval)

                reason = self._termination_reason()
                if reason is not None:
                    logger.info(f"Stopping clipboard monitor: {reason}")
                    return EXIT_OK if self._shutdown else EXIT_FAILURE

                self.poll_once()

        except OutputClosedError as e:
            logger.error(f"Output stream closed, terminating: {e}")
            return EXIT_FAILURE
        finally:
            self._status = MonitorStatus.TERMINATED

    def stop(self) -> None:
        """Ask the loop to exit after the current sleep."""
        logger.info("Stop requested")
        self._shutdown = True

    def _report_fatal(self, message: str) -> None:
        try:
            self.output.emit(Error(message=message))
        except OutputClosedError as e:
            logger.error(f"Could not report error to host: {e}")
