"""Process entry point for the clipboard monitor."""

import argparse
import io
import logging
import signal
import sys

from . import __version__
from .config import MonitorConfig
from .exceptions import ConfigurationError, OutputClosedError
from .protocol import Error
from .service.control_channel import ControlChannel
from .service.monitor import EXIT_FAILURE, ClipboardMonitor
from .service.output_channel import OutputChannel
from .service.parent_watch import ParentWatch
from .service.state import MonitoringState

logger = logging.getLogger(__name__)


def _configure_stdio() -> None:
    """Protocol lines are UTF-8 with bare LF endings on every platform."""
    if isinstance(sys.stdout, io.TextIOWrapper):
        sys.stdout.reconfigure(encoding="utf-8", newline="\n")
    if isinstance(sys.stdin, io.TextIOWrapper):
        sys.stdin.reconfigure(encoding="utf-8", errors="replace")


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description=(
            "Watch the system clipboard and report changes as JSON lines on "
            "stdout. Accepts pause/resume commands as JSON lines on stdin."
        ),
    )
    parser.add_argument(
        "--verbose", action="store_true", help="Log debug diagnostics to stderr"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    args = parser.parse_args()

    # stdout carries the protocol, so diagnostics always go to stderr
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
        stream=sys.stderr,
    )

    _configure_stdio()
    output = OutputChannel(sys.stdout)

    try:
        config = MonitorConfig.load()
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        try:
            output.emit(Error(message=f"Invalid configuration: {e}"))
        except OutputClosedError as write_error:
            logger.error(f"Could not report error to host: {write_error}")
        return EXIT_FAILURE

    if not args.verbose:
        logging.getLogger().setLevel(config.log_level.upper())

    state = MonitoringState()
    monitor = ClipboardMonitor(
        config,
        output=output,
        state=state,
        control=ControlChannel(state, sys.stdin),
        parent_watch=ParentWatch() if config.watch_parent else None,
    )

    def signal_handler(signum, frame):
        logger.info("Received signal, shutting down")
        monitor.stop()

    signal.signal(signal.SIGTERM, signal_handler)

    try:
        return monitor.run()
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
