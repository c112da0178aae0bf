"""Shared pytest fixtures for clipboard monitor tests."""

import io
import json

import pytest

from clipboard_monitor.config import MonitorConfig
from clipboard_monitor.exceptions import ClipboardNotAvailableError
from clipboard_monitor.service.output_channel import OutputChannel
from clipboard_monitor.service.state import MonitoringState


class FakeClipboardSource:
    """In-memory stand-in for ClipboardSource.

    ``content`` is returned by ``read``; None means no text available.
    Set ``open_error`` / ``read_error`` to make the calls raise.
    """

    def __init__(self, content=None):
        self.content = content
        self.open_error = None
        self.read_error = None
        self.open_calls = 0
        self.read_calls = 0

    def open(self):
        self.open_calls += 1
        if self.open_error is not None:
            raise self.open_error

    def read(self):
        self.read_calls += 1
        if self.read_error is not None:
            raise self.read_error
        if not self.content:
            raise ClipboardNotAvailableError("Clipboard is empty")
        return self.content


class ClosedStream(io.StringIO):
    """Output stream whose reader has gone away."""

    def write(self, s):
        raise BrokenPipeError(32, "Broken pipe")


def read_messages(stream):
    """Decode every JSON line written to a StringIO stream."""
    return [json.loads(line) for line in stream.getvalue().splitlines()]


@pytest.fixture
def fake_source():
    """Clipboard source with no content."""
    return FakeClipboardSource()


@pytest.fixture
def out_stream():
    """Captured protocol output."""
    return io.StringIO()


@pytest.fixture
def output(out_stream):
    """OutputChannel writing to ``out_stream``."""
    return OutputChannel(out_stream)


@pytest.fixture
def state():
    """Fresh monitoring state (active)."""
    return MonitoringState()


@pytest.fixture
def config():
    """Default config with parent/control exit checks off."""
    return MonitorConfig(exit_on_control_close=False, watch_parent=False)


@pytest.fixture
def emitted(out_stream):
    """Callable returning the messages written so far."""
    return lambda: read_messages(out_stream)


@pytest.fixture
def closed_output():
    """OutputChannel whose stream raises BrokenPipeError."""
    return OutputChannel(ClosedStream())
