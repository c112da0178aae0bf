"""Tests for the clipboard polling loop."""

import io
from unittest.mock import MagicMock, patch

import pytest

from clipboard_monitor.clipboard import ClipboardSource
from clipboard_monitor.config import MonitorConfig
from clipboard_monitor.detection import fingerprint
from clipboard_monitor.exceptions import (
    ClipboardNotAvailableError,
    ClipboardPlatformError,
    OutputClosedError,
)
from clipboard_monitor.service.control_channel import ControlChannel
from clipboard_monitor.service.monitor import (
    EXIT_FAILURE,
    EXIT_OK,
    ClipboardMonitor,
    MonitorStatus,
)
from clipboard_monitor.service.output_channel import OutputChannel


class LoopDriver:
    """Sleep replacement that runs one scripted step per cycle.

    Each step runs during the sleep, before that cycle's poll. When the
    steps run out the monitor is stopped.
    """

    def __init__(self, *steps):
        self.steps = list(steps)
        self.intervals = []
        self.monitor = None

    def __call__(self, seconds):
        self.intervals.append(seconds)
        if self.steps:
            self.steps.pop(0)()
        else:
            self.monitor.stop()


@pytest.fixture
def make_monitor(config, fake_source, output, state):
    """Build a monitor driven by a LoopDriver."""
    def factory(*steps, **kwargs):
        driver = LoopDriver(*steps)
        kwargs.setdefault("config", config)
        kwargs.setdefault("source", fake_source)
        kwargs.setdefault("output", output)
        kwargs.setdefault("state", state)
        monitor = ClipboardMonitor(sleep=driver, **kwargs)
        driver.monitor = monitor
        return monitor, driver
    return factory


def _set(source, content):
    def step():
        source.content = content
    return step


class TestStartup:
    """Test Initializing -> Running / Terminated."""

    def test_ready_is_first_line(self, make_monitor, out_stream, fake_source):
        """Test a fresh start emits exactly the ready line first."""
        fake_source.content = "already there"
        monitor, _ = make_monitor()

        assert monitor.start() is True
        assert out_stream.getvalue() == '{"type":"ready"}\n'
        assert fake_source.read_calls == 0
        assert monitor.status is MonitorStatus.RUNNING

    def test_init_failure_reports_error_and_exits(self, make_monitor, fake_source, emitted):
        fake_source.open_error = ClipboardPlatformError("no display")
        monitor, driver = make_monitor()

        assert monitor.run() == EXIT_FAILURE
        messages = emitted()
        assert len(messages) == 1
        assert messages[0]["type"] == "error"
        assert "no display" in messages[0]["message"]
        assert driver.intervals == []
        assert fake_source.read_calls == 0
        assert monitor.status is MonitorStatus.TERMINATED

    def test_ready_write_failure(self, make_monitor, closed_output):
        monitor, driver = make_monitor(output=closed_output)
        assert monitor.run() == EXIT_FAILURE
        assert driver.intervals == []


class TestPolling:
    """Test the read/detect/emit cycle."""

    def test_first_content_emits_update(self, make_monitor, fake_source, emitted):
        fake_source.content = "Test Data"
        monitor, _ = make_monitor()
        monitor.start()

        snapshot = monitor.poll_once()

        assert snapshot.content == "Test Data"
        assert snapshot.fingerprint == fingerprint("Test Data")
        assert monitor.last_fingerprint == fingerprint("Test Data")
        update = emitted()[1]
        assert update["type"] == "clipboard_update"
        assert update["content"] == "Test Data"
        assert update["length"] == 9
        assert isinstance(update["timestamp"], str)

    def test_unchanged_content_emits_nothing(self, make_monitor, fake_source, emitted):
        fake_source.content = "Test Data"
        monitor, _ = make_monitor()
        monitor.start()

        monitor.poll_once()
        assert monitor.poll_once() is None
        assert len(emitted()) == 2

    def test_each_distinct_value_reported_once(self, make_monitor, fake_source, emitted):
        monitor, _ = make_monitor()
        monitor.start()

        for content in ["one", "two", "two", "three", "one", "one"]:
            fake_source.content = content
            monitor.poll_once()

        updates = [m for m in emitted() if m["type"] == "clipboard_update"]
        assert [u["content"] for u in updates] == ["one", "two", "three", "one"]
        assert [u["length"] for u in updates] == [3, 3, 5, 3]

    def test_trigger_follows_update(self, make_monitor, fake_source, emitted):
        content = "<qdrant-search>hello</qdrant-search>"
        fake_source.content = content
        monitor, _ = make_monitor()
        monitor.start()
        monitor.poll_once()

        messages = emitted()
        assert [m["type"] for m in messages] == ["ready", "clipboard_update", "trigger_xml"]
        assert messages[2]["xml_payloads"] == [content]

    def test_trigger_not_repeated_for_same_content(self, make_monitor, fake_source, emitted):
        fake_source.content = "<qdrant-read path='a.ts' />"
        monitor, _ = make_monitor()
        monitor.start()
        monitor.poll_once()
        monitor.poll_once()

        assert [m["type"] for m in emitted()] == ["ready", "clipboard_update", "trigger_xml"]

    def test_no_trigger_for_plain_text(self, make_monitor, fake_source, emitted):
        fake_source.content = "plain <b>text</b>"
        monitor, _ = make_monitor()
        monitor.start()
        monitor.poll_once()

        assert [m["type"] for m in emitted()] == ["ready", "clipboard_update"]

    def test_search_trigger_format(self, fake_source, output, state, emitted):
        fake_source.content = "<qdrant-search> a </qdrant-search><qdrant-search>b</qdrant-search>"
        config = MonitorConfig(trigger_format="search", watch_parent=False)
        monitor = ClipboardMonitor(config, source=fake_source, output=output, state=state)
        monitor.start()
        monitor.poll_once()

        messages = emitted()
        assert [m["type"] for m in messages] == [
            "ready", "clipboard_update", "trigger_search", "trigger_search"
        ]
        assert [m["query"] for m in messages[2:]] == ["a", "b"]

    @pytest.mark.parametrize("error", [
        ClipboardNotAvailableError("image on clipboard"),
        ClipboardPlatformError("xclip crashed"),
    ])
    def test_read_errors_are_absorbed(self, make_monitor, fake_source, emitted, error):
        monitor, _ = make_monitor()
        monitor.start()
        fake_source.read_error = error

        assert monitor.poll_once() is None
        assert [m["type"] for m in emitted()] == ["ready"]

    @patch('pyperclip.paste', return_value="abc\ud800def")
    def test_undecodable_native_text_is_absorbed(self, mock_paste, output, state, config, emitted):
        """Test surrogate-bearing clipboard text is skipped like any transient read."""
        source = ClipboardSource(session_type="native")
        monitor = ClipboardMonitor(config, source=source, output=output, state=state)
        monitor.start()

        assert monitor.poll_once() is None
        assert monitor.last_fingerprint is None
        assert [m["type"] for m in emitted()] == ["ready"]

    def test_output_failure_propagates(self, make_monitor, fake_source, closed_output):
        fake_source.content = "x"
        monitor, _ = make_monitor(output=closed_output)
        with pytest.raises(OutputClosedError):
            monitor.poll_once()


class TestRunLoop:
    """Test the full loop with a scripted clock."""

    def test_scenario(self, make_monitor, fake_source, emitted):
        monitor, driver = make_monitor(
            _set(fake_source, "Test Data"),
            _set(fake_source, "Test Data"),
            _set(fake_source, "<qdrant-search>hello</qdrant-search>"),
        )

        assert monitor.run() == EXIT_OK
        assert [m["type"] for m in emitted()] == [
            "ready", "clipboard_update", "clipboard_update", "trigger_xml"
        ]
        assert driver.intervals == [0.5, 0.5, 0.5, 0.5]
        assert monitor.status is MonitorStatus.TERMINATED

    def test_pause_skips_changes_until_resume(self, make_monitor, fake_source, state, emitted):
        """Test changes during a pause are missed, not queued."""
        control = ControlChannel(state, io.StringIO())

        def pause_and_change():
            control.handle_line('{"type":"pause"}')
            fake_source.content = "B"

        def change():
            fake_source.content = "C"

        def revert_and_resume():
            fake_source.content = "A"
            control.handle_line('{"type":"resume"}')

        monitor, driver = make_monitor(
            _set(fake_source, "A"),
            pause_and_change,
            change,
            revert_and_resume,
            _set(fake_source, "D"),
        )

        read_counts = []
        original_read = fake_source.read

        def counting_read():
            read_counts.append(fake_source.content)
            return original_read()

        fake_source.read = counting_read

        assert monitor.run() == EXIT_OK
        updates = [m["content"] for m in emitted() if m["type"] == "clipboard_update"]
        assert updates == ["A", "D"]
        # No reads at all while paused
        assert read_counts == ["A", "A", "D"]
        assert driver.intervals == [0.5, 0.5, 1.0, 1.0, 0.5, 0.5]

    def test_transient_errors_do_not_stop_loop(self, make_monitor, fake_source, emitted):
        def fail():
            fake_source.read_error = ClipboardPlatformError("flaky")

        def recover():
            fake_source.read_error = None
            fake_source.content = "back"

        monitor, _ = make_monitor(fail, fail, recover)

        assert monitor.run() == EXIT_OK
        assert [m["type"] for m in emitted()] == ["ready", "clipboard_update"]

    def test_output_closed_mid_run(self, make_monitor, fake_source):
        stream = MagicMock()
        stream.write.side_effect = [None, BrokenPipeError(32, "Broken pipe")]
        monitor, driver = make_monitor(
            _set(fake_source, "first"),
            _set(fake_source, "never reached"),
            output=OutputChannel(stream),
        )

        assert monitor.run() == EXIT_FAILURE
        assert len(driver.intervals) == 1

    def test_control_close_terminates(self, fake_source, output, state, emitted):
        config = MonitorConfig(exit_on_control_close=True, watch_parent=False)
        driver = LoopDriver(state.control_closed.set)
        monitor = ClipboardMonitor(config, source=fake_source, output=output, state=state, sleep=driver)
        driver.monitor = monitor

        assert monitor.run() == EXIT_FAILURE
        assert [m["type"] for m in emitted()] == ["ready"]

    def test_control_close_ignored_when_disabled(self, make_monitor, fake_source, state):
        monitor, driver = make_monitor(state.control_closed.set, _set(fake_source, "x"))
        assert monitor.run() == EXIT_OK
        assert len(driver.intervals) == 3

    def test_parent_exit_terminates(self, make_monitor):
        watch = MagicMock()
        watch.parent_alive.side_effect = [True, False]
        monitor, driver = make_monitor(lambda: None, lambda: None, lambda: None, parent_watch=watch)

        assert monitor.run() == EXIT_FAILURE
        assert len(driver.intervals) == 2

    def test_control_started_after_ready(self, make_monitor, out_stream):
        """Test the control listener only starts once ready is out."""
        seen_at_start = []
        control = MagicMock()
        control.start.side_effect = lambda: seen_at_start.append(out_stream.getvalue())

        monitor, _ = make_monitor(control=control)
        monitor.run()

        control.start.assert_called_once()
        assert seen_at_start == ['{"type":"ready"}\n']
