"""
Tests for the profiler scheduler.

Profilers here run with millisecond periods so the threaded schedule can
be exercised quickly.
"""

import threading
import time
from typing import Any, Mapping
from unittest.mock import Mock, patch

import pytest

from rtprofiler.profilers.base import Profiler, TimeUnit
from rtprofiler.scheduling import ProfilerScheduler, SignalHandler
from rtprofiler.sinks.base import MetricSink


class TickingProfiler(Profiler):
    """Counts samples and flushes; optionally fails every sample."""

    def configure(self, options: Mapping[str, Any]) -> None:
        self.interval_ms = options.get("interval_ms", 10)
        self.fail = options.get("fail", False)
        self.samples = 0
        self.flushes = 0
        self.sampled = threading.Event()

    def sample(self) -> None:
        self.samples += 1
        self.sampled.set()
        if self.fail:
            raise RuntimeError("boom")

    def flush_remaining(self) -> None:
        self.flushes += 1

    def period(self) -> float:
        return self.interval_ms

    def time_unit(self) -> TimeUnit:
        return TimeUnit.MILLISECONDS


def wait_for_samples(profiler, count, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if profiler.samples >= count:
            return True
        time.sleep(0.01)
    return profiler.samples >= count


@pytest.mark.unit
class TestProfilerScheduler:
    """Test cases for ProfilerScheduler."""

    def test_first_sample_runs_immediately(self, mock_sink):
        profiler = TickingProfiler(mock_sink, options={"interval_ms": 60_000})
        scheduler = ProfilerScheduler([profiler])

        scheduler.start()
        try:
            assert profiler.sampled.wait(5.0)
        finally:
            scheduler.shutdown()

        assert profiler.samples == 1

    def test_samples_repeat_at_period(self, mock_sink):
        profiler = TickingProfiler(mock_sink, options={"interval_ms": 5})

        with ProfilerScheduler([profiler]):
            assert wait_for_samples(profiler, 3)

    def test_flush_remaining_called_exactly_once(self, mock_sink):
        profiler = TickingProfiler(mock_sink)
        scheduler = ProfilerScheduler([profiler])

        scheduler.start()
        profiler.sampled.wait(5.0)
        scheduler.shutdown()
        scheduler.shutdown()

        assert profiler.flushes == 1
        assert not scheduler.is_running

    def test_shutdown_without_start_still_flushes(self, mock_sink):
        profiler = TickingProfiler(mock_sink)

        ProfilerScheduler([profiler]).shutdown()

        assert profiler.flushes == 1
        assert profiler.samples == 0

    def test_failing_sample_does_not_stop_schedule(self, mock_sink):
        profiler = TickingProfiler(mock_sink, options={"interval_ms": 5, "fail": True})

        with ProfilerScheduler([profiler]):
            assert wait_for_samples(profiler, 3)

        assert profiler.flushes == 1

    def test_profilers_run_independently(self, mock_sink):
        slow = TickingProfiler(mock_sink, options={"interval_ms": 60_000})
        fast = TickingProfiler(mock_sink, options={"interval_ms": 5})

        with ProfilerScheduler([slow, fast]):
            assert wait_for_samples(fast, 3)

        assert slow.samples == 1

    def test_sinks_closed_after_flush(self, mock_sink):
        order = []
        profiler = TickingProfiler(mock_sink)
        profiler.flush_remaining = lambda: order.append("flush")
        sink = Mock(spec=MetricSink)
        sink.close.side_effect = lambda: order.append("close")

        ProfilerScheduler([profiler], sinks=[sink]).shutdown()

        assert order == ["flush", "close"]

    def test_flush_error_does_not_block_sink_close(self, mock_sink):
        profiler = TickingProfiler(mock_sink)
        profiler.flush_remaining = Mock(side_effect=RuntimeError("flush failed"))
        sink = Mock(spec=MetricSink)

        ProfilerScheduler([profiler], sinks=[sink]).shutdown()

        sink.close.assert_called_once()

    def test_start_twice_raises(self, mock_sink):
        scheduler = ProfilerScheduler([TickingProfiler(mock_sink)])
        scheduler.start()
        try:
            with pytest.raises(RuntimeError):
                scheduler.start()
        finally:
            scheduler.shutdown()

        with pytest.raises(RuntimeError):
            scheduler.start()

    def test_thread_names_use_prefix(self, mock_sink):
        profiler = TickingProfiler(mock_sink, options={"interval_ms": 60_000})
        scheduler = ProfilerScheduler([profiler], thread_name_prefix="TestWorker")

        scheduler.start()
        try:
            assert scheduler._threads[0].name.startswith("TestWorker-0-TickingProfiler")
            assert scheduler._threads[0].daemon
        finally:
            scheduler.shutdown()

    def test_wait_for_shutdown(self, mock_sink):
        scheduler = ProfilerScheduler([TickingProfiler(mock_sink)])

        assert scheduler.wait_for_shutdown(timeout=0.01) is False
        scheduler.request_shutdown()
        assert scheduler.wait_for_shutdown(timeout=0.01) is True


@pytest.mark.unit
class TestShutdownHooks:
    """Test cases for atexit and signal hook management."""

    @patch("rtprofiler.scheduling.scheduler.atexit")
    def test_install_and_remove_atexit(self, mock_atexit, mock_sink):
        scheduler = ProfilerScheduler([TickingProfiler(mock_sink)])

        scheduler.install_shutdown_hooks()
        scheduler.install_shutdown_hooks()
        mock_atexit.register.assert_called_once_with(scheduler.shutdown)

        scheduler.shutdown()
        mock_atexit.unregister.assert_called_once_with(scheduler.shutdown)

    @patch("rtprofiler.scheduling.signal_handler.signal.signal")
    def test_signal_triggers_shutdown_request(self, mock_signal):
        callback = Mock()
        handler = SignalHandler(callback)

        handler.setup_signal_handlers()
        handler._handle_signal(15, None)

        callback.assert_called_once()
        assert mock_signal.call_count >= 2
