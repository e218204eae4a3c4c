"""
Periodic scheduling of profilers.

This module provides the ProfilerScheduler, which runs every profiler on
its own daemon thread so that a blocking sample in one profiler (for
example the RSS status query) never delays another. At shutdown it stops
the threads and calls `flush_remaining()` exactly once per profiler.
"""

import atexit
import logging
import threading
import time
from typing import Iterable, List, Optional

from ..profilers.base import Profiler
from ..sinks.base import MetricSink
from ..validation import ErrorSeverity, handle_error
from .signal_handler import SignalHandler

logger = logging.getLogger(__name__)


class ProfilerScheduler:
    """
    Runs profilers at their declared periods and flushes them at shutdown.

    The first sample runs immediately after `start()`. Later samples run
    roughly every period; a sample that overruns its period pushes the next
    one back instead of triggering a catch-up run.
    """

    def __init__(
        self,
        profilers: Iterable[Profiler],
        sinks: Iterable[MetricSink] = (),
        thread_name_prefix: str = "ProfilerWorker",
        shutdown_timeout: float = 5.0,
    ):
        """
        Initialize the scheduler.

        Args:
            profilers: Profilers to run.
            sinks: Sinks to flush and close after the final profiler flush.
            thread_name_prefix: Prefix for worker thread names.
            shutdown_timeout: Seconds to wait for each worker thread to stop.
        """
        self.profilers: List[Profiler] = list(profilers)
        self.sinks: List[MetricSink] = list(sinks)
        self.thread_name_prefix = thread_name_prefix
        self.shutdown_timeout = shutdown_timeout

        self._threads: List[threading.Thread] = []
        self._stop_event = threading.Event()
        self._shutdown_requested = threading.Event()
        self._shutdown_lock = threading.Lock()
        self._started = False
        self._is_shutdown = False
        self._signal_handler: Optional[SignalHandler] = None
        self._atexit_registered = False

    @property
    def is_running(self) -> bool:
        return self._started and not self._is_shutdown

    def start(self) -> None:
        """
        Start one worker thread per profiler.

        Raises:
            RuntimeError: If already started or already shut down
        """
        if self._is_shutdown:
            raise RuntimeError("Scheduler is shutdown")
        if self._started:
            raise RuntimeError("Scheduler already started")
        self._started = True

        for index, profiler in enumerate(self.profilers):
            thread = threading.Thread(
                target=self._run_profiler,
                args=(profiler,),
                name=f"{self.thread_name_prefix}-{index}-{profiler.__class__.__name__}",
                daemon=True,
            )
            self._threads.append(thread)
            thread.start()

        logger.info(f"Started scheduler with {len(self._threads)} profiler threads")

    def _run_profiler(self, profiler: Profiler) -> None:
        interval = profiler.period_seconds()
        name = profiler.__class__.__name__
        logger.debug(f"{name} scheduled every {interval:.3f}s")

        next_run = time.monotonic()
        while not self._stop_event.is_set():
            try:
                profiler.sample()
            except Exception as e:
                # The schedule continues; the next tick simply tries again.
                logger.error(f"{name} sample failed: {e}", exc_info=True)

            next_run += interval
            now = time.monotonic()
            if next_run < now:
                logger.warning(f"{name} sample overran its {interval:.3f}s period; skipping missed runs")
                next_run = now + interval

            if self._stop_event.wait(next_run - now):
                break

        logger.debug(f"{name} worker stopped")

    def request_shutdown(self) -> None:
        """Ask `wait_for_shutdown()` to return. Safe to call from a signal handler."""
        self._shutdown_requested.set()

    def wait_for_shutdown(self, timeout: Optional[float] = None) -> bool:
        """
        Block until shutdown is requested.

        Returns:
            True if shutdown was requested, False on timeout.
        """
        return self._shutdown_requested.wait(timeout)

    def shutdown(self) -> None:
        """
        Stop the workers, flush every profiler once, then close the sinks.

        Later calls return immediately.
        """
        with self._shutdown_lock:
            if self._is_shutdown:
                return
            self._is_shutdown = True

        self._shutdown_requested.set()
        self._stop_event.set()
        for thread in self._threads:
            thread.join(timeout=self.shutdown_timeout)
            if thread.is_alive():
                logger.warning(f"Thread {thread.name} did not stop within {self.shutdown_timeout}s")

        for profiler in self.profilers:
            try:
                profiler.flush_remaining()
            except Exception as e:
                handle_error(
                    error=e,
                    context=f"flushing {profiler.__class__.__name__}",
                    severity=ErrorSeverity.ERROR,
                    reraise=False,
                    logger=logger,
                )

        for sink in self.sinks:
            try:
                sink.close()
            except Exception as e:
                handle_error(
                    error=e,
                    context=f"closing {sink.__class__.__name__}",
                    severity=ErrorSeverity.ERROR,
                    reraise=False,
                    logger=logger,
                )

        self.remove_shutdown_hooks()
        logger.info("Scheduler shutdown completed")

    def install_shutdown_hooks(self) -> None:
        """Flush at interpreter exit and turn SIGINT/SIGTERM into a shutdown request."""
        if not self._atexit_registered:
            atexit.register(self.shutdown)
            self._atexit_registered = True

        if self._signal_handler is None:
            self._signal_handler = SignalHandler(self.request_shutdown)
            self._signal_handler.setup_signal_handlers()

    def remove_shutdown_hooks(self) -> None:
        if self._atexit_registered:
            atexit.unregister(self.shutdown)
            self._atexit_registered = False

        if self._signal_handler is not None:
            self._signal_handler.cleanup_signal_handlers()
            self._signal_handler = None

    def __enter__(self) -> "ProfilerScheduler":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.shutdown()
