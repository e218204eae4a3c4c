"""
Signal handling for the scheduler.

Installs SIGINT/SIGTERM handlers that request a graceful shutdown and
restores the previous handlers afterwards.
"""

import logging
import signal
import threading
from typing import Any, Callable

logger = logging.getLogger(__name__)


class SignalHandler:
    """
    Manages signal registration and cleanup for one shutdown callback.

    Signal handlers can only be installed from the main thread; elsewhere
    the installation is skipped with a warning.
    """

    def __init__(self, on_shutdown: Callable[[], None]):
        self.on_shutdown = on_shutdown
        self._original_sigint_handler = None
        self._original_sigterm_handler = None
        self._signal_handlers_set = False

    def setup_signal_handlers(self) -> None:
        """Set up signal handlers that call the shutdown callback."""
        if threading.current_thread() is not threading.main_thread():
            logger.warning("Signal handlers can only be set from the main thread; skipping")
            return

        try:
            self._original_sigint_handler = signal.signal(signal.SIGINT, self._handle_signal)
            self._original_sigterm_handler = signal.signal(signal.SIGTERM, self._handle_signal)
            self._signal_handlers_set = True
            logger.debug("Signal handlers set up for scheduler shutdown")
        except (ValueError, OSError) as e:
            logger.warning(f"Failed to set up signal handlers: {e}")

    def cleanup_signal_handlers(self) -> None:
        """Restore original signal handlers."""
        if not self._signal_handlers_set:
            return

        try:
            if self._original_sigint_handler is not None:
                signal.signal(signal.SIGINT, self._original_sigint_handler)
            if self._original_sigterm_handler is not None:
                signal.signal(signal.SIGTERM, self._original_sigterm_handler)
            logger.debug("Signal handlers restored")
        except (ValueError, OSError) as e:
            logger.warning(f"Failed to restore signal handlers: {e}")
        finally:
            self._signal_handlers_set = False

    def _handle_signal(self, signum: int, frame: Any) -> None:
        logger.info(f"Signal {signal.strsignal(signum)} received. Requesting shutdown...")
        self.on_shutdown()
