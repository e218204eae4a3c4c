"""
Cumulative garbage-collection timing.

The interpreter reports how many collections each generation has run but
not how long they took. GcTimer fills that gap by registering a callback in
`gc.callbacks` and accumulating the wall time between each "start" and
"stop" phase, per generation.
"""

import gc
import logging
import threading
import time
from typing import Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class GcTimer:
    """
    Accumulates collection time per GC generation.

    Attributes:
        generations: Number of generations tracked, taken from gc.get_stats().
    """

    def __init__(self, clock: Callable[[], int] = time.perf_counter_ns):
        """
        Initializes the GcTimer.

        Args:
            clock: Nanosecond clock used to time collections. Injectable for tests.
        """
        self._clock = clock
        self.generations: int = len(gc.get_stats())
        self._elapsed_ns: List[int] = [0] * self.generations
        self._started_ns: Optional[int] = None
        self._installed = False

    @property
    def installed(self) -> bool:
        return self._installed

    def install(self) -> None:
        """Register the timing callback. Calling it twice has no effect."""
        if self._installed:
            return
        gc.callbacks.append(self._on_gc)
        self._installed = True
        logger.debug(f"GcTimer installed for {self.generations} generations")

    def uninstall(self) -> None:
        """Remove the timing callback if it is registered."""
        if not self._installed:
            return
        try:
            gc.callbacks.remove(self._on_gc)
        except ValueError:
            logger.debug("GcTimer callback was already removed from gc.callbacks")
        self._installed = False
        self._started_ns = None

    def _on_gc(self, phase: str, info: Dict[str, int]) -> None:
        if phase == "start":
            self._started_ns = self._clock()
            return

        if phase != "stop" or self._started_ns is None:
            return

        elapsed = self._clock() - self._started_ns
        self._started_ns = None
        generation = info.get("generation", -1)
        if 0 <= generation < self.generations and elapsed > 0:
            self._elapsed_ns[generation] += elapsed

    def collection_time_ms(self, generation: int) -> int:
        """
        Cumulative time spent collecting the given generation.

        Args:
            generation: GC generation index.

        Returns:
            Whole milliseconds; never decreases between calls.
        """
        return self._elapsed_ns[generation] // 1_000_000


# --- Process-wide shared timer ---

_GC_TIMER: Optional[GcTimer] = None
_GC_TIMER_LOCK = threading.Lock()


def get_gc_timer() -> GcTimer:
    """
    Get the process-wide GcTimer, installing it on first use.

    A single shared instance keeps several readers in one process from
    registering duplicate callbacks.
    """
    global _GC_TIMER
    with _GC_TIMER_LOCK:
        if _GC_TIMER is None:
            _GC_TIMER = GcTimer()
            _GC_TIMER.install()
        return _GC_TIMER
