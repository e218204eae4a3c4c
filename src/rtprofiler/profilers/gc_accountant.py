"""
Per-collector GC time accounting.

Collectors report cumulative collection time. GcAccountant remembers the
last time seen for each collector and turns the cumulative value into the
time spent collecting since the previous observation.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable

logger = logging.getLogger(__name__)


@dataclass
class GcCollectorState:
    """Last cumulative collection time observed for one collector, in ms."""

    name: str
    last_time: int = 0


class GcAccountant:
    """
    Computes collection-time deltas keyed by collector name.

    `last_time` only advances when the delta is strictly positive. A delta
    of zero leaves it unchanged, which is harmless since the cumulative
    value has not moved. A negative delta (the runtime reporting a smaller
    cumulative time than before) is returned unchanged and not persisted.
    """

    def __init__(self, initial_names: Iterable[str] = ()):
        self._states: Dict[str, GcCollectorState] = {
            name: GcCollectorState(name) for name in initial_names
        }

    def state(self, name: str) -> GcCollectorState:
        """State for a collector, created at last_time=0 on first sight."""
        state = self._states.get(name)
        if state is None:
            logger.debug(f"First observation of collector '{name}'")
            state = GcCollectorState(name)
            self._states[name] = state
        return state

    def observe(self, name: str, current_time: int) -> int:
        """
        Record the collector's cumulative time and return the delta.

        Args:
            name: Collector identity.
            current_time: Cumulative collection time in ms.

        Returns:
            current_time minus the last persisted time.
        """
        state = self.state(name)
        runtime_delta = current_time - state.last_time

        if runtime_delta > 0:
            state.last_time = current_time
        elif runtime_delta < 0:
            logger.warning(
                f"Cumulative GC time for '{name}' went backwards "
                f"({state.last_time} -> {current_time} ms); reporting delta {runtime_delta}"
            )

        return runtime_delta

    def __contains__(self, name: str) -> bool:
        return name in self._states

    def __len__(self) -> int:
        return len(self._states)
