"""
Defines the abstract lifecycle shared by all profilers.

This module provides:
- TimeUnit: the unit a profiler's period is expressed in.
- build_tags / get_application_id: tag derivation from explicit context.
- Profiler: the abstract base class every profiler implements. A scheduler
  calls `sample()` every `period()` `time_unit()`s and `flush_remaining()`
  once at shutdown.
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Mapping, Optional, Tuple

from ..sinks.base import MetricSink, Number

logger = logging.getLogger(__name__)

CONTAINER_ID_KEY = "CONTAINER_ID"


class TimeUnit(Enum):
    """Unit of a profiler's sampling period."""
    MILLISECONDS = 0.001
    SECONDS = 1.0
    MINUTES = 60.0

    def to_seconds(self, value: float) -> float:
        return value * self.value


def get_application_id(container_id: str) -> str:
    """
    Derive the application id from a container id.

    Examples:
        >>> get_application_id("container_1486158130664_0002_01_000157")
        'application_1486158130664_0002'

    Raises:
        ValueError: If the container id has fewer than two id parts.
    """
    parts = container_id.replace("container_", "").split("_")
    if len(parts) < 2 or not parts[0] or not parts[1]:
        raise ValueError(f"Malformed container id: {container_id!r}")
    return f"application_{parts[0]}_{parts[1]}"


def build_tags(context: Optional[Mapping[str, str]]) -> Tuple[str, ...]:
    """
    Compute report tags from an explicit context mapping (e.g. an environment).

    Returns:
        ("container_id:<id>", "application_id:<app>") when the context holds a
        well-formed CONTAINER_ID, otherwise an empty tuple and a warning.
    """
    if not context:
        logger.warning("No context given; reporting without tags")
        return ()

    container_id = context.get(CONTAINER_ID_KEY)
    if not container_id:
        logger.warning(f"No {CONTAINER_ID_KEY} in context; reporting without tags")
        return ()

    try:
        application_id = get_application_id(container_id)
    except ValueError as e:
        logger.warning(f"Ignoring container context: {e}")
        return ()

    return (f"container_id:{container_id}", f"application_id:{application_id}")


class Profiler(ABC):
    """
    Abstract base class for profilers.

    Subclasses implement the sampling logic and declare their period. The
    base class owns the sink, the tags computed once at construction, and a
    count of record calls made.

    Attributes:
        options: The free-form options passed at construction.
        tags: Ordered "key:value" tags attached to every batch.
    """

    def __init__(
        self,
        sink: MetricSink,
        options: Optional[Mapping[str, Any]] = None,
        context: Optional[Mapping[str, str]] = None,
    ):
        """
        Initializes the Profiler.

        Args:
            sink: Destination for recorded gauges.
            options: Free-form options, validated by `configure`.
            context: Environment-like mapping the tags are derived from.

        Raises:
            ValueError: If sink is None.
            ValidationError: If `configure` rejects the options.
        """
        if sink is None:
            raise ValueError("A metric sink is required")
        self._sink = sink
        self._recorded_stats = 0
        self.options: Mapping[str, Any] = dict(options or {})
        self.configure(self.options)
        self.tags: Tuple[str, ...] = build_tags(context)

    @property
    def sink(self) -> MetricSink:
        return self._sink

    @property
    def recorded_stats(self) -> int:
        """Number of record calls made by this profiler."""
        return self._recorded_stats

    @abstractmethod
    def sample(self) -> None:
        """Perform one collection-and-report cycle."""
        pass

    @abstractmethod
    def flush_remaining(self) -> None:
        """Report data accumulated since the last sample. Called once at shutdown."""
        pass

    @abstractmethod
    def period(self) -> float:
        """Interval between successive `sample()` calls, in `time_unit()`s."""
        pass

    @abstractmethod
    def time_unit(self) -> TimeUnit:
        pass

    @abstractmethod
    def configure(self, options: Mapping[str, Any]) -> None:
        """
        Handle any options this profiler needs.

        Raises:
            ValidationError: If a required option is missing or invalid.
        """
        pass

    def period_seconds(self) -> float:
        return self.time_unit().to_seconds(self.period())

    def record_gauge_value(self, key: str, value: Number) -> None:
        """Record a single gauge, tagged with this profiler's tags."""
        self._recorded_stats += 1
        self._sink.record_gauge_value(key, value, self.tags)

    def record_gauge_values(self, gauges: Mapping[str, Number]) -> None:
        """
        Record multiple gauges in one batch.

        This is one sink call regardless of how many gauges are given.
        """
        self._recorded_stats += 1
        self._sink.record_gauge_values(gauges, self.tags)
