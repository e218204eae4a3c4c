"""
Defines the abstract interface for metric sinks.

A sink accepts named numeric gauge values, singly or in batch, with an
optional ordered tuple of "key:value" tags. How the values are transported
or stored is entirely up to the implementation.
"""

from abc import ABC, abstractmethod
from typing import Mapping, Sequence, Union

Number = Union[int, float]


class MetricSink(ABC):
    """
    Abstract base class for gauge sinks.

    Profilers submit one batch per sampling pass through
    `record_gauge_values`, so sinks that support atomic multi-point
    submission can use it.
    """

    @abstractmethod
    def record_gauge_value(self, key: str, value: Number, tags: Sequence[str] = ()) -> None:
        """
        Record a single gauge value.

        Args:
            key: Metric name.
            value: Gauge value.
            tags: Ordered "key:value" tags.
        """
        pass

    @abstractmethod
    def record_gauge_values(self, gauges: Mapping[str, Number], tags: Sequence[str] = ()) -> None:
        """
        Record a batch of gauge values.

        Args:
            gauges: Metric names mapped to values.
            tags: Ordered "key:value" tags applied to every value.
        """
        pass

    def flush(self) -> None:
        """Push out any buffered values. No-op by default."""

    def close(self) -> None:
        """Release resources. Flushes by default."""
        self.flush()
