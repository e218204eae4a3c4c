"""
Metric sinks: where profilers send their gauge batches.

- MetricSink: the abstract interface
- LoggingSink: writes batches to the log
- ParquetSink: appends batches to a Parquet file using Polars
"""

from .base import MetricSink
from .factory import create_sink
from .logging_sink import LoggingSink
from .parquet_sink import ParquetSink

__all__ = ["MetricSink", "LoggingSink", "ParquetSink", "create_sink"]
