"""
Configuration data models.

This module contains the configuration data structures for general
profiler behaviour, the metric sink, and per-profiler options.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Literal


@dataclass
class GeneralConfig:
    """
    Global profiler settings, loaded from `[profiler.general]`.
    """

    # Root logging level for the CLI.
    log_level: str = "INFO"
    # Prefix for the per-profiler scheduler thread names.
    thread_name_prefix: str = "ProfilerWorker"
    # Seconds to wait for each scheduler thread to stop at shutdown.
    shutdown_timeout: float = 5.0


@dataclass
class SinkConfig:
    """
    Metric sink settings, loaded from `[profiler.sink]`.
    """

    # "log" or "parquet".
    type: Literal["log", "parquet"] = "log"
    # Destination file for the parquet sink.
    path: str = "metrics/gauges.parquet"
    # Parquet compression algorithm.
    compression: Literal["snappy", "gzip", "brotli", "lz4", "zstd"] = "snappy"
    # Batches buffered by the parquet sink before each write.
    flush_every: int = 6


@dataclass
class AppConfig:
    """
    The root configuration object that aggregates all loaded settings.
    """

    general: GeneralConfig = field(default_factory=GeneralConfig)
    sink: SinkConfig = field(default_factory=SinkConfig)
    # Free-form options handed to MemoryProfiler.configure().
    memory_options: Dict[str, Any] = field(default_factory=dict)
