"""
rtprofiler: periodic runtime metrics for Python processes.

This package samples the interpreter's memory, garbage-collection and
module-loading state, plus a process's resident set size, and reports
them as named gauges to a pluggable sink.

The package is organized into specialized modules:
- profilers: the profiler lifecycle contract and the memory profiler
- runtime: interpreter snapshots, GC timing and RSS readers
- scheduling: periodic execution and shutdown flushing
- sinks: gauge destinations (log, Parquet)
- config / models: TOML configuration and its data structures
- validation: input validation and error handling
- cli: command-line interface

Usage:
    From command line:
        rtprofiler --period 5 --sink parquet -o gauges.parquet

    Programmatically:
        from rtprofiler import LoggingSink, MemoryProfiler, ProfilerScheduler
        sink = LoggingSink()
        scheduler = ProfilerScheduler([MemoryProfiler(sink)], sinks=[sink])
        scheduler.install_shutdown_hooks()
        scheduler.start()
"""

from .config import clear_config_cache, get_config, set_config_path
from .models import AppConfig, GeneralConfig, SinkConfig
from .profilers import GcAccountant, MemoryProfiler, Profiler, TimeUnit
from .runtime import (
    MemoryUsage,
    PoolKind,
    ProcessRssReader,
    PsutilRssReader,
    PythonRuntimeStatsReader,
    RuntimeStatsReader,
    create_rss_reader,
    parse_rss,
)
from .scheduling import ProfilerScheduler
from .sinks import LoggingSink, MetricSink, ParquetSink, create_sink
from .validation import ValidationError

__version__ = "1.0.0"

__all__ = [
    "get_config",
    "clear_config_cache",
    "set_config_path",
    "AppConfig",
    "GeneralConfig",
    "SinkConfig",
    "GcAccountant",
    "MemoryProfiler",
    "Profiler",
    "TimeUnit",
    "MemoryUsage",
    "PoolKind",
    "ProcessRssReader",
    "PsutilRssReader",
    "PythonRuntimeStatsReader",
    "RuntimeStatsReader",
    "create_rss_reader",
    "parse_rss",
    "ProfilerScheduler",
    "LoggingSink",
    "MetricSink",
    "ParquetSink",
    "create_sink",
    "ValidationError",
]
