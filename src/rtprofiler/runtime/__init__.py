"""
Runtime introspection: interpreter snapshots, GC timing and process RSS.
"""

from .gc_timer import GcTimer, get_gc_timer
from .process import (
    ProcessRssReader,
    PsutilRssReader,
    RssReader,
    create_rss_reader,
    current_process_identity,
    find_rss,
    parse_process_identity,
    parse_rss,
)
from .stats import (
    UNAVAILABLE,
    ClassLoadingSnapshot,
    CollectorSnapshot,
    MemoryPoolSnapshot,
    MemoryUsage,
    PoolKind,
    PythonRuntimeStatsReader,
    RuntimeSnapshot,
    RuntimeStatsReader,
)

__all__ = [
    "GcTimer",
    "get_gc_timer",
    "ProcessRssReader",
    "PsutilRssReader",
    "RssReader",
    "create_rss_reader",
    "current_process_identity",
    "find_rss",
    "parse_process_identity",
    "parse_rss",
    "UNAVAILABLE",
    "ClassLoadingSnapshot",
    "CollectorSnapshot",
    "MemoryPoolSnapshot",
    "MemoryUsage",
    "PoolKind",
    "PythonRuntimeStatsReader",
    "RuntimeSnapshot",
    "RuntimeStatsReader",
]
