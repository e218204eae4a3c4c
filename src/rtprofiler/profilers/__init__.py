"""
Profilers: the lifecycle contract and the memory profiler.
"""

from .base import Profiler, TimeUnit, build_tags, get_application_id
from .gc_accountant import GcAccountant, GcCollectorState
from .memory import (
    MemoryProfiler,
    gc_name_to_metric_name,
    pool_kind_to_metric_name,
    pool_name_to_metric_name,
)

__all__ = [
    "Profiler",
    "TimeUnit",
    "build_tags",
    "get_application_id",
    "GcAccountant",
    "GcCollectorState",
    "MemoryProfiler",
    "gc_name_to_metric_name",
    "pool_kind_to_metric_name",
    "pool_name_to_metric_name",
]
