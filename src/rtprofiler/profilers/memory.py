"""
Profiles memory usage, garbage collection and module loading.

MemoryProfiler reads one runtime snapshot per pass, converts it into a flat
map of gauge names to values, adds the monitored process's RSS, and sends
the map to the sink as a single batch.
"""

import logging
from typing import Any, Dict, Mapping, Optional

import psutil

from ..runtime.process import (
    RSS_METHODS,
    RssReader,
    create_rss_reader,
    current_process_identity,
    parse_process_identity,
)
from ..runtime.stats import (
    MemoryUsage,
    PoolKind,
    PythonRuntimeStatsReader,
    RuntimeStatsReader,
)
from ..sinks.base import MetricSink, Number
from ..validation import (
    ErrorSeverity,
    ValidationError,
    validate_enum_choice,
    validate_non_empty_string,
    validate_positive_float,
)
from .base import Profiler, TimeUnit
from .gc_accountant import GcAccountant

logger = logging.getLogger(__name__)

DEFAULT_PERIOD_SECONDS = 10.0
DEFAULT_RSS_TIMEOUT_SECONDS = 2.0


def pool_kind_to_metric_name(kind: PoolKind) -> str:
    """Format a pool kind as a metric name prefix."""
    if kind is PoolKind.HEAP:
        return "heap"
    if kind is PoolKind.NON_HEAP:
        return "nonheap"
    return "unknown"


def pool_name_to_metric_name(pool_name: str) -> str:
    """
    Format a pool name as a metric name component.

    Examples:
        >>> pool_name_to_metric_name("G1 Old Gen")
        'g1-old-gen'
    """
    return "-".join(pool_name.lower().split())


def gc_name_to_metric_name(gc_name: str) -> str:
    """Format a collector name as a metric name component."""
    return gc_name.replace(" ", "_")


def record_memory_usage(prefix: str, usage: MemoryUsage, metrics: Dict[str, Number]) -> None:
    """Add the init/used/committed/max quartet under `prefix`, unavailable values included."""
    metrics[f"{prefix}.init"] = usage.init
    metrics[f"{prefix}.used"] = usage.used
    metrics[f"{prefix}.committed"] = usage.committed
    metrics[f"{prefix}.max"] = usage.max


class MemoryProfiler(Profiler):
    """
    Profiles memory usage and GC statistics.

    No options are required. Recognised options:
        period_seconds: Sampling period (default 10).
        rss_method: "auto", "procfs" or "psutil" (default "auto").
        rss_timeout_seconds: Bound on the RSS status query (default 2.0).
        process: Identity of the monitored process, as "<pid>@<host>" or
            "<pid>" (default: this process).

    Memory pools, the heap and non-heap totals and `process.rss` describe
    the monitored process. GC, module-loading and pending-finalization
    counters always describe the interpreter running the profiler.

    Attributes:
        pid: The monitored process id, resolved once at construction.
    """

    def __init__(
        self,
        sink: MetricSink,
        options: Optional[Mapping[str, Any]] = None,
        context: Optional[Mapping[str, str]] = None,
        stats_reader: Optional[RuntimeStatsReader] = None,
        rss_reader: Optional[RssReader] = None,
    ):
        """
        Raises:
            ValidationError: If an option is invalid, or the process identity
                cannot be resolved to a PID of a running process.
        """
        super().__init__(sink, options, context)

        self.pid: int = parse_process_identity(self._process_identity)
        logger.info(f"Process id: {self.pid}")

        if stats_reader is None:
            try:
                stats_reader = PythonRuntimeStatsReader(pid=self.pid)
            except psutil.Error as e:
                raise ValidationError(
                    f"Cannot monitor process {self.pid}: {e}",
                    field_name="process",
                    value=self._process_identity,
                    severity=ErrorSeverity.CRITICAL,
                ) from e
        self._stats_reader = stats_reader
        self._rss_reader = (
            rss_reader
            if rss_reader is not None
            else create_rss_reader(self._rss_method, self._rss_timeout)
        )
        self._gc_accountant = GcAccountant(self._stats_reader.collector_names())

    def configure(self, options: Mapping[str, Any]) -> None:
        self._period = validate_positive_float(
            options.get("period_seconds", DEFAULT_PERIOD_SECONDS),
            min_value=0.1,
            max_value=3600.0,
            field_name="period_seconds",
        )
        self._rss_method = validate_enum_choice(
            options.get("rss_method", "auto"),
            valid_choices=RSS_METHODS,
            field_name="rss_method",
        )
        self._rss_timeout = validate_positive_float(
            options.get("rss_timeout_seconds", DEFAULT_RSS_TIMEOUT_SECONDS),
            min_value=0.1,
            max_value=60.0,
            field_name="rss_timeout_seconds",
        )

        process = options.get("process") or current_process_identity()
        if isinstance(process, str):
            validate_non_empty_string(process, field_name="process")
        self._process_identity = process

    @property
    def gc_accountant(self) -> GcAccountant:
        return self._gc_accountant

    def sample(self) -> None:
        """Profile memory usage and GC statistics."""
        self._record_stats()

    def flush_remaining(self) -> None:
        self._record_stats()

    def period(self) -> float:
        return self._period

    def time_unit(self) -> TimeUnit:
        return TimeUnit.SECONDS

    def collect_metrics(self) -> Dict[str, Number]:
        """Build the flat metric map for one sampling pass without reporting it."""
        snapshot = self._stats_reader.snapshot()
        metrics: Dict[str, Number] = {}

        metrics["pending-finalization-count"] = snapshot.pending_finalization_count
        record_memory_usage("heap.total", snapshot.heap, metrics)
        record_memory_usage("nonheap.total", snapshot.non_heap, metrics)

        for collector in snapshot.collectors:
            gc_name = gc_name_to_metric_name(collector.name)
            current_time = collector.collection_time_ms
            runtime = self._gc_accountant.observe(collector.name, current_time)

            metrics[f"gc.{gc_name}.count"] = collector.collection_count
            metrics[f"gc.{gc_name}.time"] = current_time
            metrics[f"gc.{gc_name}.runtime"] = runtime

        metrics["loaded-class-count"] = snapshot.class_loading.loaded
        metrics["total-loaded-class-count"] = snapshot.class_loading.total_loaded
        metrics["unloaded-class-count"] = snapshot.class_loading.unloaded

        for pool in snapshot.pools:
            prefix = f"{pool_kind_to_metric_name(pool.kind)}.{pool_name_to_metric_name(pool.name)}"
            record_memory_usage(prefix, pool.usage, metrics)

        rss = self._rss_reader.read_rss(self.pid)
        if rss is not None:
            metrics["process.rss"] = rss

        return metrics

    def _record_stats(self) -> None:
        """Records all memory statistics as one batch."""
        self.record_gauge_values(self.collect_metrics())
