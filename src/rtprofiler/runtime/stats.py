"""
Point-in-time snapshots of the interpreter's runtime state.

This module provides:
- MemoryUsage, MemoryPoolSnapshot, CollectorSnapshot, ClassLoadingSnapshot
  and RuntimeSnapshot: immutable records describing one sampling instant.
- RuntimeStatsReader: the abstract snapshot accessor used by profilers.
- PythonRuntimeStatsReader: the implementation backed by `gc`, `sys` and
  psutil's memory map accounting.
"""

import gc
import logging
import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Set, Tuple

import psutil

from .gc_timer import GcTimer, get_gc_timer

logger = logging.getLogger(__name__)

UNAVAILABLE = -1
"""Sentinel for a memory field that could not be read. Distinct from 0."""


class PoolKind(Enum):
    """Kind of memory region a pool belongs to."""
    HEAP = "heap"
    NON_HEAP = "non_heap"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class MemoryUsage:
    """
    Usage of one memory region at a point in time, in bytes.

    Any field may be UNAVAILABLE.
    """

    init: int
    used: int
    committed: int
    max: int

    @classmethod
    def unavailable(cls) -> "MemoryUsage":
        return cls(UNAVAILABLE, UNAVAILABLE, UNAVAILABLE, UNAVAILABLE)


@dataclass(frozen=True)
class MemoryPoolSnapshot:
    name: str
    kind: PoolKind
    usage: MemoryUsage


@dataclass(frozen=True)
class CollectorSnapshot:
    """Cumulative counters for one garbage collector."""

    name: str
    collection_count: int
    collection_time_ms: int


@dataclass(frozen=True)
class ClassLoadingSnapshot:
    loaded: int
    total_loaded: int
    unloaded: int


@dataclass(frozen=True)
class RuntimeSnapshot:
    """Everything a RuntimeStatsReader reports for one sampling instant."""

    pending_finalization_count: int
    heap: MemoryUsage
    non_heap: MemoryUsage
    pools: Tuple[MemoryPoolSnapshot, ...]
    class_loading: ClassLoadingSnapshot
    collectors: Tuple[CollectorSnapshot, ...]


class RuntimeStatsReader(ABC):
    """
    Abstract accessor for runtime memory, GC and module-loading counters.

    Every call to `snapshot` is an independent point-in-time read with no
    side effects on the monitored runtime.
    """

    @abstractmethod
    def collector_names(self) -> List[str]:
        """Names of the garbage collectors known right now."""
        pass

    @abstractmethod
    def snapshot(self) -> RuntimeSnapshot:
        """Read the current runtime state."""
        pass


# Pool names, in the order they are reported.
PROCESS_HEAP_POOL = "Process Heap"
ANONYMOUS_POOL = "Anonymous Mappings"
THREAD_STACKS_POOL = "Thread Stacks"
MAPPED_FILES_POOL = "Mapped Files"
KERNEL_PAGES_POOL = "Kernel Pages"

POOL_KINDS: Dict[str, PoolKind] = {
    PROCESS_HEAP_POOL: PoolKind.HEAP,
    ANONYMOUS_POOL: PoolKind.HEAP,
    THREAD_STACKS_POOL: PoolKind.NON_HEAP,
    MAPPED_FILES_POOL: PoolKind.NON_HEAP,
    KERNEL_PAGES_POOL: PoolKind.UNKNOWN,
}


def classify_mapping(path: str) -> str:
    """
    Map a memory mapping path, as reported by psutil, to its pool name.

    Examples:
        >>> classify_mapping("[heap]")
        'Process Heap'
        >>> classify_mapping("/usr/lib/libc.so.6")
        'Mapped Files'
    """
    if path == "[heap]":
        return PROCESS_HEAP_POOL
    if not path or path.startswith("[anon"):
        return ANONYMOUS_POOL
    if path.startswith("[stack"):
        return THREAD_STACKS_POOL
    if path.startswith("["):
        return KERNEL_PAGES_POOL
    return MAPPED_FILES_POOL


def _sum_field(values: Iterable[int]) -> int:
    total = 0
    for value in values:
        if value == UNAVAILABLE:
            return UNAVAILABLE
        total += value
    return total


class PythonRuntimeStatsReader(RuntimeStatsReader):
    """
    Reads runtime state of the hosting Python interpreter.

    Collectors are the `gc` generations, named "Generation <n>". Their
    collection time comes from a GcTimer. Memory pools are the process's
    memory mappings grouped into a fixed set of regions; heap and non-heap
    totals are sums over the pools of that kind.

    Pools and totals follow `pid`, which may be another process. GC and
    module-loading counters are always those of this interpreter.
    """

    def __init__(self, pid: Optional[int] = None, gc_timer: Optional[GcTimer] = None):
        """
        Args:
            pid: Process whose memory maps are read. Defaults to this process.
            gc_timer: Timer supplying collection times. Defaults to the
                process-wide shared timer.
        """
        self._process = psutil.Process(pid)
        self._gc_timer = gc_timer if gc_timer is not None else get_gc_timer()
        self._seen_modules: Set[str] = set()
        self._heap_init = UNAVAILABLE
        self._non_heap_init = UNAVAILABLE

    @property
    def pid(self) -> int:
        """Process whose memory maps are read."""
        return self._process.pid

    def collector_names(self) -> List[str]:
        return [f"Generation {generation}" for generation in range(len(gc.get_stats()))]

    def snapshot(self) -> RuntimeSnapshot:
        pools = self._read_pools()

        heap_used = _sum_field(p.usage.used for p in pools if p.kind is PoolKind.HEAP)
        heap_committed = _sum_field(p.usage.committed for p in pools if p.kind is PoolKind.HEAP)
        non_heap_used = _sum_field(p.usage.used for p in pools if p.kind is PoolKind.NON_HEAP)
        non_heap_committed = _sum_field(
            p.usage.committed for p in pools if p.kind is PoolKind.NON_HEAP
        )

        if self._heap_init == UNAVAILABLE:
            self._heap_init = heap_used
        if self._non_heap_init == UNAVAILABLE:
            self._non_heap_init = non_heap_used

        heap = MemoryUsage(
            init=self._heap_init,
            used=heap_used,
            committed=heap_committed,
            max=self._read_heap_limit(),
        )
        non_heap = MemoryUsage(
            init=self._non_heap_init,
            used=non_heap_used,
            committed=non_heap_committed,
            max=UNAVAILABLE,
        )

        return RuntimeSnapshot(
            pending_finalization_count=len(gc.garbage),
            heap=heap,
            non_heap=non_heap,
            pools=pools,
            class_loading=self._read_class_loading(),
            collectors=self._read_collectors(),
        )

    def _read_collectors(self) -> Tuple[CollectorSnapshot, ...]:
        collectors = []
        for generation, stats in enumerate(gc.get_stats()):
            if generation < self._gc_timer.generations:
                time_ms = self._gc_timer.collection_time_ms(generation)
            else:
                time_ms = 0
            collectors.append(
                CollectorSnapshot(
                    name=f"Generation {generation}",
                    collection_count=stats.get("collections", 0),
                    collection_time_ms=time_ms,
                )
            )
        return tuple(collectors)

    def _read_class_loading(self) -> ClassLoadingSnapshot:
        loaded_names = list(sys.modules)
        self._seen_modules.update(loaded_names)
        total_loaded = len(self._seen_modules)
        loaded = len(loaded_names)
        return ClassLoadingSnapshot(
            loaded=loaded,
            total_loaded=total_loaded,
            unloaded=total_loaded - loaded,
        )

    def _read_pools(self) -> Tuple[MemoryPoolSnapshot, ...]:
        used: Dict[str, int] = {name: 0 for name in POOL_KINDS}
        committed: Dict[str, int] = {name: 0 for name in POOL_KINDS}

        try:
            mappings = self._process.memory_maps(grouped=True)
        except (psutil.Error, NotImplementedError, AttributeError, OSError) as e:
            logger.debug(f"Memory maps unavailable for PID {self._process.pid}: {e}")
            return tuple(
                MemoryPoolSnapshot(name, kind, MemoryUsage.unavailable())
                for name, kind in POOL_KINDS.items()
            )

        for mapping in mappings:
            pool = classify_mapping(mapping.path)
            used[pool] += mapping.rss
            size = getattr(mapping, "size", None)
            if size is None or committed[pool] == UNAVAILABLE:
                committed[pool] = UNAVAILABLE
            else:
                committed[pool] += size

        return tuple(
            MemoryPoolSnapshot(
                name=name,
                kind=kind,
                usage=MemoryUsage(
                    init=UNAVAILABLE,
                    used=used[name],
                    committed=committed[name],
                    max=UNAVAILABLE,
                ),
            )
            for name, kind in POOL_KINDS.items()
        )

    def _read_heap_limit(self) -> int:
        if not hasattr(psutil, "RLIMIT_DATA"):
            return UNAVAILABLE
        try:
            soft, _hard = self._process.rlimit(psutil.RLIMIT_DATA)
        except (psutil.Error, OSError) as e:
            logger.debug(f"Cannot read RLIMIT_DATA: {e}")
            return UNAVAILABLE
        if soft == psutil.RLIM_INFINITY or soft < 0:
            return UNAVAILABLE
        return soft
