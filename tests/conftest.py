"""
Pytest configuration and shared fixtures for the rtprofiler test suite.

This module provides common fixtures, fake runtime readers and
configuration helpers for all test modules.
"""

import shutil
import sys
import tempfile
from pathlib import Path
from typing import Dict, List, Optional, Sequence
from unittest.mock import Mock

import pytest

# Add src to Python path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from rtprofiler.runtime.process import RssReader  # noqa: E402
from rtprofiler.runtime.stats import (  # noqa: E402
    ClassLoadingSnapshot,
    CollectorSnapshot,
    MemoryPoolSnapshot,
    MemoryUsage,
    PoolKind,
    RuntimeSnapshot,
    RuntimeStatsReader,
)
from rtprofiler.sinks.base import MetricSink  # noqa: E402


# ============================================================================
# Test Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


# ============================================================================
# Fakes
# ============================================================================


def make_snapshot(
    collectors: Sequence[CollectorSnapshot] = (),
    heap: Optional[MemoryUsage] = None,
    non_heap: Optional[MemoryUsage] = None,
    pools: Sequence[MemoryPoolSnapshot] = (),
    class_loading: Optional[ClassLoadingSnapshot] = None,
    pending_finalization_count: int = 0,
) -> RuntimeSnapshot:
    """Build a RuntimeSnapshot with zeroed defaults."""
    return RuntimeSnapshot(
        pending_finalization_count=pending_finalization_count,
        heap=heap or MemoryUsage(0, 0, 0, 0),
        non_heap=non_heap or MemoryUsage(0, 0, 0, 0),
        pools=tuple(pools),
        class_loading=class_loading or ClassLoadingSnapshot(0, 0, 0),
        collectors=tuple(collectors),
    )


class FakeStatsReader(RuntimeStatsReader):
    """Returns queued snapshots in order, repeating the last one."""

    def __init__(self, snapshots: List[RuntimeSnapshot], names: Optional[List[str]] = None):
        self._snapshots = list(snapshots)
        self._names = names if names is not None else [
            c.name for c in self._snapshots[0].collectors
        ]
        self.calls = 0

    def collector_names(self) -> List[str]:
        return list(self._names)

    def snapshot(self) -> RuntimeSnapshot:
        self.calls += 1
        if len(self._snapshots) > 1:
            return self._snapshots.pop(0)
        return self._snapshots[0]


class StaticRssReader(RssReader):
    """Returns a fixed RSS value and records the PIDs it was asked about."""

    def __init__(self, rss: Optional[int]):
        self.rss = rss
        self.pids: List[int] = []

    def read_rss(self, pid: int) -> Optional[int]:
        self.pids.append(pid)
        return self.rss


# ============================================================================
# Core Fixtures
# ============================================================================


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def mock_sink():
    """A Mock constrained to the MetricSink interface."""
    return Mock(spec=MetricSink)


@pytest.fixture
def copy_snapshot():
    """
    Snapshot of a runtime with one "Copy" collector (count=5, time=42) and
    a heap of init=0, used=1000, committed=2000, max=4000.
    """
    return make_snapshot(
        collectors=[CollectorSnapshot("Copy", 5, 42)],
        heap=MemoryUsage(0, 1000, 2000, 4000),
        non_heap=MemoryUsage(0, 300, 500, -1),
        pools=[
            MemoryPoolSnapshot("Eden Space", PoolKind.HEAP, MemoryUsage(0, 600, 1200, 2400)),
            MemoryPoolSnapshot("Code Cache", PoolKind.NON_HEAP, MemoryUsage(0, 300, 500, -1)),
        ],
        class_loading=ClassLoadingSnapshot(loaded=120, total_loaded=130, unloaded=10),
        pending_finalization_count=3,
    )


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def sample_config_data() -> Dict[str, Dict]:
    """Sample `[profiler]` table for testing."""
    return {
        "general": {
            "log_level": "DEBUG",
            "thread_name_prefix": "TestWorker",
            "shutdown_timeout": 2.0,
        },
        "sink": {
            "type": "parquet",
            "path": "out/gauges.parquet",
            "compression": "zstd",
            "flush_every": 3,
        },
        "memory": {
            "period_seconds": 5,
            "rss_method": "psutil",
            "rss_timeout_seconds": 1.0,
        },
    }


@pytest.fixture
def config_file(temp_dir, sample_config_data):
    """Write the sample configuration to a temporary config.toml."""
    import toml

    path = temp_dir / "config.toml"
    with open(path, "w") as f:
        toml.dump({"profiler": sample_config_data}, f)
    return path


@pytest.fixture(autouse=True)
def clear_config_after_test():
    """Automatically clear configuration cache after each test."""
    original_config_path = Path(__file__).parent.parent / "conf" / "config.toml"

    yield

    from rtprofiler.config import clear_config_cache, set_config_path

    clear_config_cache()
    set_config_path(original_config_path)
