"""
Parquet sink using Polars for columnar gauge storage.
"""

import logging
import threading
import time
from pathlib import Path
from typing import Any, Dict, List, Literal, Mapping, Sequence

import polars as pl

from .base import MetricSink, Number

logger = logging.getLogger(__name__)

Compression = Literal["snappy", "gzip", "brotli", "lz4", "zstd"]

GAUGE_SCHEMA = {
    "timestamp": pl.Float64,
    "name": pl.Utf8,
    "value": pl.Float64,
    "tags": pl.Utf8,
}


class ParquetSink(MetricSink):
    """
    Buffers gauge values and appends them to a Parquet file.

    Each recorded value becomes one row of (timestamp, name, value, tags),
    with tags joined by commas. Rows are written every `flush_every`
    batches and on flush()/close().

    Attributes:
        path: Destination Parquet file.
        compression: Compression algorithm passed to Polars.
        flush_every: Number of batches buffered before a write.
    """

    def __init__(self, path: str, compression: Compression = "snappy", flush_every: int = 6):
        self.path = Path(path)
        self.compression = compression
        self.flush_every = flush_every
        self._rows: List[Dict[str, Any]] = []
        self._pending_batches = 0
        self._lock = threading.Lock()
        logger.debug(
            f"Initialized ParquetSink at {self.path} with compression: {compression}, "
            f"flush_every: {flush_every}"
        )

    def _append_rows(self, gauges: Mapping[str, Number], tags: Sequence[str]) -> None:
        timestamp = time.time()
        joined_tags = ",".join(tags)
        for name, value in gauges.items():
            self._rows.append(
                {"timestamp": timestamp, "name": name, "value": float(value), "tags": joined_tags}
            )

    def record_gauge_value(self, key: str, value: Number, tags: Sequence[str] = ()) -> None:
        with self._lock:
            self._append_rows({key: value}, tags)

    def record_gauge_values(self, gauges: Mapping[str, Number], tags: Sequence[str] = ()) -> None:
        with self._lock:
            self._append_rows(gauges, tags)
            self._pending_batches += 1
            if self._pending_batches >= self.flush_every:
                self._write_locked()

    def flush(self) -> None:
        with self._lock:
            self._write_locked()

    def _write_locked(self) -> None:
        if not self._rows:
            self._pending_batches = 0
            return

        rows = self._rows
        self._rows = []
        self._pending_batches = 0

        df = pl.DataFrame(rows, schema=GAUGE_SCHEMA)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            if self.path.exists():
                existing_df = pl.read_parquet(self.path)
                df = pl.concat([existing_df, df])
            df.write_parquet(self.path, compression=self.compression)
        except Exception as e:
            # Rows from a failed write are dropped, not retried.
            logger.error(f"Failed to write gauge rows to {self.path}; dropped {len(rows)} rows: {e}")
            raise

        logger.debug(f"Wrote {len(rows)} gauge rows to {self.path}")

    def read(self) -> pl.DataFrame:
        """Load everything written so far (buffered rows excluded)."""
        if not self.path.exists():
            return pl.DataFrame(schema=GAUGE_SCHEMA)
        return pl.read_parquet(self.path)
