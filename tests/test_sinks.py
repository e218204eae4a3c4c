"""
Tests for metric sinks and the sink factory.
"""

import logging
from unittest.mock import patch

import polars as pl
import pytest

from rtprofiler.models.config import SinkConfig
from rtprofiler.sinks import LoggingSink, ParquetSink, create_sink


@pytest.mark.unit
class TestLoggingSink:
    """Test cases for LoggingSink."""

    def test_batch_summary_logged(self, caplog):
        sink = LoggingSink()

        with caplog.at_level(logging.DEBUG, logger="rtprofiler.sinks.logging_sink"):
            sink.record_gauge_values({"heap.total.used": 1000, "process.rss": 2048}, ("container_id:c1",))

        assert sink.batches_recorded == 1
        assert "2 values" in caplog.text
        assert "container_id:c1" in caplog.text
        assert "heap.total.used=1000" in caplog.text

    def test_single_value_logged(self, caplog):
        sink = LoggingSink()

        with caplog.at_level(logging.INFO, logger="rtprofiler.sinks.logging_sink"):
            sink.record_gauge_value("process.rss", 4096)

        assert "gauge process.rss=4096" in caplog.text

    def test_custom_logger(self, caplog):
        target = logging.getLogger("rtprofiler.tests.metrics")
        sink = LoggingSink(target_logger=target)

        with caplog.at_level(logging.INFO, logger="rtprofiler.tests.metrics"):
            sink.record_gauge_values({"a": 1})

        assert caplog.records[0].name == "rtprofiler.tests.metrics"

    def test_close_is_safe(self):
        LoggingSink().close()


@pytest.mark.unit
class TestParquetSink:
    """Test cases for ParquetSink."""

    def test_rows_written_on_flush(self, temp_dir):
        path = temp_dir / "gauges.parquet"
        sink = ParquetSink(str(path), flush_every=100)

        sink.record_gauge_values({"heap.total.used": 1000, "gc.Copy.runtime": 42}, ("container_id:c1", "application_id:a1"))
        assert not path.exists()
        sink.flush()

        df = sink.read()
        assert df.height == 2
        assert set(df["name"].to_list()) == {"heap.total.used", "gc.Copy.runtime"}
        assert df["tags"].to_list() == ["container_id:c1,application_id:a1"] * 2
        assert df.schema["value"] == pl.Float64

    def test_writes_every_n_batches(self, temp_dir):
        path = temp_dir / "gauges.parquet"
        sink = ParquetSink(str(path), flush_every=2)

        sink.record_gauge_values({"a": 1})
        assert not path.exists()
        sink.record_gauge_values({"a": 2})
        assert path.exists()
        assert sink.read().height == 2

    def test_appends_to_existing_file(self, temp_dir):
        path = temp_dir / "nested" / "gauges.parquet"
        sink = ParquetSink(str(path), compression="zstd", flush_every=1)

        sink.record_gauge_values({"a": 1})
        sink.record_gauge_values({"a": -1})
        sink.record_gauge_value("b", 3.5)
        sink.close()

        values = sink.read()["value"].to_list()
        assert values == [1.0, -1.0, 3.5]

    def test_read_missing_file_is_empty(self, temp_dir):
        sink = ParquetSink(str(temp_dir / "none.parquet"))

        df = sink.read()
        assert df.height == 0
        assert df.columns == ["timestamp", "name", "value", "tags"]

    def test_flush_without_rows_creates_nothing(self, temp_dir):
        path = temp_dir / "gauges.parquet"
        ParquetSink(str(path)).flush()

        assert not path.exists()

    def test_failed_write_drops_buffered_rows(self, temp_dir, caplog):
        path = temp_dir / "gauges.parquet"
        sink = ParquetSink(str(path), flush_every=100)
        sink.record_gauge_values({"a": 1, "b": 2})

        with patch.object(pl.DataFrame, "write_parquet", side_effect=OSError("No space left on device")):
            with pytest.raises(OSError):
                sink.flush()

        assert sink._rows == []
        assert "dropped 2 rows" in caplog.text

        sink.record_gauge_values({"c": 3})
        sink.flush()
        assert sink.read()["name"].to_list() == ["c"]


@pytest.mark.unit
class TestCreateSink:
    """Test cases for the sink factory."""

    def test_log_sink(self):
        assert isinstance(create_sink(SinkConfig(type="log")), LoggingSink)

    def test_parquet_sink(self, temp_dir):
        config = SinkConfig(type="parquet", path=str(temp_dir / "g.parquet"), compression="gzip", flush_every=4)

        sink = create_sink(config)

        assert isinstance(sink, ParquetSink)
        assert sink.compression == "gzip"
        assert sink.flush_every == 4

    def test_unknown_sink(self):
        with pytest.raises(ValueError, match="Unsupported sink type"):
            create_sink(SinkConfig(type="statsd"))
