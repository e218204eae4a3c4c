"""
Factory for creating metric sinks from configuration.
"""

import logging

from ..models.config import SinkConfig
from .base import MetricSink
from .logging_sink import LoggingSink

logger = logging.getLogger(__name__)


def create_sink(sink_config: SinkConfig) -> MetricSink:
    """
    Create a sink instance based on the configured type.

    Args:
        sink_config: Validated sink configuration

    Returns:
        MetricSink instance

    Raises:
        ValueError: If an unsupported sink type is specified
    """
    if sink_config.type == "log":
        logger.debug("Creating LoggingSink")
        return LoggingSink()
    elif sink_config.type == "parquet":
        from .parquet_sink import ParquetSink

        logger.debug(
            f"Creating ParquetSink at {sink_config.path} with compression: {sink_config.compression}"
        )
        return ParquetSink(
            path=sink_config.path,
            compression=sink_config.compression,
            flush_every=sink_config.flush_every,
        )
    else:
        raise ValueError(f"Unsupported sink type: {sink_config.type}")
