"""
Configuration validation utilities.

This module turns raw `[profiler.*]` tables into validated configuration
dataclasses. Missing keys fall back to the dataclass defaults.
"""

import logging
from typing import Any, Dict

from ..models.config import AppConfig, GeneralConfig, SinkConfig
from ..validation import (
    ValidationError,
    validate_enum_choice,
    validate_non_empty_string,
    validate_positive_float,
    validate_positive_integer,
)

logger = logging.getLogger(__name__)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
SINK_TYPES = ["log", "parquet"]
COMPRESSIONS = ["snappy", "gzip", "brotli", "lz4", "zstd"]


def validate_general_config(general_data: Dict[str, Any]) -> GeneralConfig:
    """
    Validate and create a GeneralConfig from `[profiler.general]`.

    Raises:
        ValidationError: If validation fails
    """
    defaults = GeneralConfig()

    log_level = general_data.get("log_level", defaults.log_level)
    if isinstance(log_level, str):
        log_level = log_level.upper()
    log_level = validate_enum_choice(
        log_level,
        valid_choices=LOG_LEVELS,
        field_name="profiler.general.log_level",
    )

    thread_name_prefix = validate_non_empty_string(
        general_data.get("thread_name_prefix", defaults.thread_name_prefix),
        field_name="profiler.general.thread_name_prefix",
    )

    shutdown_timeout = validate_positive_float(
        general_data.get("shutdown_timeout", defaults.shutdown_timeout),
        min_value=0.1,  # 100ms minimum
        max_value=60.0,  # 1m maximum
        field_name="profiler.general.shutdown_timeout",
    )

    return GeneralConfig(
        log_level=log_level,
        thread_name_prefix=thread_name_prefix,
        shutdown_timeout=shutdown_timeout,
    )


def validate_sink_config(sink_data: Dict[str, Any]) -> SinkConfig:
    """
    Validate and create a SinkConfig from `[profiler.sink]`.

    Raises:
        ValidationError: If validation fails
    """
    defaults = SinkConfig()

    sink_type = validate_enum_choice(
        sink_data.get("type", defaults.type),
        valid_choices=SINK_TYPES,
        field_name="profiler.sink.type",
    )

    path = validate_non_empty_string(
        sink_data.get("path", defaults.path),
        field_name="profiler.sink.path",
    )

    compression = validate_enum_choice(
        sink_data.get("compression", defaults.compression),
        valid_choices=COMPRESSIONS,
        field_name="profiler.sink.compression",
    )

    flush_every = validate_positive_integer(
        sink_data.get("flush_every", defaults.flush_every),
        min_value=1,
        max_value=10000,
        field_name="profiler.sink.flush_every",
    )

    return SinkConfig(
        type=sink_type,
        path=path,
        compression=compression,
        flush_every=flush_every,
    )


def validate_app_config(profiler_data: Dict[str, Any]) -> AppConfig:
    """
    Validate the whole `[profiler]` table.

    The `[profiler.memory]` table is kept as free-form options; the
    MemoryProfiler validates it when it is constructed.

    Raises:
        ValidationError: If any section is invalid
    """
    memory_options = profiler_data.get("memory", {})
    if not isinstance(memory_options, dict):
        raise ValidationError(
            "profiler.memory must be a table",
            field_name="profiler.memory",
            value=memory_options,
        )

    return AppConfig(
        general=validate_general_config(profiler_data.get("general", {})),
        sink=validate_sink_config(profiler_data.get("sink", {})),
        memory_options=dict(memory_options),
    )
