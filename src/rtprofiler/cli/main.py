"""
Command-line interface for the rtprofiler runtime metrics collector.

This module loads the configuration, applies command-line overrides, builds
the sink and the MemoryProfiler, and runs the scheduler until SIGINT or
SIGTERM, flushing the last interval on the way out.
"""

import argparse
import logging
import os
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from ..config import get_config, set_config_path
from ..models.config import AppConfig
from ..profilers.memory import MemoryProfiler
from ..scheduling import ProfilerScheduler
from ..sinks import create_sink
from ..validation import ValidationError, handle_cli_error

# --- Logging Setup ---
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)-5.5s] %(name)s:%(filename)s:%(lineno)d\t %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    stream=sys.stdout,
)
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Periodically report memory, GC and RSS gauges of a process."
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        help="Path to a config.toml file. Defaults to conf/config.toml.",
    )
    parser.add_argument(
        "-p",
        "--pid",
        type=str,
        help="Process whose RSS is reported, as '<pid>' or '<pid>@<host>'. Defaults to this process.",
    )
    parser.add_argument(
        "--period",
        type=float,
        help="Sampling period in seconds.",
    )
    parser.add_argument(
        "--sink",
        choices=["log", "parquet"],
        help="Override the configured sink type.",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=str,
        help="Output file for the parquet sink.",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Override the configured log level.",
    )
    return parser


def apply_overrides(app_config: AppConfig, args: argparse.Namespace) -> AppConfig:
    """Return a copy of the configuration with command-line overrides applied."""
    memory_options = dict(app_config.memory_options)
    if args.pid:
        memory_options["process"] = args.pid
    if args.period is not None:
        memory_options["period_seconds"] = args.period

    sink = app_config.sink
    if args.sink:
        sink = replace(sink, type=args.sink)
    if args.output:
        sink = replace(sink, path=args.output)

    general = app_config.general
    if args.log_level:
        general = replace(general, log_level=args.log_level)

    return AppConfig(general=general, sink=sink, memory_options=memory_options)


def main_cli(argv: Optional[List[str]] = None) -> None:
    """
    Main command-line interface for rtprofiler.

    Raises:
        SystemExit: On configuration errors or invalid profiler options.
    """
    args = build_parser().parse_args(argv)

    if args.config:
        set_config_path(args.config)

    try:
        app_config = apply_overrides(get_config(), args)
    except (FileNotFoundError, KeyError, ValidationError) as e:
        handle_cli_error(
            error=e,
            context="configuration loading",
            exit_code=1,
            logger=logger,
        )

    logging.getLogger().setLevel(app_config.general.log_level)

    sink = create_sink(app_config.sink)
    try:
        profiler = MemoryProfiler(
            sink,
            options=app_config.memory_options,
            context=dict(os.environ),
        )
    except (ValidationError, ValueError) as e:
        handle_cli_error(
            error=e,
            context="profiler construction",
            exit_code=1,
            logger=logger,
        )

    scheduler = ProfilerScheduler(
        [profiler],
        sinks=[sink],
        thread_name_prefix=app_config.general.thread_name_prefix,
        shutdown_timeout=app_config.general.shutdown_timeout,
    )
    scheduler.install_shutdown_hooks()
    scheduler.start()
    logger.info(
        f"Profiling PID {profiler.pid} every {profiler.period()}s; press Ctrl+C to stop"
    )

    try:
        scheduler.wait_for_shutdown()
    finally:
        scheduler.shutdown()
        logger.info(f"Recorded {profiler.recorded_stats} gauge batches")


if __name__ == "__main__":
    main_cli()
