"""
Sink that writes gauge batches to the application log.
"""

import logging
from typing import Mapping, Optional, Sequence

from .base import MetricSink, Number

logger = logging.getLogger(__name__)


class LoggingSink(MetricSink):
    """
    Logs each batch as one INFO summary line, and each value at DEBUG.
    """

    def __init__(self, target_logger: Optional[logging.Logger] = None):
        self._logger = target_logger or logger
        self.batches_recorded = 0

    def record_gauge_value(self, key: str, value: Number, tags: Sequence[str] = ()) -> None:
        self._logger.info(f"gauge {key}={value} tags={list(tags)}")

    def record_gauge_values(self, gauges: Mapping[str, Number], tags: Sequence[str] = ()) -> None:
        self.batches_recorded += 1
        self._logger.info(f"gauge batch #{self.batches_recorded}: {len(gauges)} values, tags={list(tags)}")
        for key in sorted(gauges):
            self._logger.debug(f"  {key}={gauges[key]}")
