"""
Logging utilities for internal use.

Usage::

    from querytrace.internal.logger import get_logger

    log = get_logger(__name__)
    log.debug("attached parent context of thread %d", parent)

Every logger returned by :func:`get_logger` carries a rate limit filter: a
given call site (file and line) emits at most one record per time window,
counting how many records were skipped in between. The window defaults to one
minute and is configured with ``QUERYTRACE_LOGGING_RATE`` (``0`` disables rate
limiting). Loggers set to ``DEBUG`` are never rate limited.
"""
import collections
import logging
import time
from typing import DefaultDict
from typing import Tuple

from querytrace.settings import config


ROOT_LOGGER_NAME = "querytrace"


def get_logger(name: str) -> logging.Logger:
    """
    Retrieve or create a ``Logger`` instance with the rate limit filter installed.
    """
    logger = logging.getLogger(name)
    # addFilter will only add the filter if it is not already present
    logger.addFilter(log_filter)
    logger.propagate = True
    return logger


# Keeps track of a call site's current time bucket and the number of records skipped in it
class LoggingBucket:
    def __init__(self, bucket: float, skipped: int):
        self.bucket = bucket
        self.skipped = skipped

    def __repr__(self):
        return f"LoggingBucket({self.bucket}, {self.skipped})"

    def is_sampled(self, record: logging.LogRecord, rate: float) -> bool:
        current = time.monotonic()
        if current - self.bucket >= rate:
            self.bucket = current
            record.skipped = self.skipped
            self.skipped = 0
            return True
        self.skipped += 1
        return False


_MINF = float("-inf")

_buckets: DefaultDict[Tuple[str, int], LoggingBucket] = collections.defaultdict(lambda: LoggingBucket(_MINF, 0))

_rate_limit = config.logging_rate


def log_filter(record: logging.LogRecord) -> bool:
    """
    Rate limit log records by pathname and line number (True = output, False = skip).
    """
    logger = logging.getLogger(record.name)
    if not _rate_limit or logger.getEffectiveLevel() == logging.DEBUG:
        return True
    key = (record.pathname, record.lineno)
    return _buckets[key].is_sampled(record, _rate_limit)


class QueryTraceFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        skipped = getattr(record, "skipped", 0)
        skip_str = f" [{skipped} skipped]" if skipped else ""
        return f"{record.levelname} {super().format(record)}{skip_str}"


root_logger = logging.getLogger(ROOT_LOGGER_NAME)
if not root_logger.handlers:
    _handler = logging.StreamHandler()
    _handler.setFormatter(QueryTraceFormatter())
    root_logger.addHandler(_handler)
root_logger.propagate = True
