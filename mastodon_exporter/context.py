"""
Per-scrape context: deadline tracking and mapper operation logging.
"""
import time
from contextlib import contextmanager
from typing import Optional

from .errors import DeadlineExceeded
from .logger import get_logger


class ScrapeContext:
    """
    State of one scrape. A new context is built for every collection, so
    concurrent scrapes never share anything but the fetcher.
    """

    def __init__(self, scrape_timeout: Optional[float] = None, logger=None,
                 clock=time.monotonic):
        self.clock = clock
        self.started = clock()
        self.scrape_timeout = scrape_timeout
        self.deadline = None if scrape_timeout is None else self.started + scrape_timeout
        self.logger = logger or get_logger("collector")

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None without one."""
        if self.deadline is None:
            return None
        return self.deadline - self.clock()

    def fetch_timeout(self, url: str, default: Optional[float] = None) -> Optional[float]:
        """
        Timeout for the next request: the fetcher default, capped by the
        time left in this scrape.

        Raises:
            DeadlineExceeded: if the scrape is already out of time
        """
        remaining = self.remaining()
        if remaining is None:
            return default
        if remaining <= 0:
            raise DeadlineExceeded(url, self.scrape_timeout)
        if default is None:
            return remaining
        return min(default, remaining)

    def elapsed(self) -> float:
        return self.clock() - self.started

    @contextmanager
    def mapper_operation(self, mapper, url: str):
        """
        Track one mapper run: log start, success or failure with its
        duration, and re-raise any error for the collector to handle.
        """
        start_time = self.clock()
        op_logger = self.logger.bind(mapper=mapper.name, url=url)
        op_logger.debug("Mapper started")

        try:
            yield op_logger
        except Exception as e:
            op_logger.error("Mapper failed",
                            error=str(e),
                            error_type=type(e).__name__,
                            duration_seconds=self.clock() - start_time)
            raise

        op_logger.debug("Mapper completed",
                        duration_seconds=self.clock() - start_time)
