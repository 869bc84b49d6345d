"""
Event subscription that marks the boundaries of an import run in the log.

DatoCmaClient only calls endpoints that answer synchronously, so there are no
asynchronous job results to listen for. The subscription still brackets the
run, which makes it easy to find one run's requests in the log file.
"""

from __future__ import annotations

import logging
import time

# Module-wide logger
logger: logging.Logger = logging.getLogger(__name__)


class LoggingEventSubscription:
    def __init__(self, label: str, started_at: float) -> None:
        self.label: str = label
        self.started_at: float = started_at
        self.closed: bool = False

    async def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        elapsed = time.perf_counter() - self.started_at
        logger.info(f"Closed events subscription for {self.label} after {elapsed:.1f}s")


class LoggingEventSubscriber:
    """EventSubscriber that logs when a run's subscription opens and closes."""

    def __init__(self, label: str = "primary environment") -> None:
        self.label: str = label

    async def subscribe(self) -> LoggingEventSubscription:
        logger.info(f"Opened events subscription for {self.label}")
        return LoggingEventSubscription(self.label, time.perf_counter())
