"""
Progress tracking for the asynchronous calls made during an import.
"""

from __future__ import annotations

import contextlib
import functools
from dataclasses import dataclass
from typing import TYPE_CHECKING, ParamSpec, TypeVar

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterator

P = ParamSpec("P")
T = TypeVar("T")


@dataclass(frozen=True)
class ImportProgress:
    """Scheduled versus settled operations so far."""

    total: int
    finished: int


class ProgressTracker:
    """Counts scheduled and settled operations and reports every change.

    The sink is called synchronously, once when an operation is scheduled and
    once when it settles, whether it succeeded or failed.
    """

    def __init__(self, on_progress: Callable[[ImportProgress], None]) -> None:
        self._on_progress: Callable[[ImportProgress], None] = on_progress
        self.total: int = 0
        self.finished: int = 0

    def snapshot(self) -> ImportProgress:
        return ImportProgress(total=self.total, finished=self.finished)

    def begin(self) -> None:
        self.total += 1
        self._on_progress(self.snapshot())

    def end(self) -> None:
        self.finished += 1
        self._on_progress(self.snapshot())

    @contextlib.contextmanager
    def operation(self) -> Iterator[None]:
        """Count one operation for the duration of the block."""
        self.begin()
        try:
            yield
        finally:
            self.end()

    def track(self, fn: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        """Wrap a coroutine function so that every call is counted."""

        @functools.wraps(fn)
        async def tracked(*args: P.args, **kwargs: P.kwargs) -> T:
            with self.operation():
                return await fn(*args, **kwargs)

        return tracked
