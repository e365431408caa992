"""Progress tracking shared by the units of one transfer job."""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass


@dataclass(frozen=True)
class ProgressUpdate:
    """Snapshot of a job's progress."""

    completed: int
    total: int

    @property
    def percent(self) -> float:
        """Get progress percentage."""
        if self.total == 0:
            return 100.0
        return (self.completed / self.total) * 100


ProgressCallback = Callable[[ProgressUpdate], None]


class ProgressTracker:
    """Monotonic completion counter.

    Increments are serialized by a reentrant lock, so the counter is safe
    to share between asyncio tasks and worker threads alike. Subscribers
    are called under the same lock, in increment order, and never see a
    decrease. A subscriber may read the tracker it is subscribed to.
    """

    def __init__(self, total: int) -> None:
        if total < 0:
            raise ValueError(f"total must be >= 0, got {total}")
        self._total = total
        self._completed = 0
        self._lock = threading.RLock()
        self._subscribers: list[ProgressCallback] = []

    @property
    def total(self) -> int:
        return self._total

    @property
    def completed(self) -> int:
        with self._lock:
            return self._completed

    @property
    def percent(self) -> float:
        return self.snapshot().percent

    @property
    def done(self) -> bool:
        return self.completed == self._total

    def snapshot(self) -> ProgressUpdate:
        with self._lock:
            return ProgressUpdate(completed=self._completed, total=self._total)

    def subscribe(self, callback: ProgressCallback) -> None:
        """Register a callback invoked after every increment."""
        with self._lock:
            self._subscribers.append(callback)

    def increment(self) -> ProgressUpdate:
        """Record one more completed unit.

        Raises:
            RuntimeError: If every unit has already been counted.
        """
        with self._lock:
            if self._completed >= self._total:
                raise RuntimeError(f"Progress already complete ({self._total}/{self._total})")
            self._completed += 1
            update = ProgressUpdate(completed=self._completed, total=self._total)
            for callback in self._subscribers:
                callback(update)
        return update
