"""Tests for ProgressTracker."""

from __future__ import annotations

import threading

import pytest

from chunkvault.client.transfer.progress import ProgressTracker, ProgressUpdate


class TestProgressUpdate:
    """Tests for ProgressUpdate."""

    def test_percent(self) -> None:
        """Percent is completed / total * 100."""
        assert ProgressUpdate(completed=1, total=4).percent == 25.0

    def test_empty_job_is_complete(self) -> None:
        """A job with no units reports 100%."""
        assert ProgressUpdate(completed=0, total=0).percent == 100.0


class TestProgressTracker:
    """Tests for ProgressTracker."""

    def test_starts_at_zero(self) -> None:
        """New tracker has no completed units."""
        tracker = ProgressTracker(3)
        assert tracker.completed == 0
        assert tracker.percent == 0.0
        assert not tracker.done

    def test_increment_and_subscribe(self) -> None:
        """Subscribers see every increment in order."""
        tracker = ProgressTracker(3)
        seen: list[float] = []
        tracker.subscribe(lambda update: seen.append(update.percent))
        for _ in range(3):
            tracker.increment()
        assert seen == pytest.approx([100 / 3, 200 / 3, 100.0])
        assert tracker.done

    def test_subscriber_can_poll_tracker(self) -> None:
        """A subscriber reading the tracker it listens to does not block."""
        tracker = ProgressTracker(2)
        polled: list[tuple[int, float]] = []
        tracker.subscribe(lambda update: polled.append((tracker.completed, tracker.percent)))

        worker = threading.Thread(target=lambda: [tracker.increment() for _ in range(2)])
        worker.start()
        worker.join(timeout=2)

        assert not worker.is_alive()
        assert polled == [(1, 50.0), (2, 100.0)]
        assert tracker.done

    def test_cannot_exceed_total(self) -> None:
        """Incrementing past total is an error."""
        tracker = ProgressTracker(1)
        tracker.increment()
        with pytest.raises(RuntimeError):
            tracker.increment()
        assert tracker.completed == 1

    def test_negative_total_rejected(self) -> None:
        """Total must be >= 0."""
        with pytest.raises(ValueError):
            ProgressTracker(-1)

    def test_concurrent_increments_are_atomic(self) -> None:
        """Increments from many threads are all counted and never go backwards."""
        total = 8 * 500
        tracker = ProgressTracker(total)
        seen: list[int] = []
        tracker.subscribe(lambda update: seen.append(update.completed))

        def worker() -> None:
            for _ in range(500):
                tracker.increment()

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert tracker.completed == total
        assert seen == list(range(1, total + 1))
