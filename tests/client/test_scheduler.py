"""Tests for TransferScheduler and TransferJob."""

from __future__ import annotations

import asyncio
import random

import pytest

from chunkvault.client.transfer.retry import RetryPolicy
from chunkvault.client.transfer.scheduler import TransferJob, TransferScheduler
from chunkvault.core.errors import AuthenticationError, NetworkError
from chunkvault.core.types import TransferStatus, TransferType


class Instrument:
    """Counts units in flight and records start/finish events."""

    def __init__(self) -> None:
        self.in_flight = 0
        self.max_in_flight = 0
        self.events: list[tuple[str, int]] = []

    def unit(self, index: int, delay: float = 0.001, failures: int = 0, exc: Exception | None = None):  # type: ignore[no-untyped-def]
        remaining = {"failures": failures}

        async def run() -> int:
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
            self.events.append(("start", index))
            try:
                await asyncio.sleep(delay)
                if remaining["failures"] > 0:
                    remaining["failures"] -= 1
                    raise exc or NetworkError(f"unit {index} failed")
                return index * 10
            finally:
                self.in_flight -= 1
                self.events.append(("end", index))

        return run


def no_wait_policy(max_attempts: int = 3) -> RetryPolicy:
    """Retry policy that does not sleep between attempts."""
    return RetryPolicy(max_attempts=max_attempts, base_delay=0.0)


def make_job(total: int) -> TransferJob:
    """Create an upload job for testing."""
    return TransferJob.create("file.bin", TransferType.UPLOAD, total)


class TestTransferJob:
    """Tests for TransferJob."""

    def test_initial_state(self) -> None:
        """New jobs are pending with an empty tracker."""
        job = make_job(4)
        assert job.status == TransferStatus.PENDING
        assert job.progress.total == 4
        assert job.percent == 0.0
        assert job.error is None

    def test_cancel_is_only_recorded(self) -> None:
        """request_cancel sets the flag; nothing else changes."""
        job = make_job(1)
        job.request_cancel()
        assert job.cancel_requested is True
        assert job.status == TransferStatus.PENDING


class TestTransferScheduler:
    """Tests for batched execution."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("units", "concurrency"), [(12, 5), (5, 5), (3, 5), (7, 1)])
    async def test_concurrency_cap(self, units: int, concurrency: int) -> None:
        """Never more than C units in flight; full batches reach C."""
        instrument = Instrument()
        scheduler = TransferScheduler(concurrency=concurrency, retry_policy=no_wait_policy())
        await scheduler.run(make_job(units), [instrument.unit(i) for i in range(units)])
        assert instrument.max_in_flight == min(units, concurrency)

    @pytest.mark.asyncio
    async def test_batches_do_not_overlap(self) -> None:
        """Batch N+1 starts only after every unit of batch N has ended."""
        instrument = Instrument()
        rng = random.Random(7)
        units = [instrument.unit(i, delay=rng.uniform(0.001, 0.01)) for i in range(11)]
        await TransferScheduler(concurrency=4, retry_policy=no_wait_policy()).run(make_job(11), units)

        position = {event: n for n, event in enumerate(instrument.events)}
        for batch_start in (4, 8):
            last_end = max(position[("end", i)] for i in range(batch_start - 4, batch_start))
            first_start = min(
                position[("start", i)] for i in range(batch_start, min(batch_start + 4, 11))
            )
            assert last_end < first_start

    @pytest.mark.asyncio
    async def test_results_in_unit_order(self) -> None:
        """Results follow unit order regardless of completion order."""
        instrument = Instrument()
        units = [instrument.unit(i, delay=0.01 * (5 - i)) for i in range(5)]
        results = await TransferScheduler(retry_policy=no_wait_policy()).run(make_job(5), units)
        assert results == [0, 10, 20, 30, 40]

    @pytest.mark.asyncio
    async def test_progress_monotonic_to_100(self) -> None:
        """Progress never decreases and ends at exactly 100%."""
        seen: list[float] = []
        job = TransferJob.create("f", TransferType.DOWNLOAD, 9, on_progress=lambda u: seen.append(u.percent))
        instrument = Instrument()
        await TransferScheduler(concurrency=3, retry_policy=no_wait_policy()).run(
            job, [instrument.unit(i) for i in range(9)]
        )
        assert seen == sorted(seen)
        assert len(seen) == 9
        assert seen[-1] == 100.0
        assert job.status == TransferStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_transient_failures_are_retried(self) -> None:
        """A unit failing twice succeeds on its third attempt."""
        instrument = Instrument()
        units = [instrument.unit(i, failures=2 if i == 1 else 0) for i in range(3)]
        job = make_job(3)
        await TransferScheduler(retry_policy=no_wait_policy(3)).run(job, units)
        assert job.status == TransferStatus.COMPLETED
        assert job.percent == 100.0

    @pytest.mark.asyncio
    async def test_permanent_failure_aborts_job(self) -> None:
        """Exhausted retries fail the job and later batches never start."""
        instrument = Instrument()
        units = [instrument.unit(i, failures=4 if i == 0 else 0) for i in range(6)]
        job = make_job(6)
        with pytest.raises(NetworkError):
            await TransferScheduler(concurrency=2, retry_policy=no_wait_policy(3)).run(job, units)
        assert job.status == TransferStatus.FAILED
        assert isinstance(job.error, NetworkError)
        assert job.progress.completed == 1
        assert job.percent < 100.0
        started = {i for kind, i in instrument.events if kind == "start"}
        assert started == {0, 1}

    @pytest.mark.asyncio
    async def test_non_retryable_failure_is_not_retried(self) -> None:
        """Authentication errors fail the unit on the first attempt."""
        instrument = Instrument()
        unit = instrument.unit(0, failures=1, exc=AuthenticationError("bad tag"))
        with pytest.raises(AuthenticationError):
            await TransferScheduler(retry_policy=no_wait_policy()).run(make_job(1), [unit])
        assert instrument.events.count(("start", 0)) == 1

    @pytest.mark.asyncio
    async def test_empty_job_completes(self) -> None:
        """A job with zero units completes at 100%."""
        job = make_job(0)
        assert await TransferScheduler().run(job, []) == []
        assert job.status == TransferStatus.COMPLETED
        assert job.percent == 100.0

    @pytest.mark.asyncio
    async def test_unit_count_must_match_job(self) -> None:
        """Passing a different number of units than the job declares is a bug."""
        instrument = Instrument()
        with pytest.raises(ValueError):
            await TransferScheduler().run(make_job(2), [instrument.unit(0)])

    def test_invalid_concurrency(self) -> None:
        """Concurrency must be at least 1."""
        with pytest.raises(ValueError):
            TransferScheduler(concurrency=0)

    @pytest.mark.asyncio
    async def test_progress_callback_can_poll_job(self) -> None:
        """An on_progress callback may read the job's own percentage."""
        instrument = Instrument()
        polled: list[float] = []
        job = TransferJob.create(
            "file.bin",
            TransferType.DOWNLOAD,
            4,
            on_progress=lambda update: polled.append(job.percent),
        )
        scheduler = TransferScheduler(concurrency=2, retry_policy=no_wait_policy())

        await asyncio.wait_for(
            scheduler.run(job, [instrument.unit(i) for i in range(4)]), timeout=5
        )

        assert polled == [25.0, 50.0, 75.0, 100.0]
