"""Bounded-concurrency execution of transfer units.

This module provides:
- TransferJob: aggregate state of one file transfer (progress, status, error)
- TransferScheduler: runs a job's units in batches of at most C, each unit
  wrapped in a RetryPolicy

Units are split into consecutive batches of ``concurrency`` units. A batch
runs concurrently and is awaited in full before the next batch starts,
which bounds open connections and buffered ciphertext. Any unit that fails
permanently fails the whole job once its batch has settled.

Known limitation: a started job cannot be cancelled. ``cancel_requested``
is recorded on the job but never checked.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import TypeVar

from chunkvault.client.transfer.progress import ProgressCallback, ProgressTracker
from chunkvault.client.transfer.retry import RetryPolicy
from chunkvault.core.config import DEFAULT_CONCURRENCY
from chunkvault.core.types import TransferStatus, TransferType

logger = logging.getLogger(__name__)

T = TypeVar("T")

Unit = Callable[[], Awaitable[T]]


@dataclass
class TransferJob:
    """A tracked transfer of all chunks of one file.

    Attributes:
        name: Logical file name (for logs and messages).
        transfer_type: Upload or download.
        total: Number of units in the job.
        progress: Shared completion counter.
        status: Current status.
        error: The failure that aborted the job, if any.
        cancel_requested: Recorded but not honored once the job has started.
    """

    name: str
    transfer_type: TransferType
    total: int
    progress: ProgressTracker = field(init=False)
    status: TransferStatus = TransferStatus.PENDING
    error: BaseException | None = None
    cancel_requested: bool = False

    def __post_init__(self) -> None:
        self.progress = ProgressTracker(self.total)

    @classmethod
    def create(
        cls,
        name: str,
        transfer_type: TransferType,
        total: int,
        on_progress: ProgressCallback | None = None,
    ) -> TransferJob:
        """Create a job and optionally subscribe a progress callback."""
        job = cls(name=name, transfer_type=transfer_type, total=total)
        if on_progress:
            job.progress.subscribe(on_progress)
        return job

    def request_cancel(self) -> None:
        """Request cancellation (not supported once the job runs)."""
        self.cancel_requested = True

    @property
    def percent(self) -> float:
        return self.progress.percent


class TransferScheduler:
    """Run transfer units with a concurrency cap and per-unit retry."""

    def __init__(
        self,
        concurrency: int = DEFAULT_CONCURRENCY,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        """Initialize the scheduler.

        Args:
            concurrency: Maximum number of units in flight.
            retry_policy: Policy applied to each unit (default: 3 attempts).
        """
        if concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {concurrency}")
        self.concurrency = concurrency
        self.retry_policy = retry_policy or RetryPolicy()

    async def run(self, job: TransferJob, units: Sequence[Unit[T]]) -> list[T]:
        """Execute every unit of a job.

        Args:
            job: The job whose progress and status are updated.
            units: Zero-argument coroutine factories, one per chunk.

        Returns:
            Unit results in unit order (not completion order).

        Raises:
            The first permanent unit failure, after its batch has settled.
        """
        if len(units) != job.total:
            raise ValueError(f"Job {job.name} expects {job.total} units, got {len(units)}")

        job.status = TransferStatus.IN_PROGRESS
        label = job.transfer_type.name.lower()
        logger.info(
            f"Starting {label} of {job.name}: {job.total} chunks, "
            f"concurrency {self.concurrency}"
        )

        results: list[T] = []
        for start in range(0, len(units), self.concurrency):
            batch = units[start : start + self.concurrency]
            outcomes = await asyncio.gather(
                *(
                    self._run_unit(job, start + offset, unit)
                    for offset, unit in enumerate(batch)
                ),
                return_exceptions=True,
            )
            for outcome in outcomes:
                if isinstance(outcome, BaseException):
                    job.status = TransferStatus.FAILED
                    job.error = outcome
                    logger.error(
                        f"{label.capitalize()} of {job.name} failed at "
                        f"{job.percent:.0f}%: {outcome}"
                    )
                    raise outcome
            results.extend(outcomes)  # type: ignore[arg-type]

        job.status = TransferStatus.COMPLETED
        logger.info(f"Finished {label} of {job.name}")
        return results

    async def _run_unit(self, job: TransferJob, index: int, unit: Unit[T]) -> T:
        description = f"{job.transfer_type.name.lower()} {job.name} chunk {index + 1}/{job.total}"
        result = await self.retry_policy.call(unit, description=description)
        update = job.progress.increment()
        logger.debug(f"{description} done ({update.percent:.0f}%)")
        return result
