"""Retry logic with backoff for transfer units.

This module provides:
- RetryPolicy: reusable async retry wrapper for any transport call
- linear_backoff: the default delay schedule (base_delay * attempt)
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from chunkvault.core.config import DEFAULT_BASE_DELAY, DEFAULT_MAX_ATTEMPTS
from chunkvault.core.errors import NetworkError

logger = logging.getLogger(__name__)

T = TypeVar("T")

BackoffFn = Callable[[int], float]
SleepFn = Callable[[float], Awaitable[None]]


def linear_backoff(base_delay: float = DEFAULT_BASE_DELAY) -> BackoffFn:
    """Return a backoff function waiting base_delay * attempt seconds."""

    def backoff(attempt: int) -> float:
        return base_delay * attempt

    return backoff


class RetryPolicy:
    """Retry an async operation on transient failures.

    Only exceptions listed in ``retryable`` are retried; anything else
    (authentication failures, validation errors...) propagates at once.

    Usage:
        policy = RetryPolicy(max_attempts=3)
        data = await policy.call(lambda: store.download_object(object_id))
    """

    def __init__(
        self,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        base_delay: float = DEFAULT_BASE_DELAY,
        backoff: BackoffFn | None = None,
        retryable: tuple[type[BaseException], ...] = (NetworkError,),
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        """Initialize the policy.

        Args:
            max_attempts: Total attempts, including the first one.
            base_delay: Backoff unit in seconds for the default schedule.
            backoff: Custom delay function of the failed attempt number (1-based).
            retryable: Exception types worth retrying.
            sleep: Coroutine used to wait between attempts.
        """
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
        self.max_attempts = max_attempts
        self.backoff = backoff or linear_backoff(base_delay)
        self.retryable = retryable
        self._sleep = sleep

    async def call(self, func: Callable[[], Awaitable[T]], description: str = "operation") -> T:
        """Run func until it succeeds or attempts are exhausted.

        Args:
            func: Zero-argument coroutine factory; called once per attempt.
            description: Label used in log messages.

        Returns:
            Result of the first successful attempt.

        Raises:
            The last retryable exception once all attempts fail, or the first
            non-retryable exception immediately.
        """
        attempt = 1
        while True:
            try:
                return await func()
            except self.retryable as e:
                if attempt >= self.max_attempts:
                    logger.error(f"{description}: all {self.max_attempts} attempts failed: {e}")
                    raise
                delay = self.backoff(attempt)
                logger.warning(
                    f"{description}: attempt {attempt}/{self.max_attempts} failed: {e}. "
                    f"Retrying in {delay:.1f}s..."
                )
                await self._sleep(delay)
                attempt += 1
