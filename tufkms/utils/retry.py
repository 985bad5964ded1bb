from __future__ import annotations

import asyncio
import logging
import random
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

from ..errors import RemoteServiceError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def compute_backoff(
    attempt: int,
    initial: float = 0.1,
    factor: float = 1.5,
    cap: float = 1.0,
    jitter: float = 0.1,
    rng: Optional[random.Random] = None,
) -> float:
    """Compute exponential backoff with jitter.

    ``attempt`` is the 1-based number of the attempt that just failed.
    """
    delay = min(initial * factor ** (attempt - 1), cap)
    return delay + (rng or random).uniform(0, jitter)


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry budget shared by every service call site."""

    max_attempts: int = 5
    initial_backoff: float = 0.1
    max_backoff: float = 1.0
    backoff_factor: float = 1.5
    jitter: float = 0.1
    max_elapsed: float = 30.0

    def compute_backoff(self, attempt: int, rng: Optional[random.Random] = None) -> float:
        return compute_backoff(
            attempt,
            initial=self.initial_backoff,
            factor=self.backoff_factor,
            cap=self.max_backoff,
            jitter=self.jitter,
            rng=rng,
        )


async def call_with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    description: str,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    clock: Callable[[], float] = time.monotonic,
    rng: Optional[random.Random] = None,
) -> T:
    """Run ``operation`` until it succeeds or the retry budget runs out.

    Only transient ``RemoteServiceError``s are retried. Permanent ones are
    raised after the first call. Cancellation propagates from the call or
    the backoff sleep without another attempt.
    """
    started = clock()
    attempt = 0
    while True:
        attempt += 1
        try:
            return await operation()
        except RemoteServiceError as e:
            if not e.transient:
                logger.warning(f"{description} failed permanently: {e}")
                raise

            if attempt >= policy.max_attempts:
                logger.warning(f"{description} gave up after {attempt} attempts: {e}")
                raise RemoteServiceError(
                    f"{description} failed after {attempt} attempts: {e}",
                    transient=True,
                    exhausted=True,
                    attempts=attempt,
                    operation=e.operation,
                    code=e.code,
                ) from e

            delay = policy.compute_backoff(attempt, rng)
            elapsed = clock() - started
            if elapsed + delay > policy.max_elapsed:
                logger.warning(
                    f"{description} gave up after {attempt} attempts and {elapsed:.2f}s: {e}"
                )
                raise RemoteServiceError(
                    f"{description} exceeded {policy.max_elapsed}s retry window: {e}",
                    transient=True,
                    exhausted=True,
                    attempts=attempt,
                    operation=e.operation,
                    code=e.code,
                ) from e

            logger.debug(
                f"{description} attempt {attempt} failed transiently; retrying in {delay:.3f}s"
            )
            await sleep(delay)
