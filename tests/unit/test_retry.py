"""Retry policy tests."""

import asyncio
import random

import pytest

from helpers import permanent, transient
from tufkms.errors import RemoteServiceError
from tufkms.utils.retry import RetryPolicy, call_with_retry, compute_backoff


class Operation:
    """Fails with the scripted errors, then returns ``"ok"``."""

    def __init__(self, failures):
        self.failures = list(failures)
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.failures:
            raise self.failures.pop(0)
        return "ok"


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


def test_compute_backoff_grows_and_caps():
    rng = random.Random(7)
    delays = [
        compute_backoff(attempt, initial=0.1, factor=2, cap=0.5, jitter=0, rng=rng)
        for attempt in range(1, 6)
    ]
    assert delays == pytest.approx([0.1, 0.2, 0.4, 0.5, 0.5])


def test_compute_backoff_jitter_is_bounded():
    rng = random.Random(1)
    for attempt in range(1, 10):
        delay = compute_backoff(attempt, initial=0.1, factor=1.5, cap=1.0, jitter=0.2, rng=rng)
        base = min(0.1 * 1.5 ** (attempt - 1), 1.0)
        assert base <= delay <= base + 0.2


def test_policy_is_pure_for_a_seeded_rng():
    policy = RetryPolicy()
    first = [policy.compute_backoff(n, random.Random(3)) for n in range(1, 5)]
    second = [policy.compute_backoff(n, random.Random(3)) for n in range(1, 5)]
    assert first == second


@pytest.mark.asyncio
@pytest.mark.parametrize("failures", [0, 1, 2, 4])
async def test_transient_failures_then_success(failures):
    op = Operation([transient() for _ in range(failures)])
    sleep = RecordingSleep()

    result = await call_with_retry(op, RetryPolicy(max_attempts=5), "test op", sleep=sleep)

    assert result == "ok"
    assert op.calls == failures + 1
    assert len(sleep.delays) == failures


@pytest.mark.asyncio
@pytest.mark.parametrize("failures", [5, 8])
async def test_budget_exhausted(failures):
    op = Operation([transient() for _ in range(failures)])
    sleep = RecordingSleep()

    with pytest.raises(RemoteServiceError) as exc_info:
        await call_with_retry(op, RetryPolicy(max_attempts=5), "test op", sleep=sleep)

    assert op.calls == 5
    assert exc_info.value.transient
    assert exc_info.value.exhausted
    assert exc_info.value.attempts == 5
    assert isinstance(exc_info.value.__cause__, RemoteServiceError)


@pytest.mark.asyncio
async def test_permanent_failure_is_not_retried():
    op = Operation([permanent()])
    sleep = RecordingSleep()

    with pytest.raises(RemoteServiceError) as exc_info:
        await call_with_retry(op, RetryPolicy(), "test op", sleep=sleep)

    assert op.calls == 1
    assert sleep.delays == []
    assert not exc_info.value.transient
    assert not exc_info.value.exhausted


@pytest.mark.asyncio
async def test_other_errors_propagate_untouched():
    op = Operation([KeyError("boom")])
    with pytest.raises(KeyError):
        await call_with_retry(op, RetryPolicy(), "test op", sleep=RecordingSleep())
    assert op.calls == 1


@pytest.mark.asyncio
async def test_elapsed_window_stops_retries():
    now = [0.0]

    def clock():
        return now[0]

    async def sleep(delay):
        now[0] += delay

    policy = RetryPolicy(
        max_attempts=10, initial_backoff=1.0, backoff_factor=1.0, max_backoff=1.0,
        jitter=0, max_elapsed=2.5,
    )
    op = Operation([transient() for _ in range(10)])

    with pytest.raises(RemoteServiceError) as exc_info:
        await call_with_retry(op, policy, "test op", sleep=sleep, clock=clock)

    assert exc_info.value.exhausted
    assert op.calls == 3


@pytest.mark.asyncio
async def test_cancel_during_backoff_makes_no_further_call():
    waiting = asyncio.Event()

    async def sleep(delay):
        waiting.set()
        await asyncio.Event().wait()

    op = Operation([transient() for _ in range(5)])
    task = asyncio.create_task(call_with_retry(op, RetryPolicy(), "test op", sleep=sleep))

    await waiting.wait()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert op.calls == 1
