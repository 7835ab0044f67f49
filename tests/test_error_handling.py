"""
Tests for retry policies and the engine's failure handling.
"""

import pytest

from remotetreelib.aio import (
    ByRevision,
    NoRetryPolicy,
    RequestLimiter,
    RetryPolicy,
    TraversalEngine,
)
from remotetreelib.config import RetryConfig
from remotetreelib.errors import (
    FatalError,
    NotFoundError,
    RateLimitedError,
    RetryExhaustedError,
    TransientError,
    UnknownShapeError,
)
from remotetreelib.testing import InMemoryObjectStore


ROOT = ByRevision('octo', 'hello', 'main:')


class RecordingSleep:
    """Async sleep stand-in that records delays instead of waiting."""

    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def store():
    """root -> [('file.txt', 'f'), ('other.txt', 'o')]"""
    store = InMemoryObjectStore()
    store.add_tree('root', [('file.txt', 'f'), ('other.txt', 'o')])
    store.add_blob('f', 'payload')
    store.add_blob('o', 'other')
    store.add_revision('main:', 'root')
    return store


class TestRetryPolicy:
    """Test the policy decisions in isolation."""

    def test_retryable_errors(self):
        policy = RetryPolicy(max_attempts=3)

        assert policy.should_retry(TransientError("blip"), 1)
        assert policy.should_retry(RateLimitedError(), 2)
        assert not policy.should_retry(TransientError("blip"), 3)

    @pytest.mark.parametrize('error', [
        NotFoundError("gone"),
        FatalError("bad"),
        UnknownShapeError("Commit"),
    ])
    def test_terminal_errors_never_retried(self, error):
        policy = RetryPolicy(max_attempts=10)

        assert not policy.should_retry(error, 1)

    def test_exponential_backoff_is_capped(self):
        policy = RetryPolicy(base_delay=0.5, multiplier=2.0, max_delay=3.0)
        error = TransientError("blip")

        delays = [policy.delay_for(error, attempt) for attempt in range(1, 6)]

        assert delays == [0.5, 1.0, 2.0, 3.0, 3.0]

    def test_retry_after_hint_takes_precedence(self):
        policy = RetryPolicy(base_delay=0.5, max_delay=1.0)

        assert policy.delay_for(RateLimitedError(retry_after=42), 1) == 42.0
        assert policy.delay_for(RateLimitedError(retry_after=-3), 1) == 0.0
        assert policy.delay_for(RateLimitedError(), 2) == 1.0

    def test_from_config(self):
        policy = RetryPolicy.from_config(RetryConfig(max_attempts=2, base_delay=0.1))

        assert policy.max_attempts == 2
        assert policy.base_delay == 0.1

    def test_no_retry_policy(self):
        policy = NoRetryPolicy()

        assert not policy.should_retry(TransientError("blip"), 1)
        assert policy.delay_for(TransientError("blip"), 1) == 0.0


class TestEngineRetries:
    """Test how the engine drives retries per frontier entry."""

    @pytest.mark.asyncio
    async def test_transient_failures_recover(self, store, sleep):
        store.fail('f', TransientError("502"), TransientError("503"))
        engine = TraversalEngine(store, retry_policy=RetryPolicy(base_delay=0.25), sleep=sleep)

        result = await engine.traverse(ROOT, 2)

        assert result.completed
        assert result.snapshot['file.txt'] == 'payload'
        assert store.calls_for('f') == 3
        assert sleep.delays == [0.25, 0.5]

    @pytest.mark.asyncio
    async def test_rate_limit_hint_used_as_delay(self, store, sleep):
        store.fail('o', RateLimitedError(retry_after=7))
        engine = TraversalEngine(store, sleep=sleep)

        result = await engine.traverse(ROOT, 2)

        assert result.completed
        assert sleep.delays == [7.0]

    @pytest.mark.asyncio
    async def test_exhausted_retries_become_node_failure(self, store, sleep):
        store.fail('f', *[TransientError(f"try {i}") for i in range(5)])
        engine = TraversalEngine(store, retry_policy=RetryPolicy(max_attempts=3), sleep=sleep)

        result = await engine.traverse(ROOT, 2)

        assert result.completed is False
        assert result.snapshot.as_dict() == {'other.txt': 'other'}
        error = result.failure_dict()['file.txt']
        assert isinstance(error, RetryExhaustedError)
        assert error.attempts == 3
        assert isinstance(error.last_error, TransientError)
        assert str(error.last_error) == "try 2"
        assert store.calls_for('f') == 3
        assert len(sleep.delays) == 2

    @pytest.mark.asyncio
    async def test_not_found_is_not_retried(self, store, sleep):
        store.fail('f', NotFoundError("deleted upstream"))
        engine = TraversalEngine(store, sleep=sleep)

        result = await engine.traverse(ROOT, 2)

        assert isinstance(result.failure_dict()['file.txt'], NotFoundError)
        assert store.calls_for('f') == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_fatal_is_surfaced_not_dropped(self, store, sleep):
        store.fail('o', FatalError("blob is binary"))
        engine = TraversalEngine(store, sleep=sleep)

        result = await engine.traverse(ROOT, 2)

        error = result.failure_dict()['other.txt']
        assert isinstance(error, FatalError)
        assert "binary" in str(error)
        assert result.snapshot.as_dict() == {'file.txt': 'payload'}
        assert store.calls_for('o') == 1

    @pytest.mark.asyncio
    async def test_no_retry_policy_reports_single_attempt(self, store, sleep):
        store.fail('f', TransientError("blip"))
        engine = TraversalEngine(store, retry_policy=NoRetryPolicy(), sleep=sleep)

        result = await engine.traverse(ROOT, 2)

        error = result.failure_dict()['file.txt']
        assert isinstance(error, RetryExhaustedError)
        assert error.attempts == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_root_retried_before_giving_up(self, store, sleep):
        store.fail('main:', TransientError("blip"))
        engine = TraversalEngine(store, sleep=sleep)

        result = await engine.traverse(ROOT, 2)

        assert result.completed
        assert store.calls_for('main:') == 2

    @pytest.mark.asyncio
    async def test_rate_limit_hint_pauses_shared_limiter(self, store, sleep):
        limiter = RequestLimiter(sleep=sleep)
        store.fail('f', RateLimitedError(retry_after=0.0))
        engine = TraversalEngine(store, limiter=limiter, sleep=sleep)

        result = await engine.traverse(ROOT, 2)

        assert result.completed
        assert limiter.pauses == 1
        assert limiter.calls == len(store.calls)
