"""Unit tests for the in-memory fixed-window rate limiter."""

import threading
from unittest.mock import Mock

import pytest

from app.adapters.rate_limit.base import RateLimitConfig
from app.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter

FIVE_MINUTES = RateLimitConfig(window_ms=300_000, max_requests=10)


def test_first_request_opens_window() -> None:
    clock = Mock(return_value=1_000)
    limiter = InMemoryFixedWindowRateLimiter(clock=clock, sweep_probability=0.0)

    decision = limiter.check("1.2.3.4", FIVE_MINUTES)

    assert decision.allowed is True
    assert decision.remaining == 9
    assert decision.reset_time == 301_000
    assert decision.retry_after_seconds is None


def test_allows_up_to_limit_then_rejects(limiter: InMemoryFixedWindowRateLimiter) -> None:
    decisions = [limiter.check("1.2.3.4", FIVE_MINUTES) for _ in range(10)]

    assert all(d.allowed for d in decisions)
    assert [d.remaining for d in decisions] == [9, 8, 7, 6, 5, 4, 3, 2, 1, 0]
    assert {d.reset_time for d in decisions} == {decisions[0].reset_time}

    blocked = limiter.check("1.2.3.4", FIVE_MINUTES)
    assert blocked.allowed is False
    assert blocked.remaining == 0
    assert blocked.reset_time == decisions[0].reset_time


def test_rejection_does_not_mutate_window(
    limiter: InMemoryFixedWindowRateLimiter, clock: Mock
) -> None:
    config = RateLimitConfig(window_ms=60_000, max_requests=1)
    first = limiter.check("k", config)

    for offset in (0, 10_000, 59_999, 60_000):
        clock.return_value = 1_000_000 + offset
        blocked = limiter.check("k", config)
        assert blocked.allowed is False
        assert blocked.reset_time == first.reset_time

    # Repeated rejections did not extend or restart the window
    clock.return_value = first.reset_time + 1
    assert limiter.check("k", config).allowed is True


def test_retry_after_rounds_up_to_whole_seconds(
    limiter: InMemoryFixedWindowRateLimiter, clock: Mock
) -> None:
    config = RateLimitConfig(window_ms=10_000, max_requests=1)
    limiter.check("k", config)

    clock.return_value = 1_000_000 + 8_500
    blocked = limiter.check("k", config)

    assert blocked.retry_after_seconds == 2


def test_request_exactly_at_reset_time_uses_existing_window(
    limiter: InMemoryFixedWindowRateLimiter, clock: Mock
) -> None:
    config = RateLimitConfig(window_ms=10_000, max_requests=1)
    first = limiter.check("k", config)

    clock.return_value = first.reset_time
    at_boundary = limiter.check("k", config)

    assert at_boundary.allowed is False
    assert at_boundary.retry_after_seconds == 0


def test_new_window_after_expiry(limiter: InMemoryFixedWindowRateLimiter, clock: Mock) -> None:
    first = limiter.check("1.2.3.4", FIVE_MINUTES)
    for _ in range(10):
        limiter.check("1.2.3.4", FIVE_MINUTES)

    clock.return_value = first.reset_time + 1
    fresh = limiter.check("1.2.3.4", FIVE_MINUTES)

    assert fresh.allowed is True
    assert fresh.remaining == 9
    assert fresh.reset_time == first.reset_time + 1 + FIVE_MINUTES.window_ms


def test_windows_start_per_identifier(limiter: InMemoryFixedWindowRateLimiter, clock: Mock) -> None:
    config = RateLimitConfig(window_ms=60_000, max_requests=5)
    a = limiter.check("a", config)

    clock.return_value = 1_000_000 + 17_000
    b = limiter.check("b", config)

    assert b.reset_time - a.reset_time == 17_000


def test_burst_across_boundary_is_allowed(
    limiter: InMemoryFixedWindowRateLimiter, clock: Mock
) -> None:
    config = RateLimitConfig(window_ms=60_000, max_requests=3)
    first = limiter.check("k", config)

    clock.return_value = first.reset_time
    accepted = 1 + sum(limiter.check("k", config).allowed for _ in range(3))

    clock.return_value = first.reset_time + 1
    accepted += sum(limiter.check("k", config).allowed for _ in range(3))

    assert accepted == 2 * config.max_requests


def test_identifiers_do_not_interfere(clock: Mock) -> None:
    config = RateLimitConfig(window_ms=60_000, max_requests=2)
    pattern = ["a", "b", "a", "a", "b", "b", "a", "b"]

    interleaved = InMemoryFixedWindowRateLimiter(clock=clock, sweep_probability=0.0)
    interleaved_results = {"a": [], "b": []}
    for key in pattern:
        interleaved_results[key].append(interleaved.check(key, config).allowed)

    for key in ("a", "b"):
        isolated = InMemoryFixedWindowRateLimiter(clock=clock, sweep_probability=0.0)
        isolated_results = [isolated.check(key, config).allowed for k in pattern if k == key]
        assert interleaved_results[key] == isolated_results


def test_empty_identifier_is_a_valid_bucket(limiter: InMemoryFixedWindowRateLimiter) -> None:
    config = RateLimitConfig(window_ms=60_000, max_requests=1)

    assert limiter.check("", config).allowed is True
    assert limiter.check("", config).allowed is False
    assert limiter.check("other", config).allowed is True


def test_sweep_removes_only_expired_entries(
    limiter: InMemoryFixedWindowRateLimiter, clock: Mock
) -> None:
    short = RateLimitConfig(window_ms=1_000, max_requests=1)
    long = RateLimitConfig(window_ms=600_000, max_requests=2)

    limiter.check("stale", short)
    limiter.check("live", long)
    assert len(limiter) == 2

    clock.return_value = 1_000_000 + 5_000
    assert limiter.sweep() == 1
    assert len(limiter) == 1

    # The surviving entry keeps its count: one more request, then rejection
    assert limiter.check("live", long).allowed is True
    assert limiter.check("live", long).allowed is False


def test_swept_identifier_behaves_like_new(
    limiter: InMemoryFixedWindowRateLimiter, clock: Mock
) -> None:
    config = RateLimitConfig(window_ms=1_000, max_requests=1)
    limiter.check("k", config)
    limiter.check("k", config)

    clock.return_value = 1_000_000 + 2_000
    limiter.sweep()

    fresh = limiter.check("k", config)
    assert fresh.allowed is True
    assert fresh.remaining == 0
    assert fresh.reset_time == 1_000_000 + 2_000 + 1_000


def test_sweep_runs_when_random_draw_hits(clock: Mock) -> None:
    rng = Mock(return_value=0.5)
    limiter = InMemoryFixedWindowRateLimiter(clock=clock, sweep_probability=0.01, rng=rng)
    config = RateLimitConfig(window_ms=1_000, max_requests=1)
    limiter.check("stale", config)

    clock.return_value = 1_000_000 + 5_000
    limiter.check("other", config)
    assert len(limiter) == 2

    rng.return_value = 0.001
    limiter.check("other", config)
    assert len(limiter) == 1


def test_sweep_with_explicit_now(limiter: InMemoryFixedWindowRateLimiter) -> None:
    config = RateLimitConfig(window_ms=1_000, max_requests=1)
    limiter.check("k", config)

    assert limiter.sweep(now=1_000_000 + 1_000) == 0
    assert limiter.sweep(now=1_000_000 + 1_001) == 1


def test_reset_clears_state(limiter: InMemoryFixedWindowRateLimiter) -> None:
    config = RateLimitConfig(window_ms=1_000, max_requests=1)
    limiter.check("k", config)
    limiter.reset()

    assert len(limiter) == 0
    assert limiter.check("k", config).allowed is True


def test_concurrent_checks_never_exceed_limit() -> None:
    limiter = InMemoryFixedWindowRateLimiter(sweep_probability=0.0)
    config = RateLimitConfig(window_ms=600_000, max_requests=25)
    results: list[bool] = []
    results_lock = threading.Lock()
    start = threading.Barrier(8)

    def worker() -> None:
        start.wait()
        for _ in range(50):
            allowed = limiter.check("shared", config).allowed
            with results_lock:
                results.append(allowed)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sum(results) == 25
    assert len(results) == 400


@pytest.mark.parametrize(
    "kwargs",
    [
        {"window_ms": 0, "max_requests": 1},
        {"window_ms": 1_000, "max_requests": 0},
        {"window_ms": -5, "max_requests": 3},
    ],
)
def test_invalid_config(kwargs: dict) -> None:
    with pytest.raises(ValueError):
        RateLimitConfig(**kwargs)


@pytest.mark.parametrize("probability", [-0.1, 1.5])
def test_invalid_sweep_probability(probability: float) -> None:
    with pytest.raises(ValueError):
        InMemoryFixedWindowRateLimiter(sweep_probability=probability)
