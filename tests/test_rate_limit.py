from __future__ import annotations

from editor_agent.core.config import RateLimitConfig
from editor_agent.tools.rate_limit import RateLimiter


class FakeClock:
    def __init__(self) -> None:
        self.now = 1_000.0

    def __call__(self) -> float:
        return self.now


def test_cooldown_between_calls() -> None:
    clock = FakeClock()
    limiter = RateLimiter(clock=clock)

    assert limiter.check().allowed
    limiter.record()

    clock.now += 500
    decision = limiter.check()
    assert not decision.allowed
    assert decision.reason == "Cooldown active: please wait 2000ms between calls"

    clock.now += 1500
    assert limiter.check().allowed


def test_per_minute_window() -> None:
    clock = FakeClock()
    limiter = RateLimiter(RateLimitConfig(cooldown_ms=0), clock=clock)

    for _ in range(30):
        assert limiter.check().allowed
        limiter.record()
        clock.now += 10

    decision = limiter.check()
    assert not decision.allowed
    assert decision.reason == "Rate limit exceeded: maximum 30 tool calls per minute"

    # The first call leaves the window 60s after it was made.
    clock.now = 1_000.0 + 60_000
    assert limiter.check().allowed
    assert limiter.status().calls_in_last_minute == 29


def test_session_cap_is_checked_first() -> None:
    clock = FakeClock()
    limiter = RateLimiter(
        RateLimitConfig(max_calls_per_minute=1000, max_calls_per_session=3, cooldown_ms=2000), clock=clock
    )
    for _ in range(3):
        limiter.record()

    decision = limiter.check()
    assert decision.reason == "Session limit exceeded: maximum 3 tool calls per session"


def test_denied_check_does_not_mutate_counters() -> None:
    clock = FakeClock()
    limiter = RateLimiter(clock=clock)
    limiter.record()

    before = limiter.status()
    assert not limiter.check().allowed
    assert limiter.status() == before


def test_status_and_reset() -> None:
    clock = FakeClock()
    limiter = RateLimiter(clock=clock)
    limiter.record()

    status = limiter.status()
    assert status.total_calls_in_session == 1
    assert status.remaining_per_minute == 29
    assert status.remaining_in_session == 99

    limiter.reset()
    assert limiter.check().allowed
    assert limiter.status().total_calls_in_session == 0
