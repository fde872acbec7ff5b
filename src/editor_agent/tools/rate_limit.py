from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable

from editor_agent.core.config import RateLimitConfig
from editor_agent.core.types import RateLimitState

_WINDOW_MS = 60_000


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


@dataclass(frozen=True, slots=True)
class RateLimitDecision:
    allowed: bool
    reason: str | None = None


@dataclass(frozen=True, slots=True)
class RateLimitStatus:
    calls_in_last_minute: int
    total_calls_in_session: int
    remaining_per_minute: int
    remaining_in_session: int


class RateLimiter:
    """Sliding-window limiter for tool calls within one conversation.

    Gates, in order: session cap, per-minute window, cooldown since the last
    recorded call. `check` only prunes stale window entries; a denied call
    leaves the counters untouched.
    """

    def __init__(self, config: RateLimitConfig | None = None, *, clock: Callable[[], float] | None = None) -> None:
        self._config = config or RateLimitConfig()
        self._clock = clock or _monotonic_ms
        self._state = RateLimitState()

    @property
    def config(self) -> RateLimitConfig:
        return self._config

    def _prune(self, now: float) -> None:
        self._state.calls_in_last_minute = [t for t in self._state.calls_in_last_minute if now - t < _WINDOW_MS]

    def check(self) -> RateLimitDecision:
        cfg = self._config
        now = self._clock()

        if self._state.total_calls_in_session >= cfg.max_calls_per_session:
            return RateLimitDecision(
                False,
                f"Session limit exceeded: maximum {cfg.max_calls_per_session} tool calls per session",
            )

        self._prune(now)
        if len(self._state.calls_in_last_minute) >= cfg.max_calls_per_minute:
            return RateLimitDecision(
                False,
                f"Rate limit exceeded: maximum {cfg.max_calls_per_minute} tool calls per minute",
            )

        last = self._state.last_call_ms
        if last is not None and now - last < cfg.cooldown_ms:
            return RateLimitDecision(False, f"Cooldown active: please wait {cfg.cooldown_ms}ms between calls")

        return RateLimitDecision(True)

    def record(self) -> None:
        now = self._clock()
        self._state.calls_in_last_minute.append(now)
        self._state.total_calls_in_session += 1
        self._state.last_call_ms = now

    def reset(self) -> None:
        self._state = RateLimitState()

    def status(self) -> RateLimitStatus:
        self._prune(self._clock())
        in_window = len(self._state.calls_in_last_minute)
        total = self._state.total_calls_in_session
        return RateLimitStatus(
            calls_in_last_minute=in_window,
            total_calls_in_session=total,
            remaining_per_minute=max(0, self._config.max_calls_per_minute - in_window),
            remaining_in_session=max(0, self._config.max_calls_per_session - total),
        )
