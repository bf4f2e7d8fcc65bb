"""Circuit breaker and retry policy for calls to the POI catalog."""

import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry configuration for one upstream call."""

    timeout_ms: int
    retry_count: int
    retry_jitter_min_ms: int
    retry_jitter_max_ms: int


class BreakerState(str, Enum):
    """Circuit breaker state."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass
class CircuitBreaker:
    """Upstream circuit breaker.

    Tracks failures within a time window and opens after threshold. One
    instance is shared by every request thread of the process, so state
    changes happen under a lock.
    """

    name: str
    failure_threshold: int
    window_seconds: int
    half_open_seconds: int
    state: BreakerState = BreakerState.CLOSED
    failure_times: list[datetime] = field(default_factory=list)
    opened_at: datetime | None = None
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False, compare=False
    )

    def record_success(self) -> None:
        """Record successful call."""
        with self._lock:
            if self.state == BreakerState.HALF_OPEN:
                self.state = BreakerState.CLOSED
                self.failure_times.clear()
                self.opened_at = None

    def record_failure(self, now: datetime) -> None:
        """Record failed call (timeouts, transport errors, 5xx)."""
        with self._lock:
            cutoff = now - timedelta(seconds=self.window_seconds)
            self.failure_times = [t for t in self.failure_times if t > cutoff]

            self.failure_times.append(now)

            if self.state == BreakerState.HALF_OPEN or len(self.failure_times) >= self.failure_threshold:
                self.state = BreakerState.OPEN
                self.opened_at = now

    def check_and_update_state(self, now: datetime) -> BreakerState:
        """Check if breaker should transition states."""
        with self._lock:
            if self.state == BreakerState.OPEN:
                if self.opened_at and (now - self.opened_at).total_seconds() >= self.half_open_seconds:
                    self.state = BreakerState.HALF_OPEN

            return self.state

    def is_open(self, now: datetime) -> bool:
        """Check if breaker is currently open (rejecting calls)."""
        return self.check_and_update_state(now) == BreakerState.OPEN
