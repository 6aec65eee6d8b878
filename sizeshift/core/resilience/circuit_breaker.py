"""Per-service circuit breakers.

A breaker moves ``closed -> open`` after ``failure_threshold`` consecutive
failures, short-circuits every call while open, admits a single half-open
trial once ``timeout_seconds`` have passed since the last failure, and closes
again after ``success_threshold`` consecutive trial successes. Any half-open
failure reopens it.

State is only mutated under the breaker's own lock; the primary and fallback
callables run outside it.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import asdict, dataclass
from typing import Any, TypeVar

from ..config import BreakerConfig
from ..errors import ServiceUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")

CLOSED = "closed"
OPEN = "open"
HALF_OPEN = "half_open"


@dataclass
class CircuitState:
    service: str
    state: str = CLOSED
    consecutive_failures: int = 0
    consecutive_successes: int = 0
    last_failure_at: float | None = None
    total_requests: int = 0
    total_failures: int = 0
    total_successes: int = 0
    short_circuited: int = 0


class CircuitBreaker:
    def __init__(
        self,
        service: str,
        config: BreakerConfig | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        excluded: tuple[type[BaseException], ...] = (),
    ) -> None:
        self.service = service
        self.config = config or BreakerConfig()
        self.excluded = excluded
        self._clock = clock
        self._lock = threading.Lock()
        self._state = CircuitState(service=service)
        self._trial_in_flight = False

    @property
    def state(self) -> str:
        with self._lock:
            return self._state.state

    def _admit(self) -> tuple[bool, bool]:
        """Return ``(admitted, is_trial)`` for the next call."""
        with self._lock:
            self._state.total_requests += 1
            current = self._state
            if current.state == CLOSED:
                return True, False
            if current.state == OPEN:
                opened_at = current.last_failure_at or 0.0
                if self._clock() - opened_at < self.config.timeout_seconds:
                    current.short_circuited += 1
                    return False, False
                logger.info("Circuit %s half-open, admitting trial call", self.service)
                current.state = HALF_OPEN
                current.consecutive_successes = 0
            if self._trial_in_flight:
                current.short_circuited += 1
                return False, False
            self._trial_in_flight = True
            return True, True

    def _record_success(self, is_trial: bool) -> None:
        with self._lock:
            current = self._state
            current.total_successes += 1
            if is_trial:
                self._trial_in_flight = False
            if current.state == HALF_OPEN:
                current.consecutive_successes += 1
                if current.consecutive_successes >= self.config.success_threshold:
                    logger.info("Circuit %s closed after %d successful trials", self.service, current.consecutive_successes)
                    current.state = CLOSED
                    current.consecutive_failures = 0
                    current.consecutive_successes = 0
            else:
                current.consecutive_failures = 0

    def _record_failure(self, is_trial: bool, exc: BaseException) -> None:
        with self._lock:
            current = self._state
            current.total_failures += 1
            if is_trial:
                self._trial_in_flight = False
            if current.state == HALF_OPEN:
                logger.warning("Circuit %s reopened, trial call failed: %s", self.service, exc)
                self._open(current)
                return
            current.consecutive_failures += 1
            if current.consecutive_failures >= self.config.failure_threshold:
                logger.warning(
                    "Circuit %s opened after %d consecutive failures: %s",
                    self.service,
                    current.consecutive_failures,
                    exc,
                )
                self._open(current)

    def _open(self, current: CircuitState) -> None:
        current.state = OPEN
        current.last_failure_at = self._clock()
        current.consecutive_failures = 0
        current.consecutive_successes = 0

    def call(self, primary: Callable[[], T], fallback: Callable[[], T] | None = None) -> T:
        admitted, is_trial = self._admit()
        if not admitted:
            if fallback is not None:
                return fallback()
            raise ServiceUnavailableError(f"Circuit {self.service} is open: no fallback available")

        try:
            result = primary()
        except self.excluded:
            self._record_success(is_trial)
            raise
        except Exception as exc:
            self._record_failure(is_trial, exc)
            if fallback is not None:
                logger.debug("Circuit %s primary failed, using fallback: %s", self.service, exc)
                return fallback()
            raise
        self._record_success(is_trial)
        return result

    def reset(self) -> None:
        with self._lock:
            self._state = CircuitState(service=self.service)
            self._trial_in_flight = False
        logger.info("Circuit %s reset", self.service)

    def snapshot(self) -> CircuitState:
        with self._lock:
            return CircuitState(**asdict(self._state))

    def stats(self) -> dict[str, Any]:
        snap = self.snapshot()
        data = asdict(snap)
        data["failure_rate"] = snap.total_failures / snap.total_requests if snap.total_requests else 0.0
        return data


class CircuitBreakerRegistry:
    """Named breakers, one per upstream service, created on first use."""

    def __init__(
        self,
        config: BreakerConfig | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        excluded: tuple[type[BaseException], ...] = (),
    ) -> None:
        self.config = config or BreakerConfig()
        self._clock = clock
        self._excluded = excluded
        self._lock = threading.Lock()
        self._breakers: dict[str, CircuitBreaker] = {}

    def get(self, service: str) -> CircuitBreaker:
        with self._lock:
            breaker = self._breakers.get(service)
            if breaker is None:
                breaker = CircuitBreaker(service, self.config, clock=self._clock, excluded=self._excluded)
                self._breakers[service] = breaker
            return breaker

    def call(self, service: str, primary: Callable[[], T], fallback: Callable[[], T] | None = None) -> T:
        return self.get(service).call(primary, fallback)

    def reset(self, service: str) -> None:
        self.get(service).reset()

    def stats(self, service: str | None = None) -> dict[str, Any]:
        if service is not None:
            return self.get(service).stats()
        with self._lock:
            breakers = list(self._breakers.values())
        return {breaker.service: breaker.stats() for breaker in breakers}

    def services(self) -> list[str]:
        with self._lock:
            return sorted(self._breakers)


__all__ = [
    "CLOSED",
    "CircuitBreaker",
    "CircuitBreakerRegistry",
    "CircuitState",
    "HALF_OPEN",
    "OPEN",
]
