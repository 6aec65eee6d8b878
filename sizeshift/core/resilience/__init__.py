from .circuit_breaker import CLOSED, HALF_OPEN, OPEN, CircuitBreaker, CircuitBreakerRegistry, CircuitState
from .retry import backoff_delay, retry_with_backoff

__all__ = [
    "CLOSED",
    "CircuitBreaker",
    "CircuitBreakerRegistry",
    "CircuitState",
    "HALF_OPEN",
    "OPEN",
    "backoff_delay",
    "retry_with_backoff",
]
