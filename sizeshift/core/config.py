"""Core engine configuration.

Core config is side-effect free: it does not load dotenv files. Values read
from the environment are validated eagerly so a bad deployment fails at
startup rather than on the first request.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field


@dataclass(frozen=True)
class BreakerConfig:
    failure_threshold: int = 5
    timeout_seconds: float = 60.0
    success_threshold: int = 3


@dataclass(frozen=True)
class CacheConfig:
    ttl_seconds: float = 3600.0
    sweep_interval_ms: int = 300_000

    @property
    def sweep_interval_seconds(self) -> float:
        return self.sweep_interval_ms / 1000.0


@dataclass(frozen=True)
class FetchConfig:
    max_retries: int = 3
    request_timeout_ms: int = 30_000
    resolve_timeout_ms: int = 10_000
    max_redirects: int = 5
    backoff_base_seconds: float = 1.0

    @property
    def request_timeout(self) -> float:
        return self.request_timeout_ms / 1000.0

    @property
    def resolve_timeout(self) -> float:
        return self.resolve_timeout_ms / 1000.0


@dataclass(frozen=True)
class CoreConfig:
    breaker: BreakerConfig = field(default_factory=BreakerConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    fetch: FetchConfig = field(default_factory=FetchConfig)
    ai_enabled: bool = True
    min_confidence: float = 0.0
    debug: bool = False

    def validate(self) -> "CoreConfig":
        positive = {
            "breaker.failure_threshold": self.breaker.failure_threshold,
            "breaker.timeout_seconds": self.breaker.timeout_seconds,
            "breaker.success_threshold": self.breaker.success_threshold,
            "cache.ttl_seconds": self.cache.ttl_seconds,
            "cache.sweep_interval_ms": self.cache.sweep_interval_ms,
            "fetch.max_retries": self.fetch.max_retries,
            "fetch.request_timeout_ms": self.fetch.request_timeout_ms,
            "fetch.resolve_timeout_ms": self.fetch.resolve_timeout_ms,
            "fetch.max_redirects": self.fetch.max_redirects,
        }
        for name, value in positive.items():
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value!r}")
        if self.fetch.backoff_base_seconds < 0:
            raise ValueError("fetch.backoff_base_seconds must not be negative")
        if not 0.0 <= self.min_confidence <= 1.0:
            raise ValueError("min_confidence must be between 0 and 1")
        return self


def _env_number(name: str, default: float, cast: type) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw.strip())
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def config_from_env(*, debug: bool = False) -> CoreConfig:
    config = CoreConfig(
        breaker=BreakerConfig(
            failure_threshold=_env_number("SIZESHIFT_BREAKER_FAILURE_THRESHOLD", 5, int),
            timeout_seconds=_env_number("SIZESHIFT_BREAKER_TIMEOUT_SECONDS", 60.0, float),
            success_threshold=_env_number("SIZESHIFT_BREAKER_SUCCESS_THRESHOLD", 3, int),
        ),
        cache=CacheConfig(
            ttl_seconds=_env_number("SIZESHIFT_CACHE_TTL_SECONDS", 3600.0, float),
            sweep_interval_ms=_env_number("SIZESHIFT_CACHE_SWEEP_INTERVAL_MS", 300_000, int),
        ),
        fetch=FetchConfig(
            max_retries=_env_number("SIZESHIFT_FETCH_MAX_RETRIES", 3, int),
            request_timeout_ms=_env_number("SIZESHIFT_FETCH_REQUEST_TIMEOUT_MS", 30_000, int),
            resolve_timeout_ms=_env_number("SIZESHIFT_RESOLVE_TIMEOUT_MS", 10_000, int),
            max_redirects=_env_number("SIZESHIFT_MAX_REDIRECTS", 5, int),
        ),
        ai_enabled=_env_bool("SIZESHIFT_AI_ENABLED", True),
        debug=debug,
    )
    return config.validate()


__all__ = ["BreakerConfig", "CacheConfig", "CoreConfig", "FetchConfig", "config_from_env"]
