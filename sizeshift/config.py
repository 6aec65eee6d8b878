"""Shared runtime settings for the CLI and logging adapters.

This module owns environment-backed application settings. It is kept
separate from ``sizeshift.core.config`` because core config only carries the
pipeline tuning knobs and stays framework-agnostic.
"""

import os
from dataclasses import dataclass
from functools import lru_cache

DEFAULT_AI_MODEL = "claude-3-5-haiku-latest"


@dataclass(frozen=True)
class Settings:
    app_name: str
    debug: bool
    log_verbosity: str
    anthropic_api_key: str | None
    ai_model: str
    ai_max_tokens: int
    user_agent: str | None


def _env_bool(name: str, default: bool = False) -> bool:
    val = os.getenv(name)
    if val is None:
        return default
    return val.strip().lower() in {"1", "true", "yes", "on"}


def _env_choice(name: str, default: str, *, allowed: set[str]) -> str:
    val = os.getenv(name)
    if val is None:
        return default
    normalized = val.strip().lower()
    if normalized in allowed:
        return normalized
    return default


def _env_int(name: str, default: int) -> int:
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    try:
        return int(val.strip())
    except ValueError:
        return default


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings(
        app_name=os.getenv("APP_NAME", "SizeShift"),
        debug=_env_bool("DEBUG", default=False),
        log_verbosity=_env_choice(
            "LOG_VERBOSITY",
            default="medium",
            allowed={"low", "medium", "high", "extrahigh"},
        ),
        anthropic_api_key=os.getenv("ANTHROPIC_API_KEY") or None,
        ai_model=os.getenv("SIZESHIFT_AI_MODEL", DEFAULT_AI_MODEL),
        ai_max_tokens=_env_int("SIZESHIFT_AI_MAX_TOKENS", 200),
        user_agent=os.getenv("SIZESHIFT_USER_AGENT") or None,
    )


__all__ = ["DEFAULT_AI_MODEL", "Settings", "get_settings"]
