"""
Server configuration, read once from the process environment.

    OPENAI_API_KEY        required
    OPENAI_MAX_RETRIES    client retry count (default 3)
    OPENAI_API_TIMEOUT    per-call timeout in ms (default 60000)
    SEARCH_CONTEXT_SIZE   low | medium | high (default medium)
    REASONING_EFFORT      low | medium | high (default medium)
    PROCESS_TIMEOUT       whole-process cap in ms, 0 disables (default 300000)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping


TIERS = ("low", "medium", "high")


class ConfigError(ValueError):
    """Raised when the environment holds an unusable setting."""


def _get(environ: Mapping[str, str], name: str, default: str = "") -> str:
    value = environ.get(name, "").strip()
    return value or default


def _get_int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = _get(environ, name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"Invalid {name}: {raw!r} is not an integer") from None
    if value < 0:
        raise ConfigError(f"Invalid {name}: {value} must not be negative")
    return value


def _get_tier(environ: Mapping[str, str], name: str, default: str = "medium") -> str:
    value = _get(environ, name, default).lower()
    if value not in TIERS:
        raise ConfigError(f"Invalid {name}: {value}. Supported values: {list(TIERS)}")
    return value


@dataclass(frozen=True)
class Settings:
    openai_api_key: str
    openai_max_retries: int = 3
    openai_api_timeout_ms: int = 60000
    search_context_size: str = "medium"
    reasoning_effort: str = "medium"
    process_timeout_ms: int = 300000

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if environ is None else environ

        api_key = _get(env, "OPENAI_API_KEY")
        if not api_key:
            raise ConfigError("OPENAI_API_KEY is not set")

        return cls(
            openai_api_key=api_key,
            openai_max_retries=_get_int(env, "OPENAI_MAX_RETRIES", 3),
            openai_api_timeout_ms=_get_int(env, "OPENAI_API_TIMEOUT", 60000),
            search_context_size=_get_tier(env, "SEARCH_CONTEXT_SIZE"),
            reasoning_effort=_get_tier(env, "REASONING_EFFORT"),
            process_timeout_ms=_get_int(env, "PROCESS_TIMEOUT", 300000),
        )

    @property
    def openai_api_timeout(self) -> float:
        """Per-call timeout in seconds, as the OpenAI client expects."""
        return self.openai_api_timeout_ms / 1000

    @property
    def process_timeout(self) -> float | None:
        """Whole-process cap in seconds, or None when disabled."""
        if self.process_timeout_ms == 0:
            return None
        return self.process_timeout_ms / 1000
