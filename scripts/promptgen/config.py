"""Environment-driven settings."""

from __future__ import annotations

import os
from typing import Optional

from pydantic import BaseModel, Field

from .utils.logging import logger

__all__ = ["Settings", "DEFAULT_MODELS", "DEFAULT_PERSONA_PATH"]


DEFAULT_MODELS = {
    "openai": "gpt-4o-mini",
    "anthropic": "claude-sonnet-4-20250514",
}
DEFAULT_PERSONA_PATH = "Persona/Memory.yaml"

_API_KEY_FALLBACKS = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
}


def _env_float(var_name: str, default: float) -> float:
    value = os.getenv(var_name)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError:
        logger.warning(f"Invalid float for {var_name}={value}. Keeping {default}.")
        return default


def _env_int(var_name: str, default: int, minimum: int = 1) -> int:
    value = os.getenv(var_name)
    if value is None or not value.strip():
        return default
    try:
        parsed = int(value)
    except ValueError:
        logger.warning(f"Invalid integer for {var_name}={value}. Keeping {default}.")
        return default
    if parsed < minimum:
        logger.warning(f"{var_name}={value} is below {minimum}. Keeping {default}.")
        return default
    return parsed


class Settings(BaseModel):
    """Runtime configuration for the chat client and CLI."""

    provider: str = Field(default="openai", description="openai or anthropic")
    model: Optional[str] = Field(default=None, description="Model override; provider default when unset")
    base_url: Optional[str] = Field(default=None, description="OpenAI-compatible endpoint")
    api_key: Optional[str] = Field(default=None)
    temperature: float = Field(default=0.7)
    timeout_s: float = Field(default=30.0)
    max_tokens: int = Field(default=1024, description="Completion cap; required by anthropic")
    persona_path: str = Field(default=DEFAULT_PERSONA_PATH)
    log_level: str = Field(default="INFO")

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from ``PROMPTGEN_*`` environment variables."""
        provider = (os.getenv("PROMPTGEN_PROVIDER") or "openai").strip().lower()
        api_key = os.getenv("PROMPTGEN_API_KEY")
        if not api_key and provider in _API_KEY_FALLBACKS:
            api_key = os.getenv(_API_KEY_FALLBACKS[provider])

        return cls(
            provider=provider,
            model=os.getenv("PROMPTGEN_MODEL") or None,
            base_url=os.getenv("PROMPTGEN_BASE_URL") or None,
            api_key=api_key or None,
            temperature=_env_float("PROMPTGEN_TEMPERATURE", 0.7),
            timeout_s=_env_float("PROMPTGEN_TIMEOUT", 30.0),
            max_tokens=_env_int("PROMPTGEN_MAX_TOKENS", 1024),
            persona_path=os.getenv("PROMPTGEN_PERSONA_PATH") or DEFAULT_PERSONA_PATH,
            log_level=(os.getenv("PROMPTGEN_LOG_LEVEL") or "INFO").upper(),
        )
