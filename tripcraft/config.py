"""Runtime configuration for TripCraft."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional


_TRUTHY = {"1", "true", "yes", "on"}


def _env_float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(env: Mapping[str, str], key: str) -> Optional[int]:
    raw = env.get(key)
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def _env_flag(env: Mapping[str, str], key: str, default: bool) -> bool:
    raw = env.get(key)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in _TRUTHY


@dataclass(frozen=True)
class Settings:
    """Explicit configuration passed to every service that talks to the network."""

    openai_api_key: Optional[str] = None
    openai_base_url: str = "https://api.openai.com/v1"
    model: str = "gpt-4o"
    light_model: str = "gpt-4o-mini"
    temperature: float = 0.7
    llm_timeout: Optional[float] = 60.0
    max_tokens: Optional[int] = None
    unsplash_access_key: Optional[str] = None
    openweather_api_key: Optional[str] = None
    http_timeout: float = 10.0
    history_path: Optional[Path] = None
    packing_list_enabled: bool = True
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from environment variables (``os.environ`` by default)."""

        env = os.environ if env is None else env
        history_path = env.get("TRIPCRAFT_HISTORY_PATH")
        return cls(
            openai_api_key=env.get("OPENAI_API_KEY") or None,
            openai_base_url=env.get("OPENAI_BASE_URL") or cls.openai_base_url,
            model=env.get("OPENAI_MODEL") or cls.model,
            light_model=env.get("OPENAI_LIGHT_MODEL") or cls.light_model,
            temperature=_env_float(env, "LLM_TEMPERATURE", cls.temperature),
            llm_timeout=_env_float(env, "LLM_TIMEOUT", 60.0),
            max_tokens=_env_int(env, "LLM_MAX_TOKENS"),
            unsplash_access_key=env.get("UNSPLASH_ACCESS_KEY") or None,
            openweather_api_key=env.get("OPENWEATHER_API_KEY") or None,
            http_timeout=_env_float(env, "HTTP_TIMEOUT", cls.http_timeout),
            history_path=Path(history_path).expanduser() if history_path else None,
            packing_list_enabled=_env_flag(env, "TRIPCRAFT_PACKING_LIST", True),
            log_level=(env.get("LOG_LEVEL") or cls.log_level).upper(),
        )


__all__ = ["Settings"]
