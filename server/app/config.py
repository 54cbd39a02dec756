"""Configuration helpers for the coordination service."""
from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_list(name: str, default: str) -> tuple[str, ...]:
    raw = os.getenv(name, default)
    return tuple(item.strip() for item in raw.split(",") if item.strip())


@dataclass
class Settings:
    """Centralized environment-driven configuration.

    Values are read once when the module is imported; reload the module to pick
    up environment changes.
    """

    openai_api_key: Optional[str] = os.getenv("OPENAI_API_KEY")
    openai_base_url: Optional[str] = os.getenv("OPENAI_BASE_URL")
    completion_model: str = os.getenv("COMPLETION_MODEL", "gpt-4o-mini")
    # "chat" calls chat.completions directly, "agents" goes through openai-agents Runner
    completion_backend: str = os.getenv("COMPLETION_BACKEND", "chat")
    agent_temperature: float = float(os.getenv("AGENT_TEMPERATURE", "0.7"))
    synthesis_temperature: float = float(os.getenv("SYNTHESIS_TEMPERATURE", "0.5"))
    openai_timeout_seconds: float = float(os.getenv("OPENAI_TIMEOUT_SECONDS", "60"))
    openai_max_retries: int = int(os.getenv("OPENAI_MAX_RETRIES", "0"))

    supabase_url: Optional[str] = os.getenv("SUPABASE_URL")
    supabase_service_role_key: Optional[str] = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
    agents_table: str = os.getenv("AGENTS_TABLE", "ai_agents")
    sessions_table: str = os.getenv("SESSIONS_TABLE", "multi_agent_sessions")
    memory_rpc: str = os.getenv("MEMORY_RPC", "store_user_memory")

    mark_failed_sessions: bool = _env_flag("COORDINATION_MARK_FAILED_SESSIONS", True)
    # comma-separated; "*" allows any browser origin
    cors_allow_origins: tuple[str, ...] = _env_list("CORS_ALLOW_ORIGINS", "*")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached settings instance to avoid repeated environment reads."""

    return Settings()


settings = get_settings()
