"""Runtime configuration.

Settings are read from environment variables. A `.env` file at the repo
root is loaded first if it exists.

Usage:
    from core.config import get_settings

    settings = get_settings()
    if settings.text_backend == "offline":
        ...
"""

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


REPO_ROOT = Path(__file__).resolve().parents[1]

env_path = REPO_ROOT / ".env"
if env_path.exists():
    load_dotenv(env_path)


TEXT_BACKEND_OPENAI = "openai"
TEXT_BACKEND_OFFLINE = "offline"


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {value!r}")


@dataclass(frozen=True)
class Settings:
    """Application settings."""

    # Text generation
    openai_api_key: Optional[str] = None
    llm_model: str = "gpt-4o"
    llm_timeout_seconds: float = 60.0
    text_backend: str = TEXT_BACKEND_OPENAI

    # Mock data sources
    mock_latency_ms: float = 500.0

    # Transition engine update policy
    rollback_on_failure: bool = True

    # Dashboard audit trail (in-memory only when unset)
    audit_dir: Optional[str] = None

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    # Mock login
    demo_email: str = "ayush.officer@gov.in"
    demo_password: str = "password123"

    # Temporal
    temporal_endpoint: Optional[str] = None
    temporal_namespace: str = "default"
    temporal_api_key: Optional[str] = None
    temporal_task_queue: str = "trace-recall"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the current environment."""
        text_backend = os.getenv("TRACE_TEXT_BACKEND", TEXT_BACKEND_OPENAI).strip().lower()
        if text_backend not in (TEXT_BACKEND_OPENAI, TEXT_BACKEND_OFFLINE):
            raise ValueError(
                f"TRACE_TEXT_BACKEND must be '{TEXT_BACKEND_OPENAI}' or "
                f"'{TEXT_BACKEND_OFFLINE}', got {text_backend!r}"
            )

        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            llm_model=os.getenv("TRACE_LLM_MODEL", cls.llm_model),
            llm_timeout_seconds=_env_float("TRACE_LLM_TIMEOUT_SECONDS", cls.llm_timeout_seconds),
            text_backend=text_backend,
            mock_latency_ms=_env_float("TRACE_MOCK_LATENCY_MS", cls.mock_latency_ms),
            rollback_on_failure=_env_bool("TRACE_ROLLBACK_ON_FAILURE", cls.rollback_on_failure),
            audit_dir=os.getenv("TRACE_AUDIT_DIR") or None,
            log_level=os.getenv("TRACE_LOG_LEVEL", cls.log_level).upper(),
            log_json=_env_bool("TRACE_LOG_JSON", cls.log_json),
            demo_email=os.getenv("TRACE_DEMO_EMAIL", cls.demo_email),
            demo_password=os.getenv("TRACE_DEMO_PASSWORD", cls.demo_password),
            temporal_endpoint=os.getenv("TEMPORAL_ENDPOINT") or None,
            temporal_namespace=os.getenv("TEMPORAL_NAMESPACE", cls.temporal_namespace),
            temporal_api_key=os.getenv("TEMPORAL_API_KEY") or None,
            temporal_task_queue=os.getenv("TEMPORAL_TASK_QUEUE", cls.temporal_task_queue),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the process-wide settings (read once)."""
    return Settings.from_env()
