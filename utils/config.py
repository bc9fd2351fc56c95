from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional


_TRUTHY = {"1", "true", "yes", "on"}


def load_environments(env_path: str = ".env") -> None:
    env_file = Path(env_path)
    if not env_file.exists():
        return

    for raw_line in env_file.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip("'").strip('"')
        # Real environment wins over the file.
        if key and key not in os.environ:
            os.environ[key] = value


def _env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in _TRUTHY


@dataclass(frozen=True)
class Settings:
    db_engine: str = "sqlite"
    sqlite_db_path: str = "data/querymind.db"
    db_host: Optional[str] = None
    db_port: int = 5432
    db_name: Optional[str] = None
    db_user: Optional[str] = None
    db_password: Optional[str] = None
    db_schema: str = "public"

    llm_provider: str = "openai"
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-3.5-turbo"
    openai_base_url: str = "https://api.openai.com/v1"
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-1.5-flash"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    ollama_model: Optional[str] = None
    ollama_base_url: Optional[str] = None
    llm_timeout_sec: float = 30.0
    llm_max_retries: int = 1

    query_timeout_ms: int = 15_000
    seed_sample_data: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env_path: str = ".env") -> "Settings":
        load_environments(env_path)
        return cls(
            db_engine=os.getenv("DB_ENGINE", "sqlite").strip().lower(),
            sqlite_db_path=os.getenv("SQLITE_DB_PATH", "data/querymind.db"),
            db_host=os.getenv("DB_HOST") or None,
            db_port=int(os.getenv("DB_PORT", "5432")),
            db_name=os.getenv("DB_NAME") or None,
            db_user=os.getenv("DB_USER") or None,
            db_password=os.getenv("DB_PASSWORD") or None,
            db_schema=os.getenv("DB_SCHEMA", "public"),
            llm_provider=os.getenv("LLM_PROVIDER", "openai").strip().lower(),
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            openai_model=os.getenv("OPENAI_MODEL", "gpt-3.5-turbo"),
            openai_base_url=os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1"),
            gemini_api_key=os.getenv("GEMINI_API_KEY") or None,
            gemini_model=os.getenv("GEMINI_MODEL", "gemini-1.5-flash"),
            gemini_base_url=os.getenv("GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"),
            ollama_model=os.getenv("OLLAMA_MODEL") or None,
            ollama_base_url=os.getenv("OLLAMA_BASE_URL") or None,
            llm_timeout_sec=float(os.getenv("LLM_TIMEOUT_SEC", "30")),
            llm_max_retries=int(os.getenv("LLM_MAX_RETRIES", "1")),
            query_timeout_ms=int(os.getenv("QUERY_TIMEOUT_MS", "15000")),
            seed_sample_data=_env_flag("SEED_SAMPLE_DATA"),
            log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper(),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
