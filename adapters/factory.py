from __future__ import annotations

from typing import Any, Dict, Optional

from adapters.base import AdapterError, DatabaseAdapter
from adapters.postgres import PostgresAdapter
from adapters.sqlite import SQLiteAdapter
from utils.config import Settings, get_settings


def get_adapter(
    db_engine: Optional[str] = None,
    source_config: Optional[Dict[str, Any]] = None,
    settings: Optional[Settings] = None,
) -> DatabaseAdapter:
    settings = settings or get_settings()
    engine = (db_engine or settings.db_engine or "sqlite").strip().lower()
    if engine in {"postgres", "postgresql"}:
        return PostgresAdapter(source_config=source_config, settings=settings)
    if engine == "sqlite":
        return SQLiteAdapter(source_config=source_config, settings=settings)
    raise AdapterError(f"Unsupported db_engine: {engine}")
