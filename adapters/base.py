from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Tuple

from utils.config import Settings, get_settings


# (column, target_table, target_column)
ForeignKeyEdge = Tuple[str, str, str]
# (name, type_name, size, nullable)
ColumnRow = Tuple[str, str, int, bool]


class AdapterError(RuntimeError):
    pass


class DatabaseAdapter(ABC):
    engine: str = "unknown"

    def __init__(self, source_config: Optional[Dict[str, Any]] = None, settings: Optional[Settings] = None):
        self.source_config = source_config or {}
        self.settings = settings or get_settings()

    @abstractmethod
    def _connect(self):
        raise NotImplementedError

    @contextmanager
    def connection(self) -> Iterator[Any]:
        conn = self._connect()
        try:
            yield conn
        finally:
            conn.close()

    @abstractmethod
    def list_tables(self, conn) -> List[str]:
        raise NotImplementedError

    @abstractmethod
    def primary_keys(self, conn, table_name: str) -> List[str]:
        raise NotImplementedError

    @abstractmethod
    def foreign_keys(self, conn, table_name: str) -> List[ForeignKeyEdge]:
        raise NotImplementedError

    @abstractmethod
    def columns(self, conn, table_name: str) -> List[ColumnRow]:
        raise NotImplementedError

    @abstractmethod
    def execute_query(self, sql: str, timeout_ms: int) -> Tuple[List[str], List[Tuple[Any, ...]]]:
        """Run one statement and return (column names, rows) in result-set order."""
        raise NotImplementedError

    def execute_script(self, statements: List[str]) -> None:
        with self.connection() as conn:
            try:
                cur = conn.cursor()
                for statement in statements:
                    cur.execute(statement)
                conn.commit()
            except Exception:
                conn.rollback()
                raise
