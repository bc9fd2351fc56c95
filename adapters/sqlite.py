from __future__ import annotations

import re
import sqlite3
from pathlib import Path
from typing import Any, List, Tuple

from adapters.base import ColumnRow, DatabaseAdapter, ForeignKeyEdge


_DECLARED_TYPE = re.compile(r"^\s*([A-Za-z][A-Za-z ]*?)\s*(?:\(\s*(\d+)\s*(?:,\s*\d+\s*)?\))?\s*$")


def _split_declared_type(declared: str) -> Tuple[str, int]:
    """`VARCHAR(100)` -> ("VARCHAR", 100), `DECIMAL(10,2)` -> ("DECIMAL", 10)."""
    match = _DECLARED_TYPE.match(declared or "")
    if not match:
        return (declared or "").strip().upper(), 0
    type_name = match.group(1).strip().upper()
    size = int(match.group(2)) if match.group(2) else 0
    return type_name, size


class SQLiteAdapter(DatabaseAdapter):
    engine = "sqlite"

    def _db_path(self) -> str:
        raw = self.source_config.get("db_path") or self.settings.sqlite_db_path
        if not raw:
            raise ValueError("SQLITE_DB_PATH is required for sqlite adapter")
        if raw != ":memory:":
            Path(str(raw)).parent.mkdir(parents=True, exist_ok=True)
        return str(raw)

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path())
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def list_tables(self, conn) -> List[str]:
        cur = conn.execute(
            """
            SELECT name
            FROM sqlite_master
            WHERE type = 'table'
              AND name NOT LIKE 'sqlite_%'
            ORDER BY name
            """
        )
        return [row[0] for row in cur.fetchall()]

    def _table_info(self, conn, table_name: str) -> List[Tuple[Any, ...]]:
        return conn.execute(f'PRAGMA table_info("{table_name}")').fetchall()

    def primary_keys(self, conn, table_name: str) -> List[str]:
        # pk column holds the 1-based position inside a composite key.
        keyed = [row for row in self._table_info(conn, table_name) if row[5]]
        return [row[1] for row in sorted(keyed, key=lambda row: row[5])]

    def foreign_keys(self, conn, table_name: str) -> List[ForeignKeyEdge]:
        edges: List[ForeignKeyEdge] = []
        for fk in conn.execute(f'PRAGMA foreign_key_list("{table_name}")').fetchall():
            target_table, local_column, target_column = fk[2], fk[3], fk[4]
            if target_column is None:
                # REFERENCES t without a column list points at t's primary key.
                target_pks = self.primary_keys(conn, target_table)
                if not target_pks:
                    continue
                target_column = target_pks[0]
            edges.append((local_column, target_table, target_column))
        return edges

    def columns(self, conn, table_name: str) -> List[ColumnRow]:
        out: List[ColumnRow] = []
        for row in self._table_info(conn, table_name):
            type_name, size = _split_declared_type(str(row[2] or ""))
            out.append((row[1], type_name, size, row[3] == 0))
        return out

    def execute_query(self, sql: str, timeout_ms: int) -> Tuple[List[str], List[Tuple[Any, ...]]]:
        with self.connection() as conn:
            conn.execute(f"PRAGMA busy_timeout = {int(timeout_ms)}")
            cur = conn.execute(sql)
            columns = [desc[0] for desc in cur.description or []]
            rows = cur.fetchall()
            return columns, rows
