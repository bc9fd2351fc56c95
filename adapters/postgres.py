from __future__ import annotations

from typing import Any, Dict, List, Tuple

from adapters.base import ColumnRow, DatabaseAdapter, ForeignKeyEdge


class PostgresAdapter(DatabaseAdapter):
    engine = "postgres"

    def _db_params(self) -> Dict[str, Any]:
        host = self.source_config.get("host") or self.settings.db_host
        dbname = self.source_config.get("dbname") or self.settings.db_name
        user = self.source_config.get("user") or self.settings.db_user
        password = self.source_config.get("password") or self.settings.db_password
        port_raw = self.source_config.get("port") or self.settings.db_port
        if not host:
            raise ValueError("DB_HOST is required")
        if not dbname:
            raise ValueError("DB_NAME is required")
        if not user:
            raise ValueError("DB_USER is required")
        if not password:
            raise ValueError("DB_PASSWORD is required")
        return {
            "host": host,
            "port": int(port_raw),
            "dbname": dbname,
            "user": user,
            "password": password,
        }

    @property
    def schema_name(self) -> str:
        return self.source_config.get("schema_name") or self.settings.db_schema or "public"

    def _connect(self):
        params = self._db_params()
        try:
            import psycopg  # type: ignore

            return psycopg.connect(**params)
        except ImportError:
            try:
                import psycopg2  # type: ignore

                return psycopg2.connect(**params)
            except ImportError as exc:
                raise ImportError(
                    "No PostgreSQL driver found. Install one of: "
                    '`python -m pip install "psycopg[binary]"` or `python -m pip install psycopg2-binary`.'
                ) from exc

    def _fetch(self, conn, sql: str, params: Tuple[Any, ...]) -> List[Tuple[Any, ...]]:
        with conn.cursor() as cur:
            cur.execute(sql, params)
            return cur.fetchall()

    def list_tables(self, conn) -> List[str]:
        rows = self._fetch(
            conn,
            """
            SELECT table_name
            FROM information_schema.tables
            WHERE table_schema = %s
              AND table_type = 'BASE TABLE'
            ORDER BY table_name
            """,
            (self.schema_name,),
        )
        return [row[0] for row in rows]

    def primary_keys(self, conn, table_name: str) -> List[str]:
        rows = self._fetch(
            conn,
            """
            SELECT kcu.column_name
            FROM information_schema.table_constraints tc
            JOIN information_schema.key_column_usage kcu
              ON tc.constraint_name = kcu.constraint_name
             AND tc.table_schema = kcu.table_schema
            WHERE tc.table_schema = %s
              AND tc.table_name = %s
              AND tc.constraint_type = 'PRIMARY KEY'
            ORDER BY kcu.ordinal_position
            """,
            (self.schema_name, table_name),
        )
        return [row[0] for row in rows]

    def foreign_keys(self, conn, table_name: str) -> List[ForeignKeyEdge]:
        rows = self._fetch(
            conn,
            """
            SELECT
                kcu.column_name AS source_column,
                ref.table_name AS target_table,
                ref.column_name AS target_column
            FROM information_schema.table_constraints tc
            JOIN information_schema.key_column_usage kcu
              ON tc.constraint_name = kcu.constraint_name
             AND tc.constraint_schema = kcu.constraint_schema
            JOIN information_schema.referential_constraints rc
              ON rc.constraint_name = tc.constraint_name
             AND rc.constraint_schema = tc.constraint_schema
            JOIN information_schema.key_column_usage ref
              ON ref.constraint_name = rc.unique_constraint_name
             AND ref.constraint_schema = rc.unique_constraint_schema
             AND ref.ordinal_position = kcu.position_in_unique_constraint
            WHERE tc.table_schema = %s
              AND tc.table_name = %s
              AND tc.constraint_type = 'FOREIGN KEY'
            ORDER BY tc.constraint_name, kcu.ordinal_position
            """,
            (self.schema_name, table_name),
        )
        return [(src_col, tgt_table, tgt_col) for src_col, tgt_table, tgt_col in rows]

    def columns(self, conn, table_name: str) -> List[ColumnRow]:
        rows = self._fetch(
            conn,
            """
            SELECT
                column_name,
                data_type,
                COALESCE(character_maximum_length, numeric_precision, 0) AS column_size,
                is_nullable
            FROM information_schema.columns
            WHERE table_schema = %s
              AND table_name = %s
            ORDER BY ordinal_position
            """,
            (self.schema_name, table_name),
        )
        return [(name, data_type, int(size or 0), is_nullable == "YES") for name, data_type, size, is_nullable in rows]

    def execute_query(self, sql: str, timeout_ms: int) -> Tuple[List[str], List[Tuple[Any, ...]]]:
        with self.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(f"SET statement_timeout = '{int(timeout_ms)}ms'")
                cur.execute(sql)
                columns = [desc[0] for desc in cur.description or []]
                rows = cur.fetchall() if columns else []
                return columns, rows
