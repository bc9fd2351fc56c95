from __future__ import annotations

from collections import defaultdict
from typing import Dict, List, Optional

import structlog

from adapters.base import DatabaseAdapter
from adapters.factory import get_adapter
from schema.models import Column, Schema, Table

logger = structlog.get_logger(__name__)


class IntrospectionError(RuntimeError):
    pass


def _introspect_table(adapter: DatabaseAdapter, conn, table_name: str) -> Table:
    primary_keys = set(adapter.primary_keys(conn, table_name))

    fk_targets: Dict[str, List[str]] = defaultdict(list)
    for column_name, target_table, target_column in adapter.foreign_keys(conn, table_name):
        fk_targets[column_name].append(f"{target_table}.{target_column}")

    table = Table(name=table_name)
    for name, type_name, size, nullable in adapter.columns(conn, table_name):
        table.columns.append(
            Column(
                name=name,
                type_name=type_name,
                size=int(size or 0),
                nullable=bool(nullable),
                primary_key=name in primary_keys,
                foreign_key_targets=list(fk_targets.get(name, [])),
            )
        )
    return table


def introspect_schema(adapter: Optional[DatabaseAdapter] = None) -> Schema:
    adapter = adapter or get_adapter()
    schema = Schema()
    try:
        with adapter.connection() as conn:
            for table_name in adapter.list_tables(conn):
                table = _introspect_table(adapter, conn, table_name)
                # Permission gaps or a concurrent DROP can leave a table without visible columns.
                if not table.columns:
                    logger.debug("table_skipped_no_columns", table=table_name)
                    continue
                schema.add_table(table)
    except Exception as exc:
        logger.error("schema_introspection_failed", engine=adapter.engine, error=str(exc))
        raise IntrospectionError(f"Failed to retrieve database schema: {exc}") from exc

    logger.info("schema_introspected", engine=adapter.engine, table_count=len(schema))
    return schema
