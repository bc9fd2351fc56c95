from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import structlog

from adapters.base import DatabaseAdapter
from adapters.factory import get_adapter
from utils.config import get_settings

logger = structlog.get_logger(__name__)


class ExecutionPolicyViolation(ValueError):
    pass


class ExecutionRuntimeError(RuntimeError):
    pass


@dataclass
class ExecutionResult:
    success: bool
    rows: Optional[List[Dict[str, Any]]] = None
    row_count: int = 0
    error: Optional[str] = None


def validate_sql(sql: str) -> str:
    # Prefix check only: comments and trailing statements are not inspected.
    normalized = (sql or "").strip().upper()
    if not normalized.startswith("SELECT"):
        raise ExecutionPolicyViolation("Only SELECT queries are allowed for execution")
    return sql.strip()


def _materialize(adapter: DatabaseAdapter, sql: str, timeout_ms: int) -> List[Dict[str, Any]]:
    try:
        columns, rows = adapter.execute_query(sql, timeout_ms=timeout_ms)
    except Exception as exc:
        raise ExecutionRuntimeError(str(exc)) from exc
    return [{columns[i]: row[i] for i in range(len(columns))} for row in rows]


def execute_safe_query(
    sql: str,
    adapter: Optional[DatabaseAdapter] = None,
    timeout_ms: Optional[int] = None,
) -> ExecutionResult:
    timeout_ms = get_settings().query_timeout_ms if timeout_ms is None else timeout_ms
    if timeout_ms <= 0:
        raise ValueError("timeout_ms must be positive")

    try:
        safe_sql = validate_sql(sql)
    except ExecutionPolicyViolation as exc:
        logger.warning("sql_rejected", reason=str(exc))
        return ExecutionResult(success=False, error=str(exc))

    adapter = adapter or get_adapter()
    try:
        rows = _materialize(adapter, safe_sql, timeout_ms)
    except ExecutionRuntimeError as exc:
        logger.error("sql_execution_failed", engine=adapter.engine, error=str(exc))
        return ExecutionResult(success=False, error=f"Query execution failed: {exc}")

    logger.info("sql_executed", engine=adapter.engine, row_count=len(rows))
    return ExecutionResult(success=True, rows=rows, row_count=len(rows))
