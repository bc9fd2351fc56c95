from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from schema.formatter import parse_foreign_keys, parse_table_names


COUNT_PHRASES = ("count", "how many", "number of")
PLACEHOLDER_TABLE = "table_name"


@dataclass
class QueryIntent:
    mentioned_tables: List[str] = field(default_factory=list)
    wants_count: bool = False


def detect_intent(text: str, table_names: List[str]) -> QueryIntent:
    # Plain substring containment: "order" also matches "orders" and "reorder".
    lowered = (text or "").lower()
    mentioned = [name for name in table_names if name.lower() in lowered]
    wants_count = any(phrase in lowered for phrase in COUNT_PHRASES)
    return QueryIntent(mentioned_tables=mentioned, wants_count=wants_count)


def _split_target(target: str) -> Optional[tuple]:
    table, sep, column = target.partition(".")
    if not sep or not table or not column:
        return None
    return table, column


def _find_edge(source: str, target: str, fk_map: Dict[str, Dict[str, str]]) -> Optional[str]:
    for column, fk_target in fk_map.get(source, {}).items():
        parts = _split_target(fk_target)
        if parts and parts[0].lower() == target.lower():
            return f"{source}.{column} = {target}.{parts[1]}"
    return None


def infer_join(base: str, other: str, fk_map: Dict[str, Dict[str, str]]) -> Optional[str]:
    """Single-hop join condition between two tables, base-side edges first."""
    return _find_edge(base, other, fk_map) or _find_edge(other, base, fk_map)


def _single_table_sql(table: str, wants_count: bool) -> str:
    if wants_count:
        return f"SELECT COUNT(*) AS cnt FROM {table};"
    return f"SELECT * FROM {table};"


def _placeholder_sql(wants_count: bool) -> str:
    if wants_count:
        return f"SELECT COUNT(*) FROM {PLACEHOLDER_TABLE};"
    return f"SELECT * FROM {PLACEHOLDER_TABLE};"


def _join_sql(base: str, other: str, condition: str, wants_count: bool) -> str:
    select_part = "COUNT(*) AS cnt" if wants_count else f"{base}.*, {other}.*"
    return f"SELECT {select_part} FROM {base} JOIN {other} ON {condition};"


def generate_basic_sql(text: Optional[str], schema_text: Optional[str]) -> str:
    if not text or not text.strip():
        return _placeholder_sql(wants_count=False)

    intent = detect_intent(text, parse_table_names(schema_text))
    mentioned = intent.mentioned_tables

    if not mentioned:
        return _placeholder_sql(intent.wants_count)

    if len(mentioned) >= 2:
        # Only the first two mentions take part in join inference.
        base, other = mentioned[0], mentioned[1]
        condition = infer_join(base, other, parse_foreign_keys(schema_text))
        if condition:
            return _join_sql(base, other, condition, intent.wants_count)

    return _single_table_sql(mentioned[0], intent.wants_count)
