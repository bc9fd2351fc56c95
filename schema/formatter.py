"""Annotated schema text, the form both the LLM prompt and the heuristic composer read.

Grammar::

    schema  := table (NEWLINE table)*
    table   := NAME " (" NEWLINE column ("," NEWLINE column)* NEWLINE ")"
    column  := "  " IDENT " " TYPE [" [" annotation (", " annotation)* "]"]
    annotation := "PK" | "FK->" TABLE "." COLUMN ("|" TABLE "." COLUMN)*

NAME is the whole header line up to the trailing " (", so names with digits
first or embedded spaces survive a round trip. Text with no such header line
is read leniently: a word header may then also follow a comma or whitespace
(``users (id INT [PK]), orders (...)``), and column entries may be separated
by commas on a single line.
"""

from __future__ import annotations

import re
from typing import Dict, Iterator, List, Optional, Pattern, Tuple

from schema.models import Column, Schema, Table


_TABLE_LINE = re.compile(r"^(\S[^\n]*?) \([ \t\r]*$", flags=re.MULTILINE)
_INLINE_TABLE_HEADER = re.compile(r"(?:^|(?<=[\s,]))(\w+) \(", flags=re.MULTILINE)


def _format_column(col: Column) -> str:
    line = f"  {col.name} {col.type_name}".rstrip()
    annotations: List[str] = []
    if col.primary_key:
        annotations.append("PK")
    if col.foreign_key_targets:
        annotations.append("FK->" + "|".join(col.foreign_key_targets))
    if annotations:
        line += " [" + ", ".join(annotations) + "]"
    return line


def format_schema(schema: Schema) -> str:
    blocks: List[str] = []
    for table in schema.tables.values():
        lines = [_format_column(col) for col in table.columns]
        blocks.append(f"{table.name} (\n" + ",\n".join(lines) + "\n)")
    return "\n".join(blocks).strip()


def _iter_table_blocks(text: str, header: Pattern[str]) -> Iterator[Tuple[str, str]]:
    pos = 0
    while True:
        match = header.search(text, pos)
        if not match:
            return
        depth = 1
        idx = match.end()
        while idx < len(text) and depth:
            if text[idx] == "(":
                depth += 1
            elif text[idx] == ")":
                depth -= 1
            idx += 1
        if depth:
            # Unterminated body: nothing after this point is a table.
            return
        yield match.group(1), text[match.end() : idx - 1]
        pos = idx


def _split_column_entries(body: str) -> List[str]:
    entries: List[str] = []
    current: List[str] = []
    depth = 0
    for ch in body:
        if ch in "[(":
            depth += 1
        elif ch in "])":
            depth -= 1
        if depth == 0 and ch in ",\n":
            entries.append("".join(current))
            current = []
            continue
        current.append(ch)
    entries.append("".join(current))
    return [entry.strip() for entry in entries if entry.strip()]


def _parse_column(entry: str) -> Optional[Column]:
    annotations: List[str] = []
    before = entry
    bracket_idx = entry.find("[")
    if bracket_idx > -1 and entry.endswith("]"):
        before = entry[:bracket_idx]
        annotations = [ann.strip() for ann in entry[bracket_idx + 1 : -1].split(",") if ann.strip()]

    tokens = before.split(None, 1)
    if not tokens:
        return None
    col = Column(name=tokens[0], type_name=tokens[1].strip() if len(tokens) > 1 else "")
    for ann in annotations:
        if ann == "PK":
            col.primary_key = True
        elif ann.startswith("FK->"):
            col.foreign_key_targets = [target for target in ann[4:].split("|") if target]
    return col


def parse_schema(text: Optional[str]) -> Schema:
    schema = Schema()
    if not text or not text.strip():
        return schema
    blocks = list(_iter_table_blocks(text, _TABLE_LINE)) or list(_iter_table_blocks(text, _INLINE_TABLE_HEADER))
    for table_name, body in blocks:
        if table_name in schema.tables:
            continue
        table = Table(name=table_name)
        for entry in _split_column_entries(body):
            col = _parse_column(entry)
            if col is not None:
                table.columns.append(col)
        schema.add_table(table)
    return schema


def parse_table_names(text: Optional[str]) -> List[str]:
    return parse_schema(text).table_names()


def parse_foreign_keys(text: Optional[str]) -> Dict[str, Dict[str, str]]:
    """table -> column -> "target_table.target_column".

    Only the first ``|`` alternative of a multi-target foreign key is kept.
    """
    fk_map: Dict[str, Dict[str, str]] = {}
    for table in parse_schema(text).tables.values():
        col_to_fk = {col.name: col.foreign_key_targets[0] for col in table.columns if col.foreign_key_targets}
        if col_to_fk:
            fk_map[table.name] = col_to_fk
    return fk_map
