from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass
class Column:
    name: str
    type_name: str
    size: int = 0
    nullable: bool = True
    primary_key: bool = False
    foreign_key_targets: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type_name,
            "size": self.size,
            "nullable": self.nullable,
            "primaryKey": self.primary_key,
            "foreignKeyTargets": list(self.foreign_key_targets) or None,
        }


@dataclass
class Table:
    name: str
    columns: List[Column] = field(default_factory=list)


@dataclass
class Schema:
    # Insertion order is catalog discovery order.
    tables: Dict[str, Table] = field(default_factory=dict)

    def add_table(self, table: Table) -> None:
        self.tables[table.name] = table

    def table_names(self) -> List[str]:
        return list(self.tables)

    def to_dict(self) -> Dict[str, List[Dict[str, Any]]]:
        return {name: [col.to_dict() for col in table.columns] for name, table in self.tables.items()}

    def __len__(self) -> int:
        return len(self.tables)
