"""
In-memory snapshot of the safety dataset.

The snapshot holds the six master tables and the relationship rows joining
them, and precomputes the indices the lookup functions need:
1. id -> MasterItem and name -> id per table
2. risk element id -> relationship rows
"""
from collections import defaultdict
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from safety_advisor.schemas.entities import MasterItem, Relationship


class Table(str, Enum):
    """The six master tables of the dataset."""
    RISK_ELEMENT = "risk_element"
    HAZARD_ITEM = "hazard_item"
    COUNTERMEASURE = "countermeasure"
    INDUSTRY = "industry"
    WORK_PROCESS = "work_process"
    RISK_FACTOR = "risk_factor"

    @property
    def foreign_key(self) -> str:
        """Name of the relationship column referencing this table."""
        return f"{self.value}_id"


class SafetyDataset:
    """Read-only snapshot of the master tables and relationship rows."""

    def __init__(self, tables: Dict[Table, Sequence[MasterItem]], relationships: Sequence[Relationship]):
        missing = [table.value for table in Table if table not in tables]
        if missing:
            raise ValueError(f"Missing master tables: {missing}")

        self._tables: Dict[Table, Tuple[MasterItem, ...]] = {
            table: tuple(tables[table]) for table in Table
        }
        self._relationships: Tuple[Relationship, ...] = tuple(relationships)

        self._items_by_id: Dict[Table, Dict[int, MasterItem]] = {}
        self._ids_by_name: Dict[Table, Dict[str, int]] = {}
        for table, items in self._tables.items():
            by_id: Dict[int, MasterItem] = {}
            by_name: Dict[str, int] = {}
            for item in items:
                if item.id in by_id:
                    raise ValueError(f"Duplicate id {item.id} in table {table.value}")
                by_id[item.id] = item
                # First occurrence wins for repeated names
                by_name.setdefault(item.name, item.id)
            self._items_by_id[table] = by_id
            self._ids_by_name[table] = by_name

        rows_by_risk: Dict[int, List[Relationship]] = defaultdict(list)
        for row in self._relationships:
            rows_by_risk[row.risk_element_id].append(row)
        self._rows_by_risk_id = dict(rows_by_risk)

    @property
    def relationships(self) -> Tuple[Relationship, ...]:
        return self._relationships

    def items(self, table: Table) -> Tuple[MasterItem, ...]:
        return self._tables[Table(table)]

    def names(self, table: Table) -> List[str]:
        return [item.name for item in self.items(table)]

    def get(self, table: Table, item_id: int) -> Optional[MasterItem]:
        """Return the MasterItem with this id, or None."""
        return self._items_by_id[Table(table)].get(item_id)

    def id_for_name(self, table: Table, name: str) -> Optional[int]:
        return self._ids_by_name[Table(table)].get(name)

    def rows_for_risk_ids(self, risk_ids: Iterable[int]) -> List[Relationship]:
        """
        Relationship rows whose risk element is in risk_ids, in table order.
        """
        wanted = set(risk_ids)
        if not wanted:
            return []
        if len(wanted) == 1:
            return list(self._rows_by_risk_id.get(next(iter(wanted)), []))
        return [row for row in self._relationships if row.risk_element_id in wanted]

    def resolve(self, row: Relationship) -> Optional[Dict[Table, MasterItem]]:
        """Resolve all six foreign keys of a row; None if any is dangling."""
        resolved = {}
        for table in Table:
            item = self.get(table, getattr(row, table.foreign_key))
            if item is None:
                return None
            resolved[table] = item
        return resolved

    def dangling_rows(self) -> List[Tuple[Relationship, List[str]]]:
        """Rows with at least one unresolvable foreign key, with the offending columns."""
        report = []
        for row in self._relationships:
            broken = [
                table.foreign_key for table in Table
                if self.get(table, getattr(row, table.foreign_key)) is None
            ]
            if broken:
                report.append((row, broken))
        return report

    def summary(self) -> Dict[str, int]:
        counts = {table.value: len(items) for table, items in self._tables.items()}
        counts["relationships"] = len(self._relationships)
        return counts
