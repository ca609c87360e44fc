"""
In-memory record store.

Keeps tables as ordered lists of rows. Used by the unit tests, by the CLI's
`memory` backend (loaded from a JSON fixture), and anywhere a throwaway store
is handy. Reference fields display the referenced record's display value,
mirroring how the platform renders them.

Fixture format (see `from_mapping`):
    {
      "tables": {
        "sys_user": {"fields": ["sys_id", "user_name"], "rows": [...]},
        "interaction": {
          "fields": ["sys_id", "number", "opened_for"],
          "references": {"opened_for": "sys_user"},
          "rows": [...]
        }
      }
    }
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from record_utils.domain.errors import RecordStoreError
from record_utils.domain.models import StoredRecord
from record_utils.stores.abstract import AbstractRecordStore, stringify_value

DEFAULT_DISPLAY_FIELDS: Sequence[str] = ("number", "name", "user_name")


@dataclass
class _Table:
    fields: List[str]
    references: Dict[str, str] = field(default_factory=dict)
    display_field: Optional[str] = None
    rows: List[Dict[str, Any]] = field(default_factory=list)


class InMemoryRecordStore(AbstractRecordStore):
    """
    Dictionary-backed RecordStore.

    Rows are returned in insertion order, which stands in for the natural
    iteration order of a real backend.
    """

    name: str = "memory"

    def __init__(
        self,
        key_field: str = "sys_id",
        display_fields: Optional[Iterable[str]] = None,
    ) -> None:
        self.key_field = key_field
        self.display_fields = list(display_fields or DEFAULT_DISPLAY_FIELDS)
        self._tables: Dict[str, _Table] = {}

    # -- building -------------------------------------------------------

    def create_table(
        self,
        table: str,
        fields: Iterable[str],
        references: Optional[Mapping[str, str]] = None,
        display_field: Optional[str] = None,
    ) -> None:
        names = [name for name in fields if name != self.key_field]
        names.insert(0, self.key_field)
        refs = dict(references or {})
        unknown = [name for name in refs if name not in names]
        if unknown:
            raise ValueError(f"References on unknown fields of '{table}': {', '.join(unknown)}")
        self._tables[table] = _Table(fields=names, references=refs, display_field=display_field)

    def insert(self, table: str, values: Mapping[str, Any]) -> str:
        """Append a row and return its opaque key (generated when missing)."""
        table_def = self._table(table)
        unknown = [name for name in values if name not in table_def.fields]
        if unknown:
            raise ValueError(f"Unknown fields for '{table}': {', '.join(unknown)}")
        row = dict(values)
        key = row.get(self.key_field) or uuid.uuid4().hex
        row[self.key_field] = key
        table_def.rows.append(row)
        return key

    @classmethod
    def from_mapping(
        cls,
        data: Mapping[str, Any],
        key_field: str = "sys_id",
        display_fields: Optional[Iterable[str]] = None,
    ) -> "InMemoryRecordStore":
        store = cls(key_field=key_field, display_fields=display_fields)
        for table, table_def in data.get("tables", {}).items():
            store.create_table(
                table,
                table_def["fields"],
                references=table_def.get("references"),
                display_field=table_def.get("display_field"),
            )
        # Rows go in after every table exists so references can point anywhere.
        for table, table_def in data.get("tables", {}).items():
            for row in table_def.get("rows", []):
                store.insert(table, row)
        return store

    @classmethod
    def from_json(
        cls,
        path: Path | str,
        key_field: str = "sys_id",
        display_fields: Optional[Iterable[str]] = None,
    ) -> "InMemoryRecordStore":
        with Path(path).open("r", encoding="utf-8") as f:
            data = json.load(f)
        return cls.from_mapping(data, key_field=key_field, display_fields=display_fields)

    # -- RecordStore ----------------------------------------------------

    def is_valid_table(self, table: str) -> bool:
        return table in self._tables

    def list_fields(self, table: str) -> List[str]:
        return list(self._table(table).fields)

    def get_by_key(self, table: str, key: str) -> Optional[StoredRecord]:
        return self.get_by_field(table, self.key_field, key)

    def get_by_field(self, table: str, field: str, value: str) -> Optional[StoredRecord]:
        table_def = self._table(table)
        if field not in table_def.fields:
            return None
        for row in table_def.rows:
            if stringify_value(row.get(field)) == value:
                return self._to_stored(table, row)
        return None

    def query(self, table: str, field: str, value: str) -> List[StoredRecord]:
        table_def = self._table(table)
        if field not in table_def.fields:
            raise RecordStoreError(f"Field '{field}' does not exist on table '{table}'")
        return [
            self._to_stored(table, row)
            for row in table_def.rows
            if stringify_value(row.get(field)) == value
        ]

    # -- helpers --------------------------------------------------------

    def _table(self, table: str) -> _Table:
        try:
            return self._tables[table]
        except KeyError:
            raise RecordStoreError(f"Table '{table}' does not exist") from None

    def _row_display(self, table: str, row: Mapping[str, Any]) -> str:
        table_def = self._tables[table]
        candidates = [table_def.display_field] if table_def.display_field else self.display_fields
        for name in candidates:
            # Raw column text only; references are not followed here.
            text = stringify_value(row.get(name)) if name in table_def.fields else None
            if text:
                return text
        return str(row[self.key_field])

    def _field_display(self, table: str, field: str, value: Any) -> str:
        target = self._tables[table].references.get(field)
        if target and value not in (None, "") and target in self._tables:
            for row in self._tables[target].rows:
                if row[self.key_field] == value:
                    return self._row_display(target, row)
            return ""
        text = stringify_value(value)
        return "" if text is None else text

    def _to_stored(self, table: str, row: Mapping[str, Any]) -> StoredRecord:
        table_def = self._tables[table]
        values = {name: stringify_value(row.get(name)) for name in table_def.fields}
        display_values = {name: self._field_display(table, name, row.get(name)) for name in table_def.fields}
        return StoredRecord(
            table=table,
            sys_id=str(row[self.key_field]),
            display_value=self._row_display(table, row),
            field_names=tuple(table_def.fields),
            values=values,
            display_values=display_values,
        )


__all__ = ["InMemoryRecordStore"]
