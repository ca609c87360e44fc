"""
Domain models for record-utils.

Defines the flattened snapshot shape produced by the accessor
(`FlattenedRecord` made of `FieldValue` pairs) and the `StoredRecord` view a
record store hands back for a fetched row. Snapshots are frozen: they are
computed per call and discarded after being returned or serialized.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, Field

RESERVED_KEYS: Tuple[str, str] = ("sys_id", "display_value")


class FieldValue(BaseModel):
    """
    Raw value plus best-effort human display string for one field.
    """

    value: Optional[Any] = Field(None, description="Raw stored value; may be null or empty.")
    display_value: str = Field("", description="Formatted value for humans.")

    model_config = {
        "frozen": True,
    }

    def is_empty(self) -> bool:
        """True when the raw value is null or the empty string."""
        return self.value is None or self.value == ""


class FlattenedRecord(BaseModel):
    """
    Field-name-to-value-pair snapshot of a single record.

    The mapping form (`as_dict`) is flat: the reserved `sys_id` and
    `display_value` keys sit beside one `{value, display_value}` entry per field.
    """

    sys_id: str = Field(..., description="Opaque unique key of the record.")
    display_value: str = Field("", description="Overall display string of the record.")
    fields: Dict[str, FieldValue] = Field(default_factory=dict)

    model_config = {
        "frozen": True,
    }

    def as_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"sys_id": self.sys_id, "display_value": self.display_value}
        for name, pair in self.fields.items():
            data[name] = pair.model_dump()
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FlattenedRecord":
        """Rebuild a snapshot from its mapping form (the inverse of `as_dict`)."""
        fields = {
            name: FieldValue.model_validate(pair)
            for name, pair in data.items()
            if name not in RESERVED_KEYS
        }
        return cls(
            sys_id=data["sys_id"],
            display_value=data.get("display_value", ""),
            fields=fields,
        )

    def get(self, name: str) -> Optional[FieldValue]:
        return self.fields.get(name)


def loads_record(text: str) -> Optional[FlattenedRecord]:
    """Decode the text form of a single record; `"{}"` decodes to None."""
    data = json.loads(text)
    if not data:
        return None
    return FlattenedRecord.from_dict(data)


def loads_records(text: str) -> List[FlattenedRecord]:
    """Decode the text form of a sequence of records."""
    return [FlattenedRecord.from_dict(item) for item in json.loads(text)]


@dataclass(frozen=True)
class StoredRecord:
    """
    A record as fetched from a record store.

    `field_names` lists every field defined on the table, in schema order,
    including the unique-key field. `values` holds raw values and
    `display_values` the formatted ones; missing entries read as None / "".
    """

    table: str
    sys_id: str
    display_value: str
    field_names: Tuple[str, ...]
    values: Mapping[str, Any] = field(default_factory=dict)
    display_values: Mapping[str, str] = field(default_factory=dict)

    def get_value(self, name: str) -> Optional[Any]:
        return self.values.get(name)

    def get_display_value(self, name: Optional[str] = None) -> str:
        if name is None:
            return self.display_value
        return self.display_values.get(name, "")


__all__ = [
    "FieldValue",
    "FlattenedRecord",
    "RESERVED_KEYS",
    "StoredRecord",
    "loads_record",
    "loads_records",
]
