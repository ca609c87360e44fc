"""
Abstract record store interfaces for record-utils.

Concrete stores (in-memory, PostgreSQL) implement the RecordStore protocol so
the accessor can validate tables and fields, introspect a table's field list,
and fetch records without knowing how or where they are kept.
"""

from __future__ import annotations

import abc
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, List, Optional, Protocol, runtime_checkable

from record_utils.domain.models import StoredRecord

DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def stringify_value(value: Any) -> Optional[str]:
    """
    Normalise a stored value to the string form the platform reports.

    None stays None; booleans become "true"/"false"; timestamps use
    `YYYY-MM-DD HH:MM:SS`; everything else goes through str().
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return value.strftime(DATETIME_FORMAT)
    if isinstance(value, (date, time)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return format(value, "f")
    return str(value)


@runtime_checkable
class RecordStore(Protocol):
    """
    Query interface every record store must implement.

    Attributes
    ----------
    name : str
        A short machine-friendly identifier for the backend.
    key_field : str
        Name of the opaque unique-key field on every table.
    """

    name: str
    key_field: str

    def is_valid_table(self, table: str) -> bool:
        """Whether `table` exists and can be queried."""
        ...

    def is_valid_field(self, table: str, field: str) -> bool:
        """Whether `field` is defined on `table`."""
        ...

    def list_fields(self, table: str) -> List[str]:
        """Field names defined on `table`, in schema order."""
        ...

    def get_by_key(self, table: str, key: str) -> Optional[StoredRecord]:
        """Fetch the record whose opaque key is `key`, or None."""
        ...

    def get_by_field(self, table: str, field: str, value: str) -> Optional[StoredRecord]:
        """Fetch the first record whose `field` equals `value`, or None."""
        ...

    def query(self, table: str, field: str, value: str) -> List[StoredRecord]:
        """All records of `table` whose `field` equals `value`, in store order."""
        ...


class AbstractRecordStore(abc.ABC):
    """
    Optional ABC helper for class-based stores.

    Subclasses set `name` and implement the query methods. `is_valid_field`
    is derived from `list_fields` unless a backend has something cheaper.
    """

    name: str
    key_field: str = "sys_id"

    @abc.abstractmethod
    def is_valid_table(self, table: str) -> bool:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    def list_fields(self, table: str) -> List[str]:  # pragma: no cover - interface only
        raise NotImplementedError

    def is_valid_field(self, table: str, field: str) -> bool:
        return field in self.list_fields(table)

    @abc.abstractmethod
    def get_by_key(self, table: str, key: str) -> Optional[StoredRecord]:  # pragma: no cover
        raise NotImplementedError

    @abc.abstractmethod
    def get_by_field(
        self, table: str, field: str, value: str
    ) -> Optional[StoredRecord]:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    def query(self, table: str, field: str, value: str) -> List[StoredRecord]:  # pragma: no cover
        raise NotImplementedError

    def close(self) -> None:
        """Release backend resources. No-op by default."""


__all__ = [
    "AbstractRecordStore",
    "DATETIME_FORMAT",
    "RecordStore",
    "stringify_value",
]
