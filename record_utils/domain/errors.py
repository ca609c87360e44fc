"""
Error taxonomy and resolution results for record access.

Accessor operations never raise to their callers. Validation produces an
explicit `Resolution` (a record or an `AccessError`), and each public
operation converts failures into an empty result plus a log entry at the
level attached to the error kind. Only record stores raise, using
`RecordStoreError` for backend faults.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Optional

from record_utils.domain.models import StoredRecord


class AccessError(enum.Enum):
    """Kinds of failure an accessor operation can report (via logs only)."""

    INVALID_ARGUMENT = ("invalid_argument", logging.WARNING)
    INVALID_TABLE = ("invalid_table", logging.WARNING)
    INVALID_FIELD = ("invalid_field", logging.WARNING)
    NOT_FOUND = ("not_found", logging.INFO)
    SERIALIZATION_FAILURE = ("serialization_failure", logging.ERROR)
    STORE_FAULT = ("store_fault", logging.ERROR)

    def __init__(self, code: str, level: int) -> None:
        self.code = code
        self.level = level


@dataclass(frozen=True)
class Resolution:
    """
    Outcome of resolving a table/identifier pair.

    Exactly one of `record` and `error` is set. `detail` is the log message
    describing the failure.
    """

    record: Optional[StoredRecord] = None
    error: Optional[AccessError] = None
    detail: str = ""

    @property
    def found(self) -> bool:
        return self.record is not None

    @classmethod
    def ok(cls, record: StoredRecord) -> "Resolution":
        return cls(record=record)

    @classmethod
    def fail(cls, error: AccessError, detail: str) -> "Resolution":
        return cls(error=error, detail=detail)


class RecordStoreError(RuntimeError):
    """Raised by record stores when the backend cannot answer a query."""


__all__ = ["AccessError", "RecordStoreError", "Resolution"]
