"""
record-utils - Generic record access and flattening over tabular record stores.

This package resolves records by opaque key (sys_id) or business key (record
number), flattens them into field -> {value, display_value} snapshots, and
finds the records that reference a given record. It provides:

- A fail-soft RecordAccessor whose operations never raise to the caller
- A RecordStore protocol with in-memory and PostgreSQL implementations
- JSON text forms of every result
- A typer CLI for inspecting records from the terminal

Results carry no identity of their own: every call builds a fresh snapshot.
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from record_utils.accessor import RecordAccessor
from record_utils.config import Settings, get_settings
from record_utils.domain import (
    AccessError,
    FieldValue,
    FlattenedRecord,
    RecordStoreError,
    Resolution,
    StoredRecord,
    loads_record,
    loads_records,
)
from record_utils.stores import (
    AbstractRecordStore,
    InMemoryRecordStore,
    PostgresRecordStore,
    RecordStore,
    build_store,
)
from record_utils.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Accessor
    "RecordAccessor",
    # Domain
    "AccessError",
    "FieldValue",
    "FlattenedRecord",
    "RecordStoreError",
    "Resolution",
    "StoredRecord",
    "loads_record",
    "loads_records",
    # Stores
    "AbstractRecordStore",
    "InMemoryRecordStore",
    "PostgresRecordStore",
    "RecordStore",
    "build_store",
    # Logging
    "configure_logging",
    "get_logger",
]
