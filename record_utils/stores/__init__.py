"""
Record stores package for record-utils.

Re-exports the store interfaces and the concrete backends, plus
`build_store`, which picks a backend from settings.
"""

from __future__ import annotations

from typing import Optional

from record_utils.config import Settings, get_settings
from record_utils.stores.abstract import AbstractRecordStore, RecordStore, stringify_value
from record_utils.stores.memory import InMemoryRecordStore
from record_utils.stores.postgres import PostgresRecordStore


def build_store(settings: Optional[Settings] = None) -> RecordStore:
    """
    Create the record store named by `settings.store_backend`.

    The memory backend loads `settings.store_fixture_path` when set and starts
    empty otherwise.
    """
    settings = settings or get_settings()
    if settings.store_backend == "memory":
        if settings.store_fixture_path:
            return InMemoryRecordStore.from_json(
                settings.store_fixture_path,
                key_field=settings.key_field,
                display_fields=settings.display_fields,
            )
        return InMemoryRecordStore(
            key_field=settings.key_field, display_fields=settings.display_fields
        )
    return PostgresRecordStore(settings=settings)


__all__ = [
    # Abstracts
    "AbstractRecordStore",
    "RecordStore",
    "stringify_value",
    # Concrete stores
    "InMemoryRecordStore",
    "PostgresRecordStore",
    "build_store",
]
