"""
Domain package for record-utils.

Exports the snapshot models and the error taxonomy used by the accessor and
the record stores. Keep this package focused on data definitions.
"""

from record_utils.domain.errors import AccessError, RecordStoreError, Resolution
from record_utils.domain.models import (
    RESERVED_KEYS,
    FieldValue,
    FlattenedRecord,
    StoredRecord,
    loads_record,
    loads_records,
)

__all__ = [
    "AccessError",
    "FieldValue",
    "FlattenedRecord",
    "RESERVED_KEYS",
    "RecordStoreError",
    "Resolution",
    "StoredRecord",
    "loads_record",
    "loads_records",
]
