"""
Record accessor: identifier resolution, record flattening, and reference lookups.

Usage:
    from record_utils.accessor import RecordAccessor
    from record_utils.stores import build_store

    accessor = RecordAccessor(build_store())
    record = accessor.get_fields("incident", "INC0010042")
    text = accessor.get_populated_fields_as_text("incident", "INC0010042")

Every public operation is fail-soft. Validation failures, missing records,
serialization failures and unexpected store faults all come back as an empty
result (None, [], "{}" or "[]"); the distinction lives only in the log
stream, at the level attached to each `AccessError`.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, List, Optional

from record_utils.config import Settings, get_settings
from record_utils.domain.errors import AccessError, Resolution
from record_utils.domain.models import RESERVED_KEYS, FieldValue, FlattenedRecord, StoredRecord
from record_utils.stores.abstract import RecordStore
from record_utils.utils.logging import get_logger

EMPTY_OBJECT_TEXT = "{}"
EMPTY_ARRAY_TEXT = "[]"


def _is_text(value: Any) -> bool:
    return isinstance(value, str) and value != ""


class RecordAccessor:
    """
    Read-only façade over a RecordStore.

    Parameters
    ----------
    store : RecordStore
        Backend answering table, field and record queries.
    logger : logging.Logger, optional
        Sink for diagnostics; defaults to this module's logger.
    settings : Settings, optional
        Field-name conventions; defaults to the cached settings.
    is_opaque_key : callable, optional
        Predicate deciding whether an identifier is an opaque key. Defaults to
        "length equals settings.key_length"; a business key of that exact
        length is therefore treated as an opaque key.
    """

    def __init__(
        self,
        store: RecordStore,
        logger: Optional[logging.Logger] = None,
        settings: Optional[Settings] = None,
        is_opaque_key: Optional[Callable[[str], bool]] = None,
    ) -> None:
        self.store = store
        self.settings = settings or get_settings()
        self.log = logger or get_logger(__name__)
        key_length = self.settings.key_length
        self._is_opaque_key = is_opaque_key or (lambda identifier: len(identifier) == key_length)

    def is_opaque_key(self, identifier: str) -> bool:
        return self._is_opaque_key(identifier)

    # -- resolution -----------------------------------------------------

    def resolve(self, table: str, identifier: str) -> Resolution:
        """
        Resolve `identifier` in `table` to a stored record.

        Returns a Resolution carrying either the record or the AccessError
        that stopped it; the failure is also logged.
        """
        try:
            resolution = self._resolve(table, identifier)
        except Exception as exc:  # noqa: BLE001 - fail-soft boundary
            self._fault("resolve", exc, table=table, identifier=identifier)
            return Resolution.fail(AccessError.STORE_FAULT, str(exc))
        if not resolution.found:
            self._report("resolve", resolution, table=table, identifier=identifier)
        return resolution

    def _check_inputs(self, table: Any, identifier: Any) -> Optional[Resolution]:
        if not _is_text(table):
            return Resolution.fail(
                AccessError.INVALID_ARGUMENT, "Invalid or missing table name provided."
            )
        if not _is_text(identifier):
            return Resolution.fail(
                AccessError.INVALID_ARGUMENT, "Invalid or missing record identifier provided."
            )
        return None

    def _check_table(self, table: str) -> Optional[Resolution]:
        if not self.store.is_valid_table(table):
            return Resolution.fail(
                AccessError.INVALID_TABLE, f'Table "{table}" is not valid or accessible.'
            )
        return None

    def _lookup(self, table: str, identifier: str, key_field: Optional[str] = None) -> Resolution:
        if self.is_opaque_key(identifier):
            record = self.store.get_by_key(table, identifier)
        else:
            field = key_field or self.settings.business_key_field
            self.log.debug(
                "Looking up record by business key",
                extra={"table": table, "field": field, "identifier": identifier},
            )
            record = self.store.get_by_field(table, field, identifier)
        if record is None:
            return Resolution.fail(
                AccessError.NOT_FOUND,
                f"Record with identifier {identifier} not found in table {table}",
            )
        return Resolution.ok(record)

    def _resolve(self, table: str, identifier: str) -> Resolution:
        return (
            self._check_inputs(table, identifier)
            or self._check_table(table)
            or self._lookup(table, identifier)
        )

    # -- flattening -----------------------------------------------------

    def _flatten(self, record: StoredRecord, exclude_empty: bool) -> FlattenedRecord:
        fields = {}
        for name in record.field_names:
            if name == self.store.key_field:
                continue
            if name in RESERVED_KEYS:
                self.log.debug(
                    "Skipping field that collides with a reserved key",
                    extra={"table": record.table, "field": name},
                )
                continue
            pair = FieldValue(value=record.get_value(name), display_value=record.get_display_value(name))
            if exclude_empty and pair.is_empty():
                continue
            fields[name] = pair
        return FlattenedRecord(
            sys_id=record.sys_id,
            display_value=record.get_display_value(),
            fields=fields,
        )

    # -- single records -------------------------------------------------

    def get_fields(
        self, table: str, identifier: str, exclude_empty: bool = False
    ) -> Optional[FlattenedRecord]:
        """
        Flatten every field of the identified record.

        With `exclude_empty`, fields whose raw value is None or "" are
        omitted. Returns None when the record cannot be resolved.
        """
        try:
            resolution = self._resolve(table, identifier)
            if not resolution.found:
                self._report("get_fields", resolution, table=table, identifier=identifier)
                return None
            return self._flatten(resolution.record, exclude_empty)
        except Exception as exc:  # noqa: BLE001 - fail-soft boundary
            self._fault("get_fields", exc, table=table, identifier=identifier)
            return None

    def get_populated_fields(self, table: str, identifier: str) -> Optional[FlattenedRecord]:
        return self.get_fields(table, identifier, exclude_empty=True)

    def get_short_text(self, table: str, identifier: str) -> Optional[Any]:
        """
        Raw value of the short description field, or None.

        The field is checked on the table before the record is resolved.
        """
        field = self.settings.short_text_field
        try:
            failure = self._check_inputs(table, identifier) or self._check_table(table)
            if failure is None and not self.store.is_valid_field(table, field):
                failure = Resolution.fail(
                    AccessError.INVALID_FIELD,
                    f'Field "{field}" does not exist on table "{table}".',
                )
            resolution = failure or self._lookup(table, identifier)
            if not resolution.found:
                self._report("get_short_text", resolution, table=table, identifier=identifier)
                return None
            return resolution.record.get_value(field)
        except Exception as exc:  # noqa: BLE001 - fail-soft boundary
            self._fault("get_short_text", exc, table=table, identifier=identifier)
            return None

    # -- referencing records --------------------------------------------

    def _resolve_target(
        self,
        target_identifier: str,
        target_table: Optional[str],
        target_key_field: Optional[str],
    ) -> Resolution | str:
        """Opaque key of the target record, or the Resolution that failed."""
        if self.is_opaque_key(target_identifier):
            return target_identifier
        if not _is_text(target_table):
            return Resolution.fail(
                AccessError.INVALID_ARGUMENT,
                f"A target table is required to resolve identifier {target_identifier}",
            )
        resolution = self._check_table(target_table) or self._lookup(
            target_table, target_identifier, key_field=target_key_field
        )
        if not resolution.found:
            return Resolution.fail(
                resolution.error,
                f"Could not resolve record identifier {target_identifier} "
                f"in table {target_table}",
            )
        return resolution.record.sys_id

    def find_referencing(
        self,
        table: str,
        reference_field: str,
        target_identifier: str,
        target_table: Optional[str] = None,
        exclude_empty: bool = False,
        target_key_field: Optional[str] = None,
    ) -> List[FlattenedRecord]:
        """
        Flatten every record of `table` whose `reference_field` points at the target.

        A target given by business key is resolved in `target_table` through
        `target_key_field` (default: the business-key field). Results follow
        the store's natural order. Returns [] on any failure.
        """
        context = {"table": table, "field": reference_field, "identifier": target_identifier}
        try:
            failure = self._check_inputs(table, target_identifier)
            if failure is None and not _is_text(reference_field):
                failure = Resolution.fail(
                    AccessError.INVALID_ARGUMENT, "Invalid or missing reference field provided."
                )
            failure = failure or self._check_table(table)
            if failure is None and not self.store.is_valid_field(table, reference_field):
                failure = Resolution.fail(
                    AccessError.INVALID_FIELD,
                    f'Field "{reference_field}" does not exist on table "{table}".',
                )
            if failure is not None:
                self._report("find_referencing", failure, **context)
                return []

            target = self._resolve_target(target_identifier, target_table, target_key_field)
            if isinstance(target, Resolution):
                # An unresolvable target aborts the whole lookup.
                self._report("find_referencing", target, level=logging.WARNING, **context)
                return []

            records = self.store.query(table, reference_field, target)
            self.log.debug(
                f"Querying table {table} for records where {reference_field} = {target}. "
                f"Found {len(records)} records.",
                extra={**context, "target": target, "rows": len(records)},
            )
            return [self._flatten(record, exclude_empty) for record in records]
        except Exception as exc:  # noqa: BLE001 - fail-soft boundary
            self._fault("find_referencing", exc, **context)
            return []

    def find_populated_referencing(
        self,
        table: str,
        reference_field: str,
        target_identifier: str,
        target_table: Optional[str] = None,
        target_key_field: Optional[str] = None,
    ) -> List[FlattenedRecord]:
        return self.find_referencing(
            table,
            reference_field,
            target_identifier,
            target_table,
            exclude_empty=True,
            target_key_field=target_key_field,
        )

    def find_user_interactions(
        self, user_identifier: str, exclude_empty: bool = False
    ) -> List[FlattenedRecord]:
        """Interaction records opened for the user (sys_id or user name)."""
        settings = self.settings
        return self.find_referencing(
            settings.interaction_table,
            settings.interaction_user_field,
            user_identifier,
            settings.user_table,
            exclude_empty=exclude_empty,
            target_key_field=settings.user_key_field,
        )

    def find_populated_user_interactions(self, user_identifier: str) -> List[FlattenedRecord]:
        return self.find_user_interactions(user_identifier, exclude_empty=True)

    # -- text forms -----------------------------------------------------

    def get_fields_as_text(self, table: str, identifier: str, exclude_empty: bool = False) -> str:
        record = self.get_fields(table, identifier, exclude_empty)
        if record is None:
            return EMPTY_OBJECT_TEXT
        return self._dumps("get_fields_as_text", record.as_dict(), EMPTY_OBJECT_TEXT)

    def get_populated_fields_as_text(self, table: str, identifier: str) -> str:
        return self.get_fields_as_text(table, identifier, exclude_empty=True)

    def find_referencing_as_text(
        self,
        table: str,
        reference_field: str,
        target_identifier: str,
        target_table: Optional[str] = None,
        exclude_empty: bool = False,
        target_key_field: Optional[str] = None,
    ) -> str:
        records = self.find_referencing(
            table,
            reference_field,
            target_identifier,
            target_table,
            exclude_empty,
            target_key_field=target_key_field,
        )
        return self._dumps(
            "find_referencing_as_text", [record.as_dict() for record in records], EMPTY_ARRAY_TEXT
        )

    def find_populated_referencing_as_text(
        self,
        table: str,
        reference_field: str,
        target_identifier: str,
        target_table: Optional[str] = None,
        target_key_field: Optional[str] = None,
    ) -> str:
        return self.find_referencing_as_text(
            table,
            reference_field,
            target_identifier,
            target_table,
            exclude_empty=True,
            target_key_field=target_key_field,
        )

    def find_user_interactions_as_text(
        self, user_identifier: str, exclude_empty: bool = False
    ) -> str:
        records = self.find_user_interactions(user_identifier, exclude_empty)
        return self._dumps(
            "find_user_interactions_as_text",
            [record.as_dict() for record in records],
            EMPTY_ARRAY_TEXT,
        )

    def find_populated_user_interactions_as_text(self, user_identifier: str) -> str:
        return self.find_user_interactions_as_text(user_identifier, exclude_empty=True)

    # -- logging helpers ------------------------------------------------

    def _dumps(self, operation: str, payload: Any, fallback: str) -> str:
        try:
            return json.dumps(payload, allow_nan=False)
        except Exception as exc:  # noqa: BLE001 - fail-soft boundary
            self.log.error(
                f"{operation}: Failed to serialize result: {exc}",
                extra={"operation": operation, "error_kind": AccessError.SERIALIZATION_FAILURE.code},
            )
            return fallback

    def _report(
        self,
        operation: str,
        resolution: Resolution,
        level: Optional[int] = None,
        **context: Any,
    ) -> None:
        error = resolution.error or AccessError.NOT_FOUND
        self.log.log(
            level if level is not None else error.level,
            f"{operation}: {resolution.detail}",
            extra={"operation": operation, "error_kind": error.code, **context},
        )

    def _fault(self, operation: str, exc: BaseException, **context: Any) -> None:
        self.log.error(
            f"{operation}: Error accessing record store: {exc}",
            exc_info=exc,
            extra={"operation": operation, "error_kind": AccessError.STORE_FAULT.code, **context},
        )


__all__ = ["EMPTY_ARRAY_TEXT", "EMPTY_OBJECT_TEXT", "RecordAccessor"]
