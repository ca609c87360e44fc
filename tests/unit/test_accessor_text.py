from __future__ import annotations

import json
import logging

from record_utils.accessor import EMPTY_ARRAY_TEXT, EMPTY_OBJECT_TEXT, RecordAccessor
from record_utils.domain.errors import AccessError
from record_utils.domain.models import StoredRecord, loads_record, loads_records
from record_utils.stores.memory import InMemoryRecordStore

UNSERIALIZABLE_KEY = "c" * 32


class _UnserializableStore(InMemoryRecordStore):
    """Store whose records carry a raw value JSON cannot encode."""

    def __init__(self) -> None:
        super().__init__()
        self.create_table("u_blob", ["sys_id", "number", "payload", "parent"])

    def get_by_key(self, table, key):
        return self._record()

    def get_by_field(self, table, field, value):
        return self._record()

    def query(self, table, field, value):
        return [self._record()]

    def _record(self) -> StoredRecord:
        return StoredRecord(
            table="u_blob",
            sys_id=UNSERIALIZABLE_KEY,
            display_value="BLOB001",
            field_names=("sys_id", "number", "payload", "parent"),
            values={"number": "BLOB001", "payload": {1, 2, 3}, "parent": UNSERIALIZABLE_KEY},
            display_values={"number": "BLOB001", "payload": "{1, 2, 3}"},
        )


def test_fields_text_round_trips(accessor) -> None:
    text = accessor.get_fields_as_text("incident", "INC0010042")

    assert loads_record(text) == accessor.get_fields("incident", "INC0010042")


def test_fields_text_shape(accessor, demo) -> None:
    data = json.loads(accessor.get_populated_fields_as_text("incident", "INC0010042"))

    assert data["sys_id"] == demo.incident_disk
    assert data["display_value"] == "INC0010042"
    assert data["caller_id"] == {"value": demo.user_abel, "display_value": "Abel Tuter"}
    assert "description" not in data


def test_fields_text_keeps_null_values(accessor) -> None:
    data = json.loads(accessor.get_fields_as_text("incident", "INC0010042"))

    assert data["description"] == {"value": None, "display_value": ""}


def test_missing_record_text_is_empty_object(accessor) -> None:
    assert accessor.get_fields_as_text("incident", "INC0000000") == EMPTY_OBJECT_TEXT
    assert accessor.get_populated_fields_as_text("bogus_table", "x") == EMPTY_OBJECT_TEXT
    assert loads_record(EMPTY_OBJECT_TEXT) is None


def test_referencing_text_round_trips(accessor, demo) -> None:
    text = accessor.find_referencing_as_text("interaction", "opened_for", demo.user_abel)

    assert loads_records(text) == accessor.find_referencing("interaction", "opened_for", demo.user_abel)
    assert [item["number"]["value"] for item in json.loads(text)] == ["IMS0000001", "IMS0000003"]


def test_populated_referencing_text(accessor) -> None:
    text = accessor.find_populated_referencing_as_text(
        "interaction", "opened_for", "beth.anglin", "sys_user"
    )

    # sys_user has no number field, so the business key cannot be resolved.
    assert text == EMPTY_ARRAY_TEXT


def test_failed_referencing_text_is_empty_array(accessor) -> None:
    assert accessor.find_referencing_as_text("interaction", "u_missing", "x" * 32) == EMPTY_ARRAY_TEXT


def test_user_interactions_text(accessor) -> None:
    text = accessor.find_user_interactions_as_text("abel.tuter")
    populated = accessor.find_populated_user_interactions_as_text("abel.tuter")

    assert len(json.loads(text)) == 2
    assert "short_description" not in json.loads(populated)[1]
    assert loads_records(populated) == accessor.find_populated_user_interactions("abel.tuter")
    assert accessor.find_user_interactions_as_text("nobody") == EMPTY_ARRAY_TEXT


def test_serialization_failure_falls_back_and_logs(test_settings, caplog) -> None:
    caplog.set_level(logging.DEBUG)
    accessor = RecordAccessor(_UnserializableStore(), settings=test_settings)

    assert accessor.get_fields("u_blob", UNSERIALIZABLE_KEY) is not None
    assert accessor.get_fields_as_text("u_blob", UNSERIALIZABLE_KEY) == EMPTY_OBJECT_TEXT
    assert (
        accessor.find_referencing_as_text("u_blob", "parent", UNSERIALIZABLE_KEY)
        == EMPTY_ARRAY_TEXT
    )
    kinds = [getattr(r, "error_kind", None) for r in caplog.records if r.levelno == logging.ERROR]
    assert kinds == [AccessError.SERIALIZATION_FAILURE.code] * 2


class _NonFiniteStore(_UnserializableStore):
    """Store whose records carry a float JSON has no literal for."""

    def _record(self) -> StoredRecord:
        return StoredRecord(
            table="u_blob",
            sys_id=UNSERIALIZABLE_KEY,
            display_value="BLOB001",
            field_names=("sys_id", "number", "payload", "parent"),
            values={"number": "BLOB001", "payload": float("nan"), "parent": UNSERIALIZABLE_KEY},
            display_values={"number": "BLOB001", "payload": "nan"},
        )


def test_non_finite_values_fall_back_instead_of_emitting_nan(test_settings, caplog) -> None:
    caplog.set_level(logging.DEBUG)
    accessor = RecordAccessor(_NonFiniteStore(), settings=test_settings)

    assert accessor.get_fields_as_text("u_blob", UNSERIALIZABLE_KEY) == EMPTY_OBJECT_TEXT
    assert (
        accessor.find_populated_referencing_as_text("u_blob", "parent", UNSERIALIZABLE_KEY)
        == EMPTY_ARRAY_TEXT
    )
    kinds = [getattr(r, "error_kind", None) for r in caplog.records if r.levelno == logging.ERROR]
    assert kinds == [AccessError.SERIALIZATION_FAILURE.code] * 2


def test_referencing_forms_resolve_target_by_custom_key_field(accessor, demo) -> None:
    populated = accessor.find_populated_referencing(
        "interaction", "opened_for", "beth.anglin", "sys_user", target_key_field="user_name"
    )
    text = accessor.find_referencing_as_text(
        "interaction", "opened_for", "beth.anglin", "sys_user", target_key_field="user_name"
    )
    populated_text = accessor.find_populated_referencing_as_text(
        "interaction", "opened_for", "beth.anglin", "sys_user", target_key_field="user_name"
    )

    assert [r.fields["number"].value for r in populated] == ["IMS0000002"]
    assert [item["opened_for"]["value"] for item in json.loads(text)] == [demo.user_beth]
    assert loads_records(populated_text) == populated
