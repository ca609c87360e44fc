import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from record_utils import config
from record_utils.accessor import RecordAccessor
from record_utils.stores import InMemoryRecordStore, PostgresRecordStore, build_store
from scripts import seed_data

SEED_USERS = 4
SEED_INCIDENTS = 6
SEED_INTERACTIONS = 9


def test_get_settings_defaults():
    settings = config.Settings()
    assert settings.db_host == "localhost"
    assert settings.db_port == 5432
    assert settings.db_schema == "public"
    assert settings.key_field == "sys_id"
    assert settings.key_length == 32
    assert settings.business_key_field == "number"
    assert settings.short_text_field == "short_description"
    assert settings.display_fields == ["number", "name", "user_name"]
    assert settings.interaction_table == "interaction"
    assert settings.user_table == "sys_user"


def test_get_settings_is_cached():
    assert config.get_settings() is config.get_settings()


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("RECORD_DISPLAY_FIELDS", "name, number ,")
    monkeypatch.setenv("RECORD_KEY_LENGTH", "36")
    monkeypatch.setenv("STORE_BACKEND", "MEMORY")

    settings = config.Settings()

    assert settings.display_fields == ["name", "number"]
    assert settings.key_length == 36
    assert settings.store_backend == "memory"


def test_unknown_backend_is_rejected(monkeypatch):
    monkeypatch.setenv("STORE_BACKEND", "mongodb")
    with pytest.raises(ValidationError):
        config.Settings()


def test_build_store_picks_backend(test_settings):
    assert isinstance(build_store(test_settings), InMemoryRecordStore)
    postgres = build_store(test_settings.model_copy(update={"store_backend": "postgres"}))
    assert isinstance(postgres, PostgresRecordStore)


def test_seed_dataset_is_deterministic():
    first = seed_data._build_dataset(SEED_USERS, SEED_INCIDENTS, SEED_INTERACTIONS, seed=7)
    second = seed_data._build_dataset(SEED_USERS, SEED_INCIDENTS, SEED_INTERACTIONS, seed=7)

    assert first == second
    tables = first["tables"]
    assert len(tables["sys_user"]["rows"]) == SEED_USERS
    assert tables["incident"]["rows"][0]["number"] == "INC0010001"
    assert all(len(row["sys_id"]) == 32 for row in tables["interaction"]["rows"])


def test_seed_fixture_loads_into_memory_backend(tmp_path: Path, test_settings):
    fixture = tmp_path / "demo.json"
    dataset = seed_data._build_dataset(SEED_USERS, SEED_INCIDENTS, SEED_INTERACTIONS, seed=11)
    seed_data._write_fixture(dataset, fixture)
    assert json.loads(fixture.read_text(encoding="utf-8")) == dataset

    settings = test_settings.model_copy(update={"store_fixture_path": str(fixture)})
    accessor = RecordAccessor(build_store(settings), settings=settings)

    user = dataset["tables"]["sys_user"]["rows"][0]
    expected = [
        row["number"]
        for row in dataset["tables"]["interaction"]["rows"]
        if row["opened_for"] == user["sys_id"]
    ]
    records = accessor.find_user_interactions(user["user_name"])
    assert [record.fields["number"].value for record in records] == expected
    for record in records:
        assert record.fields["opened_for"].display_value == user["name"]

    incident = dataset["tables"]["incident"]["rows"][0]
    assert accessor.get_short_text("incident", incident["number"]) == incident["short_description"]
