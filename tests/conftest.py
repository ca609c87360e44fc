"""
Pytest configuration for record-utils.

Provides fixtures for:
- Settings with test-specific values
- A seeded in-memory record store and an accessor over it
- Database connection management and demo data seeding for integration tests
"""

from __future__ import annotations

import os
from types import SimpleNamespace
from typing import Any, Dict, Generator

import psycopg
import pytest

from record_utils.accessor import RecordAccessor
from record_utils.config import Settings
from record_utils.stores.memory import InMemoryRecordStore

USER_ABEL = "6816f79cc0a8016401c5a33be04be441"
USER_BETH = "5137153cc611227c000bbd1bd8cd2005"
INCIDENT_DISK = "9d385017c611228701d22104cc95c371"
INCIDENT_EMAIL = "e8caedcbc0a80164017df472f39eaed1"


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "record_utils"),
        log_level="DEBUG",
        store_backend="memory",
    )


def _demo_store() -> InMemoryRecordStore:
    store = InMemoryRecordStore()
    store.create_table(
        "sys_user",
        ["sys_id", "user_name", "name", "email", "active"],
        display_field="name",
    )
    store.create_table(
        "incident",
        ["sys_id", "number", "short_description", "description", "priority", "caller_id", "opened_at"],
        references={"caller_id": "sys_user"},
    )
    store.create_table(
        "interaction",
        ["sys_id", "number", "short_description", "channel", "state", "opened_for"],
        references={"opened_for": "sys_user"},
    )
    # A table without the short description field.
    store.create_table("task", ["sys_id", "number", "state"])

    store.insert(
        "sys_user",
        {
            "sys_id": USER_ABEL,
            "user_name": "abel.tuter",
            "name": "Abel Tuter",
            "email": "abel.tuter@example.com",
            "active": True,
        },
    )
    store.insert(
        "sys_user",
        {
            "sys_id": USER_BETH,
            "user_name": "beth.anglin",
            "name": "Beth Anglin",
            "email": None,
            "active": False,
        },
    )
    store.insert(
        "incident",
        {
            "sys_id": INCIDENT_DISK,
            "number": "INC0010042",
            "short_description": "Disk full",
            "description": None,
            "priority": 1,
            "caller_id": USER_ABEL,
            "opened_at": "2024-03-01 09:30:00",
        },
    )
    store.insert(
        "incident",
        {
            "sys_id": INCIDENT_EMAIL,
            "number": "INC0010043",
            "short_description": "Email not syncing",
            "description": "Outlook shows disconnected",
            "priority": 3,
            "caller_id": USER_BETH,
            "opened_at": "2024-03-02 14:00:00",
        },
    )
    store.insert(
        "interaction",
        {
            "number": "IMS0000001",
            "short_description": "Disk full follow-up",
            "channel": "chat",
            "state": "new",
            "opened_for": USER_ABEL,
        },
    )
    store.insert(
        "interaction",
        {
            "number": "IMS0000002",
            "short_description": "Mailbox quota",
            "channel": "phone",
            "state": "closed_complete",
            "opened_for": USER_BETH,
        },
    )
    store.insert(
        "interaction",
        {
            "number": "IMS0000003",
            "short_description": "",
            "channel": "email",
            "state": "new",
            "opened_for": USER_ABEL,
        },
    )
    store.insert("task", {"number": "TASK0001001", "state": "open"})
    return store


@pytest.fixture
def demo() -> SimpleNamespace:
    """
    A seeded in-memory store plus the well-known keys used across tests.
    """
    return SimpleNamespace(
        store=_demo_store(),
        user_abel=USER_ABEL,
        user_beth=USER_BETH,
        incident_disk=INCIDENT_DISK,
        incident_email=INCIDENT_EMAIL,
    )


@pytest.fixture
def accessor(demo: SimpleNamespace, test_settings: Settings) -> RecordAccessor:
    return RecordAccessor(demo.store, settings=test_settings)


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    """
    Database connection string for tests.
    """
    return (
        f"postgresql://{test_settings.db_user}:{test_settings.db_password}"
        f"@{test_settings.db_host}:{test_settings.db_port}/{test_settings.db_name}"
    )


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        return True
    except Exception:
        return False


@pytest.fixture(scope="session")
def db_connection(
    test_dsn: str, db_connection_available: bool
) -> Generator[psycopg.Connection, None, None]:
    """
    Provide a session-scoped database connection for integration tests.

    Skips tests if database is not available.
    """
    if not db_connection_available:
        pytest.skip("Database not available for integration tests")

    conn = psycopg.connect(test_dsn)
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="session")
def seeded_dataset(db_connection: psycopg.Connection, test_dsn: str) -> Dict[str, Any]:
    """
    Recreate the demo tables and load a small deterministic dataset.

    Returns the dataset that was loaded so tests can derive expectations from it.
    """
    from scripts.seed_data import _build_dataset, _load_into_db

    dataset = _build_dataset(users=6, incidents=12, interactions=18, seed=42)
    _load_into_db(test_dsn, dataset)
    return dataset
