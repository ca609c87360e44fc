"""
Demo data seeding script for record-utils.

Builds a deterministic pseudo-random dataset of users, incidents and
interactions (interactions reference users through `opened_for`, incidents
through `caller_id`) and either loads it into Postgres, with real foreign
keys, or writes it as a JSON fixture for the in-memory backend.
"""

from __future__ import annotations

import json
import random
import sys
import time
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, List

import psycopg
import typer
from psycopg import sql

from record_utils.infrastructure.db_factory import build_dsn
from record_utils.stores.abstract import DATETIME_FORMAT

app = typer.Typer(help="Seed demo users, incidents and interactions (Postgres or JSON fixture).")

_DDL = """
DROP TABLE IF EXISTS {schema}.interaction, {schema}.incident, {schema}.sys_user CASCADE;

CREATE TABLE {schema}.sys_user (
    sys_id VARCHAR(32) PRIMARY KEY,
    user_name TEXT NOT NULL UNIQUE,
    name TEXT,
    email TEXT,
    active BOOLEAN NOT NULL DEFAULT TRUE,
    sys_created_on TIMESTAMP
);

CREATE TABLE {schema}.incident (
    sys_id VARCHAR(32) PRIMARY KEY,
    number TEXT NOT NULL UNIQUE,
    short_description TEXT,
    description TEXT,
    priority INTEGER,
    state TEXT,
    caller_id VARCHAR(32) REFERENCES {schema}.sys_user (sys_id),
    opened_at TIMESTAMP
);

CREATE TABLE {schema}.interaction (
    sys_id VARCHAR(32) PRIMARY KEY,
    number TEXT NOT NULL UNIQUE,
    short_description TEXT,
    channel TEXT,
    state TEXT,
    opened_for VARCHAR(32) REFERENCES {schema}.sys_user (sys_id),
    opened_at TIMESTAMP
);
"""

# Table load order respects foreign keys.
TABLE_ORDER = ("sys_user", "incident", "interaction")

_FIRST_NAMES = ["Abel", "Beth", "Carla", "David", "Erin", "Fred", "Gina", "Hugo"]
_LAST_NAMES = ["Tuter", "Anglin", "Breault", "Loo", "Moore", "Luddy", "Tran", "Silva"]
_SUBJECTS = [
    "Disk full",
    "Email not syncing",
    "VPN drops every hour",
    "Printer offline",
    "Password reset",
    "Laptop battery swelling",
]
_CHANNELS = ["chat", "phone", "walk-up", "email"]


def _sys_id(rng: random.Random) -> str:
    return f"{rng.getrandbits(128):032x}"


def _build_dataset(users: int, incidents: int, interactions: int, seed: int) -> Dict[str, Any]:
    """
    Build the demo dataset in the in-memory fixture format.
    """
    rng = random.Random(seed)
    base = datetime(2024, 1, 1, 8, 0, 0)

    user_rows: List[Dict[str, Any]] = []
    for i in range(users):
        first = _FIRST_NAMES[i % len(_FIRST_NAMES)]
        last = _LAST_NAMES[(i // len(_FIRST_NAMES) + i) % len(_LAST_NAMES)]
        user_name = f"{first}.{last}{i // len(_FIRST_NAMES) or ''}".lower()
        user_rows.append(
            {
                "sys_id": _sys_id(rng),
                "user_name": user_name,
                "name": f"{first} {last}",
                "email": f"{user_name}@example.com",
                "active": rng.random() > 0.1,
                "sys_created_on": (base - timedelta(days=rng.randint(30, 900))).strftime(
                    DATETIME_FORMAT
                ),
            }
        )

    incident_rows: List[Dict[str, Any]] = []
    for i in range(incidents):
        caller = rng.choice(user_rows) if user_rows else None
        incident_rows.append(
            {
                "sys_id": _sys_id(rng),
                "number": f"INC{10001 + i:07d}",
                "short_description": rng.choice(_SUBJECTS),
                # Roughly a third of incidents leave the long description empty.
                "description": None if rng.random() < 0.33 else "Reported by the service desk.",
                "priority": rng.randint(1, 5),
                "state": rng.choice(["new", "in_progress", "resolved"]),
                "caller_id": caller["sys_id"] if caller else None,
                "opened_at": (base + timedelta(hours=i * 7)).strftime(DATETIME_FORMAT),
            }
        )

    interaction_rows: List[Dict[str, Any]] = []
    for i in range(interactions):
        opened_for = rng.choice(user_rows) if user_rows else None
        interaction_rows.append(
            {
                "sys_id": _sys_id(rng),
                "number": f"IMS{1 + i:07d}",
                "short_description": rng.choice(_SUBJECTS),
                "channel": rng.choice(_CHANNELS),
                "state": rng.choice(["new", "work_in_progress", "closed_complete"]),
                "opened_for": opened_for["sys_id"] if opened_for else None,
                "opened_at": (base + timedelta(hours=i * 3)).strftime(DATETIME_FORMAT),
            }
        )

    return {
        "tables": {
            "sys_user": {
                "fields": list(user_rows[0]) if user_rows else ["sys_id", "user_name"],
                "display_field": "name",
                "rows": user_rows,
            },
            "incident": {
                "fields": [
                    "sys_id",
                    "number",
                    "short_description",
                    "description",
                    "priority",
                    "state",
                    "caller_id",
                    "opened_at",
                ],
                "references": {"caller_id": "sys_user"},
                "rows": incident_rows,
            },
            "interaction": {
                "fields": [
                    "sys_id",
                    "number",
                    "short_description",
                    "channel",
                    "state",
                    "opened_for",
                    "opened_at",
                ],
                "references": {"opened_for": "sys_user"},
                "rows": interaction_rows,
            },
        }
    }


def _write_fixture(dataset: Dict[str, Any], path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(dataset, f, indent=2)


def _load_into_db(dsn: str, dataset: Dict[str, Any], schema: str = "public") -> int:
    """
    Recreate the demo tables and insert every row. Returns the number of rows inserted.
    """
    inserted = 0
    with psycopg.connect(dsn) as conn:
        with conn.cursor() as cur:
            cur.execute(sql.SQL(_DDL).format(schema=sql.Identifier(schema)))
            for table in TABLE_ORDER:
                spec = dataset["tables"][table]
                rows = spec["rows"]
                if not rows:
                    continue
                columns = list(rows[0])
                statement = sql.SQL("INSERT INTO {}.{} ({}) VALUES ({})").format(
                    sql.Identifier(schema),
                    sql.Identifier(table),
                    sql.SQL(", ").join(sql.Identifier(c) for c in columns),
                    sql.SQL(", ").join(sql.Placeholder() for _ in columns),
                )
                cur.executemany(statement, [tuple(row[c] for c in columns) for row in rows])
                inserted += len(rows)
        conn.commit()
    return inserted


@app.command()
def main(
    users: int = typer.Option(8, "--users", "-u", help="Number of users to generate."),
    incidents: int = typer.Option(20, "--incidents", "-i", help="Number of incidents."),
    interactions: int = typer.Option(30, "--interactions", "-n", help="Number of interactions."),
    seed: int = typer.Option(42, "--seed", help="Deterministic RNG seed."),
    fixture: Path | None = typer.Option(
        None,
        "--fixture",
        "-f",
        help="Write a JSON fixture for the memory backend instead of loading Postgres.",
    ),
    dsn: str | None = typer.Option(None, "--dsn", help="Optional DSN override for Postgres."),
    schema: str = typer.Option("public", "--schema", help="Target Postgres schema."),
) -> None:
    """
    Generate the demo dataset and load it into Postgres or a JSON fixture.
    """
    start = time.perf_counter()
    dataset = _build_dataset(users, incidents, interactions, seed)

    if fixture:
        _write_fixture(dataset, fixture)
        typer.echo(f"Fixture written to {fixture} in {time.perf_counter() - start:.2f}s")
        return

    typer.echo(f"Loading demo tables into Postgres schema '{schema}'...")
    inserted = _load_into_db(dsn or build_dsn(), dataset, schema=schema)
    typer.echo(f"Inserted {inserted} rows in {time.perf_counter() - start:.2f}s")


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
