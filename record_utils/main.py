from __future__ import annotations

import sys
from typing import Optional

import typer

from record_utils.accessor import RecordAccessor
from record_utils.config import get_settings
from record_utils.reporter import print_record, print_records
from record_utils.stores import build_store
from record_utils.utils.logging import configure_logging

app = typer.Typer(help="Record access utilities: flatten records and follow references.")


def _build_accessor() -> RecordAccessor:
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    return RecordAccessor(build_store(settings), settings=settings)


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    location = (
        f"fixture={settings.store_fixture_path or '-'}"
        if settings.store_backend == "memory"
        else f"DB={settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name}"
        f" schema={settings.db_schema}"
    )
    typer.echo(
        f"backend={settings.store_backend} | {location} | "
        f"key={settings.key_field}({settings.key_length}) "
        f"business_key={settings.business_key_field} "
        f"display={','.join(settings.display_fields)}"
    )


@app.command()
def fields(
    table: str = typer.Argument(..., help="Table containing the record."),
    identifier: str = typer.Argument(..., help="sys_id or record number (e.g. INC0010042)."),
    populated: bool = typer.Option(
        False, "--populated", "-p", help="Only include fields with a value."
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the JSON text form."),
) -> None:
    """
    Show every field of a record with its raw and display value.
    """
    accessor = _build_accessor()
    if as_json:
        typer.echo(accessor.get_fields_as_text(table, identifier, exclude_empty=populated))
        return
    record = accessor.get_fields(table, identifier, exclude_empty=populated)
    if record is None:
        typer.echo(f"No record '{identifier}' in table '{table}'.", err=True)
        raise typer.Exit(code=1)
    print_record(record)


@app.command("short-text")
def short_text(
    table: str = typer.Argument(..., help="Table containing the record."),
    identifier: str = typer.Argument(..., help="sys_id or record number."),
) -> None:
    """
    Print the short description of a record.
    """
    accessor = _build_accessor()
    text = accessor.get_short_text(table, identifier)
    if text is None:
        typer.echo(f"No short description for '{identifier}' in table '{table}'.", err=True)
        raise typer.Exit(code=1)
    typer.echo(text)


@app.command()
def related(
    table: str = typer.Argument(..., help="Table to search for referencing records."),
    reference_field: str = typer.Argument(..., help="Field holding the reference."),
    target: str = typer.Argument(..., help="sys_id or record number of the referenced record."),
    target_table: Optional[str] = typer.Option(
        None,
        "--target-table",
        "-t",
        help="Table of the referenced record (required when TARGET is a record number).",
    ),
    populated: bool = typer.Option(
        False, "--populated", "-p", help="Only include fields with a value."
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the JSON text form."),
    details: bool = typer.Option(False, "--details", "-d", help="Print every record in full."),
) -> None:
    """
    List records of TABLE whose REFERENCE_FIELD points at TARGET.
    """
    accessor = _build_accessor()
    if as_json:
        typer.echo(
            accessor.find_referencing_as_text(
                table, reference_field, target, target_table, exclude_empty=populated
            )
        )
        return
    records = accessor.find_referencing(
        table, reference_field, target, target_table, exclude_empty=populated
    )
    print_records(records, title=f"{table}.{reference_field} -> {target}", details=details)


@app.command()
def interactions(
    user: str = typer.Argument(..., help="sys_id or user name of the user."),
    populated: bool = typer.Option(
        False, "--populated", "-p", help="Only include fields with a value."
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the JSON text form."),
    details: bool = typer.Option(False, "--details", "-d", help="Print every record in full."),
) -> None:
    """
    List interaction records opened for a user.
    """
    accessor = _build_accessor()
    if as_json:
        typer.echo(accessor.find_user_interactions_as_text(user, exclude_empty=populated))
        return
    records = accessor.find_user_interactions(user, exclude_empty=populated)
    print_records(records, title=f"Interactions for {user}", details=details)


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
