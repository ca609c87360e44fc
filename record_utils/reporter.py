from __future__ import annotations

from typing import Iterable, Optional

from rich import box
from rich.console import Console
from rich.table import Table

from record_utils.domain.models import FlattenedRecord


def build_record_table(record: FlattenedRecord, title: Optional[str] = None) -> Table:
    """
    Render one flattened record as a three-column table (field, value, display value).
    """
    table = Table(
        title=title or f"{record.display_value} ({record.sys_id})",
        box=box.SIMPLE_HEAVY,
        show_lines=False,
    )
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Value", style="white")
    table.add_column("Display value", style="green")
    for name, pair in record.fields.items():
        value = "" if pair.value is None else str(pair.value)
        table.add_row(name, value, pair.display_value)
    return table


def build_summary_table(records: Iterable[FlattenedRecord], title: str) -> Table:
    """
    Render a list of flattened records as one row per record.
    """
    table = Table(title=title, box=box.SIMPLE_HEAVY)
    table.add_column("#", justify="right", style="dim")
    table.add_column("sys_id", style="cyan", no_wrap=True)
    table.add_column("Display value", style="green")
    table.add_column("Fields", justify="right")
    for index, record in enumerate(records, start=1):
        table.add_row(str(index), record.sys_id, record.display_value, str(len(record.fields)))
    return table


def print_record(record: FlattenedRecord, console: Optional[Console] = None) -> None:
    (console or Console()).print(build_record_table(record))


def print_records(
    records: list[FlattenedRecord],
    title: str,
    console: Optional[Console] = None,
    details: bool = False,
) -> None:
    """
    Print a summary table, followed by one detail table per record when requested.
    """
    console = console or Console()
    console.print(build_summary_table(records, title))
    if details:
        for record in records:
            console.print(build_record_table(record))


__all__ = ["build_record_table", "build_summary_table", "print_record", "print_records"]
