"""
PostgreSQL record store.

Each PostgreSQL table is a record table; its columns are the fields, in
ordinal order. Schema introspection goes through `information_schema`, so no
table shape is known ahead of time. Foreign-key columns are reference fields:
their display value is the referenced row's display value.

Raw values are normalised to the string forms the platform reports (see
`stringify_value`). Identifiers are always quoted with `psycopg.sql`.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Generator, Iterable, List, Mapping, Optional, Tuple

import psycopg
from psycopg import sql
from psycopg.rows import dict_row

from record_utils.config import Settings, get_settings
from record_utils.domain.errors import RecordStoreError
from record_utils.domain.models import StoredRecord
from record_utils.infrastructure.db_factory import (
    apply_statement_timeout,
    get_sync_connection,
    get_sync_pool,
)
from record_utils.stores.abstract import AbstractRecordStore, stringify_value
from record_utils.utils.logging import get_logger

log = get_logger(__name__)

_TABLE_EXISTS_SQL = """
    SELECT EXISTS (
        SELECT 1 FROM information_schema.tables
        WHERE table_schema = %s AND table_name = %s
    ) AS present
"""

_COLUMNS_SQL = """
    SELECT column_name, data_type
    FROM information_schema.columns
    WHERE table_schema = %s AND table_name = %s
    ORDER BY ordinal_position
"""

_FOREIGN_KEYS_SQL = """
    SELECT kcu.column_name, ccu.table_name AS ref_table, ccu.column_name AS ref_column
    FROM information_schema.table_constraints tc
    JOIN information_schema.key_column_usage kcu
      ON tc.constraint_name = kcu.constraint_name
     AND tc.table_schema = kcu.table_schema
    JOIN information_schema.constraint_column_usage ccu
      ON ccu.constraint_name = tc.constraint_name
     AND ccu.table_schema = tc.table_schema
    WHERE tc.constraint_type = 'FOREIGN KEY'
      AND tc.table_schema = %s
      AND tc.table_name = %s
"""

# Column types matched against the parameter without a ::text cast.
_TEXT_TYPES = frozenset({"text", "character varying", "character"})

Reference = Tuple[str, str]


class PostgresRecordStore(AbstractRecordStore):
    """
    RecordStore backed by a PostgreSQL schema via psycopg.

    Parameters
    ----------
    dsn_override : str, optional
        Connection string; defaults to the one built from settings.
    use_pool : bool
        Borrow connections from the shared psycopg pool instead of opening
        one connection per call.
    """

    name: str = "postgres"

    def __init__(
        self,
        dsn_override: Optional[str] = None,
        schema: Optional[str] = None,
        key_field: Optional[str] = None,
        display_fields: Optional[Iterable[str]] = None,
        use_pool: bool = True,
        statement_timeout_ms: Optional[int] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        settings = settings or get_settings()
        self._dsn_override = dsn_override
        self.schema = schema or settings.db_schema
        self.key_field = key_field or settings.key_field
        self.display_fields = list(display_fields or settings.display_fields)
        self.use_pool = use_pool
        self.statement_timeout_ms = (
            settings.db_statement_timeout_ms
            if statement_timeout_ms is None
            else statement_timeout_ms
        )

    # -- connections ----------------------------------------------------

    @contextmanager
    def _connection(self) -> Generator[psycopg.Connection, None, None]:
        if self.use_pool:
            with get_sync_pool(self._dsn_override).connection() as conn:
                yield conn
            return
        conn = get_sync_connection(self._dsn_override)
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def _cursor(self) -> Generator[psycopg.Cursor, None, None]:
        try:
            with self._connection() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    apply_statement_timeout(cur, self.statement_timeout_ms)
                    yield cur
        except psycopg.Error as exc:
            raise RecordStoreError(f"PostgreSQL query failed: {exc}") from exc

    # -- RecordStore ----------------------------------------------------

    def is_valid_table(self, table: str) -> bool:
        with self._cursor() as cur:
            cur.execute(_TABLE_EXISTS_SQL, (self.schema, table))
            row = cur.fetchone()
        return bool(row and row["present"])

    def list_fields(self, table: str) -> List[str]:
        with self._cursor() as cur:
            return list(self._columns(cur, table))

    def is_valid_field(self, table: str, field: str) -> bool:
        return field in self.list_fields(table)

    def get_by_key(self, table: str, key: str) -> Optional[StoredRecord]:
        return self.get_by_field(table, self.key_field, key)

    def get_by_field(self, table: str, field: str, value: str) -> Optional[StoredRecord]:
        with self._cursor() as cur:
            columns = self._columns(cur, table)
            if field not in columns:
                return None
            cast = columns[field] not in _TEXT_TYPES
            cur.execute(self._select(table, field, limit=1, cast=cast), (value,))
            row = cur.fetchone()
            if row is None:
                return None
            references = self._references(cur, table)
            return self._to_stored(cur, table, columns, references, row, {})

    def query(self, table: str, field: str, value: str) -> List[StoredRecord]:
        with self._cursor() as cur:
            columns = self._columns(cur, table)
            if field not in columns:
                raise RecordStoreError(f"Field '{field}' does not exist on table '{table}'")
            cast = columns[field] not in _TEXT_TYPES
            cur.execute(self._select(table, field, cast=cast), (value,))
            rows = cur.fetchall()
            log.debug(
                "Fetched rows",
                extra={"table": table, "field": field, "value": value, "rows": len(rows)},
            )
            references = self._references(cur, table)
            memo: Dict[Tuple[str, str, str], str] = {}
            return [self._to_stored(cur, table, columns, references, row, memo) for row in rows]

    # -- helpers --------------------------------------------------------

    def _columns(self, cur: psycopg.Cursor, table: str) -> Dict[str, str]:
        """Column name to data type, in ordinal order."""
        cur.execute(_COLUMNS_SQL, (self.schema, table))
        return {row["column_name"]: row["data_type"] for row in cur.fetchall()}

    def _references(self, cur: psycopg.Cursor, table: str) -> Dict[str, Reference]:
        cur.execute(_FOREIGN_KEYS_SQL, (self.schema, table))
        return {
            row["column_name"]: (row["ref_table"], row["ref_column"]) for row in cur.fetchall()
        }

    def _select(
        self, table: str, field: str, limit: Optional[int] = None, cast: bool = False
    ) -> sql.Composed:
        where = "{}::text = %s" if cast else "{} = %s"
        query = sql.SQL("SELECT * FROM {}.{} WHERE " + where).format(
            sql.Identifier(self.schema),
            sql.Identifier(table),
            sql.Identifier(field),
        )
        if limit is not None:
            query = query + sql.SQL(" LIMIT {}").format(sql.Literal(limit))
        return query

    def _row_display(self, row: Mapping[str, Any]) -> str:
        for name in self.display_fields:
            text = stringify_value(row.get(name))
            if text:
                return text
        return stringify_value(row.get(self.key_field)) or ""

    def _reference_display(
        self,
        cur: psycopg.Cursor,
        reference: Reference,
        value: str,
        memo: Dict[Tuple[str, str, str], str],
        cast: bool = False,
    ) -> str:
        ref_table, ref_column = reference
        memo_key = (ref_table, ref_column, value)
        if memo_key not in memo:
            cur.execute(self._select(ref_table, ref_column, limit=1, cast=cast), (value,))
            target = cur.fetchone()
            memo[memo_key] = self._row_display(target) if target else ""
        return memo[memo_key]

    def _to_stored(
        self,
        cur: psycopg.Cursor,
        table: str,
        columns: Dict[str, str],
        references: Dict[str, Reference],
        row: Mapping[str, Any],
        memo: Dict[Tuple[str, str, str], str],
    ) -> StoredRecord:
        values: Dict[str, Optional[str]] = {}
        display_values: Dict[str, str] = {}
        for name in columns:
            text = stringify_value(row.get(name))
            values[name] = text
            if text and name in references:
                cast = columns[name] not in _TEXT_TYPES
                display_values[name] = self._reference_display(
                    cur, references[name], text, memo, cast=cast
                )
            else:
                display_values[name] = text or ""
        return StoredRecord(
            table=table,
            sys_id=values.get(self.key_field) or "",
            display_value=self._row_display(row),
            field_names=tuple(columns),
            values=values,
            display_values=display_values,
        )


__all__ = ["PostgresRecordStore"]
