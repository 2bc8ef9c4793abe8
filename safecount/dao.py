from __future__ import annotations

import re
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator, List, Optional, Sequence


Params = Sequence[Any]

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class RelationalError(Exception):
    """Query or update against the database failed"""


class DriverNotAvailableError(RelationalError):
    """The database could not be opened at all"""


def get_connection(db_path: str) -> sqlite3.Connection:
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


@contextmanager
def transaction(conn: sqlite3.Connection):
    conn.execute("BEGIN IMMEDIATE")
    try:
        yield
    except Exception:
        conn.rollback()
        raise
    else:
        conn.commit()


def quote_identifier(name: str) -> str:
    if not _IDENTIFIER.match(name or ""):
        raise ValueError(f"Invalid SQL identifier: {name!r}")
    return f'"{name}"'


@dataclass(frozen=True)
class ColumnDescriptor:
    position: int  # 1-based
    name: str
    declared_type: str = ""


@dataclass(frozen=True)
class PrimaryKey:
    table_name: str
    column_name: str
    key_seq: int
    pk_name: str


@dataclass(frozen=True)
class RowRef:
    """Reference to a row in another table, resolved by a second query"""
    table: str
    key_column: str
    value: Any


class RowCursor:
    """Forward-only cursor over a query result.

    Rows are ``sqlite3.Row`` so columns can be read by name or position.
    """

    def __init__(self, cursor: sqlite3.Cursor):
        self._cursor = cursor
        self.columns: List[ColumnDescriptor] = [
            ColumnDescriptor(i, d[0]) for i, d in enumerate(cursor.description or (), start=1)
        ]
        self.row_count = 0

    def __iter__(self) -> Iterator[sqlite3.Row]:
        return self

    def __next__(self) -> sqlite3.Row:
        row = self._cursor.fetchone()
        if row is None:
            raise StopIteration
        self.row_count += 1
        return row

    def fetchall(self) -> List[sqlite3.Row]:
        return list(self)

    def close(self) -> None:
        self._cursor.close()

    def __enter__(self) -> "RowCursor":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class RelationalRepo:
    """Thin query/update/metadata facade over one sqlite connection."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    @classmethod
    def open(cls, db_path: str, create: bool = True) -> "RelationalRepo":
        if not create and db_path != ":memory:" and not Path(db_path).exists():
            raise DriverNotAvailableError(f"Database not found: {db_path}")
        try:
            return cls(get_connection(db_path))
        except sqlite3.Error as e:
            raise DriverNotAvailableError(str(e)) from e

    def close(self) -> None:
        self.conn.close()

    def __enter__(self) -> "RelationalRepo":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def execute_update(self, sql: str, params: Params = ()) -> int:
        """Run a DDL/DML statement, commit, and return the affected row count"""
        try:
            cur = self.conn.execute(sql, tuple(params))
            self.conn.commit()
        except sqlite3.Error as e:
            self.conn.rollback()
            raise RelationalError(str(e)) from e
        return cur.rowcount

    def execute_query(self, sql: str, params: Params = ()) -> RowCursor:
        try:
            return RowCursor(self.conn.execute(sql, tuple(params)))
        except sqlite3.Error as e:
            raise RelationalError(str(e)) from e

    def column_descriptors(self, table: str) -> List[ColumnDescriptor]:
        rows = self._table_info(table)
        return [ColumnDescriptor(r["cid"] + 1, r["name"], r["type"] or "") for r in rows]

    def primary_keys(self, table: str) -> List[PrimaryKey]:
        """Primary-key columns of ``table`` ordered by their position in the key"""
        rows = [r for r in self._table_info(table) if r["pk"]]
        rows.sort(key=lambda r: r["pk"])
        return [
            PrimaryKey(table, r["name"], int(r["pk"]), f"pk_{table.lower()}")
            for r in rows
        ]

    def dereference(self, ref: RowRef, columns: Sequence[str]) -> Optional[sqlite3.Row]:
        """Fetch the referenced row, or None if the reference dangles"""
        cols = ", ".join(quote_identifier(c) for c in columns)
        sql = (
            f"SELECT {cols} FROM {quote_identifier(ref.table)} "
            f"WHERE {quote_identifier(ref.key_column)} = ?"
        )
        with self.execute_query(sql, (ref.value,)) as cur:
            return next(cur, None)

    # --- helpers ---
    def _table_info(self, table: str) -> List[sqlite3.Row]:
        rows = self.execute_query(f"PRAGMA table_info({quote_identifier(table)})").fetchall()
        if not rows:
            raise RelationalError(f"No such table: {table}")
        return rows
