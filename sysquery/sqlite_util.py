"""Running SQL against SQLite and collecting rows as string maps."""

from __future__ import annotations

import logging
import sqlite3
from contextlib import closing
from typing import Iterator, Optional

__all__ = [
    "SQLiteError",
    "SQL",
    "string_for_sqlite_return_code",
    "create_db",
    "query",
]

logger = logging.getLogger(__name__)

Row = dict[str, str]
QueryData = list[Row]

_SQLITE_RETURN_CODES = {
    0: "SQLITE_OK: Successful result",
    1: "SQLITE_ERROR: SQL error or missing database",
    2: "SQLITE_INTERNAL: Internal logic error in SQLite",
    3: "SQLITE_PERM: Access permission denied",
    4: "SQLITE_ABORT: Callback routine requested an abort",
    5: "SQLITE_BUSY: The database file is locked",
    6: "SQLITE_LOCKED: A table in the database is locked",
    7: "SQLITE_NOMEM: A malloc() failed",
    8: "SQLITE_READONLY: Attempt to write a readonly database",
    9: "SQLITE_INTERRUPT: Operation terminated by sqlite3_interrupt()",
    10: "SQLITE_IOERR: Some kind of disk I/O error occurred",
    11: "SQLITE_CORRUPT: The database disk image is malformed",
    12: "SQLITE_NOTFOUND: Unknown opcode in sqlite3_file_control()",
    13: "SQLITE_FULL: Insertion failed because database is full",
    14: "SQLITE_CANTOPEN: Unable to open the database file",
    15: "SQLITE_PROTOCOL: Database lock protocol error",
    16: "SQLITE_EMPTY: Database is empty",
    17: "SQLITE_SCHEMA: The database schema changed",
    18: "SQLITE_TOOBIG: String or BLOB exceeds size limit",
    19: "SQLITE_CONSTRAINT: Abort due to constraint violation",
    20: "SQLITE_MISMATCH: Data type mismatch",
    21: "SQLITE_MISUSE: Library used incorrectly",
    22: "SQLITE_NOLFS: Uses OS features not supported on host",
    23: "SQLITE_AUTH: Authorization denied",
    24: "SQLITE_FORMAT: Auxiliary database format error",
    25: "SQLITE_RANGE: 2nd parameter to sqlite3_bind out of range",
    26: "SQLITE_NOTADB: File opened that is not a database file",
    27: "SQLITE_NOTICE: Notifications from sqlite3_log()",
    28: "SQLITE_WARNING: Warnings from sqlite3_log()",
    100: "SQLITE_ROW: sqlite3_step() has another row ready",
    101: "SQLITE_DONE: sqlite3_step() has finished executing",
}


class SQLiteError(Exception):
    """Raised when a query fails; ``code`` holds the SQLite result code."""

    def __init__(self, message: str, code: int = 1) -> None:
        super().__init__(message)
        self.code = code


def string_for_sqlite_return_code(code: int) -> str:
    """Describe a SQLite result code."""
    try:
        return _SQLITE_RETURN_CODES[code]
    except KeyError:
        return f"Error: {code} is not a valid SQLite result code"


def create_db() -> sqlite3.Connection:
    """Open a fresh in-memory database in autocommit mode."""
    return sqlite3.connect(":memory:", isolation_level=None)


def _statements(sql: str) -> Iterator[str]:
    pending = ""
    for char in sql:
        pending += char
        if char == ";" and sqlite3.complete_statement(pending):
            if pending.strip(" \t\r\n;"):
                yield pending
            pending = ""
    if pending.strip():
        yield pending


def _as_text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


def _run(sql: str, db: sqlite3.Connection) -> QueryData:
    results: QueryData = []
    for statement in _statements(sql):
        cursor = db.execute(statement)
        if cursor.description is None:
            continue
        columns = [column[0] for column in cursor.description]
        for values in cursor:
            results.append(
                {name: _as_text(value) for name, value in zip(columns, values)}
            )
    return results


def query(sql: str, db: Optional[sqlite3.Connection] = None) -> QueryData:
    """Run every statement in ``sql`` and return all produced rows.

    Each row maps column names to text values. Without ``db`` a fresh
    in-memory database is used and closed afterwards.
    """
    try:
        if db is None:
            with closing(create_db()) as fresh:
                return _run(sql, fresh)
        return _run(sql, db)
    except (sqlite3.Error, sqlite3.Warning) as exc:
        logger.error("Error launching query: %s", exc)
        raise SQLiteError(str(exc), code=1) from exc


class SQL:
    """The outcome of a query: its rows and its status."""

    def __init__(self, sql: str, db: Optional[sqlite3.Connection] = None) -> None:
        try:
            self._rows = query(sql, db)
            self._code = 0
        except SQLiteError as exc:
            self._rows = []
            self._code = exc.code
        self._message = string_for_sqlite_return_code(self._code)

    def rows(self) -> QueryData:
        """Rows returned by the query."""
        return self._rows

    def ok(self) -> bool:
        """Whether the query succeeded."""
        return self._code == 0

    def message(self) -> str:
        """Description of the query's result code."""
        return self._message