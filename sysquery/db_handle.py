"""Persistent key/value backing store split into domains."""

from __future__ import annotations

import os
import sqlite3
import threading
from typing import Optional

__all__ = [
    "CONFIGURATIONS",
    "QUERIES",
    "EVENTS",
    "DOMAINS",
    "DEFAULT_DB_PATH",
    "DatabaseError",
    "DBHandle",
    "get_instance",
]

CONFIGURATIONS = "configurations"
QUERIES = "queries"
EVENTS = "events"
DOMAINS = (CONFIGURATIONS, QUERIES, EVENTS)

DEFAULT_DB_PATH = "/tmp/rocksdb-osquery"
_DB_FILE = "store.sqlite3"


class DatabaseError(Exception):
    """Raised when the backing store cannot complete an operation."""


class DBHandle:
    """A key/value store with one namespace per domain.

    ``path`` names a directory that is created when missing; with
    ``in_memory`` the store lives only as long as the handle.
    """

    def __init__(self, path: str = DEFAULT_DB_PATH, in_memory: bool = False) -> None:
        self._lock = threading.Lock()
        if in_memory:
            location = ":memory:"
        else:
            if os.path.exists(path) and not os.access(path, os.W_OK):
                raise DatabaseError(f"Cannot write to database path: {path}")
            try:
                os.makedirs(path, exist_ok=True)
            except OSError as exc:
                raise DatabaseError(str(exc)) from exc
            location = os.path.join(path, _DB_FILE)
        try:
            self._conn: Optional[sqlite3.Connection] = sqlite3.connect(
                location, isolation_level=None, check_same_thread=False
            )
            for domain in DOMAINS:
                self._conn.execute(
                    f'CREATE TABLE IF NOT EXISTS "{domain}" '
                    "(key TEXT PRIMARY KEY, value TEXT NOT NULL)"
                )
        except sqlite3.Error as exc:
            raise DatabaseError(str(exc)) from exc

    def __enter__(self) -> "DBHandle":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _execute(self, domain: str, sql: str, params: tuple = ()) -> list:
        if domain not in DOMAINS:
            raise DatabaseError(f"Unknown domain: {domain}")
        if self._conn is None:
            raise DatabaseError("Database handle is closed")
        with self._lock:
            try:
                return self._conn.execute(sql.format(table=f'"{domain}"'), params).fetchall()
            except sqlite3.Error as exc:
                raise DatabaseError(str(exc)) from exc

    def get(self, domain: str, key: str) -> str:
        """Return the value stored under ``key``; raises DatabaseError if absent."""
        rows = self._execute(domain, "SELECT value FROM {table} WHERE key = ?", (key,))
        if not rows:
            raise DatabaseError(f"NotFound: {key}")
        return rows[0][0]

    def put(self, domain: str, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any earlier value."""
        self._execute(
            domain,
            "INSERT OR REPLACE INTO {table} (key, value) VALUES (?, ?)",
            (key, value),
        )

    def delete(self, domain: str, key: str) -> None:
        """Remove ``key``; removing an absent key is not an error."""
        self._execute(domain, "DELETE FROM {table} WHERE key = ?", (key,))

    def scan(self, domain: str) -> list[str]:
        """Return every key in the domain in byte order."""
        rows = self._execute(domain, "SELECT key FROM {table} ORDER BY key")
        return [row[0] for row in rows]

    def close(self) -> None:
        """Release the underlying database."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None


_instance: Optional[DBHandle] = None
_instance_lock = threading.Lock()


def get_instance(path: str = DEFAULT_DB_PATH, in_memory: bool = False) -> DBHandle:
    """Return the shared handle, creating it from the first call's arguments."""
    global _instance
    with _instance_lock:
        if _instance is None:
            _instance = DBHandle(path, in_memory)
        return _instance