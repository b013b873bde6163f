"""Storage drivers and SQL literal quoting."""

from __future__ import annotations

import logging
import math
import sqlite3
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Iterable, Mapping, Protocol, runtime_checkable
from urllib.parse import urlparse

from dataobject.config import DataObjectConfig
from dataobject.errors import StorageBackendError

logger = logging.getLogger(__name__)

PLACEHOLDER = "?"

_SCALAR_ITERABLES = (str, bytes, bytearray, memoryview, Mapping)


def is_collection(value: Any) -> bool:
    """Whether value is a collection of values (as opposed to a scalar or mapping).

    Any iterable counts (ranges, key views, generators) except text, binary
    values and mappings.
    """
    return isinstance(value, Iterable) and not isinstance(value, _SCALAR_ITERABLES)


def quote(value: Any) -> str:
    """Render a Python value as an SQLite literal.

    Collections become a comma-joined list of quoted items, suitable for
    ``IN (...)``. An empty collection renders as ``NULL`` so that
    ``x IN (NULL)`` matches nothing. NaN and infinities have no SQLite
    literal and raise ValueError.
    """
    if is_collection(value):
        items = [quote(v) for v in value]
        return ",".join(items) if items else "NULL"
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise ValueError(f"Cannot quote non-finite number: {value}")
        return str(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError(f"Cannot quote non-finite number: {value}")
        return repr(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return f"X'{bytes(value).hex()}'"
    if isinstance(value, (datetime, date, time)):
        return quote(value.isoformat())
    text = str(value)
    return "'" + text.replace("'", "''") + "'"


def quote_into(text: str, value: Any) -> str:
    """Replace every ``?`` placeholder in text with the quoted value."""
    if PLACEHOLDER not in text:
        return text
    return text.replace(PLACEHOLDER, quote(value))


def quote_identifier(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


@runtime_checkable
class StorageDriver(Protocol):
    """Protocol for the storage connection used by factories and records."""

    def fetch_all(self, sql: str) -> list[dict[str, Any]]: ...

    def fetch_one(self, sql: str) -> Any: ...

    def insert(self, table: str, data: Mapping[str, Any]) -> int | None: ...

    def update(self, table: str, data: Mapping[str, Any], where: str) -> int: ...

    def delete(self, table: str, where: str) -> int: ...

    def quote(self, value: Any) -> str: ...

    def quote_into(self, text: str, value: Any) -> str: ...

    def close(self) -> None: ...


class SqliteDriver:
    """SQLite-backed storage driver.

    Rows are returned as plain dicts keyed by column name. Every write is
    committed immediately.
    """

    def __init__(self, db_path: str, *, timeout: float = 5.0, log_sql: bool = False) -> None:
        self.db_path = db_path
        self._log_level = logging.INFO if log_sql else logging.DEBUG
        self._conn = sqlite3.connect(db_path, timeout=timeout)
        self._conn.row_factory = sqlite3.Row

    def __enter__(self) -> SqliteDriver:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self._conn.close()

    def _execute(self, operation: str, sql: str, params: tuple[Any, ...] = ()) -> sqlite3.Cursor:
        logger.log(self._log_level, "%s: %s", operation, sql)
        try:
            return self._conn.execute(sql, params)
        except sqlite3.Error as exc:
            raise StorageBackendError(operation, f"{exc} (sql: {sql})") from exc

    def _write(self, operation: str, sql: str, params: tuple[Any, ...] = ()) -> sqlite3.Cursor:
        cursor = self._execute(operation, sql, params)
        self._conn.commit()
        return cursor

    def execute_script(self, script: str) -> None:
        """Run a multi-statement script, e.g. DDL for fixtures and examples."""
        logger.log(self._log_level, "execute_script: %s", script)
        try:
            self._conn.executescript(script)
        except sqlite3.Error as exc:
            raise StorageBackendError("execute_script", str(exc)) from exc
        self._conn.commit()

    # --- Reads ---

    def fetch_all(self, sql: str) -> list[dict[str, Any]]:
        rows = self._execute("fetch_all", sql).fetchall()
        return [dict(r) for r in rows]

    def fetch_one(self, sql: str) -> Any:
        row = self._execute("fetch_one", sql).fetchone()
        return row[0] if row is not None else None

    # --- Writes ---

    def insert(self, table: str, data: Mapping[str, Any]) -> int | None:
        columns = ", ".join(quote_identifier(c) for c in data)
        placeholders = ", ".join(PLACEHOLDER for _ in data)
        sql = f"INSERT INTO {quote_identifier(table)} ({columns}) VALUES ({placeholders})"
        cursor = self._write("insert", sql, tuple(data.values()))
        return cursor.lastrowid

    def update(self, table: str, data: Mapping[str, Any], where: str) -> int:
        if not data:
            return 0
        assignments = ", ".join(f"{quote_identifier(c)} = {PLACEHOLDER}" for c in data)
        sql = f"UPDATE {quote_identifier(table)} SET {assignments} WHERE {where}"
        cursor = self._write("update", sql, tuple(data.values()))
        return cursor.rowcount

    def delete(self, table: str, where: str) -> int:
        sql = f"DELETE FROM {quote_identifier(table)} WHERE {where}"
        cursor = self._write("delete", sql)
        return cursor.rowcount

    # --- Quoting ---

    def quote(self, value: Any) -> str:
        return quote(value)

    def quote_into(self, text: str, value: Any) -> str:
        return quote_into(text, value)


@dataclass(frozen=True)
class StorageTarget:
    """Resolved storage target from a plain path or a URI."""

    backend: str
    uri: str
    db_path: str | None = None


def parse_storage_target(
    db_path: str | None = None,
    storage_uri: str | None = None,
) -> StorageTarget:
    """Resolve backend target from a plain db_path or a ``scheme://`` URI."""
    if storage_uri is None:
        path = db_path or DataObjectConfig.db_path
        return StorageTarget(backend="sqlite", uri=f"sqlite:///{path}", db_path=path)

    if db_path is not None:
        raise ValueError("Pass either db_path or storage_uri, not both")

    parsed = urlparse(storage_uri)
    if parsed.scheme != "sqlite":
        raise StorageBackendError(
            "parse_storage_target",
            f"Unsupported storage URI scheme '{parsed.scheme}' in '{storage_uri}'",
        )
    if parsed.netloc:
        # sqlite://app.db -> "app.db", sqlite://data/app.db -> "data/app.db"
        path = f"{parsed.netloc}{parsed.path}"
    else:
        # sqlite:///relative.db -> "relative.db", sqlite:////abs/path.db -> "/abs/path.db"
        path = parsed.path[1:] if parsed.path.startswith("/") else parsed.path
    if not path:
        raise StorageBackendError("parse_storage_target", f"Missing database path in '{storage_uri}'")
    return StorageTarget(backend="sqlite", uri=storage_uri, db_path=path)


def open_driver(
    db_path: str | None = None,
    *,
    storage_uri: str | None = None,
    config: DataObjectConfig | None = None,
) -> SqliteDriver:
    """Open a storage driver from a path, a URI or the config's binding."""
    cfg = config or DataObjectConfig()
    if db_path is None and storage_uri is None:
        if cfg.storage_uri is not None:
            storage_uri = cfg.storage_uri
        else:
            db_path = cfg.db_path
    target = parse_storage_target(db_path=db_path, storage_uri=storage_uri)
    assert target.db_path is not None
    return SqliteDriver(target.db_path, timeout=cfg.sqlite_timeout_s, log_sql=cfg.log_sql)


__all__ = [
    "PLACEHOLDER",
    "SqliteDriver",
    "StorageDriver",
    "StorageTarget",
    "is_collection",
    "open_driver",
    "parse_storage_target",
    "quote",
    "quote_identifier",
    "quote_into",
]
