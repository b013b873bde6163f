"""Shared test fixtures for dataobject tests."""

from __future__ import annotations

from typing import Any, Mapping

import pytest

from dataobject import Column, Record, RecordFactory
from dataobject.storage import SqliteDriver

SCHEMA = """
    CREATE TABLE users (
        id INTEGER PRIMARY KEY,
        name TEXT NOT NULL,
        email TEXT,
        age INTEGER NOT NULL DEFAULT 0,
        active INTEGER NOT NULL DEFAULT 1
    );

    CREATE TABLE groups (
        id INTEGER PRIMARY KEY,
        title TEXT NOT NULL
    );

    CREATE TABLE memberships (
        user_id INTEGER NOT NULL,
        group_id INTEGER NOT NULL,
        role TEXT NOT NULL DEFAULT 'member',
        PRIMARY KEY (user_id, group_id)
    );
"""

USERS = [
    {"id": 1, "name": "Alice", "email": "alice@example.com", "age": 34, "active": 1},
    {"id": 2, "name": "Bob", "email": None, "age": 27, "active": 1},
    {"id": 3, "name": "Carol", "email": "carol@example.com", "age": 41, "active": 0},
    {"id": 4, "name": "Dave", "email": "dave@example.com", "age": 19, "active": 1},
    {"id": 5, "name": "Eve", "email": None, "age": 52, "active": 1},
]

GROUPS = [
    {"id": 10, "title": "Admins"},
    {"id": 20, "title": "Editors"},
    {"id": 30, "title": "Readers"},
]

MEMBERSHIPS = [
    {"user_id": 1, "group_id": 10, "role": "owner"},
    {"user_id": 1, "group_id": 20, "role": "member"},
    {"user_id": 2, "group_id": 10, "role": "member"},
    {"user_id": 3, "group_id": 30, "role": "admin"},
]


# --- Test Record types ---


class User(Record, table="users"):
    id: Column[int] = Column(primary_key=True)
    name: Column[str]
    email: Column[str | None] = None
    age: Column[int] = 0
    active: Column[bool] = True


class Membership(Record, table="memberships"):
    user_id: Column[int] = Column(primary_key=True)
    group_id: Column[int] = Column(primary_key=True)
    role: Column[str] = "member"


class RecordingDriver:
    """Wraps a driver and records every storage call by name."""

    def __init__(self, inner: SqliteDriver) -> None:
        self.inner = inner
        self.calls: list[tuple[str, tuple[Any, ...]]] = []

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, args))

    def calls_to(self, name: str) -> list[tuple[Any, ...]]:
        return [args for call, args in self.calls if call == name]

    def fetch_all(self, sql: str) -> list[dict[str, Any]]:
        self._record("fetch_all", sql)
        return self.inner.fetch_all(sql)

    def fetch_one(self, sql: str) -> Any:
        self._record("fetch_one", sql)
        return self.inner.fetch_one(sql)

    def insert(self, table: str, data: Mapping[str, Any]) -> int | None:
        self._record("insert", table, dict(data))
        return self.inner.insert(table, data)

    def update(self, table: str, data: Mapping[str, Any], where: str) -> int:
        self._record("update", table, dict(data), where)
        return self.inner.update(table, data, where)

    def delete(self, table: str, where: str) -> int:
        self._record("delete", table, where)
        return self.inner.delete(table, where)

    def quote(self, value: Any) -> str:
        return self.inner.quote(value)

    def quote_into(self, text: str, value: Any) -> str:
        return self.inner.quote_into(text, value)

    def close(self) -> None:
        self.inner.close()


# --- Fixtures ---


@pytest.fixture
def tmp_db(tmp_path):
    """Create a temporary SQLite database path."""
    return str(tmp_path / "test.db")


@pytest.fixture
def driver(tmp_db):
    """A SqliteDriver on a seeded temporary database."""
    d = SqliteDriver(tmp_db)
    d.execute_script(SCHEMA)
    for table, rows in (("users", USERS), ("groups", GROUPS), ("memberships", MEMBERSHIPS)):
        for row in rows:
            d.insert(table, row)
    yield d
    d.close()


@pytest.fixture
def db(driver):
    """The seeded driver wrapped so tests can count storage calls."""
    return RecordingDriver(driver)


@pytest.fixture
def users(db):
    return RecordFactory(db, User)


@pytest.fixture
def memberships(db):
    return RecordFactory(db, Membership)
