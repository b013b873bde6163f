"""Composable SELECT statement builder."""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any, Sequence

if TYPE_CHECKING:
    from dataobject.storage import StorageDriver
    from dataobject.where import Where

COLUMNS = "columns"
FROM = "from"
JOIN = "join"
WHERE = "where"
ORDER = "order"
LIMIT = "limit"

_PARTS = (COLUMNS, FROM, JOIN, WHERE, ORDER, LIMIT)


def _qualify(table: str, field: str) -> str:
    """Prefix a plain column name with its table; expressions are left alone."""
    if field == "*" or field.isidentifier():
        return f"{table}.{field}"
    return field


class Select:
    """Mutable SELECT builder bound to a storage driver.

    Builders are cheap to clone; a factory keeps one as a template and
    composes each query on a fresh clone.
    """

    COLUMNS = COLUMNS
    FROM = FROM
    JOIN = JOIN
    WHERE = WHERE
    ORDER = ORDER
    LIMIT = LIMIT

    def __init__(self, db: StorageDriver) -> None:
        self._db = db
        self._columns: list[str] = []
        self._from: list[str] = []
        self._joins: list[str] = []
        self._where: list[str] = []
        self._order: list[str] = []
        self._limit: int | None = None
        self._offset: int | None = None

    @property
    def db(self) -> StorageDriver:
        return self._db

    def clone(self) -> Select:
        """Copy the builder state; the driver is shared, not copied."""
        return copy.copy(self)

    def __copy__(self) -> Select:
        dup = self.__class__.__new__(self.__class__)
        dup.__dict__.update(self.__dict__)
        dup._columns = list(self._columns)
        dup._from = list(self._from)
        dup._joins = list(self._joins)
        dup._where = list(self._where)
        dup._order = list(self._order)
        return dup

    def from_(self, table: str, fields: str | Sequence[str] = "*") -> Select:
        self._from.append(table)
        self._add_columns(table, fields)
        return self

    def join(self, table: str, on: str, fields: str | Sequence[str] = ()) -> Select:
        self._joins.append(f"INNER JOIN {table} ON {on}")
        self._add_columns(table, fields)
        return self

    def left_join(self, table: str, on: str, fields: str | Sequence[str] = ()) -> Select:
        self._joins.append(f"LEFT JOIN {table} ON {on}")
        self._add_columns(table, fields)
        return self

    def _add_columns(self, table: str, fields: str | Sequence[str]) -> None:
        if isinstance(fields, str):
            fields = [fields]
        self._columns.extend(_qualify(table, f) for f in fields)

    def columns(self, expr: str | Sequence[str]) -> Select:
        if isinstance(expr, str):
            expr = [expr]
        self._columns.extend(expr)
        return self

    def where(self, condition: str | Where) -> Select:
        """AND a condition onto the statement, wrapped in parentheses."""
        text = condition if isinstance(condition, str) else condition.get_where()
        self._where.append(f"({text})")
        return self

    def order(self, spec: str | Sequence[str]) -> Select:
        if isinstance(spec, str):
            spec = [spec]
        self._order.extend(s for s in spec if s)
        return self

    def limit(self, count: int | None, offset: int = 0) -> Select:
        self._limit = count
        self._offset = offset or None
        return self

    def limit_page(self, page: int, size: int) -> Select:
        """Limit to one 1-based page of ``size`` rows."""
        page = max(page, 1)
        size = max(size, 1)
        return self.limit(size, size * (page - 1))

    def reset(self, part: str | None = None) -> Select:
        if part is None:
            for name in _PARTS:
                self.reset(name)
            return self
        if part == COLUMNS:
            self._columns = []
        elif part == FROM:
            self._from = []
        elif part == JOIN:
            self._joins = []
        elif part == WHERE:
            self._where = []
        elif part == ORDER:
            self._order = []
        elif part == LIMIT:
            self._limit = None
            self._offset = None
        else:
            raise ValueError(f"Unknown select part: {part!r}")
        return self

    def assemble(self) -> str:
        if not self._from:
            raise ValueError("Select has no FROM table")
        columns = ", ".join(self._columns) if self._columns else "*"
        sql = f"SELECT {columns} FROM {', '.join(self._from)}"
        if self._joins:
            sql += " " + " ".join(self._joins)
        if self._where:
            sql += " WHERE " + " AND ".join(self._where)
        if self._order:
            sql += " ORDER BY " + ", ".join(self._order)
        if self._limit is not None:
            sql += f" LIMIT {int(self._limit)}"
            if self._offset:
                sql += f" OFFSET {int(self._offset)}"
        return sql

    def __str__(self) -> str:
        return self.assemble()

    def __repr__(self) -> str:
        return f"Select({self.assemble()!r})" if self._from else "Select()"

    def query(self) -> list[dict[str, Any]]:
        return self._db.fetch_all(self.assemble())
