"""Factories: query composition and row materialization for one table."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Generic, Mapping, Sequence, TypeVar

from dataobject.config import DataObjectConfig
from dataobject.errors import NotFoundError, ValidationError
from dataobject.record import DataObject
from dataobject.select import Select
from dataobject.storage import is_collection
from dataobject.where import Where

if TYPE_CHECKING:
    from dataobject.paginator import BoundPaginator
    from dataobject.storage import StorageDriver
    from dataobject.types import Record

logger = logging.getLogger(__name__)

D = TypeVar("D", bound=DataObject)
RecordT = TypeVar("RecordT", bound="Record")

OrderSpec = Sequence[str]


def _materialize(value: Any) -> Any:
    """Turn a one-shot iterable of ids (generator, range, key view) into a tuple."""
    return tuple(value) if is_collection(value) else value


class Factory(ABC, Generic[D]):
    """Base class for factories that build DataObjects from one table.

    Subclasses implement ``create_object`` to turn one row into a concrete
    DataObject. The primary key schema may have one or several fields; id
    arguments are translated to conditions accordingly:

    - one field: a scalar id or a collection of ids
    - several fields: a collection of mappings ``{field: value}``, where a
      value may itself be a collection

    Paging methods fall back to the configured ``default_page_size`` when no
    page size is given.
    """

    def __init__(
        self,
        db: StorageDriver,
        table_name: str,
        primary_key: Sequence[str],
        *,
        select: Select | None = None,
        config: DataObjectConfig | None = None,
    ) -> None:
        if isinstance(primary_key, str):
            primary_key = (primary_key,)
        if not primary_key:
            raise ValueError(f"Factory for '{table_name}' needs at least one primary key field")
        self._db = db
        self._table_name = table_name
        self._primary_key: tuple[str, ...] = tuple(primary_key)
        self._select = select
        self._page_size = (config or DataObjectConfig()).default_page_size

    @classmethod
    def get_new(cls, db: StorageDriver) -> Factory[Any]:
        """Instantiate this factory class for subclasses that only need a driver."""
        return cls(db)  # type: ignore[call-arg]

    @property
    def db(self) -> StorageDriver:
        return self._db

    @property
    def table_name(self) -> str:
        return self._table_name

    @property
    def primary_key(self) -> tuple[str, ...]:
        return self._primary_key

    @property
    def page_size(self) -> int:
        return self._page_size

    # --- Factory methods ---

    def get_from_ids(self, ids: Any, order: OrderSpec | None = None) -> list[D]:
        """Return objects for the given ids; an empty id collection never hits storage."""
        ids = _materialize(ids)
        if is_collection(ids) and not ids:
            return []

        select = self.get_select().where(self.get_where_string(ids))
        if order:
            select.order(order)
        return self._fetch(select)

    def get_from_where(self, condition: str | Where, order: OrderSpec | None = None) -> list[D]:
        """Return objects matching a condition."""
        select = self.get_select().where(condition)
        if order:
            select.order(order)
        return self._fetch(select)

    def get_one(self, id: Any) -> D:
        """Return the single object with the given id.

        Raises NotFoundError when no row matches.
        """
        select = self.get_select().where(self.get_where_string(id))
        result = self._fetch(select)
        if not result:
            raise NotFoundError("The object with the specified ID does not exist")
        return result[0]

    def get_page(
        self,
        page: int,
        page_size: int | None = None,
        order: OrderSpec | None = None,
        condition: str | Where | None = None,
        option: Any = None,
    ) -> list[D]:
        """Return one 1-based page of objects.

        ``option`` is not interpreted here; subclasses may use it to shape
        the query (extra joins, columns).
        """
        select = self.get_select()
        select.limit_page(page, self._page_size if page_size is None else page_size)
        for term in order or ():
            select.order(term)
        if condition is not None:
            select.where(condition)
        return self._fetch(select)

    def get_paginator(
        self,
        page: int,
        page_size: int | None = None,
        order: OrderSpec | None = None,
        condition: str | Where | None = None,
        option: Any = None,
    ) -> BoundPaginator[D]:
        """Return a paginator positioned on ``page``."""
        from dataobject.paginator import BoundPaginator, Paginator

        count_select = self.get_count_select(option)
        if condition is not None:
            count_select.where(condition)

        adapter: Paginator[D] = Paginator(self, count_select, option)
        adapter.set_order(list(order or ()))
        if condition is not None:
            adapter.set_where(condition)

        return BoundPaginator(adapter, page, self._page_size if page_size is None else page_size)

    # --- Row conversion ---

    def create_list(self, rows: Sequence[Mapping[str, Any]]) -> list[D]:
        """Convert rows to objects, preserving row order."""
        return [self.create_object(row) for row in rows]

    @abstractmethod
    def create_object(self, row: Mapping[str, Any]) -> D:
        """Create one object from one storage row."""

    def _fetch(self, select: Select) -> list[D]:
        rows = select.query()
        logger.debug("%s: fetched %d row(s)", self._table_name, len(rows))
        return self.create_list(rows)

    # --- Query building ---

    def get_select(self, fields: str | Sequence[str] = "*") -> Select:
        """Return a fresh Select on this table, cloned from the template if one was given."""
        select = Select(self._db) if self._select is None else self._select.clone()
        return select.from_(self._table_name, fields)

    def get_count_select(self, option: Any = None) -> Select:
        """Return a Select that counts this table's rows."""
        return self.get_select().reset(Select.COLUMNS).columns("COUNT(*)")

    def get_where_string(self, id: Any) -> str:
        """Translate an id argument into a condition over the primary key."""
        where = Where(quoter=self._db.quote_into)
        id = _materialize(id)

        if len(self._primary_key) > 1:
            if isinstance(id, Mapping) or not is_collection(id):
                id = [id]
            for keys in id:
                if not isinstance(keys, Mapping):
                    raise ValidationError(
                        f"Composite key ({', '.join(self._primary_key)}) needs mappings, "
                        f"got {type(keys).__name__}"
                    )
                inner = Where(quoter=self._db.quote_into)
                for field in self._primary_key:
                    value = _materialize(keys.get(field))
                    if value is None:
                        raise ValidationError(f"No value for key part: {field}")
                    inner.add_and(self._key_term(field, value), value)
                where.add_or(inner)
        else:
            field = self._primary_key[0]
            if isinstance(id, Mapping):
                if id.get(field) is None:
                    raise ValidationError(f"No value for key part: {field}")
                id = _materialize(id[field])
            where.add_and(self._key_term(field, id), id)

        return where.get_where()

    def _key_term(self, field: str, value: Any) -> str:
        column = f"{self._table_name}.{field}"
        return f"{column} IN (?)" if is_collection(value) else f"{column} = ?"


class RecordFactory(Factory[RecordT]):
    """Factory for a typed Record class; table and key come from the class."""

    def __init__(
        self,
        db: StorageDriver,
        record_cls: type[RecordT],
        *,
        select: Select | None = None,
        config: DataObjectConfig | None = None,
    ) -> None:
        super().__init__(
            db, record_cls.__table__, record_cls.__primary_key__, select=select, config=config
        )
        self._record_cls = record_cls

    @property
    def record_cls(self) -> type[RecordT]:
        return self._record_cls

    def create_object(self, row: Mapping[str, Any]) -> RecordT:
        return self._record_cls.from_row(self._db, row)
