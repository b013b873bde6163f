"""DataObject: one mapped row with dirty tracking and save/delete."""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Mapping

from dataobject.errors import IllegalStateError
from dataobject.where import Where

if TYPE_CHECKING:
    from dataobject.storage import StorageDriver

logger = logging.getLogger(__name__)


class DataObject:
    """Base class for objects backed by a single table row.

    Subclasses change data only through ``_set_data_value``; the pending
    values are written by ``save()`` as one partial UPDATE filtered by the
    primary key. ``delete()`` is terminal: a deleted object can never be
    saved again.
    """

    def __init__(
        self,
        db: StorageDriver,
        table_name: str,
        primary_key: Mapping[str, Any],
    ) -> None:
        self._db: StorageDriver | None = db
        self._table_name = table_name
        self._primary_value: dict[str, Any] = dict(primary_key)
        self._modified_fields: dict[str, Any] = {}
        self._modified = False
        self._deleted = False

    # --- Pickling: the driver is never part of the persisted state ---

    def __getstate__(self) -> dict[str, Any]:
        state = self.__dict__.copy()
        state["_db"] = None
        return state

    def __setstate__(self, state: dict[str, Any]) -> None:
        self.__dict__.update(state)

    def bind(self, db: StorageDriver) -> None:
        """Attach a storage driver, e.g. after unpickling."""
        self._db = db

    # --- Public API ---

    @property
    def table_name(self) -> str:
        return self._table_name

    @property
    def primary_key(self) -> Mapping[str, Any]:
        return MappingProxyType(self._primary_value)

    @property
    def deleted(self) -> bool:
        return self._deleted

    @property
    def modified_fields(self) -> dict[str, Any]:
        return dict(self._modified_fields)

    def save(self) -> None:
        """Write pending changes, if any, to storage."""
        if self._deleted:
            raise IllegalStateError("Object is already deleted, you cannot save it.")
        if not self._modified:
            return

        db = self._require_db()
        logger.debug(
            "save %s %s: %s", self._table_name, self._primary_value, sorted(self._modified_fields)
        )
        db.update(self._table_name, self._modified_fields, self._get_where_string())
        self._modified_fields = {}
        self._modified = False

    def delete(self) -> None:
        """Remove the row from storage and mark the object deleted."""
        db = self._require_db()
        logger.debug("delete %s %s", self._table_name, self._primary_value)
        db.delete(self._table_name, self._get_where_string())
        self._deleted = True

    # --- Subclass API ---

    def _is_modified(self) -> bool:
        return self._modified

    def _set_data_value(self, field: str, value: Any) -> None:
        """Queue a new value for a column; nothing is written until save()."""
        self._modified_fields[field] = value
        self._modified = True

    def _get_where_string(self) -> str:
        db = self._require_db()
        where = Where(quoter=db.quote_into)
        for field, value in self._primary_value.items():
            where.add_and(f"{field} = ?", value)
        return where.get_where()

    def _require_db(self) -> StorageDriver:
        if self._db is None:
            raise IllegalStateError(
                f"{self.__class__.__name__} is not bound to a storage driver; call bind() first"
            )
        return self._db

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(table={self._table_name!r}, key={self._primary_value!r})"
