"""Column descriptors and typed Record base class."""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, Any, ClassVar, Generic, Mapping, TypeVar, get_args

from pydantic import BaseModel, TypeAdapter, create_model

from dataobject.record import DataObject
from dataobject.where import Where

if TYPE_CHECKING:
    from dataobject.storage import StorageDriver

T = TypeVar("T")
RecordT = TypeVar("RecordT", bound="Record")

_SENTINEL = object()

NULL_EQ_ERROR = "Use .is_null() instead of == None when building conditions."
NULL_NE_ERROR = "Use .is_not_null() instead of != None when building conditions."


class ColumnProxy:
    """Class-level view of a column that builds Where conditions.

    Usage: ``User.age >= 18``, ``User.id.in_([1, 2])``, ``User.name.desc()``
    """

    def __init__(self, qualified_name: str) -> None:
        self._qualified_name = qualified_name

    @property
    def qualified_name(self) -> str:
        return self._qualified_name

    def _compare(self, op: str, value: Any) -> Where:
        return Where(f"{self._qualified_name} {op} ?", value)

    def __eq__(self, other: object) -> Where:  # type: ignore[override]
        if other is None:
            raise TypeError(NULL_EQ_ERROR)
        return self._compare("=", other)

    def __ne__(self, other: object) -> Where:  # type: ignore[override]
        if other is None:
            raise TypeError(NULL_NE_ERROR)
        return self._compare("<>", other)

    def __gt__(self, other: Any) -> Where:
        return self._compare(">", other)

    def __ge__(self, other: Any) -> Where:
        return self._compare(">=", other)

    def __lt__(self, other: Any) -> Where:
        return self._compare("<", other)

    def __le__(self, other: Any) -> Where:
        return self._compare("<=", other)

    __hash__ = None  # type: ignore[assignment]

    def in_(self, values: list[Any]) -> Where:
        return Where(f"{self._qualified_name} IN (?)", list(values))

    def like(self, pattern: str) -> Where:
        return self._compare("LIKE", pattern)

    def is_null(self) -> Where:
        return Where(f"{self._qualified_name} IS NULL")

    def is_not_null(self) -> Where:
        return Where(f"{self._qualified_name} IS NOT NULL")

    def asc(self) -> str:
        return f"{self._qualified_name} ASC"

    def desc(self) -> str:
        return f"{self._qualified_name} DESC"

    def __repr__(self) -> str:
        return f"ColumnProxy({self._qualified_name!r})"


class Column(Generic[T]):
    """Typed column descriptor for Record subclasses.

    Reading on the class returns a ColumnProxy for building conditions.
    Assigning on an instance validates the value and queues it for the
    next save(). ``name`` sets the storage column when it differs from the
    attribute name.
    """

    def __init__(
        self,
        default: Any = _SENTINEL,
        *,
        primary_key: bool = False,
        name: str | None = None,
    ) -> None:
        self.default = default
        self.primary_key = primary_key
        self.name: str = ""
        self._column_name = name
        self.annotation: Any = Any
        self._adapter: TypeAdapter[Any] | None = None

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    @property
    def column_name(self) -> str:
        return self._column_name or self.name

    def __get__(self, obj: Any, objtype: type | None = None) -> Any:
        if obj is None:
            table = getattr(objtype, "__table__", None)
            return ColumnProxy(f"{table}.{self.column_name}" if table else self.column_name)
        return obj._data.get(self.name)

    def __set__(self, obj: Any, value: Any) -> None:
        if self.primary_key:
            raise AttributeError(f"Primary key column '{self.name}' is read-only")
        value = self.validate(value)
        obj._data[self.name] = value
        obj._set_data_value(self.column_name, value)

    def validate(self, value: Any) -> Any:
        if self._adapter is None:
            self._adapter = TypeAdapter(self.annotation)
        return self._adapter.validate_python(value)

    def has_default(self) -> bool:
        return self.default is not _SENTINEL


def _resolve_annotation(ann: Any, module_name: str) -> Any:
    """Resolve string annotations and extract the inner type from Column[T]."""
    if isinstance(ann, str):
        module = sys.modules.get(module_name, None)
        ns = vars(module) if module else {}
        try:
            ann = eval(ann, ns)  # noqa: S307
        except Exception:
            return Any

    if getattr(ann, "__origin__", None) is Column:
        args = get_args(ann)
        return args[0] if args else Any
    return ann


def _collect_columns(cls: type) -> dict[str, Column[Any]]:
    """Collect Column descriptors declared on cls and its Record bases."""
    columns: dict[str, Column[Any]] = {}
    for base in reversed(cls.__mro__[1:]):
        columns.update(getattr(base, "_column_definitions", {}))

    annotations = cls.__dict__.get("__annotations__", {})
    for name, ann in annotations.items():
        is_column_ann = getattr(ann, "__origin__", None) is Column
        if isinstance(ann, str) and ann.startswith("Column"):
            is_column_ann = True
        if not is_column_ann:
            continue

        val = cls.__dict__.get(name, _SENTINEL)
        if isinstance(val, Column):
            column = val
        elif val is _SENTINEL:
            column = Column()
        else:
            column = Column(default=val)

        column.name = name
        column.annotation = _resolve_annotation(ann, cls.__module__)
        columns[name] = column
        if cls.__dict__.get(name) is not column:
            setattr(cls, name, column)

    return columns


def _build_pydantic_model(model_name: str, columns: dict[str, Column[Any]]) -> type[BaseModel]:
    """Build a Pydantic model that validates one storage row."""
    pydantic_fields: dict[str, Any] = {}
    for name, c in columns.items():
        if c.has_default():
            pydantic_fields[name] = (c.annotation, c.default)
        else:
            pydantic_fields[name] = (c.annotation, ...)
    return create_model(model_name, **pydantic_fields)  # type: ignore[call-overload]


class Record(DataObject):
    """DataObject whose columns are declared as typed attributes.

    Example::

        class User(Record, table="users"):
            id: Column[int] = Column(primary_key=True)
            name: Column[str]
            active: Column[bool] = Column(default=True)
    """

    __table__: ClassVar[str]
    __primary_key__: ClassVar[tuple[str, ...]]
    __record_columns__: ClassVar[tuple[str, ...]]
    _column_definitions: ClassVar[dict[str, Column[Any]]]
    _pydantic_model: ClassVar[type[BaseModel]]

    def __init_subclass__(cls, table: str | None = None, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)

        columns = _collect_columns(cls)
        cls._column_definitions = columns
        cls.__record_columns__ = tuple(columns)

        table = table or getattr(cls, "__table__", None)
        if table is None:
            # Abstract intermediate base: columns are inherited by subclasses.
            return
        cls.__table__ = table

        pk_columns = tuple(c.column_name for c in columns.values() if c.primary_key)
        if not pk_columns:
            raise TypeError(
                f"Record '{cls.__name__}' must define at least one Column(primary_key=True)"
            )
        cls.__primary_key__ = pk_columns
        cls._pydantic_model = _build_pydantic_model(f"_{cls.__name__}Row", columns)

    def __init__(self, db: StorageDriver, **data: Any) -> None:
        if getattr(type(self), "_pydantic_model", None) is None:
            raise TypeError(f"Record '{type(self).__name__}' has no table; declare table=...")
        validated = self._pydantic_model(**data)
        self._data: dict[str, Any] = {
            name: getattr(validated, name) for name in self.__record_columns__
        }
        super().__init__(
            db,
            self.__table__,
            {
                c.column_name: self._data[name]
                for name, c in self._column_definitions.items()
                if c.primary_key
            },
        )

    @classmethod
    def from_row(cls: type[RecordT], db: StorageDriver, row: Mapping[str, Any]) -> RecordT:
        """Build a record from a storage row; extra row keys are ignored."""
        data = {
            name: row[c.column_name]
            for name, c in cls._column_definitions.items()
            if c.column_name in row
        }
        return cls(db, **data)

    def to_dict(self) -> dict[str, Any]:
        return dict(self._data)

    def __repr__(self) -> str:
        values = ", ".join(f"{k}={v!r}" for k, v in self._data.items())
        return f"{self.__class__.__name__}({values})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, self.__class__):
            return NotImplemented
        return self._data == other._data

    __hash__ = None  # type: ignore[assignment]
