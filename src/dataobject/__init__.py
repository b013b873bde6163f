"""dataobject: a small row-to-object mapper with composable SQL conditions."""

__version__ = "0.1.0"

from dataobject.config import DataObjectConfig, configure_logging, load_config
from dataobject.errors import (
    DataObjectError,
    IllegalStateError,
    NotFoundError,
    StorageBackendError,
    ValidationError,
)
from dataobject.factory import Factory, RecordFactory
from dataobject.paginator import BoundPaginator, Page, Paginator
from dataobject.record import DataObject
from dataobject.select import Select
from dataobject.storage import SqliteDriver, StorageDriver, open_driver, quote, quote_into
from dataobject.types import Column, ColumnProxy, Record
from dataobject.where import Where

__all__ = [
    "__version__",
    "DataObjectConfig",
    "configure_logging",
    "load_config",
    "DataObjectError",
    "IllegalStateError",
    "NotFoundError",
    "StorageBackendError",
    "ValidationError",
    "DataObject",
    "Record",
    "Column",
    "ColumnProxy",
    "Factory",
    "RecordFactory",
    "Paginator",
    "BoundPaginator",
    "Page",
    "Select",
    "Where",
    "StorageDriver",
    "SqliteDriver",
    "open_driver",
    "quote",
    "quote_into",
]
