"""Pagination: offset-to-page adapter with a cached total count."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, Iterator, Sequence, TypeVar

from dataobject.errors import IllegalStateError
from dataobject.where import Where

if TYPE_CHECKING:
    from dataobject.factory import Factory
    from dataobject.select import Select

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Page(Generic[T]):
    """A page of results.

    Attributes:
        items: The items on this page.
        total: Total number of items across all pages.
        page: Current page number (1-based).
        size: Maximum items per page.
    """

    items: list[T]
    total: int
    page: int
    size: int

    @property
    def total_pages(self) -> int:
        if self.total == 0:
            return 0
        return math.ceil(self.total / self.size)

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page > 1


class Paginator(Generic[T]):
    """Adapter between a Factory and offset-based paging.

    Order and filter can be changed until ``count()`` runs for the first
    time; after that they are fixed. The count is computed once, while each
    ``get_items`` call queries storage again.
    """

    def __init__(self, factory: Factory[Any], count_select: Select, option: Any = None) -> None:
        self._factory = factory
        self._count_select = count_select
        self._option = option
        self._order: list[str] = []
        self._where: Where | None = None
        self._count: int | None = None

    @property
    def frozen(self) -> bool:
        return self._count is not None

    @property
    def order(self) -> list[str]:
        return list(self._order)

    @property
    def where(self) -> Where | None:
        return self._where

    @property
    def option(self) -> Any:
        return self._option

    def count(self) -> int:
        """Total number of rows; queried on the first call only."""
        if self._count is None:
            value = self._factory.db.fetch_one(self._count_select.assemble())
            self._count = int(value or 0)
            logger.debug("%s: counted %d row(s)", self._factory.table_name, self._count)
        return self._count

    def get_items(self, offset: int, items_per_page: int) -> list[T]:
        """Return the page containing the zero-based row ``offset``."""
        if items_per_page < 1:
            raise ValueError(f"items_per_page must be positive, got {items_per_page}")
        page = offset // items_per_page + 1
        return self._factory.get_page(page, items_per_page, self._order, self._where, self._option)

    def set_order(self, order: Sequence[str]) -> None:
        if self._count is not None:
            raise IllegalStateError("You cannot set ORDER after query execution")
        self._order = list(order)

    def set_where(self, condition: str | Where) -> None:
        if self._count is not None:
            raise IllegalStateError("You cannot set WHERE after query execution")
        if isinstance(condition, Where):
            self._where = condition
        else:
            self._where = Where(condition, quoter=self._factory.db.quote_into)


class BoundPaginator(Generic[T]):
    """A Paginator positioned on one page of a fixed size."""

    def __init__(self, adapter: Paginator[T], page: int, page_size: int) -> None:
        if page_size < 1:
            raise ValueError(f"page_size must be positive, got {page_size}")
        self.adapter = adapter
        self.page = max(page, 1)
        self.page_size = page_size

    @property
    def items(self) -> list[T]:
        return self.adapter.get_items((self.page - 1) * self.page_size, self.page_size)

    @property
    def total(self) -> int:
        return self.adapter.count()

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.page_size)

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    def __iter__(self) -> Iterator[T]:
        return iter(self.items)

    def to_page(self) -> Page[T]:
        return Page(items=self.items, total=self.total, page=self.page, size=self.page_size)
