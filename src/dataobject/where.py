"""Condition expressions: incrementally built SQL boolean fragments."""

from __future__ import annotations

from typing import Any, Callable, Union

from dataobject.storage import quote_into

Quoter = Callable[[str, Any], str]
Condition = Union[str, "Where"]

TRUE = "TRUE"
FALSE = "FALSE"


class Where:
    """An SQL condition built from AND/OR-joined terms.

    A term is either a raw fragment whose ``?`` placeholder is replaced with a
    quoted value, or another Where, which is embedded in parentheses::

        w = Where("age > ?", 18).add_or(Where("role = ?", "admin"))
        w.get_where()  # "age > 18 OR (role = 'admin')"

    The text is serialized eagerly; terms cannot be inspected or removed
    once added. An empty expression renders as ``TRUE``.
    """

    def __init__(
        self,
        condition: Condition | None = None,
        value: Any = None,
        *,
        quoter: Quoter = quote_into,
    ) -> None:
        self._where = ""
        self._quoter = quoter
        if condition is not None:
            self.add_and(condition, value)

    def add_and(self, condition: Condition, value: Any = None) -> Where:
        """Append a term preceded by AND."""
        return self._add(" AND ", condition, value)

    def add_or(self, condition: Condition, value: Any = None) -> Where:
        """Append a term preceded by OR."""
        return self._add(" OR ", condition, value)

    def _add(self, joiner: str, condition: Condition, value: Any) -> Where:
        if self._where:
            self._where += joiner
        self._where += self._parse(condition, value)
        return self

    def _parse(self, condition: Condition, value: Any) -> str:
        if isinstance(condition, Where):
            return f"({condition.get_where()})"
        return self._quoter(condition, value)

    def get_where(self) -> str:
        return self._where or TRUE

    def negate(self) -> Where:
        """Negate the whole expression; an empty one becomes FALSE."""
        if not self._where:
            self._where = FALSE
        else:
            self._where = f"NOT ({self._where})"
        return self

    def is_empty(self) -> bool:
        return not self._where

    def __str__(self) -> str:
        return self.get_where()

    def __repr__(self) -> str:
        return f"Where({self.get_where()!r})"
