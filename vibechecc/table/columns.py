"""
Column definitions for data tables.

A ColumnDef identifies a field (accessor key or accessor function), how its
header and cells render, and what the user may do with it (sort, hide,
filter). Definitions are frozen; the controller keeps references to the
caller's objects and never copies them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

from vibechecc.engine.errors import TableConfigError
from vibechecc.table.filters import FilterFn, SortKeyFn


@dataclass(frozen=True)
class ColumnDef:
    """
    A single table column.

    Either ``accessor_key`` (dict key / attribute name) or ``accessor_fn``
    reads the column value from a row. Display-only columns (row actions,
    the selection checkbox) have neither and need an explicit ``id``.
    """

    id: str = ""
    accessor_key: Optional[str] = None
    accessor_fn: Optional[Callable[[Any], Any]] = None
    header: Union[str, Callable[["ColumnDef"], str], None] = None
    cell: Optional[Callable[[Any], Any]] = None
    enable_sorting: bool = True
    enable_hiding: bool = True
    enable_column_filter: bool = True
    filter_fn: Union[str, FilterFn, None] = "fuzzy"
    sorting_fn: Union[str, SortKeyFn, None] = None
    sort_descending_first: bool = False

    def __post_init__(self) -> None:
        if not self.id:
            if not self.accessor_key:
                raise TableConfigError(
                    "Column needs an id or an accessor_key",
                    header=str(self.header),
                )
            object.__setattr__(self, "id", self.accessor_key)

    @property
    def has_accessor(self) -> bool:
        return self.accessor_key is not None or self.accessor_fn is not None

    def get_value(self, row: Any) -> Any:
        """Read the raw column value from a row; missing values are None."""
        if self.accessor_fn is not None:
            return self.accessor_fn(row)
        if self.accessor_key is None:
            return None
        if isinstance(row, dict):
            return row.get(self.accessor_key)
        return getattr(row, self.accessor_key, None)

    def render_cell(self, row: Any) -> Any:
        if self.cell is not None:
            return self.cell(row)
        return self.get_value(row)

    def render_header(self) -> str:
        if callable(self.header):
            return self.header(self)
        if self.header is not None:
            return self.header
        return self.id.replace("_", " ").title()


def selection_column() -> ColumnDef:
    """The checkbox column admin tables put first."""
    return ColumnDef(
        id="select",
        header="",
        enable_sorting=False,
        enable_hiding=False,
        enable_column_filter=False,
    )


def accessor(key: str, header: Optional[str] = None, **kwargs: Any) -> ColumnDef:
    """Shorthand for an accessor-key column."""
    return ColumnDef(accessor_key=key, header=header, **kwargs)
