"""
Table state containers and the explicit client/server mode declaration.

A table is either in client mode (all rows resident, filtering, sorting and
paging computed locally) or in server mode (``data`` is exactly the page to
render; paging, filtering and sorting are owned by the caller). The caller
declares the mode explicitly instead of it being inferred from which
callbacks happen to be passed.
"""

from __future__ import annotations

import copy
import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Union

from vibechecc.engine.errors import TableConfigError


@dataclass
class SortingItem:
    column_id: str
    desc: bool = False


@dataclass
class ColumnFilter:
    column_id: str
    value: Any


@dataclass
class PaginationState:
    """Client-mode page window. ``page_index`` is 0-based."""
    page_index: int = 0
    page_size: int = 10


@dataclass
class TableState:
    sorting: List[SortingItem] = field(default_factory=list)
    column_filters: List[ColumnFilter] = field(default_factory=list)
    column_visibility: Dict[str, bool] = field(default_factory=dict)
    row_selection: Dict[str, bool] = field(default_factory=dict)
    pagination: PaginationState = field(default_factory=PaginationState)

    def copy(self) -> "TableState":
        return copy.deepcopy(self)


# ---------------------------------------------------------------------------
# Mode declaration
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ClientMode:
    """All data resident; the controller filters, sorts and pages it."""
    page_size: int = 10

    name = "client"

    def __post_init__(self) -> None:
        if self.page_size <= 0:
            raise TableConfigError(f"page_size must be positive, got {self.page_size}")


@dataclass(frozen=True)
class ServerMode:
    """
    ``data`` is an already filtered, sorted and paged slice.

    ``current_page`` is 1-based, as the admin queries use it. When
    ``page_count`` is omitted it is derived from ``total_count`` and
    ``page_size``.
    """
    total_count: int
    current_page: int
    page_size: int
    on_page_change: Callable[[int], Any]
    page_count: Optional[int] = None
    on_page_size_change: Optional[Callable[[int], Any]] = None
    preserve_selection_across_pages: bool = False

    name = "server"

    def __post_init__(self) -> None:
        if self.page_size <= 0:
            raise TableConfigError(f"page_size must be positive, got {self.page_size}")
        if self.total_count < 0:
            raise TableConfigError(f"total_count must be >= 0, got {self.total_count}")
        if self.current_page < 1:
            raise TableConfigError(f"current_page is 1-based, got {self.current_page}")
        if self.page_count is not None and self.page_count < 0:
            raise TableConfigError(f"page_count must be >= 0, got {self.page_count}")
        if not callable(self.on_page_change):
            raise TableConfigError("ServerMode requires an on_page_change callback")

    @property
    def resolved_page_count(self) -> int:
        if self.page_count:
            return self.page_count
        return max(1, math.ceil(self.total_count / self.page_size))


TableMode = Union[ClientMode, ServerMode]
