"""
Table Controller — headless state and row models for a data table.

The controller owns sorting, filtering, column visibility, selection and
(client mode) pagination state, and derives the rows to render from them.

Row model pipeline (client mode):
    core → filtered → sorted → paginated (= rendered rows)

In server mode ``data`` is already the page to render: the filtered, sorted
and paginated models are the core model, and page navigation goes through
the caller's ``on_page_change`` callback (see ``pagination.ServerPagination``).
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Union

from vibechecc.engine.errors import TableConfigError, TableModeError
from vibechecc.table.columns import ColumnDef
from vibechecc.table.filters import FILTER_FNS, FilterFn, resolve_filter_fn, resolve_sorting_fn
from vibechecc.table.state import (
    ClientMode,
    ColumnFilter,
    PaginationState,
    ServerMode,
    SortingItem,
    TableMode,
    TableState,
)

logger = logging.getLogger("vibechecc.table.controller")


class Row:
    """One row of the core model. ``original`` is the caller's object, never mutated."""

    __slots__ = ("id", "index", "original", "_table")

    def __init__(self, row_id: str, index: int, original: Any, table: "TableController"):
        self.id = row_id
        self.index = index
        self.original = original
        self._table = table

    def get_value(self, column_id: str) -> Any:
        column = self._table.get_column(column_id)
        if column is None:
            return None
        return column.get_value(self.original)

    def get_is_selected(self) -> bool:
        return self._table.state.row_selection.get(self.id, False)

    def get_can_select(self) -> bool:
        return self._table._can_select(self.original)

    def toggle_selected(self, value: Optional[bool] = None) -> None:
        self._table.toggle_row_selected(self.id, value)

    def get_visible_cells(self) -> List["Cell"]:
        return [
            Cell(column_id=col.id, row_id=self.id, value=col.render_cell(self.original))
            for col in self._table.get_visible_columns()
        ]

    def __repr__(self) -> str:
        return f"Row(id={self.id!r}, index={self.index})"


@dataclass(frozen=True)
class Cell:
    column_id: str
    row_id: str
    value: Any

    @property
    def id(self) -> str:
        return f"{self.row_id}_{self.column_id}"


@dataclass(frozen=True)
class Header:
    id: str
    column: ColumnDef
    text: str
    can_sort: bool
    sorted: Optional[str] = None  # "asc" | "desc" | None


@dataclass
class HeaderGroup:
    id: str
    headers: List[Header] = field(default_factory=list)


class TableController:
    """
    Headless data table.

    Args:
        columns: Column definitions (referenced, not copied).
        data: Row objects. In server mode, exactly the page to render.
        mode: ``ClientMode`` (default) or ``ServerMode``.
        get_row_id: ``(row, index) -> id``; defaults to the row index.
        enable_row_selection: bool, or ``(row) -> bool`` per row.
        enable_multi_row_selection: when False, selecting a row replaces the selection.
        on_row_select: called with the selected row objects on every selection change.
        on_row_click: called with the row object when a row is clicked.
        on_sorting_change: called with the new sort state (server tables re-query on it).
        filter_fns: extra named filter functions for ``ColumnDef.filter_fn``.
    """

    def __init__(
        self,
        columns: Sequence[ColumnDef],
        data: Sequence[Any],
        mode: Optional[TableMode] = None,
        *,
        get_row_id: Optional[Callable[[Any, int], Any]] = None,
        enable_row_selection: Union[bool, Callable[[Any], bool]] = True,
        enable_multi_row_selection: bool = True,
        on_row_select: Optional[Callable[[List[Any]], Any]] = None,
        on_row_click: Optional[Callable[[Any], Any]] = None,
        on_sorting_change: Optional[Callable[[List[SortingItem]], Any]] = None,
        filter_fns: Optional[Dict[str, FilterFn]] = None,
        table_id: Optional[str] = None,
    ):
        if mode is None:
            from vibechecc.engine.config import get_table_config

            mode = ClientMode(page_size=get_table_config().default_page_size)

        self._columns = columns
        self._column_index: Dict[str, ColumnDef] = {}
        for col in columns:
            if col.id in self._column_index:
                raise TableConfigError(
                    f"Duplicate column id '{col.id}'", column_id=col.id, table_id=table_id
                )
            self._column_index[col.id] = col

        if isinstance(mode, ServerMode) and mode.preserve_selection_across_pages and get_row_id is None:
            raise TableConfigError(
                "preserve_selection_across_pages needs get_row_id: index ids repeat on every page",
                table_id=table_id,
            )

        self._data = data
        self._mode: TableMode = mode
        self._get_row_id = get_row_id
        self._enable_row_selection = enable_row_selection
        self._enable_multi_row_selection = enable_multi_row_selection
        self._on_row_select = on_row_select
        self._on_row_click = on_row_click
        self._on_sorting_change = on_sorting_change
        self._filter_fns: Dict[str, FilterFn] = {**FILTER_FNS, **(filter_fns or {})}
        self.table_id = table_id

        # Originals of selected rows, so server tables can report selections
        # that are no longer on the current page
        self._selected_originals: Dict[str, Any] = {}

        page_size = mode.page_size
        self.state = TableState(pagination=PaginationState(page_index=0, page_size=page_size))

    # -------------------------------------------------------------------
    # Mode
    # -------------------------------------------------------------------

    @property
    def mode(self) -> TableMode:
        return self._mode

    @property
    def is_server_mode(self) -> bool:
        return isinstance(self._mode, ServerMode)

    @property
    def data(self) -> Sequence[Any]:
        return self._data

    def _require_client_mode(self, operation: str) -> None:
        if self.is_server_mode:
            raise TableModeError(
                f"{operation} is managed by the caller in server mode",
                mode="server",
                table_id=self.table_id,
                operation=operation,
            )

    def set_data(self, data: Sequence[Any], mode: Optional[TableMode] = None) -> None:
        """
        Replace the rows (and optionally the mode, e.g. the next server page).

        Selection handling:
        - server mode, page changed: cleared unless preserve_selection_across_pages
        - otherwise: entries whose rows are gone are dropped, except in server
          mode with preserve_selection_across_pages
        """
        old_mode = self._mode
        if mode is not None:
            if type(mode) is not type(old_mode):
                raise TableModeError(
                    "Cannot switch between client and server mode on a live table",
                    mode=old_mode.name,
                    table_id=self.table_id,
                )
            self._mode = mode
        self._data = data

        before = dict(self.state.row_selection)
        if isinstance(self._mode, ServerMode):
            page_changed = (
                isinstance(old_mode, ServerMode)
                and old_mode.current_page != self._mode.current_page
            )
            if self._mode.preserve_selection_across_pages:
                pass
            elif page_changed:
                self.state.row_selection = {}
            else:
                self._intersect_selection()
        else:
            if mode is not None:
                self.state.pagination.page_size = mode.page_size
            self._intersect_selection()
            self._clamp_page_index()

        self._selected_originals = {
            k: v for k, v in self._selected_originals.items() if k in self.state.row_selection
        }
        if before != self.state.row_selection:
            logger.debug("Selection changed after data refresh (%d -> %d)",
                         len(before), len(self.state.row_selection))
            self._notify_selection()

    def _intersect_selection(self) -> None:
        present = {row.id for row in self.get_core_row_model()}
        self.state.row_selection = {
            k: v for k, v in self.state.row_selection.items() if k in present
        }

    # -------------------------------------------------------------------
    # Columns
    # -------------------------------------------------------------------

    def get_column(self, column_id: str) -> Optional[ColumnDef]:
        """Unknown ids return None — filters/search bound to them are inert."""
        return self._column_index.get(column_id)

    def get_all_columns(self) -> List[ColumnDef]:
        return list(self._columns)

    def get_is_visible(self, column_id: str) -> bool:
        return self.state.column_visibility.get(column_id, True)

    def get_visible_columns(self) -> List[ColumnDef]:
        return [c for c in self._columns if self.get_is_visible(c.id)]

    def get_can_hide(self, column_id: str) -> bool:
        column = self.get_column(column_id)
        return column is not None and column.enable_hiding

    def toggle_column_visibility(self, column_id: str, visible: Optional[bool] = None) -> None:
        if not self.get_can_hide(column_id):
            return
        if visible is None:
            visible = not self.get_is_visible(column_id)
        self.state.column_visibility[column_id] = visible
        logger.debug("Column %s visible=%s", column_id, visible)

    def get_header_groups(self) -> List[HeaderGroup]:
        sorted_dirs = {s.column_id: ("desc" if s.desc else "asc") for s in self.state.sorting}
        headers = [
            Header(
                id=col.id,
                column=col,
                text=col.render_header(),
                can_sort=col.enable_sorting and col.has_accessor,
                sorted=sorted_dirs.get(col.id),
            )
            for col in self.get_visible_columns()
        ]
        return [HeaderGroup(id="0", headers=headers)]

    # -------------------------------------------------------------------
    # Row models
    # -------------------------------------------------------------------

    def _row_id(self, original: Any, index: int) -> str:
        if self._get_row_id is None:
            return str(index)
        return str(self._get_row_id(original, index))

    def get_core_row_model(self) -> List[Row]:
        return [
            Row(self._row_id(original, i), i, original, self)
            for i, original in enumerate(self._data)
        ]

    def get_filtered_row_model(self) -> List[Row]:
        rows = self.get_core_row_model()
        if self.is_server_mode or not self.state.column_filters:
            return rows

        active = []
        for f in self.state.column_filters:
            column = self.get_column(f.column_id)
            if column is None or not column.enable_column_filter:
                continue
            active.append((column, resolve_filter_fn(column.filter_fn, self._filter_fns), f.value))

        return [
            row for row in rows
            if all(fn(column.get_value(row.original), value) for column, fn, value in active)
        ]

    def get_sorted_row_model(self) -> List[Row]:
        rows = self.get_filtered_row_model()
        if self.is_server_mode or not self.state.sorting:
            return rows

        # Stable multi-sort: apply the least significant key first.
        for item in reversed(self.state.sorting):
            column = self.get_column(item.column_id)
            if column is None:
                continue
            key = resolve_sorting_fn(column.sorting_fn)
            present = [r for r in rows if column.get_value(r.original) is not None]
            missing = [r for r in rows if column.get_value(r.original) is None]
            present.sort(key=lambda r: key(column.get_value(r.original)), reverse=item.desc)
            rows = present + missing
        return rows

    def get_pagination_row_model(self) -> List[Row]:
        rows = self.get_sorted_row_model()
        if self.is_server_mode:
            return rows
        p = self.state.pagination
        start = p.page_index * p.page_size
        return rows[start:start + p.page_size]

    def get_row_model(self) -> List[Row]:
        """The rows to render."""
        return self.get_pagination_row_model()

    def get_row(self, row_id: str) -> Optional[Row]:
        for row in self.get_core_row_model():
            if row.id == row_id:
                return row
        return None

    # -------------------------------------------------------------------
    # Filtering
    # -------------------------------------------------------------------

    def get_column_filter(self, column_id: str) -> Any:
        for f in self.state.column_filters:
            if f.column_id == column_id:
                return f.value
        return None

    def set_column_filter(self, column_id: str, value: Any) -> None:
        """Set (or with ``""``/None clear) a column filter. Unknown columns are ignored."""
        if self.get_column(column_id) is None:
            logger.debug("Ignoring filter on unknown column %s", column_id)
            return
        filters = [f for f in self.state.column_filters if f.column_id != column_id]
        if value is not None and value != "":
            filters.append(ColumnFilter(column_id, value))
        self.state.column_filters = filters
        if not self.is_server_mode:
            self.state.pagination.page_index = 0

    def reset_column_filters(self) -> None:
        self.state.column_filters = []
        if not self.is_server_mode:
            self.state.pagination.page_index = 0

    @property
    def is_filtered(self) -> bool:
        return bool(self.state.column_filters)

    # -------------------------------------------------------------------
    # Sorting
    # -------------------------------------------------------------------

    def set_sorting(self, sorting: Iterable[SortingItem]) -> None:
        self.state.sorting = [
            SortingItem(s.column_id, s.desc) for s in sorting if self.get_column(s.column_id)
        ]
        self._sorting_changed()

    def toggle_sorting(self, column_id: str, multi: bool = False) -> None:
        """Cycle a column: first direction → opposite direction → unsorted."""
        column = self.get_column(column_id)
        if column is None or not column.enable_sorting:
            return

        first_desc = column.sort_descending_first
        current = next((s for s in self.state.sorting if s.column_id == column_id), None)
        if current is None:
            nxt: Optional[SortingItem] = SortingItem(column_id, first_desc)
        elif current.desc == first_desc:
            nxt = SortingItem(column_id, not first_desc)
        else:
            nxt = None

        if multi:
            sorting = [s for s in self.state.sorting if s.column_id != column_id]
            if nxt is not None:
                if current is not None:
                    position = self.state.sorting.index(current)
                    sorting.insert(position, nxt)
                else:
                    sorting.append(nxt)
        else:
            sorting = [nxt] if nxt is not None else []

        self.state.sorting = sorting
        self._sorting_changed()

    def clear_sorting(self) -> None:
        self.state.sorting = []
        self._sorting_changed()

    def _sorting_changed(self) -> None:
        logger.debug("Sorting: %s", [(s.column_id, s.desc) for s in self.state.sorting])
        if not self.is_server_mode:
            self.state.pagination.page_index = 0
        if self._on_sorting_change is not None:
            self._on_sorting_change(list(self.state.sorting))

    # -------------------------------------------------------------------
    # Pagination (client mode)
    # -------------------------------------------------------------------

    def get_page_count(self) -> int:
        if isinstance(self._mode, ServerMode):
            return self._mode.resolved_page_count
        total = len(self.get_sorted_row_model())
        return max(1, math.ceil(total / self.state.pagination.page_size))

    def _clamp_page_index(self) -> None:
        last = self.get_page_count() - 1
        p = self.state.pagination
        p.page_index = min(max(p.page_index, 0), last)

    def set_page_index(self, index: int) -> None:
        self._require_client_mode("set_page_index")
        self.state.pagination.page_index = index
        self._clamp_page_index()

    def set_page_size(self, size: int) -> None:
        self._require_client_mode("set_page_size")
        if size <= 0:
            raise TableConfigError(f"page_size must be positive, got {size}", table_id=self.table_id)
        p = self.state.pagination
        first_row = p.page_index * p.page_size
        p.page_size = size
        p.page_index = first_row // size
        self._clamp_page_index()

    def get_can_previous_page(self) -> bool:
        if isinstance(self._mode, ServerMode):
            return self._mode.current_page > 1
        return self.state.pagination.page_index > 0

    def get_can_next_page(self) -> bool:
        if isinstance(self._mode, ServerMode):
            return self._mode.current_page < self._mode.resolved_page_count
        return self.state.pagination.page_index < self.get_page_count() - 1

    def next_page(self) -> None:
        self._require_client_mode("next_page")
        if self.get_can_next_page():
            self.state.pagination.page_index += 1

    def previous_page(self) -> None:
        self._require_client_mode("previous_page")
        if self.get_can_previous_page():
            self.state.pagination.page_index -= 1

    def first_page(self) -> None:
        self.set_page_index(0)

    def last_page(self) -> None:
        self.set_page_index(self.get_page_count() - 1)

    # -------------------------------------------------------------------
    # Selection
    # -------------------------------------------------------------------

    def _can_select(self, original: Any) -> bool:
        if callable(self._enable_row_selection):
            return bool(self._enable_row_selection(original))
        return bool(self._enable_row_selection)

    def toggle_row_selected(self, row_id: str, value: Optional[bool] = None) -> None:
        row = self.get_row(row_id)
        if row is None or not self._can_select(row.original):
            return
        if value is None:
            value = not row.get_is_selected()

        if value:
            if not self._enable_multi_row_selection:
                self.state.row_selection = {}
                self._selected_originals = {}
            self.state.row_selection[row.id] = True
            self._selected_originals[row.id] = row.original
        else:
            self.state.row_selection.pop(row.id, None)
            self._selected_originals.pop(row.id, None)
        self._notify_selection()

    def _set_many(self, rows: List[Row], value: bool) -> None:
        for row in rows:
            if not self._can_select(row.original):
                continue
            if value:
                self.state.row_selection[row.id] = True
                self._selected_originals[row.id] = row.original
            else:
                self.state.row_selection.pop(row.id, None)
                self._selected_originals.pop(row.id, None)
        self._notify_selection()

    def get_is_all_page_rows_selected(self) -> bool:
        rows = [r for r in self.get_row_model() if self._can_select(r.original)]
        return bool(rows) and all(r.get_is_selected() for r in rows)

    def get_is_some_rows_selected(self) -> bool:
        return bool(self.state.row_selection)

    def toggle_all_page_rows_selected(self, value: Optional[bool] = None) -> None:
        if not self._enable_multi_row_selection:
            return
        if value is None:
            value = not self.get_is_all_page_rows_selected()
        self._set_many(self.get_row_model(), value)

    def toggle_all_rows_selected(self, value: Optional[bool] = None) -> None:
        if not self._enable_multi_row_selection:
            return
        rows = self.get_filtered_row_model()
        if value is None:
            value = not (rows and all(r.get_is_selected() for r in rows))
        self._set_many(rows, value)

    def reset_row_selection(self) -> None:
        had_selection = bool(self.state.row_selection)
        self.state.row_selection = {}
        self._selected_originals = {}
        if had_selection:
            self._notify_selection()

    def get_selected_row_model(self) -> List[Row]:
        return [r for r in self.get_core_row_model() if r.get_is_selected()]

    def get_filtered_selected_row_model(self) -> List[Row]:
        return [r for r in self.get_filtered_row_model() if r.get_is_selected()]

    def get_selected_rows(self) -> List[Any]:
        """
        Selected row objects in row-model order.

        Server tables that preserve selection across pages also report rows
        selected on other pages, after the current page's rows.
        """
        rows = self.get_filtered_selected_row_model()
        originals = [r.original for r in rows]
        if isinstance(self._mode, ServerMode) and self._mode.preserve_selection_across_pages:
            on_page = {r.id for r in rows}
            originals.extend(
                original for row_id, original in self._selected_originals.items()
                if row_id not in on_page and row_id in self.state.row_selection
            )
        return originals

    def get_selected_count(self) -> int:
        if self.is_server_mode:
            return len(self.state.row_selection)
        return len(self.get_filtered_selected_row_model())

    def _notify_selection(self) -> None:
        if self._on_row_select is not None:
            self._on_row_select(self.get_selected_rows())

    # -------------------------------------------------------------------
    # Rows
    # -------------------------------------------------------------------

    def click_row(self, row_id: str) -> None:
        if self._on_row_click is None:
            return
        row = self.get_row(row_id)
        if row is not None:
            self._on_row_click(row.original)

    def snapshot(self) -> TableState:
        return self.state.copy()
