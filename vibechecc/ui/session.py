"""
Table sessions — one client's event handlers over a mounted table.

DataTableState / VirtualTableState keep only serializable vars; every event
they receive is forwarded to a session built over the client's registry
entry. A session runs the headless call, turns a raised error into a logged
message, and returns the fresh view for the state to copy.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict

from vibechecc.ui.registry import RegisteredTable, RegisteredVirtualTable
from vibechecc.ui.view import build_table_view, build_virtual_view

logger = logging.getLogger("vibechecc.ui.session")


class TableSession:
    """
    Event handlers of one client's DataTable.

    Every handler returns the error message of the call ("" on success).
    Errors raised by caller callbacks (bulk actions, export, page loads)
    are logged here and never re-raised into the Reflex event loop.
    """

    def __init__(self, entry: RegisteredTable):
        self.entry = entry

    @property
    def table_id(self) -> str:
        return self.entry.definition.table_id

    def view(self) -> Dict[str, Any]:
        return build_table_view(self.entry)

    def _run(self, fn: Callable[[], object], what: str) -> str:
        try:
            fn()
        except Exception as e:
            logger.error("Table %s: %s failed: %s", self.table_id, what, e, exc_info=True)
            return f"{what} failed"
        return ""

    # Toolbar -------------------------------------------------------------

    def set_search(self, value: str) -> str:
        return self._run(lambda: self.entry.toolbar.set_search(value), "search")

    def select_filter(self, key: str, value: str) -> str:
        return self._run(lambda: self.entry.toolbar.select_filter(key, value), "filter")

    def reset_filters(self) -> str:
        return self._run(self.entry.toolbar.reset, "reset")

    def run_bulk_action(self, label: str) -> str:
        return self._run(lambda: self.entry.toolbar.run_bulk_action(label), label)

    def clear_selection(self) -> str:
        return self._run(self.entry.toolbar.clear_selection, "clear selection")

    def export(self) -> str:
        return self._run(self.entry.toolbar.export, "export")

    def toggle_column(self, column_id: str, visible: bool) -> str:
        return self._run(lambda: self.entry.toolbar.toggle_column(column_id, visible), "toggle column")

    # Table ---------------------------------------------------------------

    def toggle_sort(self, column_id: str) -> str:
        return self._run(lambda: self.entry.controller.toggle_sorting(column_id), "sort")

    def toggle_row(self, row_id: str, value: bool) -> str:
        return self._run(lambda: self.entry.controller.toggle_row_selected(row_id, value), "select")

    def toggle_page_rows(self, value: bool) -> str:
        return self._run(lambda: self.entry.controller.toggle_all_page_rows_selected(value), "select page")

    def click_row(self, row_id: str) -> str:
        return self._run(lambda: self.entry.controller.click_row(row_id), "row click")

    # Footer --------------------------------------------------------------

    def first_page(self) -> str:
        return self._run(self.entry.pagination.first, "first page")

    def previous_page(self) -> str:
        return self._run(self.entry.pagination.previous, "previous page")

    def next_page(self) -> str:
        return self._run(self.entry.pagination.next, "next page")

    def last_page(self) -> str:
        return self._run(self.entry.pagination.last, "last page")

    def set_page_size(self, size: str) -> str:
        # Select values arrive as strings
        return self._run(lambda: self.entry.pagination.set_page_size(int(size)), "page size")


class VirtualTableSession:
    """Scroll and resize handlers of one client's VirtualDataTable."""

    def __init__(self, entry: RegisteredVirtualTable):
        self.entry = entry

    def view(self) -> Dict[str, Any]:
        return build_virtual_view(self.entry)

    def set_scroll(self, offset: Any) -> None:
        self.entry.body.on_scroll(float(offset or 0))

    def set_viewport(self, height: Any) -> None:
        # Detached or hidden containers report 0
        if height:
            self.entry.body.on_resize(float(height))

    def click_row(self, index: Any) -> None:
        self.entry.body.click_row(int(index))
