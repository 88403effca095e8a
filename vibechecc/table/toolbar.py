"""
Data table toolbar — search box, filter selects, bulk actions, column menu.

Each control binds independently:

- the search box is *server-bound* when the caller passes ``search_value``;
  it then reads that value and writes only through ``on_search_value_change``
- a filter is server-bound when its ``value`` is set; it reads that value and
  writes only through its ``on_change``

Unbound controls read and write the controller's column filters. A toolbar
can mix both kinds.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Sequence

from vibechecc.engine.errors import TableConfigError
from vibechecc.engine.logging import FileLogger, log_table_action
from vibechecc.table.controller import TableController

logger = logging.getLogger("vibechecc.table.toolbar")

ALL_VALUE = "all"


@dataclass(frozen=True)
class FilterOption:
    label: str
    value: str


@dataclass
class FilterSpec:
    key: str
    title: str
    options: Sequence[FilterOption] = field(default_factory=list)
    value: Optional[str] = None
    on_change: Optional[Callable[[str], Any]] = None

    @property
    def server_bound(self) -> bool:
        return self.value is not None


@dataclass(frozen=True)
class BulkAction:
    label: str
    action: Callable[[List[Any]], Any]
    variant: str = "default"  # default | destructive


@dataclass(frozen=True)
class FilterControl:
    """What a filter select shows."""
    key: str
    title: str
    value: str
    options: List[FilterOption]
    server_bound: bool


@dataclass(frozen=True)
class VisibilityItem:
    column_id: str
    checked: bool


class DataTableToolbar:
    """Toolbar view-model over a TableController."""

    def __init__(
        self,
        controller: TableController,
        *,
        search_key: Optional[str] = None,
        search_placeholder: str = "search...",
        search_value: Optional[str] = None,
        on_search_value_change: Optional[Callable[[str], Any]] = None,
        filters: Sequence[FilterSpec] = (),
        bulk_actions: Sequence[BulkAction] = (),
        on_export: Optional[Callable[[], Any]] = None,
        export_label: str = "export",
        total_count: Optional[int] = None,
        clear_selection_after_bulk_action: bool = False,
        event_logger: Optional[FileLogger] = None,
    ):
        self.controller = controller
        self.search_key = search_key
        self.search_placeholder = search_placeholder
        self.search_value = search_value
        self.on_search_value_change = on_search_value_change
        self.filters = list(filters)
        self.bulk_actions = list(bulk_actions)
        self.on_export = on_export
        self.export_label = export_label
        self.total_count = total_count
        self.clear_selection_after_bulk_action = clear_selection_after_bulk_action
        self._event_logger = event_logger
        # Last text sent through on_search_value_change when the caller does not mirror it back
        self._sent_search = ""

    # -------------------------------------------------------------------
    # Search
    # -------------------------------------------------------------------

    @property
    def search_server_bound(self) -> bool:
        return self.search_value is not None

    @property
    def show_search(self) -> bool:
        return bool(self.search_key) or self.on_search_value_change is not None

    @property
    def search_input_value(self) -> str:
        if self.search_server_bound:
            return self.search_value or ""
        if self.on_search_value_change is not None:
            return self._sent_search
        if self.search_key:
            value = self.controller.get_column_filter(self.search_key)
            return "" if value is None else str(value)
        return ""

    def set_search(self, text: str) -> None:
        if self.on_search_value_change is not None:
            self._sent_search = text
            self.on_search_value_change(text)
        elif self.search_key:
            # Inert when search_key names no column
            self.controller.set_column_filter(self.search_key, text)

    # -------------------------------------------------------------------
    # Filters
    # -------------------------------------------------------------------

    def _get_filter(self, key: str) -> FilterSpec:
        for spec in self.filters:
            if spec.key == key:
                return spec
        raise TableConfigError(f"No filter '{key}' on this toolbar", table_id=self.controller.table_id)

    def filter_controls(self) -> List[FilterControl]:
        controls: List[FilterControl] = []
        for spec in self.filters:
            if spec.server_bound:
                controls.append(FilterControl(
                    key=spec.key,
                    title=spec.title,
                    value=spec.value or ALL_VALUE,
                    options=list(spec.options),
                    server_bound=True,
                ))
                continue
            if self.controller.get_column(spec.key) is None:
                continue
            current = self.controller.get_column_filter(spec.key)
            controls.append(FilterControl(
                key=spec.key,
                title=spec.title,
                value="" if current is None else str(current),
                options=[FilterOption(f"all {spec.title.lower()}", ALL_VALUE), *spec.options],
                server_bound=False,
            ))
        return controls

    def select_filter(self, key: str, value: str) -> None:
        spec = self._get_filter(key)
        if spec.server_bound:
            if spec.on_change is not None:
                spec.on_change(value)
            return
        self.controller.set_column_filter(key, "" if value == ALL_VALUE else value)

    @property
    def is_filtered(self) -> bool:
        if self.search_server_bound:
            if self.search_value:
                return True
        elif self.on_search_value_change is not None and self._sent_search:
            return True
        for spec in self.filters:
            if spec.server_bound and spec.value and spec.value != ALL_VALUE:
                return True
        return self.controller.is_filtered

    def reset(self) -> None:
        """Clear search and every filter, through whichever binding each control uses."""
        if self.on_search_value_change is not None:
            self._sent_search = ""
            self.on_search_value_change("")
        for spec in self.filters:
            if spec.server_bound and spec.on_change is not None:
                spec.on_change(ALL_VALUE)
        if self.controller.is_filtered:
            self.controller.reset_column_filters()
        self._log_action("reset", 0)

    # -------------------------------------------------------------------
    # Selection + bulk actions
    # -------------------------------------------------------------------

    @property
    def selected_rows(self) -> List[Any]:
        return self.controller.get_selected_rows()

    @property
    def show_bulk_actions(self) -> bool:
        return len(self.selected_rows) > 0

    @property
    def selection_label(self) -> str:
        selected = len(self.selected_rows)
        total = len(self.controller.get_filtered_row_model())
        return f"{selected} of {total} row(s) selected"

    def run_bulk_action(self, label: str) -> Any:
        """
        Run a bulk action with the selected row objects.

        Exceptions raised by the action propagate to the caller.
        """
        action = next((a for a in self.bulk_actions if a.label == label), None)
        if action is None:
            raise TableConfigError(f"Unknown bulk action '{label}'", table_id=self.controller.table_id)

        rows = self.selected_rows
        if not rows:
            return None

        logger.info("Bulk action %r on %d row(s)", label, len(rows))
        try:
            result = action.action(rows)
        except Exception as e:
            self._log_action(f"bulk:{label}", len(rows), success=False, error=str(e))
            raise
        self._log_action(f"bulk:{label}", len(rows))

        if self.clear_selection_after_bulk_action:
            self.controller.reset_row_selection()
        return result

    def clear_selection(self) -> None:
        self.controller.reset_row_selection()

    # -------------------------------------------------------------------
    # Export, columns, counters
    # -------------------------------------------------------------------

    @property
    def show_export(self) -> bool:
        return self.on_export is not None

    def export(self) -> Any:
        if self.on_export is None:
            return None
        result = self.on_export()
        self._log_action("export", len(self.controller.get_row_model()))
        return result

    def visibility_items(self) -> List[VisibilityItem]:
        return [
            VisibilityItem(col.id, self.controller.get_is_visible(col.id))
            for col in self.controller.get_all_columns()
            if col.has_accessor and col.enable_hiding
        ]

    def toggle_column(self, column_id: str, visible: Optional[bool] = None) -> None:
        self.controller.toggle_column_visibility(column_id, visible)

    @property
    def results_label(self) -> Optional[str]:
        if self.total_count is None:
            return None
        return f"{self.total_count} result(s)"

    def _log_action(self, action: str, row_count: int, success: bool = True, error: Optional[str] = None) -> None:
        if self._event_logger is None:
            return
        self._event_logger.write(
            log_table_action(self.controller.table_id, action, row_count, success=success, error=error)
        )
