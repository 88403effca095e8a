"""
vibechecc table components — declarative definitions rendered by the Reflex renderer.

Admin pages describe a table with ``DataTable(...)`` or ``VirtualDataTable(...)``.
The definition carries columns, data, mode and callbacks; it builds the
headless controller/toolbar/footer and the renderer turns it into an
``rx.Component``. Definitions can be built without importing reflex.

Available components:
    DataTable         → toolbar + table + pagination footer (client or server mode)
    VirtualDataTable  → windowed body for large in-memory datasets
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field as datafield
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from vibechecc.engine.config import get_table_config
from vibechecc.engine.logging import FileLogger
from vibechecc.table.columns import ColumnDef
from vibechecc.table.controller import TableController
from vibechecc.table.pagination import Pagination, build_pagination
from vibechecc.table.state import ClientMode, ServerMode, TableMode
from vibechecc.table.toolbar import BulkAction, DataTableToolbar, FilterSpec
from vibechecc.table.virtual import VirtualDataTable as VirtualBody

logger = logging.getLogger("vibechecc.ui.components")


@dataclass
class ComponentDef:
    """Base class for all vibechecc component definitions."""
    _component_type: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self._component_type}


@dataclass
class DataTableDef(ComponentDef):
    """
    Data table with search, filters, sorting, selection, bulk actions and pagination.

    ``mode`` is explicit: ``ClientMode`` pages ``data`` locally, ``ServerMode``
    treats ``data`` as the current page of a caller-paged result.
    """
    _component_type: str = "data_table"

    table_id: str = ""
    columns: Sequence[ColumnDef] = datafield(default_factory=list)
    data: Sequence[Any] = datafield(default_factory=list)
    mode: Optional[TableMode] = None

    search_key: Optional[str] = None
    search_placeholder: Optional[str] = None
    search_value: Optional[str] = None
    on_search_value_change: Optional[Callable[[str], Any]] = None
    filters: List[FilterSpec] = datafield(default_factory=list)

    on_row_click: Optional[Callable[[Any], Any]] = None
    on_row_select: Optional[Callable[[List[Any]], Any]] = None
    on_sorting_change: Optional[Callable[[list], Any]] = None
    bulk_actions: List[BulkAction] = datafield(default_factory=list)
    clear_selection_after_bulk_action: Optional[bool] = None

    on_export: Optional[Callable[[], Any]] = None
    export_label: str = "export"

    get_row_id: Optional[Callable[[Any, int], Any]] = None
    enable_row_selection: Union[bool, Callable[[Any], bool]] = True
    enable_multi_row_selection: bool = True

    is_loading: bool = False
    empty_message: Optional[str] = None
    total_count: Optional[int] = None
    page_size_options: Optional[List[int]] = None

    @property
    def resolved_mode(self) -> TableMode:
        if self.mode is not None:
            return self.mode
        return ClientMode(page_size=get_table_config().default_page_size)

    @property
    def resolved_empty_message(self) -> str:
        return self.empty_message or get_table_config().empty_message

    @property
    def resolved_page_size_options(self) -> List[int]:
        return list(self.page_size_options or get_table_config().page_size_options)

    def build_controller(self) -> TableController:
        return TableController(
            self.columns,
            self.data,
            self.resolved_mode,
            get_row_id=self.get_row_id,
            enable_row_selection=self.enable_row_selection,
            enable_multi_row_selection=self.enable_multi_row_selection,
            on_row_select=self.on_row_select,
            on_row_click=self.on_row_click,
            on_sorting_change=self.on_sorting_change,
            table_id=self.table_id or None,
        )

    def build_toolbar(
        self,
        controller: TableController,
        event_logger: Optional[FileLogger] = None,
    ) -> DataTableToolbar:
        cfg = get_table_config()
        total_count = self.total_count
        if total_count is None and isinstance(controller.mode, ServerMode):
            total_count = controller.mode.total_count
        clear_after = self.clear_selection_after_bulk_action
        if clear_after is None:
            clear_after = cfg.clear_selection_after_bulk_action
        return DataTableToolbar(
            controller,
            search_key=self.search_key,
            search_placeholder=self.search_placeholder or cfg.search_placeholder,
            search_value=self.search_value,
            on_search_value_change=self.on_search_value_change,
            filters=self.filters,
            bulk_actions=self.bulk_actions,
            on_export=self.on_export,
            export_label=self.export_label,
            total_count=total_count,
            clear_selection_after_bulk_action=clear_after,
            event_logger=event_logger,
        )

    def build_pagination(self, controller: TableController) -> Pagination:
        return build_pagination(controller, self.resolved_page_size_options)

    def to_dict(self) -> Dict[str, Any]:
        mode = self.resolved_mode
        out: Dict[str, Any] = {
            "type": self._component_type,
            "table_id": self.table_id,
            "mode": mode.name,
            "columns": [
                {
                    "id": c.id,
                    "header": c.render_header(),
                    "sortable": c.enable_sorting,
                    "hideable": c.enable_hiding,
                }
                for c in self.columns
            ],
            "row_count": len(self.data),
            "search_key": self.search_key,
            "filters": [
                {
                    "key": f.key,
                    "title": f.title,
                    "options": [o.value for o in f.options],
                    "server_bound": f.server_bound,
                }
                for f in self.filters
            ],
            "bulk_actions": [{"label": a.label, "variant": a.variant} for a in self.bulk_actions],
            "exportable": self.on_export is not None,
            "export_label": self.export_label,
            "is_loading": self.is_loading,
            "empty_message": self.resolved_empty_message,
        }
        if isinstance(mode, ServerMode):
            out["pagination"] = {
                "total_count": mode.total_count,
                "current_page": mode.current_page,
                "page_count": mode.resolved_page_count,
                "page_size": mode.page_size,
            }
        else:
            out["pagination"] = {"page_size": mode.page_size}
        return out


@dataclass
class VirtualDataTableDef(ComponentDef):
    """Read-only table body that windows its rows once there are enough of them."""
    _component_type: str = "virtual_data_table"

    table_id: str = ""
    columns: Sequence[ColumnDef] = datafield(default_factory=list)
    data: Sequence[Any] = datafield(default_factory=list)
    container_height: Optional[int] = None
    row_height: Optional[int] = None
    threshold: Optional[int] = None
    overscan: Optional[int] = None
    get_row_id: Optional[Callable[[Any], Any]] = None
    on_row_click: Optional[Callable[[Any], Any]] = None

    def build_body(self) -> VirtualBody:
        overrides: Dict[str, Any] = {
            k: v for k, v in {
                "container_height": self.container_height,
                "row_height": self.row_height,
                "threshold": self.threshold,
                "overscan": self.overscan,
            }.items() if v is not None
        }
        return VirtualBody.from_config(
            self.data,
            self.columns,
            get_row_id=self.get_row_id,
            on_row_click=self.on_row_click,
            **overrides,
        )

    def to_dict(self) -> Dict[str, Any]:
        body = self.build_body()
        return {
            "type": self._component_type,
            "table_id": self.table_id,
            "columns": [c.id for c in self.columns],
            "row_count": len(self.data),
            "container_height": body.virtualizer.viewport_height,
            "threshold": body.threshold,
            "overscan": body.virtualizer.overscan,
            "virtualized": body.is_virtualized,
        }


COMPONENT_TYPES = {
    "data_table": DataTableDef,
    "virtual_data_table": VirtualDataTableDef,
}


# ---------------------------------------------------------------------------
# Public API — constructor functions used by admin pages
# ---------------------------------------------------------------------------

def DataTable(
    table_id: str,
    columns: Sequence[ColumnDef],
    data: Sequence[Any],
    mode: Optional[TableMode] = None,
    search_key: Optional[str] = None,
    search_placeholder: Optional[str] = None,
    search_value: Optional[str] = None,
    on_search_value_change: Optional[Callable[[str], Any]] = None,
    filters: Optional[List[FilterSpec]] = None,
    on_row_click: Optional[Callable[[Any], Any]] = None,
    on_row_select: Optional[Callable[[List[Any]], Any]] = None,
    on_sorting_change: Optional[Callable[[list], Any]] = None,
    bulk_actions: Optional[List[BulkAction]] = None,
    clear_selection_after_bulk_action: Optional[bool] = None,
    on_export: Optional[Callable[[], Any]] = None,
    export_label: str = "export",
    get_row_id: Optional[Callable[[Any, int], Any]] = None,
    enable_row_selection: Union[bool, Callable[[Any], bool]] = True,
    enable_multi_row_selection: bool = True,
    is_loading: bool = False,
    empty_message: Optional[str] = None,
    total_count: Optional[int] = None,
    page_size_options: Optional[List[int]] = None,
) -> DataTableDef:
    """Create a DataTable component definition."""
    return DataTableDef(
        table_id=table_id,
        columns=columns,
        data=data,
        mode=mode,
        search_key=search_key,
        search_placeholder=search_placeholder,
        search_value=search_value,
        on_search_value_change=on_search_value_change,
        filters=filters or [],
        on_row_click=on_row_click,
        on_row_select=on_row_select,
        on_sorting_change=on_sorting_change,
        bulk_actions=bulk_actions or [],
        clear_selection_after_bulk_action=clear_selection_after_bulk_action,
        on_export=on_export,
        export_label=export_label,
        get_row_id=get_row_id,
        enable_row_selection=enable_row_selection,
        enable_multi_row_selection=enable_multi_row_selection,
        is_loading=is_loading,
        empty_message=empty_message,
        total_count=total_count,
        page_size_options=page_size_options,
    )


def VirtualDataTable(
    table_id: str,
    columns: Sequence[ColumnDef],
    data: Sequence[Any],
    container_height: Optional[int] = None,
    row_height: Optional[int] = None,
    threshold: Optional[int] = None,
    overscan: Optional[int] = None,
    get_row_id: Optional[Callable[[Any], Any]] = None,
    on_row_click: Optional[Callable[[Any], Any]] = None,
) -> VirtualDataTableDef:
    """Create a VirtualDataTable component definition."""
    return VirtualDataTableDef(
        table_id=table_id,
        columns=columns,
        data=data,
        container_height=container_height,
        row_height=row_height,
        threshold=threshold,
        overscan=overscan,
        get_row_id=get_row_id,
        on_row_click=on_row_click,
    )
