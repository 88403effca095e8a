"""
Serializable snapshot of a registered table, for Reflex state vars.

Reflex vars must be plain JSON-able values, so the renderer's state copies
this flat dict into its vars after every event instead of holding the
controller itself.
"""

from __future__ import annotations

from typing import Any, Dict

from vibechecc.table.pagination import ServerPagination
from vibechecc.ui.registry import RegisteredTable, RegisteredVirtualTable

SELECT_COLUMN_ID = "select"


def cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "yes" if value else "no"
    if isinstance(value, (list, tuple, set)):
        return ", ".join(str(v) for v in value)
    return str(value)


def build_table_view(entry: RegisteredTable) -> Dict[str, Any]:
    controller = entry.controller
    toolbar = entry.toolbar
    definition = entry.definition
    footer = entry.pagination

    headers = controller.get_header_groups()[0].headers
    rows = controller.get_row_model()
    controls = toolbar.filter_controls()
    visibility = toolbar.visibility_items()

    view: Dict[str, Any] = {
        "header_ids": [h.id for h in headers],
        "header_texts": [h.text for h in headers],
        "header_sortable": [h.can_sort for h in headers],
        "header_sorted": [h.sorted or "" for h in headers],
        "row_ids": [r.id for r in rows],
        "row_cells": [[cell_text(c.value) for c in r.get_visible_cells()] for r in rows],
        "row_selected": [r.get_is_selected() for r in rows],
        "all_page_selected": controller.get_is_all_page_rows_selected(),
        "column_count": max(1, len(headers)),
        # toolbar
        "search_visible": toolbar.show_search,
        "search_value": toolbar.search_input_value,
        "search_placeholder": toolbar.search_placeholder,
        "filter_keys": [c.key for c in controls],
        "filter_titles": [c.title for c in controls],
        "filter_values": [c.value or "all" for c in controls],
        "filter_options": [[o.value for o in c.options] for c in controls],
        "filter_option_labels": [[o.label for o in c.options] for c in controls],
        "is_filtered": toolbar.is_filtered,
        "show_bulk": toolbar.show_bulk_actions,
        "selection_label": toolbar.selection_label,
        "bulk_labels": [a.label for a in toolbar.bulk_actions],
        "bulk_variants": [a.variant for a in toolbar.bulk_actions],
        "show_export": toolbar.show_export,
        "export_label": toolbar.export_label,
        "results_label": toolbar.results_label or "",
        "visibility_ids": [v.column_id for v in visibility],
        "visibility_checked": [v.checked for v in visibility],
        # footer
        "page_label": footer.page_label,
        "can_previous": footer.can_previous,
        "can_next": footer.can_next,
        "page_size": str(footer.page_size),
        "page_size_options": [str(s) for s in footer.page_size_options],
        "footer_selection_label": footer.selection_label,
        "range_label": footer.range_label if isinstance(footer, ServerPagination) else "",
        # body state
        "is_loading": definition.is_loading,
        "empty_message": definition.resolved_empty_message,
    }
    return view


def build_virtual_view(entry: RegisteredVirtualTable) -> Dict[str, Any]:
    body = entry.body
    window = body.render()
    columns = entry.definition.columns
    return {
        "header_texts": [c.render_header() for c in columns],
        "row_ids": [r.row_id for r in window.rows],
        "row_indexes": [r.index for r in window.rows],
        "row_cells": [[cell_text(r.cells[c.id]) for c in columns] for r in window.rows],
        "row_heights": [r.height for r in window.rows],
        "padding_top": window.padding_top,
        "padding_bottom": window.padding_bottom,
        "virtualized": window.virtualized,
        "container_height": body.virtualizer.viewport_height,
        "column_count": max(1, len(columns)),
    }
