"""
vibechecc table — headless data table for the admin console.

Public API:
    Columns:    ColumnDef, accessor, selection_column
    State:      ClientMode, ServerMode, SortingItem, TableState
    Controller: TableController
    Toolbar:    DataTableToolbar, FilterSpec, FilterOption, BulkAction
    Pagination: ClientPagination, ServerPagination, build_pagination
    Virtual:    VirtualDataTable, Virtualizer
    Sources:    PageRequest, PageResult, ListPageSource, QueryPageSource
"""

from vibechecc.table.columns import ColumnDef, accessor, selection_column
from vibechecc.table.controller import TableController
from vibechecc.table.datasource import (
    ListPageSource,
    PageRequest,
    PageResult,
    QueryPageSource,
    server_mode_for,
)
from vibechecc.table.export import export_table_csv, rows_to_csv
from vibechecc.table.filters import fuzzy_filter
from vibechecc.table.pagination import ClientPagination, ServerPagination, build_pagination
from vibechecc.table.state import ClientMode, ServerMode, SortingItem, TableState
from vibechecc.table.toolbar import BulkAction, DataTableToolbar, FilterOption, FilterSpec
from vibechecc.table.virtual import VirtualDataTable, Virtualizer

__all__ = [
    "BulkAction",
    "ClientMode",
    "ClientPagination",
    "ColumnDef",
    "DataTableToolbar",
    "FilterOption",
    "FilterSpec",
    "ListPageSource",
    "PageRequest",
    "PageResult",
    "QueryPageSource",
    "ServerMode",
    "ServerPagination",
    "SortingItem",
    "TableController",
    "TableState",
    "VirtualDataTable",
    "Virtualizer",
    "accessor",
    "build_pagination",
    "export_table_csv",
    "fuzzy_filter",
    "rows_to_csv",
    "selection_column",
    "server_mode_for",
]
