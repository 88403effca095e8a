"""
Server table binding — owns the page request of one server-mode table.

The caller-side half of a server-mode DataTable: holds search text, filter
values, sort and page number, fetches from a page source when any of them
changes and pushes the new page into the table registry.

    def users_table(registry):
        binding = ServerTableBinding("users", source, registry=registry)
        return binding.definition(columns, filters=[FilterSpec("role", "role", options)])

    component = render_table(users_table)
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from vibechecc.engine.config import get_table_config
from vibechecc.table.columns import ColumnDef
from vibechecc.table.datasource import PageRequest, PageResult, server_mode_for
from vibechecc.table.state import ServerMode, SortingItem
from vibechecc.table.toolbar import ALL_VALUE, FilterSpec
from vibechecc.ui.components import DataTable, DataTableDef
from vibechecc.ui.registry import TableRegistry, table_registry

logger = logging.getLogger("vibechecc.ui.binding")


class ServerTableBinding:

    def __init__(
        self,
        table_id: str,
        source: Any,
        request: Optional[PageRequest] = None,
        registry: Optional[TableRegistry] = None,
        preserve_selection_across_pages: Optional[bool] = None,
    ):
        self.table_id = table_id
        self.source = source
        self.request = request or PageRequest()
        self.registry = registry or table_registry
        if preserve_selection_across_pages is None:
            preserve_selection_across_pages = get_table_config().preserve_selection_across_pages
        self.preserve_selection_across_pages = preserve_selection_across_pages
        self.result: Optional[PageResult] = None

    def _mode(self) -> ServerMode:
        return server_mode_for(
            self.result,
            self.request,
            on_page_change=self.on_page_change,
            on_page_size_change=self.on_page_size_change,
            preserve_selection_across_pages=self.preserve_selection_across_pages,
        )

    def fetch(self) -> PageResult:
        self.result = self.source.fetch(self.request)
        return self.result

    def _apply(self, **changes: Any) -> None:
        self.request = self.request.model_copy(update=changes)
        result = self.fetch()
        self.registry.refresh(
            self.table_id,
            result.data,
            self._mode(),
            search_value=self.request.search or "",
            filter_values={k: str(v) for k, v in self.request.filters.items()},
        )

    # Callbacks handed to the table -----------------------------------------

    def on_page_change(self, page: int) -> None:
        self._apply(page=page)

    def on_page_size_change(self, size: int) -> None:
        self._apply(page_size=size, page=1)

    def on_search(self, value: str) -> None:
        self._apply(search=value or None, page=1)

    def on_filter(self, key: str):
        def change(value: str) -> None:
            filters = dict(self.request.filters)
            filters[key] = value
            self._apply(filters=filters, page=1)
        return change

    def on_sorting_change(self, sorting: Sequence[SortingItem]) -> None:
        self.request = self.request.with_sorting(sorting)
        self._apply()

    # Definition --------------------------------------------------------------

    def definition(
        self,
        columns: Sequence[ColumnDef],
        filters: Sequence[FilterSpec] = (),
        **kwargs: Any,
    ) -> DataTableDef:
        """
        DataTable definition wired to this binding.

        Every filter becomes server-bound; its current value comes from the
        request (``"all"`` when unset).
        """
        result = self.result or self.fetch()
        bound: List[FilterSpec] = [
            FilterSpec(
                key=spec.key,
                title=spec.title,
                options=spec.options,
                value=str(self.request.filters.get(spec.key, ALL_VALUE)),
                on_change=self.on_filter(spec.key),
            )
            for spec in filters
        ]
        logger.debug("Binding %s: page %d of %d", self.table_id, result.page, result.page_count)
        return DataTable(
            self.table_id,
            columns,
            result.data,
            mode=self._mode(),
            search_value=self.request.search or "",
            on_search_value_change=self.on_search,
            filters=bound,
            on_sorting_change=self.on_sorting_change,
            **kwargs,
        )

    @property
    def filter_values(self) -> Dict[str, Any]:
        return self.request.active_filters()
