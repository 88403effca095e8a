"""
Table Registry — live table definitions and their headless objects, by table id.

Reflex state can only hold serializable values, so event handlers look the
controller (with its callbacks) up here by ``table_id``.

Pages register a definition *factory* with ``define``. Every client mount
builds fresh headless objects from it in a registry scoped to that client
(``mount``), and ``unmount`` discards them, so filters, sorting, paging and
selection never leak between browser sessions or survive a reload.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from vibechecc.engine.errors import TableConfigError
from vibechecc.engine.logging import FileLogger
from vibechecc.table.controller import TableController
from vibechecc.table.pagination import Pagination
from vibechecc.table.state import TableMode
from vibechecc.table.toolbar import DataTableToolbar
from vibechecc.table.virtual import VirtualDataTable as VirtualBody
from vibechecc.ui.components import DataTableDef, VirtualDataTableDef

logger = logging.getLogger("vibechecc.ui.registry")

TableDefinition = Union[DataTableDef, VirtualDataTableDef]
# Receives the client-scoped registry the new table is mounted in
DefinitionFactory = Callable[["TableRegistry"], TableDefinition]


@dataclass
class RegisteredTable:
    definition: DataTableDef
    controller: TableController
    toolbar: DataTableToolbar

    @property
    def pagination(self) -> Pagination:
        # Rebuilt each time: server footers are plain snapshots of the mode
        return self.definition.build_pagination(self.controller)


@dataclass
class RegisteredVirtualTable:
    definition: VirtualDataTableDef
    body: VirtualBody


class TableRegistry:
    """
    In-memory registry of mounted tables.

    Usage:
        registry = TableRegistry()
        registry.register(DataTable("tags", columns, rows))
        entry = registry.get("tags")
        registry.refresh("tags", next_page_rows, next_mode)

    Per-client tables:
        registry.define("tags", lambda scoped: DataTable("tags", columns, rows))
        entry = registry.mount(client_token, "tags")
        registry.client(client_token).get_table("tags")
        registry.unmount(client_token, "tags")
    """

    def __init__(self, event_logger: Optional[FileLogger] = None):
        self._tables: Dict[str, Union[RegisteredTable, RegisteredVirtualTable]] = {}
        self._factories: Dict[str, DefinitionFactory] = {}
        self._clients: Dict[str, TableRegistry] = {}
        self._event_logger = event_logger

    # -------------------------------------------------------------------
    # Per-client mounting
    # -------------------------------------------------------------------

    def define(self, table_id: str, factory: DefinitionFactory) -> None:
        """Register how to build table ``table_id`` for each client that mounts it."""
        if not table_id:
            raise TableConfigError("Defined tables need a table_id")
        self._factories[table_id] = factory

    def client(self, client_token: str) -> "TableRegistry":
        """Registry holding the tables mounted by one client."""
        scoped = self._clients.get(client_token)
        if scoped is None:
            scoped = self._clients[client_token] = TableRegistry(self._event_logger)
        return scoped

    def mount(self, client_token: str, table_id: str) -> Union[RegisteredTable, RegisteredVirtualTable]:
        """Build a fresh table for this client, discarding any state left from an earlier mount."""
        factory = self._factories.get(table_id)
        if factory is None:
            raise TableConfigError(f"No table defined as '{table_id}'", table_id=table_id)
        scoped = self.client(client_token)
        definition = factory(scoped)
        if definition.table_id != table_id:
            raise TableConfigError(
                f"Factory for '{table_id}' built '{definition.table_id}'", table_id=table_id,
            )
        entry = scoped.register(definition)
        logger.debug("Mounted table %s for client %s", table_id, client_token)
        return entry

    def unmount(self, client_token: str, table_id: str) -> None:
        scoped = self._clients.get(client_token)
        if scoped is None:
            return
        scoped.unregister(table_id)
        if not scoped.list_tables():
            del self._clients[client_token]

    def list_clients(self) -> List[str]:
        return sorted(self._clients)

    # -------------------------------------------------------------------
    # Tables
    # -------------------------------------------------------------------

    def register(
        self, definition: Union[DataTableDef, VirtualDataTableDef]
    ) -> Union[RegisteredTable, RegisteredVirtualTable]:
        """Register (or replace) a table. Replacing discards the old state."""
        if not definition.table_id:
            raise TableConfigError("Registered tables need a table_id")

        entry: Union[RegisteredTable, RegisteredVirtualTable]
        if isinstance(definition, VirtualDataTableDef):
            entry = RegisteredVirtualTable(definition=definition, body=definition.build_body())
        else:
            controller = definition.build_controller()
            entry = RegisteredTable(
                definition=definition,
                controller=controller,
                toolbar=definition.build_toolbar(controller, self._event_logger),
            )
        self._tables[definition.table_id] = entry
        logger.debug("Registered table: %s", definition.table_id)
        return entry

    def unregister(self, table_id: str) -> None:
        self._tables.pop(table_id, None)

    def get(self, table_id: str) -> Optional[Union[RegisteredTable, RegisteredVirtualTable]]:
        return self._tables.get(table_id)

    def get_table(self, table_id: str) -> RegisteredTable:
        entry = self._tables.get(table_id)
        if not isinstance(entry, RegisteredTable):
            raise TableConfigError(f"No data table registered as '{table_id}'", table_id=table_id)
        return entry

    def get_virtual(self, table_id: str) -> RegisteredVirtualTable:
        entry = self._tables.get(table_id)
        if not isinstance(entry, RegisteredVirtualTable):
            raise TableConfigError(f"No virtual table registered as '{table_id}'", table_id=table_id)
        return entry

    def refresh(
        self,
        table_id: str,
        data: Sequence[Any],
        mode: Optional[TableMode] = None,
        search_value: Optional[str] = None,
        filter_values: Optional[Dict[str, str]] = None,
        is_loading: bool = False,
    ) -> RegisteredTable:
        """
        Push new rows (and for server tables the new page/mode) into a table.

        ``search_value`` / ``filter_values`` update the caller-owned values
        shown by server-bound toolbar controls.
        """
        entry = self.get_table(table_id)
        entry.controller.set_data(data, mode)
        entry.definition.data = data
        entry.definition.is_loading = is_loading
        if mode is not None:
            entry.definition.mode = mode
            total = getattr(mode, "total_count", None)
            if total is not None and entry.definition.total_count is None:
                entry.toolbar.total_count = total
        if search_value is not None:
            entry.toolbar.search_value = search_value
        for spec in entry.toolbar.filters:
            if filter_values and spec.key in filter_values:
                spec.value = filter_values[spec.key]
        return entry

    def list_tables(self) -> List[str]:
        return sorted(self._tables)

    def clear(self) -> None:
        self._tables.clear()
        self._factories.clear()
        self._clients.clear()


table_registry = TableRegistry()
