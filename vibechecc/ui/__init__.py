"""vibechecc UI — Component definitions, table registry and the Reflex renderer."""

from vibechecc.ui.components import DataTable, DataTableDef, VirtualDataTable, VirtualDataTableDef  # noqa: F401
from vibechecc.ui.registry import TableRegistry, table_registry  # noqa: F401
from vibechecc.ui.session import TableSession, VirtualTableSession  # noqa: F401

__all__ = [
    "DataTable",
    "DataTableDef",
    "VirtualDataTable",
    "VirtualDataTableDef",
    "TableRegistry",
    "table_registry",
    "TableSession",
    "VirtualTableSession",
]
