"""CSV export of table rows."""

from __future__ import annotations

import csv
import io
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Union

from vibechecc.table.columns import ColumnDef
from vibechecc.table.controller import TableController

logger = logging.getLogger("vibechecc.table.export")


def _csv_value(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, (list, tuple, set)):
        return ", ".join(str(v) for v in value)
    return value


def rows_to_csv(
    rows: Sequence[Any],
    columns: Sequence[ColumnDef],
    include_hidden: bool = False,
    visibility: Optional[Dict[str, bool]] = None,
) -> str:
    """
    Render rows as CSV text.

    Only accessor columns are exported (checkbox and action columns have no
    value). Columns hidden in ``visibility`` are skipped unless
    ``include_hidden``.
    """
    visibility = visibility or {}
    cols = [
        c for c in columns
        if c.has_accessor and (include_hidden or visibility.get(c.id, True))
    ]

    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow([c.render_header() for c in cols])
    for row in rows:
        writer.writerow([_csv_value(c.get_value(row)) for c in cols])
    return buf.getvalue()


def export_table_csv(
    controller: TableController,
    path: Union[str, Path, None] = None,
    include_hidden: bool = False,
) -> str:
    """
    Export what the table currently shows.

    Client mode exports every filtered and sorted row (all pages); server mode
    exports the loaded page. Writes to ``path`` when given.
    """
    if controller.is_server_mode:
        rows = [r.original for r in controller.get_row_model()]
    else:
        rows = [r.original for r in controller.get_sorted_row_model()]

    text = rows_to_csv(
        rows,
        controller.get_all_columns(),
        include_hidden=include_hidden,
        visibility=controller.state.column_visibility,
    )
    if path is not None:
        Path(path).write_text(text, encoding="utf-8")
        logger.info("Exported %d row(s) to %s", len(rows), path)
    return text
