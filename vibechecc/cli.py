"""
vibechecc CLI — Inspect and export tabular data through the table controller.

Commands:
- vibechecc preview       — Print one page of a JSON/CSV file
- vibechecc export        — Search/sort a JSON/CSV file and write CSV
- vibechecc check-config  — Validate vibechecc.yaml
"""

from __future__ import annotations

import argparse
import csv
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from vibechecc.engine.errors import VibecheccError
from vibechecc.table.columns import ColumnDef, accessor
from vibechecc.table.controller import TableController
from vibechecc.table.state import ClientMode, SortingItem

logger = logging.getLogger("vibechecc.cli")


def main(argv: Optional[list] = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="vibechecc",
        description="vibechecc — data table tooling",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # vibechecc preview
    preview_parser = subparsers.add_parser("preview", help="Print one page of a data file")
    _add_table_arguments(preview_parser)
    preview_parser.add_argument("--page", type=int, default=1, help="1-based page number (default: 1)")
    preview_parser.add_argument("--page-size", type=int, default=10, help="Rows per page (default: 10)")

    # vibechecc export
    export_parser = subparsers.add_parser("export", help="Export a data file as CSV")
    _add_table_arguments(export_parser)
    export_parser.add_argument("--out", required=True, help="Output CSV path")

    # vibechecc check-config
    check_parser = subparsers.add_parser("check-config", help="Validate vibechecc.yaml")
    check_parser.add_argument("--config", help="Path to vibechecc.yaml (default: auto-discover)")

    args = parser.parse_args(argv)

    if args.command == "preview":
        return cmd_preview(args)
    elif args.command == "export":
        return cmd_export(args)
    elif args.command == "check-config":
        return cmd_check_config(args)
    else:
        parser.print_help()
        return 0


def _add_table_arguments(sub: argparse.ArgumentParser) -> None:
    sub.add_argument("file", help="JSON (list of objects) or CSV file")
    sub.add_argument("--search", help="Search text")
    sub.add_argument("--search-key", help="Column to search (default: first column)")
    sub.add_argument("--sort", help="Sort column, optionally suffixed with :asc or :desc")
    sub.add_argument("--columns", help="Comma-separated columns to show (default: all)")


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

def load_rows(path: str) -> List[Dict[str, Any]]:
    """Load rows from a ``.json`` or ``.csv`` file."""
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(path)

    if file_path.suffix.lower() == ".csv":
        with open(file_path, newline="", encoding="utf-8") as f:
            return [dict(row) for row in csv.DictReader(f)]

    data = json.loads(file_path.read_text(encoding="utf-8"))
    if not isinstance(data, list) or not all(isinstance(row, dict) for row in data):
        raise ValueError(f"{path}: expected a JSON list of objects")
    return data


def infer_columns(rows: List[Dict[str, Any]], only: Optional[str] = None) -> List[ColumnDef]:
    if only:
        keys = [k.strip() for k in only.split(",") if k.strip()]
    else:
        keys = []
        for row in rows:
            for key in row:
                if key not in keys:
                    keys.append(key)
    return [accessor(key) for key in keys]


def parse_sort(value: Optional[str]) -> List[SortingItem]:
    if not value:
        return []
    column_id, _, direction = value.partition(":")
    direction = direction.lower() or "asc"
    if direction not in ("asc", "desc"):
        raise ValueError(f"Sort direction must be 'asc' or 'desc', got '{direction}'")
    return [SortingItem(column_id=column_id, desc=direction == "desc")]


def build_controller(args: argparse.Namespace, page_size: int = 10) -> TableController:
    rows = load_rows(args.file)
    columns = infer_columns(rows, args.columns)
    controller = TableController(columns, rows, ClientMode(page_size=page_size), table_id=Path(args.file).stem)
    if args.search:
        search_key = args.search_key or (columns[0].id if columns else "")
        controller.set_column_filter(search_key, args.search)
    controller.set_sorting(parse_sort(args.sort))
    return controller


def format_page(controller: TableController) -> str:
    """Plain-text rendering of the current page."""
    headers = [h.text for h in controller.get_header_groups()[0].headers]
    body = [
        ["" if c.value is None else str(c.value) for c in row.get_visible_cells()]
        for row in controller.get_row_model()
    ]
    widths = [len(h) for h in headers]
    for line in body:
        widths = [max(w, len(v)) for w, v in zip(widths, line)]

    def fmt(values: List[str]) -> str:
        return " | ".join(v.ljust(w) for v, w in zip(values, widths)).rstrip()

    lines = [fmt(headers), "-+-".join("-" * w for w in widths)]
    lines.extend(fmt(line) for line in body)
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def cmd_preview(args: argparse.Namespace) -> int:
    try:
        controller = build_controller(args, page_size=args.page_size)
        controller.set_page_index(args.page - 1)
    except FileNotFoundError:
        print(f"[ERROR] File not found: {args.file}")
        return 1
    except (ValueError, VibecheccError) as e:
        print(f"[ERROR] {e}")
        return 1

    filtered = len(controller.get_filtered_row_model())
    page = controller.state.pagination.page_index + 1
    if controller.get_row_model():
        print(format_page(controller))
    else:
        print("no results.")
    print()
    print(f"page {page} of {controller.get_page_count()} · {filtered} result(s)")
    return 0


def cmd_export(args: argparse.Namespace) -> int:
    from vibechecc.table.export import export_table_csv

    try:
        controller = build_controller(args)
        export_table_csv(controller, args.out)
    except FileNotFoundError:
        print(f"[ERROR] File not found: {args.file}")
        return 1
    except (ValueError, VibecheccError) as e:
        print(f"[ERROR] {e}")
        return 1

    print(f"[OK] Exported {len(controller.get_filtered_row_model())} row(s) to {args.out}")
    return 0


def cmd_check_config(args: argparse.Namespace) -> int:
    from vibechecc.engine.config import load_platform_config

    try:
        config = load_platform_config(args.config)
    except VibecheccError as e:
        print(f"[ERROR] {e}")
        return 1

    table = config.table
    print(f"[OK] {config.name} {config.version} ({config.environment})")
    print(f"     page size: {table.default_page_size} of {table.page_size_options}")
    print(f"     virtualization: >= {table.virtualization_threshold} rows, overscan {table.overscan}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
