"""
vibechecc — Main Reflex application entry point.

Boot sequence:
    1. _init_platform()  — config, logging, event log directory
    2. Create rx.App() and register the admin table pages

The admin pages are the three table shapes the library supports:
    /admin/tags   — client mode (search, filter, bulk actions, export)
    /admin/users  — server mode through a ServerTableBinding
    /admin/vibes  — virtualized read-only body
"""

import logging
from typing import Any, Dict, List, Optional

import reflex as rx

from vibechecc.engine.config import load_platform_config
from vibechecc.engine.logging import FileLogger, configure_logging, log_system_event
from vibechecc.table import (
    BulkAction,
    FilterOption,
    FilterSpec,
    ListPageSource,
    PageRequest,
    accessor,
    selection_column,
)
from vibechecc.ui.binding import ServerTableBinding
from vibechecc.ui.components import DataTable, DataTableDef, VirtualDataTable, VirtualDataTableDef
from vibechecc.ui.registry import TableRegistry
from vibechecc.ui.renderer import render_table

logger = logging.getLogger("vibechecc.startup")

_platform_initialized = False
_event_logger: Optional[FileLogger] = None


# ---------------------------------------------------------------------------
# Platform initialization
# ---------------------------------------------------------------------------

def _init_platform() -> None:
    """Load config, configure logging and open the event log."""
    global _platform_initialized, _event_logger
    if _platform_initialized:
        return
    _platform_initialized = True

    config = load_platform_config()
    configure_logging(config.logging)
    _event_logger = FileLogger(config.logging.directory)
    _event_logger.write(log_system_event("startup", environment=config.environment))
    logger.info("vibechecc admin initialized (%s)", config.environment)


# ---------------------------------------------------------------------------
# Sample data
# ---------------------------------------------------------------------------

EMOJIS = ["🔥", "😂", "😍", "🤔", "😴", "💀", "✨", "🙃"]
ROLES = ["user", "moderator", "admin"]


def _tags() -> List[Dict[str, Any]]:
    names = ["chill", "cozy", "chaotic", "wholesome", "cursed", "iconic", "spooky", "sunny",
             "moody", "nostalgic", "hype", "soft", "unhinged", "aesthetic", "feral"]
    return [
        {"id": f"tag-{i}", "name": name, "count": (i * 37) % 211, "status": "active" if i % 4 else "hidden"}
        for i, name in enumerate(names)
    ]


def _users() -> List[Dict[str, Any]]:
    return [
        {
            "id": f"user-{i}",
            "username": f"viber{i:03d}",
            "role": ROLES[i % len(ROLES)] if i % 7 else "admin",
            "vibes": (i * 13) % 97,
        }
        for i in range(1, 58)
    ]


def _vibes() -> List[Dict[str, Any]]:
    return [
        {"id": f"vibe-{i}", "title": f"vibe #{i}", "emoji": EMOJIS[i % len(EMOJIS)], "rating": (i * 7) % 5 + 1}
        for i in range(1, 501)
    ]


# ---------------------------------------------------------------------------
# Pages
# ---------------------------------------------------------------------------

def _layout(title: str, content: rx.Component) -> rx.Component:
    links = rx.hstack(
        rx.link("tags", href="/admin/tags"),
        rx.link("users", href="/admin/users"),
        rx.link("vibes", href="/admin/vibes"),
        spacing="4",
    )
    return rx.container(
        rx.vstack(rx.heading(title, size="6"), links, content, spacing="5", width="100%"),
        size="4",
        padding_y="6",
    )


def tags_page() -> rx.Component:
    # Shared backing rows; each client mount gets its own table state over them
    rows = _tags()

    def hide(selected: List[Dict[str, Any]]) -> None:
        for row in selected:
            row["status"] = "hidden"
        logger.info("Hid %d tag(s)", len(selected))

    def tags_table(registry: TableRegistry) -> DataTableDef:
        return DataTable(
            "tags",
            [selection_column(), accessor("name"), accessor("count"), accessor("status")],
            rows,
            search_key="name",
            search_placeholder="search tags...",
            filters=[FilterSpec("status", "status", [FilterOption("active", "active"), FilterOption("hidden", "hidden")])],
            bulk_actions=[BulkAction("hide", hide, variant="destructive")],
            on_export=lambda: logger.info("Exporting tags"),
            get_row_id=lambda row, index: row["id"],
        )

    return _layout("tags", render_table(tags_table))


def users_page() -> rx.Component:
    source = ListPageSource(
        _users(),
        search_fields=["username"],
        filter_fields=["role"],
        sort_fields=["username", "vibes"],
        default_sort="username",
        event_logger=_event_logger,
    )
    roles = [FilterOption("all roles", "all")] + [FilterOption(r, r) for r in ROLES]

    def users_table(registry: TableRegistry) -> DataTableDef:
        # One binding (and page request) per mount
        binding = ServerTableBinding(
            "users", source, PageRequest(page_size=10, sort_direction="asc"), registry=registry,
        )
        return binding.definition(
            [selection_column(), accessor("username"), accessor("role"), accessor("vibes")],
            filters=[FilterSpec("role", "role", roles)],
            search_placeholder="search users...",
            get_row_id=lambda row, index: row["id"],
        )

    return _layout("users", render_table(users_table))


def vibes_page() -> rx.Component:
    rows = _vibes()

    def vibes_table(registry: TableRegistry) -> VirtualDataTableDef:
        return VirtualDataTable(
            "vibes",
            [accessor("title"), accessor("emoji"), accessor("rating")],
            rows,
            get_row_id=lambda row: row["id"],
        )

    return _layout("vibes", render_table(vibes_table))


_init_platform()

app = rx.App()
app.add_page(tags_page, route="/admin/tags", title="tags | vibechecc")
app.add_page(tags_page, route="/", title="vibechecc")
app.add_page(users_page, route="/admin/users", title="users | vibechecc")
app.add_page(vibes_page, route="/admin/vibes", title="vibes | vibechecc")
