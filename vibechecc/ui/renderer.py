"""
vibechecc Table Renderer — Converts table definitions to Reflex components.

Hierarchy: admin page → DataTableDef / VirtualDataTableDef → rx.Component

Pages define a table factory in the table registry. Each client mount builds
its own headless objects (controller, toolbar, footer) from it, and
DataTableState copies a serializable view of them into its vars after every
event. Event handlers delegate to a TableSession and never touch row data
themselves.

Errors raised by caller callbacks (bulk actions, export, page loads) are
logged and surfaced as a toast; the headless layer itself never catches them.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

import reflex as rx

from vibechecc.ui.components import DataTableDef, VirtualDataTableDef
from vibechecc.ui.registry import DefinitionFactory, table_registry
from vibechecc.ui.session import TableSession, VirtualTableSession
from vibechecc.ui.view import SELECT_COLUMN_ID

logger = logging.getLogger("vibechecc.ui.renderer")


# ---------------------------------------------------------------------------
# Renderer State — Reflex state for table interaction
# ---------------------------------------------------------------------------

def toast_for(error: str):
    """Error toast for a failed table event, or None."""
    return rx.toast.error(error) if error else None


class DataTableState(rx.State):
    """
    Reflex state mirroring one client's mounted DataTable.

    Manages:
    - Search / filter selects / reset
    - Sorting, column visibility
    - Row selection and bulk actions
    - Pagination (client or server)

    ``load`` mounts a fresh table for this client on every page mount and
    ``unload`` discards it, so nothing is shared between browser sessions.
    """

    table_id: str = ""

    header_ids: list[str] = []
    header_texts: list[str] = []
    header_sortable: list[bool] = []
    header_sorted: list[str] = []
    row_ids: list[str] = []
    row_cells: list[list[str]] = []
    row_selected: list[bool] = []
    all_page_selected: bool = False
    column_count: int = 1

    search_visible: bool = False
    search_value: str = ""
    search_placeholder: str = ""
    filter_keys: list[str] = []
    filter_titles: list[str] = []
    filter_values: list[str] = []
    filter_options: list[list[str]] = []
    filter_option_labels: list[list[str]] = []
    is_filtered: bool = False
    show_bulk: bool = False
    selection_label: str = ""
    bulk_labels: list[str] = []
    bulk_variants: list[str] = []
    show_export: bool = False
    export_label: str = "export"
    results_label: str = ""
    visibility_ids: list[str] = []
    visibility_checked: list[bool] = []

    page_label: str = ""
    can_previous: bool = False
    can_next: bool = False
    page_size: str = "10"
    page_size_options: list[str] = []
    footer_selection_label: str = ""
    range_label: str = ""

    is_loading: bool = False
    empty_message: str = ""
    error_message: str = ""

    def _client_token(self) -> str:
        return self.router.session.client_token

    def _session(self) -> TableSession:
        scoped = table_registry.client(self._client_token())
        return TableSession(scoped.get_table(self.table_id))

    def _show(self, session: TableSession, error: str = ""):
        self.error_message = error
        for key, value in session.view().items():
            setattr(self, key, value)
        return toast_for(error)

    def load(self, table_id: str):
        """Mount a fresh table for this client."""
        self.table_id = table_id
        entry = table_registry.mount(self._client_token(), table_id)
        return self._show(TableSession(entry))

    def unload(self):
        table_registry.unmount(self._client_token(), self.table_id)

    def refresh(self):
        return self._show(self._session())

    # Toolbar -------------------------------------------------------------

    def set_search(self, value: str):
        session = self._session()
        return self._show(session, session.set_search(value))

    def select_filter(self, key: str, value: str):
        session = self._session()
        return self._show(session, session.select_filter(key, value))

    def reset_filters(self):
        session = self._session()
        return self._show(session, session.reset_filters())

    def run_bulk_action(self, label: str):
        session = self._session()
        return self._show(session, session.run_bulk_action(label))

    def clear_selection(self):
        session = self._session()
        return self._show(session, session.clear_selection())

    def export(self):
        session = self._session()
        return self._show(session, session.export())

    def toggle_column(self, column_id: str, visible: bool):
        session = self._session()
        return self._show(session, session.toggle_column(column_id, visible))

    # Table ---------------------------------------------------------------

    def toggle_sort(self, column_id: str):
        session = self._session()
        return self._show(session, session.toggle_sort(column_id))

    def toggle_row(self, row_id: str, value: bool):
        session = self._session()
        return self._show(session, session.toggle_row(row_id, value))

    def toggle_page_rows(self, value: bool):
        session = self._session()
        return self._show(session, session.toggle_page_rows(value))

    def click_row(self, row_id: str):
        session = self._session()
        return self._show(session, session.click_row(row_id))

    # Footer --------------------------------------------------------------

    def first_page(self):
        session = self._session()
        return self._show(session, session.first_page())

    def previous_page(self):
        session = self._session()
        return self._show(session, session.previous_page())

    def next_page(self):
        session = self._session()
        return self._show(session, session.next_page())

    def last_page(self):
        session = self._session()
        return self._show(session, session.last_page())

    def set_page_size(self, size: str):
        session = self._session()
        return self._show(session, session.set_page_size(size))


class VirtualTableState(rx.State):
    """Scroll window of one client's mounted VirtualDataTable."""

    table_id: str = ""
    header_texts: list[str] = []
    row_ids: list[str] = []
    row_indexes: list[int] = []
    row_cells: list[list[str]] = []
    row_heights: list[float] = []
    padding_top: float = 0
    padding_bottom: float = 0
    virtualized: bool = False
    container_height: float = 400
    column_count: int = 1

    def _client_token(self) -> str:
        return self.router.session.client_token

    def _session(self) -> VirtualTableSession:
        scoped = table_registry.client(self._client_token())
        return VirtualTableSession(scoped.get_virtual(self.table_id))

    def _show(self, session: VirtualTableSession) -> None:
        for key, value in session.view().items():
            setattr(self, key, value)

    def load(self, table_id: str):
        self.table_id = table_id
        entry = table_registry.mount(self._client_token(), table_id)
        self._show(VirtualTableSession(entry))

    def unload(self):
        table_registry.unmount(self._client_token(), self.table_id)

    def set_scroll(self, offset: float):
        session = self._session()
        session.set_scroll(offset)
        self._show(session)

    def set_viewport(self, height: float):
        session = self._session()
        session.set_viewport(height)
        self._show(session)

    def click_row(self, index: int):
        self._session().click_row(index)


# ---------------------------------------------------------------------------
# Renderers
# ---------------------------------------------------------------------------

class DataTableRenderer:
    """
    Renders a DataTableDef bound to DataTableState.

    Usage:
        table_registry.register(definition)
        component = DataTableRenderer(definition).to_reflex()
    """

    def __init__(self, definition: DataTableDef):
        self._def = definition

    def to_reflex(self) -> rx.Component:
        return rx.vstack(
            self._render_toolbar(),
            rx.box(
                rx.table.root(
                    rx.table.header(self._render_header_row()),
                    rx.table.body(self._render_body()),
                    width="100%",
                ),
                border="1px solid var(--gray-5)",
                border_radius="6px",
                overflow="auto",
                width="100%",
            ),
            self._render_pagination(),
            spacing="4",
            width="100%",
            on_mount=DataTableState.load(self._def.table_id),
            on_unmount=DataTableState.unload,
        )

    # Toolbar ---------------------------------------------------------------

    def _render_toolbar(self) -> rx.Component:
        filter_select = rx.foreach(
            DataTableState.filter_keys,
            lambda key, i: rx.select.root(
                rx.select.trigger(placeholder=DataTableState.filter_titles[i]),
                rx.select.content(
                    rx.foreach(
                        DataTableState.filter_options[i],
                        lambda value, j: rx.select.item(DataTableState.filter_option_labels[i][j], value=value),
                    ),
                ),
                value=DataTableState.filter_values[i],
                on_change=lambda value: DataTableState.select_filter(key, value),
                size="1",
            ),
        )

        column_menu = rx.menu.root(
            rx.menu.trigger(rx.button(rx.icon("settings-2", size=14), "view", variant="outline", size="1")),
            rx.menu.content(
                rx.menu.label("toggle columns"),
                rx.menu.separator(),
                rx.foreach(
                    DataTableState.visibility_ids,
                    lambda column_id, i: rx.menu.item(
                        rx.checkbox(
                            column_id,
                            checked=DataTableState.visibility_checked[i],
                            on_change=lambda checked: DataTableState.toggle_column(column_id, checked),
                        ),
                    ),
                ),
            ),
        )

        top_row = rx.hstack(
            rx.hstack(
                rx.cond(
                    DataTableState.search_visible,
                    rx.input(
                        placeholder=DataTableState.search_placeholder,
                        value=DataTableState.search_value,
                        on_change=DataTableState.set_search,
                        width="250px",
                        size="1",
                    ),
                ),
                filter_select,
                rx.cond(
                    DataTableState.is_filtered,
                    rx.button("reset", rx.icon("x", size=14), variant="ghost", size="1",
                              on_click=DataTableState.reset_filters),
                ),
                spacing="2",
                align="center",
            ),
            rx.hstack(
                rx.cond(
                    DataTableState.show_export,
                    rx.button(rx.icon("download", size=14), DataTableState.export_label,
                              variant="outline", size="1", on_click=DataTableState.export),
                ),
                column_menu,
                spacing="2",
            ),
            width="100%",
            justify="between",
            align="center",
        )

        bottom_row = rx.hstack(
            rx.cond(
                DataTableState.show_bulk,
                rx.hstack(
                    rx.badge(DataTableState.selection_label, variant="soft"),
                    rx.foreach(
                        DataTableState.bulk_labels,
                        lambda label, i: rx.button(
                            label,
                            size="1",
                            color_scheme=rx.cond(DataTableState.bulk_variants[i] == "destructive", "red", "gray"),
                            on_click=DataTableState.run_bulk_action(label),
                        ),
                    ),
                    rx.button("clear selection", variant="ghost", size="1",
                              on_click=DataTableState.clear_selection),
                    spacing="2",
                    align="center",
                ),
            ),
            rx.text(DataTableState.results_label, size="1", color="gray"),
            width="100%",
            justify="between",
            align="center",
        )

        return rx.vstack(top_row, bottom_row, spacing="3", width="100%")

    # Table -----------------------------------------------------------------

    def _render_header_row(self) -> rx.Component:
        return rx.table.row(
            rx.foreach(
                DataTableState.header_ids,
                lambda column_id, i: rx.table.column_header_cell(
                    rx.cond(
                        column_id == SELECT_COLUMN_ID,
                        rx.checkbox(
                            checked=DataTableState.all_page_selected,
                            on_change=DataTableState.toggle_page_rows,
                        ),
                        rx.cond(
                            DataTableState.header_sortable[i],
                            rx.button(
                                DataTableState.header_texts[i],
                                rx.match(
                                    DataTableState.header_sorted[i],
                                    ("asc", rx.icon("arrow-up", size=12)),
                                    ("desc", rx.icon("arrow-down", size=12)),
                                    rx.icon("chevrons-up-down", size=12),
                                ),
                                variant="ghost",
                                size="1",
                                on_click=DataTableState.toggle_sort(column_id),
                            ),
                            rx.text(DataTableState.header_texts[i], weight="bold", size="2"),
                        ),
                    ),
                ),
            ),
        )

    def _render_message_row(self, *children: rx.Component) -> rx.Component:
        return rx.table.row(
            rx.table.cell(
                rx.center(*children, height="96px"),
                col_span=DataTableState.column_count,
            )
        )

    def _render_body(self) -> rx.Component:
        rows = rx.foreach(
            DataTableState.row_ids,
            lambda row_id, i: rx.table.row(
                rx.foreach(
                    DataTableState.row_cells[i],
                    lambda text, j: rx.table.cell(
                        rx.cond(
                            DataTableState.header_ids[j] == SELECT_COLUMN_ID,
                            rx.checkbox(
                                checked=DataTableState.row_selected[i],
                                on_change=lambda checked: DataTableState.toggle_row(row_id, checked),
                            ),
                            rx.text(text, size="2"),
                        ),
                    ),
                ),
                on_click=DataTableState.click_row(row_id),
                background=rx.cond(DataTableState.row_selected[i], "var(--accent-3)", "transparent"),
                cursor="pointer" if self._def.on_row_click else "default",
            ),
        )
        return rx.cond(
            DataTableState.is_loading,
            self._render_message_row(
                rx.hstack(rx.spinner(size="2"), rx.text("loading...", color="gray"), spacing="2"),
            ),
            rx.cond(
                DataTableState.row_ids.length() > 0,
                rows,
                self._render_message_row(rx.text(DataTableState.empty_message, color="gray")),
            ),
        )

    # Footer ----------------------------------------------------------------

    def _render_pagination(self) -> rx.Component:
        nav = rx.hstack(
            rx.button(rx.icon("chevrons-left", size=14), variant="outline", size="1",
                      on_click=DataTableState.first_page, disabled=~DataTableState.can_previous),
            rx.button(rx.icon("chevron-left", size=14), variant="outline", size="1",
                      on_click=DataTableState.previous_page, disabled=~DataTableState.can_previous),
            rx.text(DataTableState.page_label, size="2"),
            rx.button(rx.icon("chevron-right", size=14), variant="outline", size="1",
                      on_click=DataTableState.next_page, disabled=~DataTableState.can_next),
            rx.button(rx.icon("chevrons-right", size=14), variant="outline", size="1",
                      on_click=DataTableState.last_page, disabled=~DataTableState.can_next),
            spacing="2",
            align="center",
        )
        return rx.hstack(
            rx.vstack(
                rx.text(DataTableState.footer_selection_label, size="1", color="gray"),
                rx.text(DataTableState.range_label, size="1", color="gray"),
                spacing="1",
            ),
            rx.hstack(
                rx.text("rows per page", size="1"),
                rx.select(
                    DataTableState.page_size_options,
                    value=DataTableState.page_size,
                    on_change=DataTableState.set_page_size,
                    size="1",
                ),
                nav,
                spacing="4",
                align="center",
            ),
            width="100%",
            justify="between",
            align="center",
        )


class VirtualDataTableRenderer:
    """
    Renders a VirtualDataTableDef as a scroll container with spacer rows.

    The container is at most the configured height and 70% of the window,
    so it is re-measured on mount and on every window resize.
    """

    def __init__(self, definition: VirtualDataTableDef):
        self._def = definition

    @property
    def _element_id(self) -> str:
        return f"virtual-table-{self._def.table_id}"

    @property
    def _resize_trigger_id(self) -> str:
        return f"{self._element_id}-resize"

    def _read(self, prop: str) -> str:
        return f"document.getElementById('{self._element_id}')?.{prop} ?? 0"

    def _measure(self) -> rx.event.EventSpec:
        return rx.call_script(self._read("clientHeight"), callback=VirtualTableState.set_viewport)

    def resize_listener_script(self) -> str:
        """Installs (once per page) a window resize listener that clicks the hidden re-measure trigger."""
        trigger = self._resize_trigger_id
        return (
            "(() => {"
            " window.__vibecheccResize = window.__vibecheccResize || {};"
            f" if (window.__vibecheccResize['{trigger}']) return;"
            f" window.__vibecheccResize['{trigger}'] = true;"
            f" window.addEventListener('resize', () => document.getElementById('{trigger}')?.click());"
            " })()"
        )

    def to_reflex(self) -> rx.Component:
        header = rx.table.root(
            rx.table.header(
                rx.table.row(
                    rx.foreach(
                        VirtualTableState.header_texts,
                        lambda text: rx.table.column_header_cell(rx.text(text, weight="bold", size="2")),
                    )
                )
            ),
            width="100%",
        )
        spacer = lambda height: rx.table.row(  # noqa: E731
            rx.table.cell(col_span=VirtualTableState.column_count, height=height.to_string() + "px", padding="0"),
        )
        body = rx.table.root(
            rx.table.body(
                rx.cond(VirtualTableState.padding_top > 0, spacer(VirtualTableState.padding_top)),
                rx.foreach(
                    VirtualTableState.row_ids,
                    lambda row_id, i: rx.table.row(
                        rx.foreach(
                            VirtualTableState.row_cells[i],
                            lambda text: rx.table.cell(rx.text(text, size="2")),
                        ),
                        height=VirtualTableState.row_heights[i].to_string() + "px",
                        on_click=VirtualTableState.click_row(VirtualTableState.row_indexes[i]),
                    ),
                ),
                rx.cond(VirtualTableState.padding_bottom > 0, spacer(VirtualTableState.padding_bottom)),
            ),
            width="100%",
        )
        max_height = self._def.build_body().virtualizer.viewport_height
        return rx.box(
            header,
            rx.box(
                body,
                id=self._element_id,
                height=f"min({max_height:g}px, 70vh)",
                overflow_y="auto",
                on_scroll=rx.call_script(self._read("scrollTop"), callback=VirtualTableState.set_scroll),
            ),
            rx.el.button(id=self._resize_trigger_id, on_click=self._measure(), display="none"),
            border="1px solid var(--gray-5)",
            border_radius="6px",
            width="100%",
            on_mount=[
                VirtualTableState.load(self._def.table_id),
                self._measure(),
                rx.call_script(self.resize_listener_script()),
            ],
            on_unmount=VirtualTableState.unload,
        )


def render_table(definition_factory: DefinitionFactory) -> rx.Component:
    """
    Define a table and render it.

    ``definition_factory`` receives the registry the table is mounted in and
    returns a fresh definition. It runs once here for the component template
    and again for every client that mounts the page.
    """
    definition = definition_factory(table_registry)
    table_registry.define(definition.table_id, definition_factory)
    logger.debug("Defined table: %s", definition.table_id)
    if isinstance(definition, VirtualDataTableDef):
        return VirtualDataTableRenderer(definition).to_reflex()
    return DataTableRenderer(definition).to_reflex()


def render_table_page(
    definition_factory: DefinitionFactory,
    page_layout: Optional[Callable[[rx.Component], rx.Component]] = None,
) -> Callable[[], rx.Component]:
    """
    Create a Reflex page function for a table built by ``definition_factory``.

    Returns:
        A function that returns an rx.Component (suitable for rx.add_page)
    """
    def page_component() -> rx.Component:
        content = render_table(definition_factory)
        if page_layout:
            return page_layout(content)
        return content

    return page_component
