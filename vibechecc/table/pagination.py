"""
Pagination footers.

ClientPagination drives the controller's own page window. ServerPagination
takes plain numbers from the caller and only fires the caller's callbacks;
it never holds page state of its own.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Callable, Optional, Sequence, Union

from vibechecc.engine.errors import TableModeError
from vibechecc.table.controller import TableController
from vibechecc.table.state import ServerMode

logger = logging.getLogger("vibechecc.table.pagination")

PAGE_SIZE_OPTIONS = (10, 20, 30, 40, 50)


class ClientPagination:
    """Footer bound to the controller's internal pagination state."""

    def __init__(self, controller: TableController, page_size_options: Sequence[int] = PAGE_SIZE_OPTIONS):
        self.controller = controller
        self.page_size_options = tuple(page_size_options)

    @property
    def page_index(self) -> int:
        return self.controller.state.pagination.page_index

    @property
    def page_number(self) -> int:
        return self.page_index + 1

    @property
    def page_count(self) -> int:
        return self.controller.get_page_count()

    @property
    def page_size(self) -> int:
        return self.controller.state.pagination.page_size

    @property
    def can_previous(self) -> bool:
        return self.controller.get_can_previous_page()

    @property
    def can_next(self) -> bool:
        return self.controller.get_can_next_page()

    def first(self) -> None:
        self.controller.first_page()

    def previous(self) -> None:
        self.controller.previous_page()

    def next(self) -> None:
        self.controller.next_page()

    def last(self) -> None:
        self.controller.last_page()

    def set_page_size(self, size: int) -> None:
        self.controller.set_page_size(size)

    @property
    def page_label(self) -> str:
        return f"page {self.page_number} of {self.page_count}"

    @property
    def selection_label(self) -> str:
        selected = len(self.controller.get_filtered_selected_row_model())
        total = len(self.controller.get_filtered_row_model())
        return f"{selected} of {total} row(s) selected."


class ServerPagination:
    """
    Footer for caller-paged tables.

    ``current_page`` is 1-based. ``selected_count`` and ``row_count`` are
    independent numbers: selections kept from other pages can make
    ``selected_count`` larger than the rows on this page.
    """

    def __init__(
        self,
        total_count: int,
        current_page: int,
        page_count: Optional[int],
        page_size: int,
        on_page_change: Callable[[int], Any],
        on_page_size_change: Optional[Callable[[int], Any]] = None,
        selected_count: int = 0,
        row_count: int = 0,
        page_size_options: Sequence[int] = PAGE_SIZE_OPTIONS,
    ):
        self.total_count = total_count
        self.current_page = current_page
        self.page_size = page_size or 10
        self.page_count = page_count or max(1, math.ceil(total_count / self.page_size))
        self.on_page_change = on_page_change
        self.on_page_size_change = on_page_size_change
        self.selected_count = selected_count
        self.row_count = row_count
        self.page_size_options = tuple(page_size_options)

    @classmethod
    def from_controller(
        cls,
        controller: TableController,
        page_size_options: Sequence[int] = PAGE_SIZE_OPTIONS,
    ) -> "ServerPagination":
        mode = controller.mode
        if not isinstance(mode, ServerMode):
            raise TableModeError("ServerPagination needs a server-mode table", mode=mode.name)
        return cls(
            total_count=mode.total_count,
            current_page=mode.current_page,
            page_count=mode.resolved_page_count,
            page_size=mode.page_size,
            on_page_change=mode.on_page_change,
            on_page_size_change=mode.on_page_size_change,
            selected_count=controller.get_selected_count(),
            row_count=len(controller.data),
            page_size_options=page_size_options,
        )

    @property
    def page_number(self) -> int:
        return self.current_page

    @property
    def can_previous(self) -> bool:
        return self.current_page > 1

    @property
    def can_next(self) -> bool:
        return self.current_page < self.page_count

    def _go(self, page: int) -> None:
        if page == self.current_page or page < 1 or page > self.page_count:
            return
        logger.debug("Requesting page %d of %d", page, self.page_count)
        self.on_page_change(page)

    def first(self) -> None:
        self._go(1)

    def previous(self) -> None:
        self._go(self.current_page - 1)

    def next(self) -> None:
        self._go(self.current_page + 1)

    def last(self) -> None:
        self._go(self.page_count)

    def set_page_size(self, size: int) -> None:
        if self.on_page_size_change is not None and size != self.page_size:
            self.on_page_size_change(size)

    @property
    def page_label(self) -> str:
        return f"page {self.current_page} of {self.page_count}"

    @property
    def selection_label(self) -> str:
        return f"{self.selected_count} of {self.row_count} row(s) selected."

    @property
    def range_label(self) -> str:
        if self.total_count == 0:
            return "showing 0 results"
        start = (self.current_page - 1) * self.page_size + 1
        end = min(self.current_page * self.page_size, self.total_count)
        return f"showing {start} to {end} of {self.total_count} results"


Pagination = Union[ClientPagination, ServerPagination]


def build_pagination(
    controller: TableController,
    page_size_options: Sequence[int] = PAGE_SIZE_OPTIONS,
) -> Pagination:
    """Footer matching the controller's declared mode."""
    if controller.is_server_mode:
        return ServerPagination.from_controller(controller, page_size_options)
    return ClientPagination(controller, page_size_options)
