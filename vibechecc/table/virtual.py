"""
Virtualized table body for large in-memory datasets.

Below the threshold every row is rendered. At or above it only the rows that
intersect the viewport, plus ``overscan`` rows on each side, are rendered;
spacer heights above and below keep the total scroll height (and therefore
the scrollbar) exact.

The visible window is recomputed synchronously on every scroll and resize.
Locating the window is a bisect over row start offsets, so the cost per
scroll is O(log n + window).
"""

from __future__ import annotations

import bisect
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from vibechecc.engine.errors import TableConfigError
from vibechecc.table.columns import ColumnDef

logger = logging.getLogger("vibechecc.table.virtual")

DEFAULT_VIRTUALIZATION_THRESHOLD = 100
DEFAULT_OVERSCAN = 10
DEFAULT_ROW_HEIGHT = 50
DEFAULT_CONTAINER_HEIGHT = 400

SizeEstimate = Union[int, float, Callable[[int], float]]


@dataclass(frozen=True)
class VirtualItem:
    index: int
    start: float
    size: float

    @property
    def end(self) -> float:
        return self.start + self.size


class Virtualizer:
    """Windowing math over ``count`` rows of fixed or per-index height."""

    def __init__(
        self,
        count: int,
        estimate_size: SizeEstimate = DEFAULT_ROW_HEIGHT,
        overscan: int = DEFAULT_OVERSCAN,
        viewport_height: float = DEFAULT_CONTAINER_HEIGHT,
        scroll_offset: float = 0,
    ):
        if overscan < 0:
            raise TableConfigError(f"overscan must be >= 0, got {overscan}", overscan=overscan)
        self._estimate_size = estimate_size
        self.overscan = overscan
        self.viewport_height = viewport_height
        self._count = 0
        self._starts: List[float] = [0.0]
        self.set_count(count)
        self.scroll_offset = 0.0
        self.scroll_to(scroll_offset)

    @property
    def count(self) -> int:
        return self._count

    def size_of(self, index: int) -> float:
        if callable(self._estimate_size):
            return float(self._estimate_size(index))
        return float(self._estimate_size)

    def set_count(self, count: int) -> None:
        self._count = max(0, count)
        starts = [0.0]
        for i in range(self._count):
            starts.append(starts[-1] + self.size_of(i))
        self._starts = starts

    def get_total_size(self) -> float:
        return self._starts[-1]

    def scroll_to(self, offset: float) -> None:
        max_offset = max(0.0, self.get_total_size() - self.viewport_height)
        self.scroll_offset = min(max(0.0, float(offset)), max_offset)

    def measure(self, viewport_height: float) -> None:
        """Re-measure after the scroll container was resized."""
        self.viewport_height = max(0.0, float(viewport_height))
        self.scroll_to(self.scroll_offset)

    def get_range(self) -> Optional[range]:
        """Indexes to render (visible rows plus overscan), or None when empty."""
        if self._count == 0:
            return None
        starts = self._starts
        first = bisect.bisect_right(starts, self.scroll_offset) - 1
        end_offset = self.scroll_offset + self.viewport_height
        last = bisect.bisect_left(starts, end_offset) - 1
        first = min(max(first, 0), self._count - 1)
        last = min(max(last, first), self._count - 1)
        return range(
            max(0, first - self.overscan),
            min(self._count - 1, last + self.overscan) + 1,
        )

    def get_virtual_items(self) -> List[VirtualItem]:
        window = self.get_range()
        if window is None:
            return []
        starts = self._starts
        return [VirtualItem(i, starts[i], starts[i + 1] - starts[i]) for i in window]


@dataclass(frozen=True)
class RenderedRow:
    index: int
    row_id: str
    original: Any
    cells: Dict[str, Any]
    height: float


@dataclass
class BodyWindow:
    rows: List[RenderedRow] = field(default_factory=list)
    padding_top: float = 0
    padding_bottom: float = 0
    virtualized: bool = False
    total_size: float = 0


class VirtualDataTable:
    """
    Table body that switches to windowed rendering for ``threshold`` rows or more.

    The scroll container state (offset, viewport height) belongs to this
    object alone; callers feed it scroll and resize events.
    """

    def __init__(
        self,
        data: Sequence[Any],
        columns: Sequence[ColumnDef],
        *,
        container_height: float = DEFAULT_CONTAINER_HEIGHT,
        row_height: SizeEstimate = DEFAULT_ROW_HEIGHT,
        threshold: int = DEFAULT_VIRTUALIZATION_THRESHOLD,
        overscan: int = DEFAULT_OVERSCAN,
        get_row_id: Optional[Callable[[Any], Any]] = None,
        on_row_click: Optional[Callable[[Any], Any]] = None,
    ):
        if threshold <= 0:
            raise TableConfigError(f"threshold must be positive, got {threshold}", threshold=threshold)
        self.columns = columns
        self.threshold = threshold
        self.get_row_id = get_row_id
        self.on_row_click = on_row_click
        self._data = data
        self._virtualizer = Virtualizer(
            count=len(data),
            estimate_size=row_height,
            overscan=overscan,
            viewport_height=container_height,
        )

    @classmethod
    def from_config(cls, data: Sequence[Any], columns: Sequence[ColumnDef], **kwargs: Any) -> "VirtualDataTable":
        """Build with threshold/overscan/heights from the loaded TableConfig."""
        from vibechecc.engine.config import get_table_config

        cfg = get_table_config()
        options = {
            "container_height": cfg.container_height,
            "row_height": cfg.row_height,
            "threshold": cfg.virtualization_threshold,
            "overscan": cfg.overscan,
        }
        options.update(kwargs)
        return cls(data, columns, **options)

    @property
    def virtualizer(self) -> Virtualizer:
        return self._virtualizer

    @property
    def is_virtualized(self) -> bool:
        return len(self._data) >= self.threshold

    def set_data(self, data: Sequence[Any]) -> None:
        self._data = data
        self._virtualizer.set_count(len(data))
        self._virtualizer.scroll_to(self._virtualizer.scroll_offset)

    def on_scroll(self, offset: float) -> BodyWindow:
        self._virtualizer.scroll_to(offset)
        return self.render()

    def on_resize(self, container_height: float) -> BodyWindow:
        logger.debug("Viewport resized to %s", container_height)
        self._virtualizer.measure(container_height)
        return self.render()

    def _row(self, index: int, height: float) -> RenderedRow:
        original = self._data[index]
        row_id = str(self.get_row_id(original)) if self.get_row_id else str(index)
        return RenderedRow(
            index=index,
            row_id=row_id,
            original=original,
            cells={col.id: col.render_cell(original) for col in self.columns},
            height=height,
        )

    def render(self) -> BodyWindow:
        v = self._virtualizer
        if not self._data:
            return BodyWindow()

        if not self.is_virtualized:
            rows = [self._row(i, v.size_of(i)) for i in range(len(self._data))]
            return BodyWindow(rows=rows, virtualized=False, total_size=v.get_total_size())

        items = v.get_virtual_items()
        total = v.get_total_size()
        return BodyWindow(
            rows=[self._row(item.index, item.size) for item in items],
            padding_top=items[0].start,
            padding_bottom=total - items[-1].end,
            virtualized=True,
            total_size=total,
        )

    def click_row(self, index: int) -> None:
        if self.on_row_click is not None and 0 <= index < len(self._data):
            self.on_row_click(self._data[index])
