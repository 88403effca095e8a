"""
Server-side page sources for server-mode tables.

An admin page keeps the search text, filter values, sort and page number in
its own state, asks a page source for the matching slice, and hands the
result to a server-mode TableController:

    request = PageRequest(page=2, page_size=25, search="chill", sort_by="count")
    result = source.fetch(request)
    controller.set_data(result.data, server_mode_for(result, request, on_page_change))

Query semantics (same as the admin backend queries):
    1. case-insensitive substring search across the search fields (any match)
    2. equality filters; "all" and empty values are ignored
    3. inclusive numeric ranges, either bound optional
    4. sort by an allow-listed field, falling back to the default sort
    5. page_count = ceil(total / page_size); pages are 1-based
"""

from __future__ import annotations

import logging
import math
import time
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy import create_engine, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from vibechecc.engine.config import DatabaseConfig, get_platform_config
from vibechecc.engine.errors import DataSourceError
from vibechecc.engine.logging import FileLogger, log_page_query
from vibechecc.table.filters import basic_key
from vibechecc.table.state import ServerMode, SortingItem

logger = logging.getLogger("vibechecc.table.datasource")

INACTIVE_FILTER_VALUES = (None, "", "all")


class PageRequest(BaseModel):
    page: int = 1
    page_size: int = 10
    search: Optional[str] = None
    filters: Dict[str, Any] = Field(default_factory=dict)
    ranges: Dict[str, Tuple[Optional[float], Optional[float]]] = Field(default_factory=dict)
    sort_by: Optional[str] = None
    sort_direction: str = "desc"

    @field_validator("page", "page_size")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"must be >= 1, got {v}")
        return v

    @field_validator("sort_direction")
    @classmethod
    def validate_direction(cls, v: str) -> str:
        if v not in ("asc", "desc"):
            raise ValueError(f"sort_direction must be asc/desc, got '{v}'")
        return v

    def active_filters(self) -> Dict[str, Any]:
        return {k: v for k, v in self.filters.items() if v not in INACTIVE_FILTER_VALUES}

    def with_sorting(self, sorting: Sequence[SortingItem]) -> "PageRequest":
        """Copy taking sort_by/direction from the first item of a table's sort state."""
        if not sorting:
            return self.model_copy(update={"sort_by": None, "page": 1})
        first = sorting[0]
        return self.model_copy(update={
            "sort_by": first.column_id,
            "sort_direction": "desc" if first.desc else "asc",
            "page": 1,
        })


class PageResult(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    data: List[Any]
    total_count: int
    page_count: int
    page: int


def _page_count(total: int, page_size: int) -> int:
    return math.ceil(total / page_size)


def server_mode_for(
    result: PageResult,
    request: PageRequest,
    on_page_change: Callable[[int], Any],
    on_page_size_change: Optional[Callable[[int], Any]] = None,
    preserve_selection_across_pages: bool = False,
) -> ServerMode:
    """ServerMode describing a fetched page."""
    return ServerMode(
        total_count=result.total_count,
        current_page=result.page,
        page_size=request.page_size,
        page_count=result.page_count or None,
        on_page_change=on_page_change,
        on_page_size_change=on_page_size_change,
        preserve_selection_across_pages=preserve_selection_across_pages,
    )


def session_factory_from_config(database: Optional[DatabaseConfig] = None) -> sessionmaker:
    """
    Build a ``sessionmaker`` for QueryPageSource from the ``database:`` block
    of vibechecc.yaml (or an explicit DatabaseConfig).
    """
    database = database or get_platform_config().database
    engine = create_engine(database.url, echo=database.echo, pool_pre_ping=True)
    logger.info("Page source engine bound to %s", engine.url.render_as_string(hide_password=True))
    return sessionmaker(bind=engine)


class _BasePageSource:
    name = "page_source"

    def __init__(self, event_logger: Optional[FileLogger] = None):
        self._event_logger = event_logger

    def _record(self, request: PageRequest, total: int, started: float, sort_by: Optional[str]) -> None:
        duration_ms = (time.perf_counter() - started) * 1000
        logger.debug(
            "%s page %d/%d total=%d in %.1fms",
            self.name, request.page, request.page_size, total, duration_ms,
        )
        if self._event_logger is not None:
            self._event_logger.write(log_page_query(
                source=self.name,
                page=request.page,
                page_size=request.page_size,
                total_count=total,
                duration_ms=duration_ms,
                search=request.search,
                sort_by=sort_by,
            ))


class ListPageSource(_BasePageSource):
    """Pages an in-memory list of dicts or objects."""

    name = "list"

    def __init__(
        self,
        rows: Sequence[Any],
        search_fields: Sequence[str] = (),
        filter_fields: Sequence[str] = (),
        range_fields: Sequence[str] = (),
        sort_fields: Sequence[str] = (),
        default_sort: Optional[str] = None,
        event_logger: Optional[FileLogger] = None,
    ):
        super().__init__(event_logger)
        self._rows = rows
        self.search_fields = tuple(search_fields)
        self.filter_fields = tuple(filter_fields)
        self.range_fields = tuple(range_fields)
        self.sort_fields = tuple(sort_fields)
        self.default_sort = default_sort

    @staticmethod
    def _get(row: Any, name: str) -> Any:
        if isinstance(row, dict):
            return row.get(name)
        return getattr(row, name, None)

    def fetch(self, request: PageRequest) -> PageResult:
        started = time.perf_counter()
        rows = list(self._rows)

        if request.search:
            term = request.search.lower()
            rows = [
                r for r in rows
                if any(
                    self._get(r, f) is not None and term in str(self._get(r, f)).lower()
                    for f in self.search_fields
                )
            ]

        for key, value in request.active_filters().items():
            if key not in self.filter_fields:
                continue
            rows = [r for r in rows if str(self._get(r, key)) == str(value)]

        for key, (low, high) in request.ranges.items():
            if key not in self.range_fields:
                continue
            rows = [
                r for r in rows
                if self._get(r, key) is not None
                and (low is None or self._get(r, key) >= low)
                and (high is None or self._get(r, key) <= high)
            ]

        sort_by = request.sort_by if request.sort_by in self.sort_fields else self.default_sort
        if sort_by:
            present = [r for r in rows if self._get(r, sort_by) is not None]
            missing = [r for r in rows if self._get(r, sort_by) is None]
            present.sort(key=lambda r: basic_key(self._get(r, sort_by)), reverse=request.sort_direction == "desc")
            rows = present + missing

        total = len(rows)
        start = (request.page - 1) * request.page_size
        result = PageResult(
            data=rows[start:start + request.page_size],
            total_count=total,
            page_count=_page_count(total, request.page_size),
            page=request.page,
        )
        self._record(request, total, started, sort_by)
        return result


class QueryPageSource(_BasePageSource):
    """
    Pages a SQLAlchemy mapped model.

    Args:
        session_factory: ``sessionmaker`` (or any callable returning a Session
            usable as a context manager).
        model: Mapped class to select from.
        search_columns: attribute names searched with ``ILIKE``.
        filter_columns: attribute names allowed in equality filters.
        range_columns: attribute names allowed in range filters.
        sort_columns: attribute names allowed in ``sort_by``.
        default_sort: attribute used when ``sort_by`` is missing or not allowed.
        row_mapper: converts each ORM object before it is returned (e.g. to a dict).
    """

    name = "query"

    def __init__(
        self,
        session_factory: Callable[[], Any],
        model: Any,
        search_columns: Sequence[str] = (),
        filter_columns: Sequence[str] = (),
        range_columns: Sequence[str] = (),
        sort_columns: Sequence[str] = (),
        default_sort: Optional[str] = None,
        row_mapper: Optional[Callable[[Any], Any]] = None,
        event_logger: Optional[FileLogger] = None,
    ):
        super().__init__(event_logger)
        self._session_factory = session_factory
        self._model = model
        self.name = f"query:{getattr(model, '__tablename__', model.__name__)}"
        self._search = [self._attr(c) for c in search_columns]
        self._filters = {c: self._attr(c) for c in filter_columns}
        self._ranges = {c: self._attr(c) for c in range_columns}
        self._sorts = {c: self._attr(c) for c in sort_columns}
        if default_sort is not None and default_sort not in self._sorts:
            self._sorts[default_sort] = self._attr(default_sort)
        self.default_sort = default_sort
        self._row_mapper = row_mapper

    def _attr(self, name: str) -> Any:
        try:
            return getattr(self._model, name)
        except AttributeError:
            raise DataSourceError(
                f"{self._model.__name__} has no column '{name}'",
                source=self._model.__name__,
                operation="configure",
                column_id=name,
            ) from None

    def build_statement(self, request: PageRequest) -> Tuple[Any, Optional[str]]:
        """The filtered (unpaged, unsorted) SELECT plus the sort field that applies."""
        stmt = select(self._model)

        if request.search and self._search:
            pattern = f"%{request.search}%"
            stmt = stmt.where(or_(*[col.ilike(pattern) for col in self._search]))

        for key, value in request.active_filters().items():
            column = self._filters.get(key)
            if column is not None:
                stmt = stmt.where(column == value)

        for key, (low, high) in request.ranges.items():
            column = self._ranges.get(key)
            if column is None:
                continue
            if low is not None:
                stmt = stmt.where(column >= low)
            if high is not None:
                stmt = stmt.where(column <= high)

        sort_by = request.sort_by if request.sort_by in self._sorts else self.default_sort
        return stmt, sort_by

    def fetch(self, request: PageRequest) -> PageResult:
        started = time.perf_counter()
        stmt, sort_by = self.build_statement(request)

        if sort_by is not None:
            column = self._sorts[sort_by]
            stmt = stmt.order_by(column.desc() if request.sort_direction == "desc" else column.asc())

        count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
        page_stmt = stmt.offset((request.page - 1) * request.page_size).limit(request.page_size)

        try:
            with self._session_factory() as session:
                total = session.scalar(count_stmt) or 0
                rows = list(session.scalars(page_stmt).all())
                if self._row_mapper is not None:
                    rows = [self._row_mapper(r) for r in rows]
        except SQLAlchemyError as e:
            logger.error("Page query on %s failed: %s", self.name, e)
            raise DataSourceError(
                f"Page query failed: {e}",
                source=self.name,
                operation="fetch",
                page=request.page,
            ) from e

        self._record(request, total, started, sort_by)
        return PageResult(
            data=rows,
            total_count=total,
            page_count=_page_count(total, request.page_size),
            page=request.page,
        )
