"""Unit tests for vibechecc.table.datasource — page requests and page sources."""

import pytest
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import Integer, String, create_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, sessionmaker

from vibechecc.engine.config import DatabaseConfig
from vibechecc.engine.errors import DataSourceError
from vibechecc.engine.logging import FileLogger
from vibechecc.table.controller import TableController
from vibechecc.table.datasource import (
    ListPageSource,
    PageRequest,
    QueryPageSource,
    server_mode_for,
    session_factory_from_config,
)
from vibechecc.table.state import SortingItem

ROLES = ["user", "moderator", "admin"]


class Base(DeclarativeBase):
    pass


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    username: Mapped[str] = mapped_column(String(50))
    role: Mapped[str] = mapped_column(String(20))
    vibes: Mapped[int] = mapped_column(Integer)


def _user_rows(n=57):
    return [
        {"id": i, "username": f"Viber{i:03d}", "role": ROLES[i % 3], "vibes": (i * 13) % 97}
        for i in range(1, n + 1)
    ]


@pytest.fixture
def session_factory():
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine)
    with factory() as session:
        session.add_all([User(**row) for row in _user_rows()])
        session.commit()
    yield factory
    engine.dispose()


def _as_dict(user):
    return {"id": user.id, "username": user.username, "role": user.role, "vibes": user.vibes}


class TestPageRequest:

    def test_defaults(self):
        request = PageRequest()
        assert request.page == 1
        assert request.page_size == 10
        assert request.sort_direction == "desc"

    def test_validation(self):
        with pytest.raises(PydanticValidationError):
            PageRequest(page=0)
        with pytest.raises(PydanticValidationError):
            PageRequest(sort_direction="up")

    def test_active_filters(self):
        request = PageRequest(filters={"role": "admin", "status": "all", "tag": "", "x": None})
        assert request.active_filters() == {"role": "admin"}

    def test_with_sorting(self):
        request = PageRequest(page=4).with_sorting([SortingItem("vibes", desc=False)])
        assert request.sort_by == "vibes"
        assert request.sort_direction == "asc"
        assert request.page == 1
        assert PageRequest(sort_by="vibes").with_sorting([]).sort_by is None


class TestListPageSource:

    @pytest.fixture
    def source(self):
        return ListPageSource(
            _user_rows(),
            search_fields=["username"],
            filter_fields=["role"],
            range_fields=["vibes"],
            sort_fields=["username", "vibes"],
            default_sort="username",
        )

    def test_paging(self, source):
        result = source.fetch(PageRequest(page=3, page_size=10, sort_direction="asc"))
        assert result.total_count == 57
        assert result.page_count == 6
        assert [r["id"] for r in result.data] == list(range(21, 31))

    def test_search_case_insensitive(self, source):
        result = source.fetch(PageRequest(search="viber00", page_size=50))
        assert result.total_count == 9

    def test_filter_ignores_all(self, source):
        assert source.fetch(PageRequest(filters={"role": "all"})).total_count == 57
        assert source.fetch(PageRequest(filters={"role": "admin"})).total_count == 19

    def test_sort_mixed_types(self):
        rows = [{"id": 1, "vibes": "lots"}, {"id": 2, "vibes": 5}, {"id": 3, "vibes": None}, {"id": 4, "vibes": 1}]
        source = ListPageSource(rows, sort_fields=["vibes"])
        result = source.fetch(PageRequest(sort_by="vibes", sort_direction="asc"))
        assert [r["id"] for r in result.data] == [4, 2, 1, 3]

    def test_unknown_filter_field_ignored(self, source):
        assert source.fetch(PageRequest(filters={"email": "x"})).total_count == 57

    def test_range(self, source):
        result = source.fetch(PageRequest(ranges={"vibes": (90, None)}, page_size=50))
        assert all(r["vibes"] >= 90 for r in result.data)
        assert result.total_count == len(result.data)

    def test_sort_fallback(self, source):
        result = source.fetch(PageRequest(sort_by="role", sort_direction="asc"))
        assert result.data[0]["username"] == "Viber001"

    def test_sort_desc(self, source):
        result = source.fetch(PageRequest(sort_by="vibes", sort_direction="desc", page_size=57))
        values = [r["vibes"] for r in result.data]
        assert values == sorted(values, reverse=True)

    def test_empty(self):
        result = ListPageSource([]).fetch(PageRequest())
        assert result.total_count == 0
        assert result.data == []

    def test_logs_query(self, tmp_dir):
        fl = FileLogger(str(tmp_dir))
        ListPageSource(_user_rows(), search_fields=["username"], event_logger=fl).fetch(
            PageRequest(search="viber")
        )
        entry = fl.query("data_sources", "performance")[0]
        assert entry["source"] == "list"
        assert entry["total_count"] == 57
        assert entry["search"] == "viber"


class TestQueryPageSource:

    @pytest.fixture
    def source(self, session_factory):
        return QueryPageSource(
            session_factory,
            User,
            search_columns=["username"],
            filter_columns=["role"],
            range_columns=["vibes"],
            sort_columns=["username", "vibes"],
            default_sort="id",
            row_mapper=_as_dict,
        )

    def test_paging(self, source):
        result = source.fetch(PageRequest(page=6, page_size=10, sort_direction="asc"))
        assert result.total_count == 57
        assert result.page_count == 6
        assert [r["id"] for r in result.data] == list(range(51, 58))

    def test_search_ilike(self, source):
        result = source.fetch(PageRequest(search="viber01", page_size=50))
        assert result.total_count == 10

    def test_filters_and_ranges(self, source):
        result = source.fetch(PageRequest(filters={"role": "admin"}, ranges={"vibes": (None, 40)}, page_size=57))
        assert result.data
        assert all(r["role"] == "admin" and r["vibes"] <= 40 for r in result.data)

    def test_sort(self, source):
        result = source.fetch(PageRequest(sort_by="vibes", sort_direction="asc", page_size=57))
        values = [r["vibes"] for r in result.data]
        assert values == sorted(values)

    def test_name(self, source):
        assert source.name == "query:users"

    def test_unknown_column(self, session_factory):
        with pytest.raises(DataSourceError) as exc_info:
            QueryPageSource(session_factory, User, search_columns=["email"])
        assert exc_info.value.operation == "configure"

    def test_database_error_wrapped(self, session_factory, source):
        with session_factory() as session:
            Base.metadata.drop_all(session.get_bind())
        with pytest.raises(DataSourceError) as exc_info:
            source.fetch(PageRequest())
        assert exc_info.value.source == "query:users"


class TestServerModeFor:

    def test_feeds_controller(self, tag_columns):
        calls = []
        source = ListPageSource(_user_rows(), default_sort="id")
        request = PageRequest(page=3, page_size=10)
        result = source.fetch(request)
        mode = server_mode_for(result, request, calls.append)
        assert mode.current_page == 3
        assert mode.resolved_page_count == 6

        table = TableController(tag_columns, result.data, mode)
        assert len(table.get_row_model()) == 10
        assert table.get_can_next_page()

    def test_empty_result_has_one_page(self):
        request = PageRequest()
        result = ListPageSource([]).fetch(request)
        mode = server_mode_for(result, request, lambda p: None)
        assert mode.resolved_page_count == 1


class TestSessionFactoryFromConfig:

    def test_uses_database_block(self, tmp_dir):
        url = f"sqlite:///{tmp_dir / 'vibes.db'}"
        factory = session_factory_from_config(DatabaseConfig(url=url))
        engine = factory.kw["bind"]
        Base.metadata.create_all(engine)
        with factory() as session:
            session.add_all([User(**row) for row in _user_rows(3)])
            session.commit()
        source = QueryPageSource(factory, User, search_columns=["username"], default_sort="id")
        assert source.fetch(PageRequest()).total_count == 3
        engine.dispose()
