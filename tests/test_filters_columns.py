"""Unit tests for vibechecc.table.filters / columns / state."""

from datetime import date, datetime
from types import SimpleNamespace

import pytest

from vibechecc.engine.errors import TableConfigError
from vibechecc.table.columns import ColumnDef, accessor, selection_column
from vibechecc.table.filters import (
    FILTER_FNS,
    alphanumeric_key,
    basic_key,
    datetime_key,
    equals,
    equals_string,
    fuzzy_filter,
    in_range,
    resolve_filter_fn,
    resolve_sorting_fn,
)
from vibechecc.table.state import ClientMode, ServerMode, SortingItem, TableState


class TestFuzzyFilter:

    def test_case_insensitive_substring(self):
        assert fuzzy_filter("Hello World", "hello") is True
        assert fuzzy_filter("Hello World", "xyz") is False

    def test_empty_term_matches_everything(self):
        assert fuzzy_filter("anything", "") is True
        assert fuzzy_filter(None, "") is True

    def test_none_value_never_matches(self):
        assert fuzzy_filter(None, "a") is False

    def test_non_string_values(self):
        assert fuzzy_filter(1234, "23") is True


class TestOtherFilters:

    def test_equals_string(self):
        assert equals_string("Active", "active") is True
        assert equals_string("active", "act") is False

    def test_equals_coerces_select_strings(self):
        assert equals(3, "3") is True
        assert equals(3, 3) is True
        assert equals(None, "3") is False

    def test_in_range(self):
        assert in_range(5, (1, 10)) is True
        assert in_range(5, (None, 4)) is False
        assert in_range(5, (6, None)) is False
        assert in_range(None, (1, 2)) is False

    def test_registry_names(self):
        assert set(FILTER_FNS) == {"fuzzy", "includesString", "equalsString", "equals", "inRange"}

    def test_resolve(self):
        assert resolve_filter_fn("equals") is equals
        assert resolve_filter_fn(None) is fuzzy_filter
        custom = lambda v, f: True  # noqa: E731
        assert resolve_filter_fn(custom) is custom
        with pytest.raises(TableConfigError):
            resolve_filter_fn("soundex")


class TestSortKeys:

    def test_basic_mixed_types(self):
        values = ["b", 3, date(2024, 1, 1), 1.5, "a", True]
        assert sorted(values, key=basic_key) == [True, 1.5, 3, "a", "b", date(2024, 1, 1)]

    def test_alphanumeric(self):
        values = ["item10", "Item2", "item1"]
        assert sorted(values, key=alphanumeric_key) == ["item1", "Item2", "item10"]

    def test_datetime(self):
        assert datetime_key("2024-01-02") > datetime_key(date(2024, 1, 1))
        assert datetime_key(datetime(2024, 1, 1)) == datetime_key(date(2024, 1, 1))

    def test_resolve_unknown(self):
        with pytest.raises(TableConfigError):
            resolve_sorting_fn("random")


class TestColumnDef:

    def test_id_defaults_to_accessor_key(self):
        assert accessor("name").id == "name"

    def test_column_without_id_rejected(self):
        with pytest.raises(TableConfigError):
            ColumnDef(header="Actions")

    def test_get_value_dict_then_attribute(self):
        col = accessor("name")
        assert col.get_value({"name": "chill"}) == "chill"
        assert col.get_value(SimpleNamespace(name="cozy")) == "cozy"
        assert col.get_value({}) is None

    def test_accessor_fn(self):
        col = ColumnDef(id="upper", accessor_fn=lambda r: r["name"].upper())
        assert col.has_accessor
        assert col.get_value({"name": "chill"}) == "CHILL"

    def test_render(self):
        col = accessor("created_at", cell=lambda r: "yesterday")
        assert col.render_cell({"created_at": 1}) == "yesterday"
        assert col.render_header() == "Created At"
        assert accessor("name", header="tag").render_header() == "tag"

    def test_frozen(self):
        col = accessor("name")
        with pytest.raises(Exception):
            col.id = "other"  # type: ignore[misc]

    def test_selection_column(self):
        col = selection_column()
        assert col.id == "select"
        assert not col.has_accessor
        assert not col.enable_sorting
        assert not col.enable_hiding


class TestModes:

    def test_server_page_count_derived(self):
        mode = ServerMode(total_count=57, current_page=3, page_size=10, on_page_change=lambda p: None)
        assert mode.resolved_page_count == 6

    def test_server_page_count_minimum_one(self):
        mode = ServerMode(total_count=0, current_page=1, page_size=10, on_page_change=lambda p: None)
        assert mode.resolved_page_count == 1

    def test_explicit_page_count_wins(self):
        mode = ServerMode(total_count=57, current_page=1, page_size=10, page_count=9,
                          on_page_change=lambda p: None)
        assert mode.resolved_page_count == 9

    @pytest.mark.parametrize("kwargs", [
        {"total_count": -1, "current_page": 1, "page_size": 10},
        {"total_count": 5, "current_page": 0, "page_size": 10},
        {"total_count": 5, "current_page": 1, "page_size": 0},
    ])
    def test_invalid_server_mode(self, kwargs):
        with pytest.raises(TableConfigError):
            ServerMode(on_page_change=lambda p: None, **kwargs)

    def test_invalid_client_mode(self):
        with pytest.raises(TableConfigError):
            ClientMode(page_size=0)

    def test_mode_names(self):
        assert ClientMode().name == "client"
        assert ServerMode(1, 1, 10, lambda p: None).name == "server"

    def test_state_copy_is_independent(self):
        state = TableState(sorting=[SortingItem("name")])
        snap = state.copy()
        snap.sorting[0].desc = True
        snap.row_selection["a"] = True
        assert state.sorting[0].desc is False
        assert state.row_selection == {}
