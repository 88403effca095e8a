"""Unit tests for vibechecc.table.controller — row models, sorting, paging, selection."""

import pytest

from vibechecc.engine.errors import TableConfigError, TableModeError
from vibechecc.table.columns import ColumnDef, accessor, selection_column
from vibechecc.table.controller import TableController
from vibechecc.table.state import ClientMode, ServerMode, SortingItem


def _server(total=57, page=1, size=10, preserve=False):
    return ServerMode(
        total_count=total,
        current_page=page,
        page_size=size,
        on_page_change=lambda p: None,
        preserve_selection_across_pages=preserve,
    )


class TestConstruction:

    def test_default_mode_from_config(self, tags, tag_columns):
        table = TableController(tag_columns, tags)
        assert isinstance(table.mode, ClientMode)
        assert table.state.pagination.page_size == 10
        assert not table.is_server_mode

    def test_duplicate_column_ids(self, tags):
        with pytest.raises(TableConfigError):
            TableController([accessor("name"), accessor("name")], tags)

    def test_preserve_requires_row_id(self, tag_columns):
        with pytest.raises(TableConfigError):
            TableController(tag_columns, [], _server(preserve=True))

    def test_columns_referenced_not_copied(self, tags, tag_columns):
        table = TableController(tag_columns, tags)
        assert table.get_column("name") is tag_columns[1]
        assert table.get_column("nope") is None

    def test_default_row_ids_are_indexes(self, tags, tag_columns):
        table = TableController(tag_columns, tags)
        assert [r.id for r in table.get_core_row_model()] == ["0", "1", "2", "3", "4"]


class TestFiltering:

    def test_fuzzy_search(self, tags, tag_columns):
        table = TableController(tag_columns, tags)
        table.set_column_filter("name", "CH")
        assert [r.original["name"] for r in table.get_row_model()] == ["chill", "chaotic"]
        assert table.is_filtered

    def test_empty_value_clears(self, tags, tag_columns):
        table = TableController(tag_columns, tags)
        table.set_column_filter("name", "ch")
        table.set_column_filter("name", "")
        assert not table.is_filtered
        assert len(table.get_row_model()) == 5

    def test_unknown_column_is_inert(self, tags, tag_columns):
        table = TableController(tag_columns, tags)
        table.set_column_filter("title", "chill")
        assert not table.is_filtered
        assert len(table.get_row_model()) == 5

    def test_filters_combine(self, tags, tag_columns):
        table = TableController(tag_columns, tags)
        table.set_column_filter("status", "active")
        table.set_column_filter("name", "c")
        assert [r.original["id"] for r in table.get_row_model()] == ["t1", "t3", "t5"]

    def test_custom_filter_fn(self, tags):
        columns = [accessor("count", filter_fn="atLeast")]
        table = TableController(
            columns, tags, filter_fns={"atLeast": lambda v, f: v is not None and v >= f}
        )
        table.set_column_filter("count", 10)
        assert [r.original["id"] for r in table.get_row_model()] == ["t1", "t3"]

    def test_filter_resets_page(self, many_tags, tag_columns):
        table = TableController(tag_columns, many_tags)
        table.set_page_index(3)
        table.set_column_filter("status", "active")
        assert table.state.pagination.page_index == 0

    def test_reset_column_filters(self, tags, tag_columns):
        table = TableController(tag_columns, tags)
        table.set_column_filter("name", "ch")
        table.reset_column_filters()
        assert table.get_column_filter("name") is None


class TestSorting:

    def test_toggle_cycle(self, tags, tag_columns):
        table = TableController(tag_columns, tags)
        table.toggle_sorting("count")
        assert [s.desc for s in table.state.sorting] == [False]
        table.toggle_sorting("count")
        assert [s.desc for s in table.state.sorting] == [True]
        table.toggle_sorting("count")
        assert table.state.sorting == []

    def test_none_sorts_last(self, tags, tag_columns):
        table = TableController(tag_columns, tags)
        table.set_sorting([SortingItem("count")])
        assert [r.original["count"] for r in table.get_row_model()] == [3, 7, 12, 40, None]
        table.set_sorting([SortingItem("count", desc=True)])
        assert [r.original["count"] for r in table.get_row_model()] == [40, 12, 7, 3, None]

    def test_multi_sort(self, tags, tag_columns):
        table = TableController(tag_columns, tags)
        table.toggle_sorting("status")
        table.toggle_sorting("name", multi=True)
        ids = [r.original["id"] for r in table.get_row_model()]
        assert ids == ["t3", "t1", "t5", "t2", "t4"]

    def test_mixed_types_do_not_raise(self, tag_columns):
        rows = [{"id": "a", "name": "x", "count": "many"}, {"id": "b", "name": "y", "count": 2},
                {"id": "c", "name": "z", "count": 1}]
        table = TableController(tag_columns, rows)
        table.toggle_sorting("count")
        assert [r.original["id"] for r in table.get_row_model()] == ["c", "b", "a"]

    def test_descending_first(self, tags):
        table = TableController([accessor("count", sort_descending_first=True)], tags)
        table.toggle_sorting("count")
        assert table.state.sorting[0].desc is True

    def test_unsortable_column_ignored(self, tags, tag_columns):
        table = TableController(tag_columns, tags)
        table.toggle_sorting("select")
        assert table.state.sorting == []

    def test_header_state(self, tags, tag_columns):
        table = TableController(tag_columns, tags)
        table.toggle_sorting("name")
        headers = {h.id: h for h in table.get_header_groups()[0].headers}
        assert headers["name"].sorted == "asc"
        assert headers["count"].sorted is None
        assert headers["select"].can_sort is False

    def test_on_sorting_change(self, tags, tag_columns):
        seen = []
        table = TableController(tag_columns, tags, on_sorting_change=seen.append)
        table.toggle_sorting("name")
        assert seen == [[SortingItem("name", False)]]


class TestClientPaging:

    def test_page_window(self, many_tags, tag_columns):
        table = TableController(tag_columns, many_tags)
        assert table.get_page_count() == 6
        table.last_page()
        assert [r.original["id"] for r in table.get_row_model()] == [f"tag-{i}" for i in range(50, 57)]

    def test_navigation_clamped(self, many_tags, tag_columns):
        table = TableController(tag_columns, many_tags)
        table.previous_page()
        assert table.state.pagination.page_index == 0
        table.set_page_index(99)
        assert table.state.pagination.page_index == 5
        assert not table.get_can_next_page()
        table.next_page()
        assert table.state.pagination.page_index == 5

    def test_page_count_at_least_one(self, tag_columns):
        assert TableController(tag_columns, []).get_page_count() == 1

    def test_page_size_keeps_first_row(self, many_tags, tag_columns):
        table = TableController(tag_columns, many_tags)
        table.set_page_index(2)  # rows 20..29
        table.set_page_size(20)
        assert table.state.pagination.page_index == 1
        assert table.get_row_model()[0].original["id"] == "tag-20"

    def test_invalid_page_size(self, many_tags, tag_columns):
        table = TableController(tag_columns, many_tags)
        with pytest.raises(TableConfigError):
            table.set_page_size(0)


class TestVisibility:

    def test_toggle(self, tags, tag_columns):
        table = TableController(tag_columns, tags)
        table.toggle_column_visibility("count")
        assert [c.id for c in table.get_visible_columns()] == ["select", "name", "status"]
        assert [c.column_id for c in table.get_row_model()[0].get_visible_cells()] == ["select", "name", "status"]
        table.toggle_column_visibility("count", True)
        assert table.get_is_visible("count")

    def test_unhideable(self, tags, tag_columns):
        table = TableController(tag_columns, tags)
        table.toggle_column_visibility("select", False)
        assert table.get_is_visible("select")


class TestSelection:

    def test_selected_rows_are_filtered_selected_originals(self, tags, tag_columns, row_id):
        table = TableController(tag_columns, tags, get_row_id=row_id)
        for rid in ("t1", "t2", "t3"):
            table.toggle_row_selected(rid)
        table.set_column_filter("name", "ch")
        selected = table.get_selected_rows()
        assert selected == [tags[0], tags[2]]
        assert selected[0] is tags[0]
        assert table.get_selected_count() == 2

    def test_single_selection_mode(self, tags, tag_columns, row_id):
        table = TableController(tag_columns, tags, get_row_id=row_id, enable_multi_row_selection=False)
        table.toggle_row_selected("t1")
        table.toggle_row_selected("t2")
        assert list(table.state.row_selection) == ["t2"]
        table.toggle_all_page_rows_selected(True)
        assert list(table.state.row_selection) == ["t2"]

    def test_row_selection_predicate(self, tags, tag_columns, row_id):
        table = TableController(
            tag_columns, tags, get_row_id=row_id,
            enable_row_selection=lambda row: row["status"] != "hidden",
        )
        table.toggle_all_page_rows_selected(True)
        assert "t2" not in table.state.row_selection
        assert table.get_is_all_page_rows_selected()

    def test_toggle_page_rows_only_current_page(self, many_tags, tag_columns, row_id):
        table = TableController(tag_columns, many_tags, get_row_id=row_id)
        table.next_page()
        table.toggle_all_page_rows_selected()
        assert sorted(table.state.row_selection) == sorted(f"tag-{i}" for i in range(10, 20))

    def test_toggle_all_rows(self, many_tags, tag_columns):
        table = TableController(tag_columns, many_tags)
        table.toggle_all_rows_selected()
        assert table.get_selected_count() == 57
        table.toggle_all_rows_selected()
        assert table.get_selected_count() == 0

    def test_on_row_select_notified(self, tags, tag_columns, row_id):
        seen = []
        table = TableController(tag_columns, tags, get_row_id=row_id, on_row_select=seen.append)
        table.toggle_row_selected("t3")
        table.reset_row_selection()
        table.reset_row_selection()
        assert seen == [[tags[2]], []]

    def test_set_data_drops_missing_rows(self, tags, tag_columns, row_id):
        table = TableController(tag_columns, tags, get_row_id=row_id)
        table.toggle_row_selected("t1")
        table.toggle_row_selected("t2")
        table.set_data(tags[1:])
        assert list(table.state.row_selection) == ["t2"]

    def test_click_row(self, tags, tag_columns, row_id):
        clicked = []
        table = TableController(tag_columns, tags, get_row_id=row_id, on_row_click=clicked.append)
        table.click_row("t4")
        table.click_row("missing")
        assert clicked == [tags[3]]


class TestServerMode:

    def test_no_local_processing(self, tag_rows, tag_columns):
        page = tag_rows(10)
        table = TableController(tag_columns, page, _server(page=3))
        table.set_column_filter("name", "zzz")
        table.toggle_sorting("count")
        assert table.get_row_model()[0].original is page[0]
        assert len(table.get_row_model()) == 10
        assert table.get_page_count() == 6

    def test_client_paging_rejected(self, tag_rows, tag_columns):
        table = TableController(tag_columns, tag_rows(10), _server())
        for op in (table.next_page, table.previous_page, table.first_page, table.last_page):
            with pytest.raises(TableModeError):
                op()
        with pytest.raises(TableModeError):
            table.set_page_size(20)

    def test_can_navigate(self, tag_rows, tag_columns):
        table = TableController(tag_columns, tag_rows(10), _server(page=1))
        assert not table.get_can_previous_page()
        assert table.get_can_next_page()
        table.set_data(tag_rows(7), _server(page=6))
        assert table.get_can_previous_page()
        assert not table.get_can_next_page()

    def test_selection_cleared_on_page_change(self, tag_rows, tag_columns, row_id):
        seen = []
        table = TableController(tag_columns, tag_rows(10), _server(page=1),
                                get_row_id=row_id, on_row_select=seen.append)
        table.toggle_row_selected("tag-1")
        table.set_data(tag_rows(20)[10:], _server(page=2))
        assert table.state.row_selection == {}
        assert seen[-1] == []

    def test_selection_kept_on_same_page_refresh(self, tag_rows, tag_columns, row_id):
        rows = tag_rows(10)
        table = TableController(tag_columns, rows, _server(page=1), get_row_id=row_id)
        table.toggle_row_selected("tag-1")
        table.set_data(list(rows), _server(page=1))
        assert table.state.row_selection == {"tag-1": True}

    def test_preserve_selection_across_pages(self, tag_rows, tag_columns, row_id):
        rows = tag_rows(20)
        table = TableController(tag_columns, rows[:10], _server(page=1, preserve=True), get_row_id=row_id)
        table.toggle_row_selected("tag-1")
        table.set_data(rows[10:], _server(page=2, preserve=True))
        table.toggle_row_selected("tag-12")
        assert table.get_selected_count() == 2
        assert table.get_selected_rows() == [rows[12], rows[1]]

    def test_mode_switch_rejected(self, tag_rows, tag_columns):
        table = TableController(tag_columns, tag_rows(10), ClientMode())
        with pytest.raises(TableModeError):
            table.set_data([], _server())

    def test_client_mode_update_changes_page_size(self, many_tags, tag_columns):
        table = TableController(tag_columns, many_tags, ClientMode(page_size=10))
        table.set_data(many_tags, ClientMode(page_size=20))
        assert len(table.get_row_model()) == 20


class TestRowObjects:

    def test_row_accessors(self, tags, tag_columns, row_id):
        table = TableController(tag_columns, tags, get_row_id=row_id)
        row = table.get_row("t2")
        assert row.get_value("name") == "Cozy"
        assert row.get_value("missing") is None
        row.toggle_selected()
        assert row.get_is_selected()
        assert row.get_can_select()

    def test_snapshot_independent(self, tags, tag_columns):
        table = TableController(tag_columns, tags)
        snap = table.snapshot()
        table.toggle_row_selected("0")
        assert snap.row_selection == {}

    def test_cell_ids(self, tags):
        table = TableController([ColumnDef(id="actions", cell=lambda r: "...")], tags)
        cell = table.get_row_model()[0].get_visible_cells()[0]
        assert cell.id == "0_actions"
        assert cell.value == "..."

    def test_selection_column_cells_empty(self, tags):
        table = TableController([selection_column(), accessor("name")], tags)
        cells = table.get_row_model()[0].get_visible_cells()
        assert cells[0].value is None
