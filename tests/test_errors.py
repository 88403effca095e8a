"""Unit tests for vibechecc.engine.errors — Error hierarchy & serialization."""

import json

import pytest

from vibechecc.engine.errors import (
    ConfigError,
    DataSourceError,
    TableConfigError,
    TableModeError,
    ValidationError,
    VibecheccError,
)


class TestVibecheccError:
    """Base error class tests."""

    def test_basic_creation(self):
        err = VibecheccError("something broke")
        assert err.message == "something broke"
        assert str(err) == "something broke"
        assert err.error_type == "VibecheccError"
        assert err.table_id is None
        assert err.column_id is None

    def test_context_fields(self):
        err = VibecheccError("fail", table_id="tags", column_id="name")
        assert err.table_id == "tags"
        assert err.column_id == "name"

    def test_to_dict(self):
        err = VibecheccError("fail", table_id="tags", extra=3)
        d = err.to_dict()
        assert d["error_type"] == "VibecheccError"
        assert d["message"] == "fail"
        assert d["table_id"] == "tags"
        assert d["context"] == {"extra": "3"}
        assert "timestamp" in d

    def test_to_json(self):
        parsed = json.loads(VibecheccError("fail").to_json())
        assert parsed["error_type"] == "VibecheccError"
        assert parsed["message"] == "fail"

    def test_repr(self):
        r = repr(VibecheccError("fail", table_id="tags", column_id="name"))
        assert "VibecheccError: fail" in r
        assert "table_id=tags" in r
        assert "column_id=name" in r


class TestSubclasses:

    @pytest.mark.parametrize("cls", [
        TableConfigError, TableModeError, DataSourceError, ConfigError, ValidationError,
    ])
    def test_all_inherit_from_base(self, cls):
        err = cls("x")
        assert isinstance(err, VibecheccError)
        assert err.error_type == cls.__name__

    def test_mode_error_carries_mode(self):
        err = TableModeError("paging is caller-owned", mode="server")
        assert err.mode == "server"
        assert err.to_dict()["mode"] == "server"

    def test_data_source_error_fields(self):
        err = DataSourceError("query failed", source="query:users", operation="fetch")
        d = err.to_dict()
        assert d["source"] == "query:users"
        assert d["operation"] == "fetch"

    def test_validation_errors_list(self):
        err = ValidationError("bad", validation_errors=[{"loc": ["page"]}])
        assert err.to_dict()["validation_errors"] == [{"loc": ["page"]}]

    def test_catchable_as_base(self):
        with pytest.raises(VibecheccError):
            raise TableConfigError("unknown filter fn")
