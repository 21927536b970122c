"""
Unit Tests for Dictionary Reading
"""
import pytest
from unittest.mock import MagicMock, PropertyMock
import sys
import os

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', 'src'))

from dbvirtual.config import OverlayConfig, reset_config, set_config
from dbvirtual.schema import (
    CancellableProgressMonitor,
    ColumnMeta,
    DataKind,
    DefaultValueHandler,
    ExecutionSession,
    MemoryDataSource,
    ProgressMonitor,
    QueryResultSet,
)
from dbvirtual.utils import DataAccessError
from dbvirtual.virtual import (
    LabelValuePair,
    OrphanEntityCache,
    VirtualResolver,
    get_dictionary_description_columns,
    read_dictionary_rows,
)


class CancelAfter(ProgressMonitor):
    """Monitor that reports cancellation after a number of polls"""

    def __init__(self, polls):
        self.polls = polls

    def is_canceled(self):
        self.polls -= 1
        return self.polls < 0


@pytest.fixture
def session():
    return ExecutionSession()


@pytest.fixture
def key_column():
    return ColumnMeta("id", "integer")


def _read(session, key_column, result_set):
    return read_dictionary_rows(session, key_column, DefaultValueHandler(), result_set)


class TestReadDictionaryRows:
    """Tests for read_dictionary_rows"""

    def test_single_column_labels(self, session, key_column):
        """Test labels are the key display strings"""
        rs = QueryResultSet.from_rows(["id"], [(1,), (2,)], ["integer"])
        rows = _read(session, key_column, rs)
        assert rows == [LabelValuePair("1", 1), LabelValuePair("2", 2)]

    def test_nulls_deduplicated(self, session, key_column):
        """Test only the first null key is kept, order preserved"""
        rs = QueryResultSet.from_rows(["id"], [(1,), (None,), (2,), (None,)])
        rows = _read(session, key_column, rs)
        assert [r.value for r in rows] == [1, None, 2]
        assert rows[1].label == "[NULL]"

    def test_null_value_objects(self, session, key_column):
        """Test value objects reporting is_null count as nulls"""
        null_value = MagicMock()
        null_value.is_null.return_value = True
        rs = QueryResultSet.from_rows(["id"], [(None,), (null_value,), (3,)])
        rows = _read(session, key_column, rs)
        assert [r.value for r in rows] == [None, 3]

    def test_multi_column_labels(self, session, key_column):
        """Test description columns are joined, key display ignored"""
        rs = QueryResultSet.from_rows(
            ["id", "code", "region"],
            [(1, "A", "X"), (2, "B", "Y")],
        )
        rows = _read(session, key_column, rs)
        assert rows == [LabelValuePair("A X", 1), LabelValuePair("B Y", 2)]

    def test_two_column_labels(self, session, key_column):
        rs = QueryResultSet.from_rows(["id", "name"], [(7, "Seven")])
        assert _read(session, key_column, rs) == [LabelValuePair("Seven", 7)]

    def test_null_description(self, session, key_column):
        rs = QueryResultSet.from_rows(["id", "name"], [(7, None)])
        assert _read(session, key_column, rs)[0].label == "[NULL]"

    def test_configured_separator(self, session, key_column):
        set_config(OverlayConfig(label_separator=" - "))
        try:
            rs = QueryResultSet.from_rows(["id", "a", "b"], [(1, "A", "X")])
            assert _read(session, key_column, rs)[0].label == "A - X"
        finally:
            reset_config()

    def test_empty_result(self, session, key_column):
        rs = QueryResultSet.from_rows(["id"], [])
        assert _read(session, key_column, rs) == []

    def test_cancellation_returns_partial_rows(self, key_column):
        """Test cancellation stops the scan without failing"""
        session = ExecutionSession(progress_monitor=CancelAfter(2))
        rs = QueryResultSet.from_rows(["id"], [(1,), (2,), (3,), (4,)])
        rows = _read(session, key_column, rs)
        assert [r.value for r in rows] == [1, 2]

    def test_canceled_before_start(self, key_column):
        monitor = CancellableProgressMonitor()
        monitor.cancel()
        session = ExecutionSession(progress_monitor=monitor)
        rs = QueryResultSet.from_rows(["id"], [(1,)])
        assert _read(session, key_column, rs) == []

    def test_custom_value_handler(self, key_column):
        """Test description columns use the session's handler for their kind"""
        handler = MagicMock()
        handler.fetch_value.side_effect = lambda s, rs, col, i: rs.get_value(i)
        handler.display_string.side_effect = lambda col, v, fmt: f"<{v}>"
        session = ExecutionSession(value_handlers={DataKind.STRING: handler})
        rs = QueryResultSet.from_rows(["id", "name"], [(1, "a")], ["integer", "text"])
        assert _read(session, key_column, rs)[0].label == "<a>"

    def test_iteration_failure(self, session, key_column):
        """Test result set errors surface as DataAccessError"""
        rs = QueryResultSet.from_rows(["id"], [(1,)])
        rs.next_row = MagicMock(side_effect=RuntimeError("connection reset"))
        with pytest.raises(DataAccessError) as exc_info:
            _read(session, key_column, rs)
        assert isinstance(exc_info.value.original_error, RuntimeError)

    def test_fetch_failure(self, session, key_column):
        handler = MagicMock()
        handler.fetch_value.side_effect = ValueError("bad bytes")
        rs = QueryResultSet.from_rows(["id"], [(1,)])
        with pytest.raises(DataAccessError) as exc_info:
            read_dictionary_rows(session, key_column, handler, rs)
        assert exc_info.value.column_name == "id"

    def test_metadata_failure(self, session, key_column):
        rs = MagicMock()
        type(rs).meta = PropertyMock(side_effect=OSError("closed"))
        with pytest.raises(DataAccessError):
            _read(session, key_column, rs)


class TestDescriptionColumns:
    """Tests for dictionary description column discovery"""

    @pytest.fixture
    def data_source(self):
        ds = MemoryDataSource("pg-main")
        countries = ds.add_table("countries")
        countries.add_column("id", "integer")
        countries.add_column("iso_code", "char(2)")
        countries.add_column("title", "varchar(100)")
        statuses = ds.add_table("statuses")
        statuses.add_column("id", "integer")
        statuses.add_column("code", "varchar(10)")
        numbers = ds.add_table("numbers")
        numbers.add_column("id", "integer")
        numbers.add_column("value", "integer")
        return ds

    @pytest.fixture
    def resolver(self):
        return VirtualResolver(orphan_cache=OrphanEntityCache())

    def test_candidate_name_preferred(self, data_source, resolver):
        key = data_source.tables["countries"].columns[0]
        assert get_dictionary_description_columns(key, resolver=resolver) == "title"

    def test_first_text_column(self, data_source, resolver):
        key = data_source.tables["statuses"].columns[0]
        assert get_dictionary_description_columns(key, resolver=resolver) == "code"

    def test_fallback_to_key(self, data_source, resolver):
        key = data_source.tables["numbers"].columns[0]
        assert get_dictionary_description_columns(key, resolver=resolver) == "id"

    def test_virtual_declaration_wins(self, data_source, resolver):
        countries = data_source.tables["countries"]
        v_entity = resolver.resolve_virtual_entity(countries, create=True)
        v_entity.description_column_names = "iso_code,title"
        key = countries.columns[0]
        assert get_dictionary_description_columns(key, resolver=resolver) == "iso_code,title"
