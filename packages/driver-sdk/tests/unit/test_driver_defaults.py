import datetime
import itertools
from typing import Any, Dict, Iterator, List, Set
from unittest.mock import MagicMock

import pytest

from querybridge_driver_sdk import (
    BaseType,
    DatabaseDescriptor,
    DetailsField,
    Driver,
    DriverError,
    DriverProtocol,
    Feature,
    MAX_SYNC_LAZY_SEQ_RESULTS,
    FieldDescriptor,
    QueryResult,
    TableDescriptor,
    TableRef,
    UnsupportedFeatureError,
    UnsupportedOperationError,
)


class _ListDriver(Driver):
    """Minimal driver serving values from an in-memory list."""

    engine = "memory"
    name = "In Memory"

    def __init__(self, values: List[Any]):
        self.values = values
        self.pulled = 0

    def details_fields(self) -> List[DetailsField]:
        return [DetailsField(name="db", display_name="Database", required=True)]

    def can_connect(self, details) -> bool:
        return True

    def active_tables(self, database) -> Set[TableRef]:
        return {TableRef(name="things")}

    def active_columns(self, table) -> Dict[str, BaseType]:
        return {"value": BaseType.TEXT}

    def table_primary_keys(self, table) -> Set[str]:
        return set()

    def field_values(self, field) -> Iterator[Any]:
        for value in self.values:
            self.pulled += 1
            yield value

    def process_query(self, query) -> QueryResult:
        return QueryResult()


@pytest.fixture
def field():
    database = DatabaseDescriptor(id=1, engine="memory")
    table = TableDescriptor(name="things", database=database)
    return FieldDescriptor(name="value", base_type=BaseType.TEXT, table=table)


def test_driver_satisfies_protocol():
    assert isinstance(_ListDriver([]), DriverProtocol)


def test_default_features_are_empty():
    # Arrange
    driver = _ListDriver([])

    # Act / Assert
    assert driver.features() == set()
    assert driver.supports(Feature.FOREIGN_KEYS) is False


def test_foreign_keys_without_feature_raise(field):
    # Arrange
    driver = _ListDriver([])

    # Act / Assert
    with pytest.raises(UnsupportedFeatureError) as excinfo:
        driver.table_foreign_keys(field.table)
    assert excinfo.value.feature is Feature.FOREIGN_KEYS


def test_nested_fields_without_feature_raise(field):
    with pytest.raises(UnsupportedFeatureError):
        _ListDriver([]).active_nested_fields(field)


def test_humanize_error_is_identity():
    assert _ListDriver([]).humanize_error("Connection refused") == "Connection refused"


def test_sync_in_context_invokes_thunk_once():
    # Arrange
    driver = _ListDriver([])
    thunk = MagicMock(return_value=42)

    # Act
    result = driver.sync_in_context(DatabaseDescriptor(id=1, engine="memory"), thunk)

    # Assert
    assert result == 42
    thunk.assert_called_once_with()


def test_process_query_in_context_invokes_thunk_once():
    thunk = MagicMock(return_value="rows")

    assert _ListDriver([]).process_query_in_context(thunk) == "rows"
    thunk.assert_called_once_with()


def test_fallback_average_length(field):
    # Arrange
    driver = _ListDriver(["ab", None, "abcd"])

    # Act
    avg = driver.field_avg_length(field)

    # Assert
    assert avg == 3.0


def test_fallback_average_length_without_values_is_zero(field):
    assert _ListDriver([]).field_avg_length(field) == 0.0
    assert _ListDriver([None, None]).field_avg_length(field) == 0.0


def test_fallback_percent_urls(field):
    # Arrange
    driver = _ListDriver(["http://example.com", "not a url", None, "https://foo.org/x"])

    # Act
    percent = driver.field_percent_urls(field)

    # Assert
    assert percent == pytest.approx(2 / 3)


def test_fallback_percent_urls_all_null_is_zero(field):
    assert _ListDriver([None, None]).field_percent_urls(field) == 0.0


def test_fallback_sampling_stops_at_cap(field):
    # Arrange
    driver = _ListDriver(itertools.repeat("abc"))

    # Act
    avg = driver.field_avg_length(field)

    # Assert
    assert avg == 3.0
    assert driver.pulled == MAX_SYNC_LAZY_SEQ_RESULTS


def test_driver_specific_field_sync_is_noop(field):
    assert _ListDriver([]).driver_specific_field_sync(field) is None


def test_default_date_interval_is_relative_datetime():
    # Arrange
    before = datetime.datetime.now(datetime.timezone.utc)

    # Act
    moment = _ListDriver([]).date_interval("day", -1)

    # Assert
    assert before - datetime.timedelta(days=1, seconds=5) < moment < before


def test_table_rows_not_supported_by_default():
    with pytest.raises(UnsupportedOperationError) as excinfo:
        _ListDriver([]).table_rows(DatabaseDescriptor(id=1, engine="memory"), "things")

    assert isinstance(excinfo.value, DriverError)
    assert excinfo.value.operation == "table_rows"
