"""
Standard compliance test suite for querybridge drivers.
Subclass it, override the `driver` and `database` fixtures, and every contract
check below runs against your driver.
"""
import itertools

import pytest

from querybridge_driver_sdk import (
    BaseType,
    DatabaseDescriptor,
    DetailsField,
    Driver,
    DriverProtocol,
    Feature,
    FieldDescriptor,
    MAX_SYNC_LAZY_SEQ_RESULTS,
    TableDescriptor,
    TableRef,
    UnsupportedFeatureError,
)


class DriverComplianceSuite:
    @pytest.fixture
    def driver(self) -> Driver:
        """Override this fixture in subclass to return the driver under test."""
        raise NotImplementedError

    @pytest.fixture
    def database(self) -> DatabaseDescriptor:
        """Override this fixture in subclass to return a reachable database."""
        raise NotImplementedError

    def test_driver_satisfies_protocol(self, driver):
        assert isinstance(driver, DriverProtocol)
        assert driver.engine
        assert driver.name

    def test_details_fields_contract(self, driver):
        fields = driver.details_fields()
        assert fields
        assert all(isinstance(f, DetailsField) for f in fields)
        assert all(f.default is None or f.placeholder is None for f in fields)
        assert len({f.name for f in fields}) == len(fields)

    def test_features_are_known_tags(self, driver):
        features = driver.features()
        assert isinstance(features, set)
        assert all(isinstance(f, Feature) for f in features)

    def test_can_connect(self, driver, database):
        assert driver.can_connect(database.details) is True

    def test_active_tables_and_columns(self, driver, database):
        tables = driver.active_tables(database)
        assert isinstance(tables, set)
        assert all(isinstance(t, TableRef) for t in tables)

        for ref in tables:
            columns = driver.active_columns(TableDescriptor.from_ref(ref, database))
            assert columns
            assert all(isinstance(base_type, BaseType) for base_type in columns.values())

    def test_foreign_keys_respect_feature_flag(self, driver, database):
        tables = driver.active_tables(database)
        if not tables:
            pytest.skip("database has no tables")
        table = TableDescriptor.from_ref(next(iter(tables)), database)

        if Feature.FOREIGN_KEYS in driver.features():
            assert isinstance(driver.table_foreign_keys(table), set)
        else:
            with pytest.raises(UnsupportedFeatureError):
                driver.table_foreign_keys(table)

    def test_field_values_are_bounded(self, driver, database):
        tables = driver.active_tables(database)
        if not tables:
            pytest.skip("database has no tables")
        table = TableDescriptor.from_ref(next(iter(tables)), database)
        name, base_type = next(iter(driver.active_columns(table).items()))
        field = FieldDescriptor(name=name, base_type=base_type, table=table)

        values = list(itertools.islice(driver.field_values(field), MAX_SYNC_LAZY_SEQ_RESULTS + 1))
        assert len(values) <= MAX_SYNC_LAZY_SEQ_RESULTS

    def test_humanize_error_returns_text(self, driver):
        assert isinstance(driver.humanize_error("boom"), str)
