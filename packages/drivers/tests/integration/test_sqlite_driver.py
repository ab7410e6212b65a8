import contextlib
import sqlite3

import pytest
from sqlalchemy import literal, select
from sqlalchemy.exc import OperationalError

from querybridge_driver_sdk import (
    BaseType,
    DatabaseDescriptor,
    FieldDescriptor,
    NativeQuery,
    NativeQueryError,
    StructuredQuery,
    TableDescriptor,
    TableRef,
)
from querybridge_driver_sdk.testing import DriverComplianceSuite
from querybridge_sqlite import SQLiteDriver


@pytest.fixture()
def sqlite_db_path(tmp_path):
    db_path = tmp_path / "birds.db"
    conn = sqlite3.connect(db_path)
    try:
        conn.executescript(
            """
            CREATE TABLE families (id INTEGER PRIMARY KEY, name TEXT);
            CREATE TABLE birds (
                id INTEGER PRIMARY KEY,
                name TEXT,
                homepage VARCHAR(200),
                wingspan REAL,
                seen_at DATETIME,
                family_id INTEGER REFERENCES families(id)
            );
            CREATE VIEW bird_names AS SELECT name FROM birds;
            """
        )
        conn.executemany("INSERT INTO families (name) VALUES (?)", [("Ramphastidae",), ("Apterygidae",)])
        conn.executemany(
            "INSERT INTO birds (name, homepage, wingspan, seen_at, family_id) VALUES (?, ?, ?, ?, ?)",
            [
                ("Toucan", "http://toucan.org", 0.6, "2024-01-04 10:30:00", 1),
                ("Kiwi", "https://kiwi.nz/about", 0.0, "2024-03-17 08:00:00", 2),
                ("Owl", "not a url", 1.2, "2024-08-15 23:59:59", None),
            ],
        )
        conn.commit()
    finally:
        conn.close()
    return db_path


@pytest.fixture()
def database(sqlite_db_path):
    return DatabaseDescriptor(id=1, engine="sqlite", name="Birds", details={"db": str(sqlite_db_path)})


@pytest.fixture()
def driver():
    driver = SQLiteDriver()
    yield driver
    driver.dispose_engines()


@pytest.fixture()
def birds(database):
    return TableDescriptor(name="birds", schema_name="main", database=database)


def _scalar(driver, database, expr):
    with driver.engine_for(database.details).connect() as conn:
        return conn.execute(select(expr)).scalar()


class TestSQLiteCompliance(DriverComplianceSuite):
    @pytest.fixture
    def driver(self):
        driver = SQLiteDriver()
        yield driver
        driver.dispose_engines()

    @pytest.fixture
    def database(self, sqlite_db_path):
        return DatabaseDescriptor(id=1, engine="sqlite", details={"db": str(sqlite_db_path)})


def test_can_connect(driver, database):
    assert driver.can_connect(database.details) is True


def test_can_connect_does_not_create_missing_files(driver, tmp_path):
    # Arrange
    missing = tmp_path / "missing.db"

    # Act
    with pytest.raises(OperationalError):
        driver.can_connect({"db": str(missing)})

    # Assert
    assert not missing.exists()


def test_active_tables_include_views(driver, database):
    assert driver.active_tables(database) == {
        TableRef(name="birds", schema_name="main"),
        TableRef(name="families", schema_name="main"),
        TableRef(name="bird_names", schema_name="main"),
    }


def test_active_columns(driver, birds):
    assert driver.active_columns(birds) == {
        "id": BaseType.INTEGER,
        "name": BaseType.TEXT,
        "homepage": BaseType.TEXT,
        "wingspan": BaseType.FLOAT,
        "seen_at": BaseType.DATETIME,
        "family_id": BaseType.INTEGER,
    }


def test_primary_and_foreign_keys(driver, birds):
    # Act
    pks = driver.table_primary_keys(birds)
    fks = driver.table_foreign_keys(birds)

    # Assert
    assert pks == {"id"}
    assert [(fk.fk_column_name, fk.dest_table_name, fk.dest_column_name) for fk in fks] == [
        ("family_id", "families", "id")
    ]


def test_sync_in_context_serves_metadata_calls(driver, database, birds):
    # Act
    tables, pks = driver.sync_in_context(
        database, lambda: (driver.active_tables(database), driver.table_primary_keys(birds))
    )

    # Assert
    assert TableRef(name="birds", schema_name="main") in tables
    assert pks == {"id"}


def test_field_values(driver, birds):
    values = list(driver.field_values(FieldDescriptor(name="name", base_type=BaseType.TEXT, table=birds)))

    assert sorted(values) == ["Kiwi", "Owl", "Toucan"]


def test_field_heuristics_pushdown(driver, birds):
    # Arrange
    name = FieldDescriptor(name="name", base_type=BaseType.TEXT, table=birds)
    homepage = FieldDescriptor(name="homepage", base_type=BaseType.TEXT, table=birds)

    # Act / Assert
    assert driver.field_avg_length(name) == pytest.approx(13 / 3)
    assert driver.field_percent_urls(homepage) == pytest.approx(2 / 3)


def test_percent_urls_on_all_null_column_is_zero(driver, database):
    # Arrange
    birds_table = TableDescriptor(name="birds", schema_name="main", database=database)
    with driver.engine_for(database.details).begin() as conn:
        conn.exec_driver_sql("UPDATE birds SET homepage = NULL")

    # Act / Assert
    assert driver.field_percent_urls(FieldDescriptor(name="homepage", table=birds_table)) == 0.0


@pytest.mark.parametrize(
    "unit, moment, expected",
    [
        ("week", "2024-01-04 10:30:00", "2024-01-01 00:00:00"),
        ("week", "2024-01-01 00:00:00", "2024-01-01 00:00:00"),
        ("month", "2024-03-17 08:00:00", "2024-03-01 00:00:00"),
        ("quarter", "2024-08-15 23:59:59", "2024-07-01 00:00:00"),
        ("year", "2024-08-15 23:59:59", "2024-01-01 00:00:00"),
        ("day", "2024-08-15 23:59:59", "2024-08-15 00:00:00"),
        ("hour", "2024-08-15 23:59:59", "2024-08-15 23:00:00"),
    ],
)
def test_date_truncation(driver, database, unit, moment, expected):
    assert _scalar(driver, database, driver.date_trunc(unit, literal(moment))) == expected


@pytest.mark.parametrize(
    "unit, expected",
    [("day-of-week", 5), ("month-of-year", 1), ("quarter-of-year", 1), ("minute-of-hour", 30)],
)
def test_date_extraction(driver, database, unit, expected):
    assert _scalar(driver, database, driver.date_trunc(unit, literal("2024-01-04 10:30:00"))) == expected


@pytest.mark.parametrize(
    "moment, expected",
    [
        ("2024-01-04 10:30:00", 1),
        ("2024-05-10 00:00:00", 2),
        ("2024-09-30 23:59:59", 3),
        ("2024-12-31 12:00:00", 4),
    ],
)
def test_quarter_of_year_is_a_whole_number(driver, database, moment, expected):
    value = _scalar(driver, database, driver.date_trunc("quarter-of-year", literal(moment)))

    assert value == expected
    assert isinstance(value, int)


@pytest.mark.parametrize("resolution", ["seconds", "milliseconds"])
def test_unix_epoch(driver, database, resolution):
    expr = driver.unix_timestamp_to_timestamp(resolution, literal(0))

    assert _scalar(driver, database, expr) == "1970-01-01 00:00:00"


def test_unix_milliseconds(driver, database):
    expr = driver.unix_timestamp_to_timestamp("milliseconds", literal(86_400_000))

    assert _scalar(driver, database, expr) == "1970-01-02 00:00:00"


def _native(database, sql, timezone=None):
    return NativeQuery.model_validate(
        {"database": database.model_dump(), "native": {"query": sql}, "settings": {"report_timezone": timezone}}
    )


def test_native_query_returns_rows_and_types(driver, database):
    # Act
    result = driver.process_query(_native(database, "SELECT id, name, wingspan FROM birds ORDER BY id"))

    # Assert
    assert result.columns == ["id", "name", "wingspan"]
    assert result.rows[0] == [1, "Toucan", 0.6]
    assert result.row_count == 3
    assert result.column_types == {"id": BaseType.INTEGER, "name": BaseType.TEXT, "wingspan": BaseType.FLOAT}


def test_native_query_never_commits(driver, database, sqlite_db_path):
    # Act
    driver.process_query(_native(database, "DELETE FROM birds"))

    # Assert
    conn = sqlite3.connect(sqlite_db_path)
    try:
        assert conn.execute("SELECT COUNT(*) FROM birds").fetchone()[0] == 3
    finally:
        conn.close()


@pytest.fixture()
def counting_database(sqlite_db_path):
    class CountingConnection(sqlite3.Connection):
        rollbacks = 0
        commits = 0

        def rollback(self):
            type(self).rollbacks += 1
            super().rollback()

        def commit(self):
            type(self).commits += 1
            super().commit()

    database = DatabaseDescriptor(
        id=2, engine="sqlite", details={"db": str(sqlite_db_path), "factory": CountingConnection}
    )
    return database, CountingConnection


@pytest.mark.parametrize("sql", ["SELECT name FROM birds", "DELETE FROM birds", "SELECT nope FROM birds"])
def test_native_query_rolls_back_connection_exactly_once(driver, counting_database, sql):
    # Arrange
    database, connection_cls = counting_database
    driver.process_query(_native(database, "SELECT 1"))
    connection_cls.rollbacks = 0
    connection_cls.commits = 0

    # Act
    with contextlib.suppress(NativeQueryError):
        driver.process_query(_native(database, sql))

    # Assert
    assert connection_cls.rollbacks == 1
    assert connection_cls.commits == 0


def test_native_query_error_is_user_facing(driver, database):
    with pytest.raises(NativeQueryError) as excinfo:
        driver.process_query(_native(database, "SELECT nope FROM birds"))

    assert str(excinfo.value) == "no such column: nope"


def test_structured_query(driver, database):
    # Arrange
    query = StructuredQuery.model_validate(
        {
            "database": database.model_dump(),
            "source_table": {"name": "birds"},
            "fields": ["name"],
            "filter": [{"operator": "not-null", "field": "family_id"}],
            "order_by": [{"field": "name"}],
            "limit": 5,
        }
    )

    # Act
    result = driver.process_query(query)

    # Assert
    assert result.rows == [["Kiwi"], ["Toucan"]]
    assert "LIMIT" in result.native_query


def test_structured_breakout_by_month(driver, database):
    # Arrange
    query = StructuredQuery.model_validate(
        {
            "database": database.model_dump(),
            "source_table": {"name": "birds"},
            "breakout": [{"field": "seen_at", "unit": "quarter"}],
            "aggregation": {"type": "count"},
            "order_by": [{"field": "seen_at"}],
        }
    )

    # Act
    result = driver.process_query(query)

    # Assert
    assert result.rows == [["2024-01-01 00:00:00", 2], ["2024-07-01 00:00:00", 1]]


def test_table_rows(driver, database):
    rows = driver.table_rows(database, "families")

    assert rows == [{"id": 1, "name": "Ramphastidae"}, {"id": 2, "name": "Apterygidae"}]
