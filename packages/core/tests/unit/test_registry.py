import threading
from unittest.mock import MagicMock

import pytest

from querybridge import DriverRegistry, register_builtin_drivers
from querybridge.common.errors import DriverNotFoundError
from querybridge_sqlite import SQLiteDriver


@pytest.fixture()
def registry():
    return register_builtin_drivers(DriverRegistry())


def test_builtin_drivers_are_registered_eagerly(registry):
    assert registry.engines() == ["mysql", "postgres", "sqlite", "sqlserver"]
    assert registry.is_engine("sqlserver")
    assert not registry.is_engine("h2")


def test_resolve_returns_the_same_singleton(registry):
    assert registry.resolve("sqlite") is registry.resolve("sqlite")
    assert isinstance(registry.resolve("sqlite"), SQLiteDriver)


def test_resolve_unknown_engine_lists_known_engines(registry):
    with pytest.raises(DriverNotFoundError) as excinfo:
        registry.resolve("h2")

    assert excinfo.value.engine == "h2"
    assert excinfo.value.known_engines == ["mysql", "postgres", "sqlite", "sqlserver"]
    assert "h2" in str(excinfo.value)
    assert "sqlserver" in str(excinfo.value)


def test_last_registration_wins(registry):
    # Arrange
    replacement = MagicMock()

    # Act
    registry.register("sqlite", replacement)

    # Assert
    assert registry.resolve("sqlite") is replacement


def test_available_drivers_describes_connection_forms(registry):
    # Act
    drivers = registry.available_drivers()

    # Assert
    assert set(drivers) == {"mysql", "postgres", "sqlite", "sqlserver"}
    sqlite = drivers["sqlite"]
    assert sqlite["driver_name"] == "SQLite"
    assert sqlite["features"] == ["foreign-keys"]
    assert [f["name"] for f in sqlite["details_fields"]] == ["db"]
    assert sqlite["details_fields"][0]["display_name"] == "Filename"
    sqlserver_fields = [f["name"] for f in drivers["sqlserver"]["details_fields"]]
    assert sqlserver_fields == ["host", "port", "db", "instance", "user", "password"]


def test_database_id_to_driver_is_memoized():
    # Arrange
    lookup = MagicMock(return_value="sqlite")
    registry = register_builtin_drivers(DriverRegistry(engine_lookup=lookup))

    # Act
    first = registry.database_id_to_driver(3)
    second = registry.database_id_to_driver(3)

    # Assert
    assert first is second
    lookup.assert_called_once_with(3)


def test_database_id_to_driver_requires_engine_lookup(registry):
    with pytest.raises(RuntimeError):
        registry.database_id_to_driver(1)


def test_registrations_from_other_threads_are_visible():
    # Arrange
    registry = DriverRegistry()
    drivers = {f"engine-{i}": MagicMock() for i in range(20)}
    threads = [threading.Thread(target=registry.register, args=item) for item in drivers.items()]

    # Act
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    # Assert
    for engine, driver in drivers.items():
        assert registry.resolve(engine) is driver
