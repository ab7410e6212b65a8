import threading
from typing import Any, Callable, Dict, List, Optional, Type

from querybridge_driver_sdk import Driver
from querybridge_mysql import MySQLDriver
from querybridge_postgres import PostgresDriver
from querybridge_sqlite import SQLiteDriver
from querybridge_sqlserver import SQLServerDriver

from querybridge.common.errors import DriverNotFoundError
from querybridge.common.logger import get_logger

logger = get_logger(__name__)

BUILTIN_DRIVERS: List[Type[Driver]] = [SQLServerDriver, PostgresDriver, MySQLDriver, SQLiteDriver]


class DriverRegistry:
    """Maps engine identifiers to driver singletons.

    The registry is an explicit value owned by the application context. All
    mutation and lookup happens under one lock so drivers registered from one
    thread are immediately visible to lookups on any other.

    Args:
        engine_lookup: Resolves a database id to its engine. Required only for
            ``database_id_to_driver``.
    """

    def __init__(self, engine_lookup: Optional[Callable[[int], str]] = None):
        self._lock = threading.Lock()
        self._drivers: Dict[str, Driver] = {}
        self._database_drivers: Dict[int, Driver] = {}
        self._engine_lookup = engine_lookup

    def register(self, engine: str, driver: Driver) -> None:
        """Registers DRIVER under ENGINE. A later registration for the same engine wins."""
        with self._lock:
            previous = self._drivers.get(engine)
            self._drivers[engine] = driver
            # Cached database lookups may point at the replaced driver
            if previous is not None and previous is not driver:
                self._database_drivers.clear()
        if previous is not None and previous is not driver:
            logger.warning(f"Replacing driver for engine '{engine}': {previous} -> {driver}")
        else:
            logger.debug(f"Registered driver '{driver}' for engine '{engine}'")

    def resolve(self, engine: str) -> Driver:
        with self._lock:
            driver = self._drivers.get(engine)
            if driver is None:
                raise DriverNotFoundError(engine, self._drivers.keys())
            return driver

    def is_engine(self, engine: str) -> bool:
        with self._lock:
            return engine in self._drivers

    def engines(self) -> List[str]:
        with self._lock:
            return sorted(self._drivers)

    def available_drivers(self) -> Dict[str, Dict[str, Any]]:
        """Describes every registered driver for display in a connection form."""
        with self._lock:
            snapshot = dict(self._drivers)
        return {
            engine: {
                "details_fields": [f.model_dump(mode="json", exclude_none=True) for f in driver.details_fields()],
                "driver_name": str(driver),
                "features": sorted(feature.value for feature in driver.features()),
            }
            for engine, driver in sorted(snapshot.items())
        }

    def database_id_to_driver(self, database_id: int) -> Driver:
        """Resolves the driver for a database id, memoizing the answer."""
        with self._lock:
            cached = self._database_drivers.get(database_id)
        if cached is not None:
            return cached
        if self._engine_lookup is None:
            raise RuntimeError("DriverRegistry was created without an engine lookup")

        driver = self.resolve(self._engine_lookup(database_id))
        with self._lock:
            self._database_drivers[database_id] = driver
        return driver


def register_builtin_drivers(registry: DriverRegistry) -> DriverRegistry:
    """Eagerly registers every driver shipped with querybridge."""
    for driver_cls in BUILTIN_DRIVERS:
        driver = driver_cls()
        registry.register(driver.engine, driver)
    return registry
