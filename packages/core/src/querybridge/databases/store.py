import threading
from typing import Dict, Iterable, List

from querybridge_driver_sdk import DatabaseDescriptor

from querybridge.common.errors import DatabaseNotFoundError


class DatabaseStore:
    """Thread-safe lookup of configured databases by id."""

    def __init__(self, databases: Iterable[DatabaseDescriptor] = ()):
        self._lock = threading.Lock()
        self._databases: Dict[int, DatabaseDescriptor] = {}
        for database in databases:
            self.add(database)

    def add(self, database: DatabaseDescriptor) -> None:
        with self._lock:
            self._databases[database.id] = database

    def get(self, database_id: int) -> DatabaseDescriptor:
        with self._lock:
            database = self._databases.get(database_id)
        if database is None:
            raise DatabaseNotFoundError(database_id)
        return database

    def engine_of(self, database_id: int) -> str:
        return self.get(database_id).engine

    def list(self) -> List[DatabaseDescriptor]:
        with self._lock:
            return sorted(self._databases.values(), key=lambda d: d.id)
