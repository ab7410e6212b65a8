import pathlib
import sqlite3
import threading
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Union

from querybridge.common.logger import get_logger
from querybridge.execution.models import QueryExecution

logger = get_logger(__name__)


class QueryExecutionStore(ABC):
    """Persists query execution records.

    ``save`` inserts records without an id (assigning one) and updates records
    that already have one.
    """

    @abstractmethod
    def save(self, execution: QueryExecution) -> QueryExecution:
        pass

    @abstractmethod
    def get(self, execution_id: int) -> Optional[QueryExecution]:
        pass

    @abstractmethod
    def list_recent(self, limit: int = 20) -> List[QueryExecution]:
        pass


class InMemoryQueryExecutionStore(QueryExecutionStore):
    def __init__(self):
        self._executions: Dict[int, QueryExecution] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def save(self, execution: QueryExecution) -> QueryExecution:
        with self._lock:
            if execution.id is None:
                execution.id = self._next_id
                self._next_id += 1
            self._executions[execution.id] = execution.model_copy(deep=True)
        return execution

    def get(self, execution_id: int) -> Optional[QueryExecution]:
        with self._lock:
            stored = self._executions.get(execution_id)
            return stored.model_copy(deep=True) if stored else None

    def list_recent(self, limit: int = 20) -> List[QueryExecution]:
        with self._lock:
            ids = sorted(self._executions, reverse=True)[:limit]
            return [self._executions[i].model_copy(deep=True) for i in ids]


class SqliteQueryExecutionStore(QueryExecutionStore):
    """Query execution records in a local SQLite file, one JSON payload per row."""

    def __init__(self, path: Union[str, pathlib.Path]):
        self.path = pathlib.Path(path)
        if str(self.path) != ":memory:":
            self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._connection = sqlite3.connect(str(self.path), check_same_thread=False)
        self._init_schema()

    def _init_schema(self) -> None:
        with self._connection:
            self._connection.execute(
                """
                CREATE TABLE IF NOT EXISTS query_execution (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    uuid TEXT NOT NULL UNIQUE,
                    status TEXT NOT NULL,
                    started_at TEXT NOT NULL,
                    payload TEXT NOT NULL
                )
                """
            )

    def save(self, execution: QueryExecution) -> QueryExecution:
        with self._lock, self._connection:
            if execution.id is None:
                cursor = self._connection.execute(
                    "INSERT INTO query_execution (uuid, status, started_at, payload) VALUES (?, ?, ?, ?)",
                    (execution.uuid, execution.status.value, execution.started_at.isoformat(), "{}"),
                )
                execution.id = cursor.lastrowid
            self._connection.execute(
                "UPDATE query_execution SET status = ?, payload = ? WHERE id = ?",
                (execution.status.value, execution.model_dump_json(), execution.id),
            )
        return execution

    def get(self, execution_id: int) -> Optional[QueryExecution]:
        with self._lock:
            row = self._connection.execute(
                "SELECT payload FROM query_execution WHERE id = ?", (execution_id,)
            ).fetchone()
        if row is None:
            return None
        return QueryExecution.model_validate_json(row[0])

    def list_recent(self, limit: int = 20) -> List[QueryExecution]:
        with self._lock:
            rows = self._connection.execute(
                "SELECT payload FROM query_execution ORDER BY id DESC LIMIT ?", (limit,)
            ).fetchall()
        return [QueryExecution.model_validate_json(row[0]) for row in rows]

    def close(self) -> None:
        self._connection.close()


def build_query_execution_store(backend: str, path: Optional[str] = None) -> QueryExecutionStore:
    if backend == "memory":
        return InMemoryQueryExecutionStore()
    if backend == "sqlite":
        if not path:
            raise ValueError("QUERY_EXECUTION_STORE_PATH is required for the sqlite store")
        logger.info(f"Persisting query executions to {path}")
        return SqliteQueryExecutionStore(path)
    raise ValueError(f"Unknown query execution store '{backend}'. Expected 'memory' or 'sqlite'.")
