import time
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel

from querybridge_driver_sdk import (
    NativeQuery,
    QueryResult,
    StructuredQuery,
    parse_expanded_query,
)

from querybridge.common.errors import QueryBridgeError
from querybridge.common.logger import get_logger, trace_context
from querybridge.common.metrics import record_query_execution
from querybridge.databases.store import DatabaseStore
from querybridge.execution.models import QueryExecution, QueryStatus
from querybridge.execution.store import QueryExecutionStore
from querybridge.registry import DriverRegistry

logger = get_logger(__name__)


class DatasetQueryResponse(BaseModel):
    id: int
    uuid: str
    status: QueryStatus
    row_count: int = 0
    data: Optional[QueryResult] = None
    error: Optional[QueryBridgeError] = None


class QueryProcessor:
    """Expands raw queries and runs them through the owning driver.

    A raw query references its database by id (``{"database": 1, ...}``). The
    processor replaces the id with the full database descriptor and injects the
    configured report timezone before the query reaches the driver.
    """

    def __init__(
        self,
        registry: DriverRegistry,
        databases: DatabaseStore,
        executions: QueryExecutionStore,
        report_timezone: Optional[str] = None,
    ):
        self.registry = registry
        self.databases = databases
        self.executions = executions
        self.report_timezone = report_timezone or None

    def expand(self, query: Dict[str, Any]) -> Union[NativeQuery, StructuredQuery]:
        if "database" not in query:
            raise ValueError("Query is missing a 'database' id")
        database = self.databases.get(query["database"])
        settings = dict(query.get("settings") or {})
        settings.setdefault("report_timezone", self.report_timezone)
        expanded = {**query, "database": database.model_dump(), "settings": settings}
        return parse_expanded_query(expanded)

    def process_query(self, query: Dict[str, Any]) -> QueryResult:
        expanded = self.expand(query)
        driver = self.registry.resolve(expanded.database.engine)
        return driver.process_query_in_context(lambda: driver.process_query(expanded))

    def dataset_query(self, query: Dict[str, Any], executed_by: Optional[str] = None) -> DatasetQueryResponse:
        """Runs QUERY inside a query execution record lifecycle.

        The record is saved as ``starting`` before the driver is called and
        updated once with the outcome. Query failures never propagate: they
        are recorded and returned as a failed response.
        """
        execution = QueryExecution(
            executor_id=executed_by,
            database_id=query.get("database"),
            json_query=query,
            raw_query=(query.get("native") or {}).get("query", ""),
        )
        execution = self.executions.save(execution)
        engine = "unknown"
        result: Optional[QueryResult] = None
        error: Optional[QueryBridgeError] = None

        with trace_context(execution.uuid):
            start = time.perf_counter()
            try:
                engine = self._engine_of(query)
                logger.info(f"Running query execution {execution.id} on engine '{engine}'")
                result = self.process_query(query)
            except Exception as e:
                elapsed_ms = (time.perf_counter() - start) * 1000
                logger.error(f"Query execution {execution.id} failed: {e}")
                error = QueryBridgeError.from_exception(e)
                execution.fail(str(e), elapsed_ms)
            else:
                elapsed_ms = (time.perf_counter() - start) * 1000
                execution.complete(result, elapsed_ms)
                logger.info(f"Query execution {execution.id} returned {result.row_count} row(s) in {elapsed_ms:.1f} ms")

        execution = self.executions.save(execution)
        record_query_execution(engine, execution.status.value, elapsed_ms)

        return DatasetQueryResponse(
            id=execution.id,
            uuid=execution.uuid,
            status=execution.status,
            row_count=execution.result_rows,
            data=result,
            error=error,
        )

    def recent_executions(self, limit: int = 20) -> List[QueryExecution]:
        return self.executions.list_recent(limit)

    def _engine_of(self, query: Dict[str, Any]) -> str:
        if "database" not in query:
            return "unknown"
        return self.databases.engine_of(query["database"])
