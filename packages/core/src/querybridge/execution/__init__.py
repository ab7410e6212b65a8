from .models import QueryExecution, QueryStatus
from .store import (
    InMemoryQueryExecutionStore,
    QueryExecutionStore,
    SqliteQueryExecutionStore,
    build_query_execution_store,
)

__all__ = [
    "QueryExecution",
    "QueryStatus",
    "QueryExecutionStore",
    "InMemoryQueryExecutionStore",
    "SqliteQueryExecutionStore",
    "build_query_execution_store",
]
