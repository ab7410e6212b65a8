from .compiler import CLAUSE_ORDER, DEFAULT_CLAUSE_HANDLERS, MAX_RESULT_ROWS, QueryBuilder, compile_query
from .dialect import URL_LIKE_PATTERN, ConnectionSpec, SQLDialect
from .driver import FIELD_VALUES_CHUNK_SIZE, BaseSQLAlchemyDriver, native_type_name
from .native import NativeQueryExecutor, user_facing_message

__all__ = [
    "BaseSQLAlchemyDriver",
    "SQLDialect",
    "ConnectionSpec",
    "QueryBuilder",
    "compile_query",
    "CLAUSE_ORDER",
    "DEFAULT_CLAUSE_HANDLERS",
    "MAX_RESULT_ROWS",
    "URL_LIKE_PATTERN",
    "FIELD_VALUES_CHUNK_SIZE",
    "NativeQueryExecutor",
    "native_type_name",
    "user_facing_message",
]
