import logging
import re
import threading
import time
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Pattern, Sequence, Set, Tuple, TypeVar, Union

from sqlalchemy import Float, String, cast, column, create_engine, func, inspect, literal_column, select, table, text
from sqlalchemy.engine import Dialect, Engine
from sqlalchemy.engine.reflection import Inspector
from sqlalchemy.exc import CompileError
from sqlalchemy.pool import NullPool
from sqlalchemy.sql.expression import TableClause
from sqlalchemy.types import TypeEngine

from querybridge_driver_sdk import (
    BaseType,
    ConnectionDetails,
    ConnectionErrorMessage,
    DatabaseDescriptor,
    DetailsField,
    Driver,
    Feature,
    FieldDescriptor,
    ForeignKeyDescriptor,
    MAX_SYNC_LAZY_SEQ_RESULTS,
    NativeQuery,
    QueryResult,
    StructuredQuery,
    TableDescriptor,
    TableRef,
    details_fields_from_model,
)

from .compiler import compile_query
from .dialect import SQLDialect
from .native import NativeQueryExecutor, infer_result_columns

logger = logging.getLogger(__name__)

T = TypeVar("T")

FIELD_VALUES_CHUNK_SIZE = 500

# (driver engine, database id) -> inspector shared by every metadata call of one sync.
_sync_inspector: ContextVar[Optional[Tuple[Tuple[str, int], Inspector]]] = ContextVar(
    "querybridge_sync_inspector", default=None
)


def native_type_name(type_: TypeEngine, dialect: Dialect) -> str:
    """Lower-cased type name as the engine spells it, without length or precision."""
    try:
        name = type_.compile(dialect=dialect)
    except CompileError:
        name = type_.__class__.__name__
    name = re.sub(r"\(.*?\)", "", name)
    return " ".join(name.lower().split())


class BaseSQLAlchemyDriver(SQLDialect, Driver):
    """
    Generic SQL driver built on SQLAlchemy.
    Implements metadata introspection, field sampling, native execution and
    structured query compilation on top of the hooks of `SQLDialect`.
    """

    #: Raw connection error pattern -> generic user-facing message.
    connection_error_patterns: Sequence[Tuple[Pattern, ConnectionErrorMessage]] = ()

    def __init__(self):
        self._engines: Dict[str, Engine] = {}
        self._engines_lock = threading.Lock()

    def parse_details(self, details: Union[Mapping[str, Any], ConnectionDetails]) -> ConnectionDetails:
        if isinstance(details, self.details_model):
            return details
        return self.details_model.model_validate(dict(details))

    def engine_for(self, details: Mapping[str, Any]) -> Engine:
        spec = self.connection_spec(details)
        with self._engines_lock:
            engine = self._engines.get(spec.cache_key)
            if engine is None:
                logger.debug(f"Creating engine for {self}: {spec.url!r}")
                engine = create_engine(spec.url, connect_args=spec.connect_args, pool_pre_ping=True)
                self._engines[spec.cache_key] = engine
        return engine

    def dispose_engines(self) -> None:
        with self._engines_lock:
            for engine in self._engines.values():
                engine.dispose()
            self._engines.clear()

    # Driver contract

    def details_fields(self) -> List[DetailsField]:
        return details_fields_from_model(self.details_model)

    def features(self) -> Set[Feature]:
        features = {Feature.FOREIGN_KEYS, Feature.STANDARD_DEVIATION_AGGREGATIONS}
        if self.set_timezone_statement():
            features.add(Feature.SET_TIMEZONE)
        return features

    def humanize_error(self, message: str) -> str:
        for pattern, humanized in self.connection_error_patterns:
            if pattern.search(message):
                return humanized.value
        return message

    def can_connect(self, details: Mapping[str, Any]) -> bool:
        spec = self.connection_spec(details)
        engine = create_engine(spec.url, connect_args=spec.connect_args, poolclass=NullPool)
        try:
            with engine.connect() as conn:
                return conn.execute(text("SELECT 1")).scalar() == 1
        finally:
            engine.dispose()

    def sync_in_context(self, database: DatabaseDescriptor, thunk: Callable[[], T]) -> T:
        with self.engine_for(database.details).connect() as conn:
            token = _sync_inspector.set(((self.engine, database.id), inspect(conn)))
            try:
                return thunk()
            finally:
                _sync_inspector.reset(token)

    @contextmanager
    def _inspector(self, database: DatabaseDescriptor) -> Iterator[Inspector]:
        scoped = _sync_inspector.get()
        if scoped is not None and scoped[0] == (self.engine, database.id):
            yield scoped[1]
            return
        with self.engine_for(database.details).connect() as conn:
            yield inspect(conn)

    def active_tables(self, database: DatabaseDescriptor) -> Set[TableRef]:
        tables = set()
        with self._inspector(database) as inspector:
            for schema in self.introspection_schemas(inspector):
                names = inspector.get_table_names(schema=schema) + inspector.get_view_names(schema=schema)
                tables.update(TableRef(name=name, schema_name=schema) for name in names)
        return tables

    def native_column_types(self, table: TableDescriptor) -> Dict[str, str]:
        """Column name -> native type name, in table order."""
        with self._inspector(table.database) as inspector:
            columns = inspector.get_columns(table.name, schema=table.schema_name)
            return {col["name"]: native_type_name(col["type"], inspector.dialect) for col in columns}

    def active_columns(self, table: TableDescriptor) -> Dict[str, BaseType]:
        columns = {}
        for name, native_type in self.native_column_types(table).items():
            base_type = self.native_type_to_base_type(native_type)
            if base_type is None:
                logger.warning(
                    f"Don't know how to map column type '{native_type}' of {table.name}.{name} to a base type, "
                    f"falling back to {BaseType.UNKNOWN.value}."
                )
                base_type = BaseType.UNKNOWN
            columns[name] = base_type
        return columns

    def table_primary_keys(self, table: TableDescriptor) -> Set[str]:
        with self._inspector(table.database) as inspector:
            constraint = inspector.get_pk_constraint(table.name, schema=table.schema_name)
        return set(constraint.get("constrained_columns") or [])

    def table_foreign_keys(self, table: TableDescriptor) -> Set[ForeignKeyDescriptor]:
        with self._inspector(table.database) as inspector:
            foreign_keys = inspector.get_foreign_keys(table.name, schema=table.schema_name)
        return {
            ForeignKeyDescriptor(
                fk_column_name=fk_column,
                dest_table_name=fk["referred_table"],
                dest_column_name=dest_column,
                dest_schema_name=fk.get("referred_schema"),
            )
            for fk in foreign_keys
            for fk_column, dest_column in zip(fk["constrained_columns"], fk["referred_columns"])
        }

    def _table_clause(self, table_: TableDescriptor) -> TableClause:
        return table(table_.name, schema=table_.schema_name)

    def fetch_field_values_chunk(self, field: FieldDescriptor, offset: int, size: int) -> List[Any]:
        stmt = self.paginate(select(column(field.name)).select_from(self._table_clause(field.table)), offset, size)
        with self.engine_for(field.table.database.details).connect() as conn:
            return [row[0] for row in conn.execute(stmt)]

    def field_values(self, field: FieldDescriptor) -> Iterator[Any]:
        """Streams at most `MAX_SYNC_LAZY_SEQ_RESULTS` values in chunks, one connection per chunk."""
        fetched = 0
        while fetched < MAX_SYNC_LAZY_SEQ_RESULTS:
            size = min(FIELD_VALUES_CHUNK_SIZE, MAX_SYNC_LAZY_SEQ_RESULTS - fetched)
            chunk = self.fetch_field_values_chunk(field, fetched, size)
            yield from chunk
            fetched += len(chunk)
            if len(chunk) < size:
                return

    def field_avg_length(self, field: FieldDescriptor) -> float:
        length_fn = self.string_length_fn()
        if not length_fn:
            return super().field_avg_length(field)
        length = getattr(func, length_fn)(cast(column(field.name), String))
        stmt = select(func.avg(cast(length, Float))).select_from(self._table_clause(field.table))
        with self.engine_for(field.table.database.details).connect() as conn:
            value = conn.execute(stmt).scalar()
        return float(value) if value is not None else 0.0

    def field_percent_urls(self, field: FieldDescriptor) -> float:
        col = column(field.name)
        matches = self.url_match(col)
        if matches is None:
            return super().field_percent_urls(field)
        source = self._table_clause(field.table)
        with self.engine_for(field.table.database.details).connect() as conn:
            total = conn.execute(select(func.count()).select_from(source).where(col.is_not(None))).scalar() or 0
            if total == 0:
                return 0.0
            urls = conn.execute(select(func.count()).select_from(source).where(matches)).scalar() or 0
        return urls / total

    def table_rows(self, database: DatabaseDescriptor, table_name: str) -> List[Dict[str, Any]]:
        stmt = select(literal_column("*")).select_from(table(table_name))
        with self.engine_for(database.details).connect() as conn:
            return [dict(row._mapping) for row in conn.execute(stmt)]

    def process_query(self, query: Union[NativeQuery, StructuredQuery]) -> QueryResult:
        if isinstance(query, NativeQuery):
            return NativeQueryExecutor(self).execute(query)
        return self._run_structured(query)

    def _run_structured(self, query: StructuredQuery) -> QueryResult:
        stmt = compile_query(self, query)
        engine = self.engine_for(query.database.details)
        sql = str(stmt.compile(dialect=engine.dialect))
        start = time.perf_counter()

        with engine.connect() as conn:
            logger.debug(f"Running structured query on {self}: {sql}")
            result = conn.execute(stmt)
            columns = list(result.keys())
            rows = [list(row) for row in result.fetchall()]

        duration = time.perf_counter() - start
        return QueryResult(
            columns=columns,
            cols=infer_result_columns(columns, rows),
            rows=rows,
            row_count=len(rows),
            native_query=sql,
            execution_time_ms=duration * 1000,
        )
