"""Compiles a structured query into a SQLAlchemy `Select`, one clause at a time.

Each clause of a `StructuredQuery` is handed to the matching entry of the
dialect's clause handler table together with the in-progress `QueryBuilder`.
Handlers return the (possibly updated) builder, so a dialect can override a
single clause, e.g. ``limit`` as ``TOP n`` on SQL Server.
"""
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Dict, List

from sqlalchemy import and_, column, distinct, func, literal_column, select, table
from sqlalchemy.sql import Select
from sqlalchemy.sql.expression import TableClause

from querybridge_driver_sdk.contracts import (
    Aggregation,
    BreakoutField,
    FilterClause,
    OrderBy,
    Page,
    StructuredQuery,
)

if TYPE_CHECKING:
    from .dialect import SQLDialect

#: Ceiling applied to queries that set neither ``limit`` nor ``page``.
MAX_RESULT_ROWS = 10000

#: Clauses shaping the result, in application order. ``limit`` and ``page`` are
#: applied last.
CLAUSE_ORDER = ("fields", "breakout", "aggregation", "filter", "order_by")


@dataclass
class QueryBuilder:
    dialect: "SQLDialect"
    source: TableClause
    select: Select
    ordered: bool = False


ClauseHandler = Callable[[Any, QueryBuilder], QueryBuilder]


def apply_fields(fields: List[str], builder: QueryBuilder) -> QueryBuilder:
    builder.select = builder.select.add_columns(*[column(name) for name in fields])
    return builder


def apply_breakout(breakouts: List[BreakoutField], builder: QueryBuilder) -> QueryBuilder:
    for breakout in breakouts:
        expr = column(breakout.field)
        if breakout.unit:
            expr = builder.dialect.date_trunc(breakout.unit, expr)
        builder.select = builder.select.add_columns(expr.label(breakout.field)).group_by(expr)
    return builder


def apply_aggregation(aggregation: Aggregation, builder: QueryBuilder) -> QueryBuilder:
    kind = aggregation.type
    if kind == "rows":
        return builder
    if kind == "count":
        expr = func.count().label("count")
    elif kind == "distinct":
        expr = func.count(distinct(column(aggregation.field))).label("count")
    elif kind == "stddev":
        expr = getattr(func, builder.dialect.stddev_fn())(column(aggregation.field)).label("stddev")
    else:
        expr = getattr(func, kind)(column(aggregation.field)).label(kind)
    builder.select = builder.select.add_columns(expr)
    return builder


def _filter_condition(clause: FilterClause):
    col = column(clause.field)
    op = clause.operator
    if op == "=":
        return col == clause.value
    if op == "!=":
        return col != clause.value
    if op == "<":
        return col < clause.value
    if op == ">":
        return col > clause.value
    if op == "<=":
        return col <= clause.value
    if op == ">=":
        return col >= clause.value
    if op == "is-null":
        return col.is_(None)
    if op == "not-null":
        return col.is_not(None)
    if op == "contains":
        return col.contains(clause.value)
    return col.startswith(clause.value)


def apply_filter(filters: List[FilterClause], builder: QueryBuilder) -> QueryBuilder:
    if filters:
        builder.select = builder.select.where(and_(*[_filter_condition(f) for f in filters]))
    return builder


def apply_order_by(order_by: List[OrderBy], builder: QueryBuilder) -> QueryBuilder:
    for order in order_by:
        col = column(order.field)
        builder.select = builder.select.order_by(col.desc() if order.direction == "descending" else col.asc())
        builder.ordered = True
    return builder


def apply_limit(limit: int, builder: QueryBuilder) -> QueryBuilder:
    builder.select = builder.select.limit(limit)
    return builder


def apply_page(page: Page, builder: QueryBuilder) -> QueryBuilder:
    builder.select = builder.select.limit(page.items).offset(page.items * (page.page - 1))
    return builder


DEFAULT_CLAUSE_HANDLERS: Dict[str, ClauseHandler] = {
    "fields": apply_fields,
    "breakout": apply_breakout,
    "aggregation": apply_aggregation,
    "filter": apply_filter,
    "order_by": apply_order_by,
    "limit": apply_limit,
    "page": apply_page,
}


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, list) and not value)


def compile_query(dialect: "SQLDialect", query: StructuredQuery) -> Select:
    """Builds the `Select` for QUERY using DIALECT's clause handlers."""
    source = table(query.source_table.name, schema=query.source_table.schema_name)
    builder = QueryBuilder(dialect=dialect, source=source, select=select().select_from(source))
    handlers = dialect.clause_handlers()

    for clause in CLAUSE_ORDER:
        value = getattr(query, clause)
        if not _is_empty(value):
            builder = handlers[clause](value, builder)

    if len(builder.select.selected_columns) == 0:
        builder.select = builder.select.add_columns(literal_column("*"))

    if query.page is not None:
        builder = handlers["page"](query.page, builder)
    elif query.limit is not None:
        builder = handlers["limit"](query.limit, builder)
    else:
        builder = handlers["limit"](MAX_RESULT_ROWS, builder)
    return builder.select
