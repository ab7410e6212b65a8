import re
from typing import Any, Mapping, Optional, Set

from pydantic import Field, SecretStr
from sqlalchemy import DateTime, cast, func, literal_column
from sqlalchemy.engine import URL
from sqlalchemy.sql import Select
from sqlalchemy.sql.elements import ColumnElement
from sqlalchemy.types import Date

from querybridge_driver_sdk import BaseType, ConnectionDetails, ConnectionErrorMessage
from querybridge_driver_sdk.dates import DATE_INTERVAL_UNITS
from querybridge_sqlalchemy_driver import BaseSQLAlchemyDriver, ConnectionSpec, QueryBuilder


class SQLServerDetails(ConnectionDetails):
    host: str = Field(default="localhost", title="Host")
    port: int = Field(default=1433, title="Port")
    db: str = Field(..., title="Database name", json_schema_extra={"placeholder": "BirdsOfTheWorld"})
    instance: Optional[str] = Field(
        default=None, title="Database instance name", json_schema_extra={"placeholder": "N/A"}
    )
    user: str = Field(
        ...,
        title="Database username",
        json_schema_extra={"placeholder": "What username do you use to login to the database?"},
    )
    password: Optional[SecretStr] = Field(
        default=None, title="Database password", json_schema_extra={"placeholder": "*******"}
    )


# See https://learn.microsoft.com/sql/t-sql/data-types/data-types-transact-sql
SQLSERVER_TYPE_MAP = {
    "bigint": BaseType.BIG_INTEGER,
    "binary": BaseType.UNKNOWN,
    "bit": BaseType.BOOLEAN,
    "char": BaseType.CHAR,
    "cursor": BaseType.UNKNOWN,
    "date": BaseType.DATE,
    "datetime": BaseType.DATETIME,
    "datetime2": BaseType.DATETIME,
    "datetimeoffset": BaseType.DATETIME,
    "decimal": BaseType.DECIMAL,
    "float": BaseType.FLOAT,
    "geography": BaseType.UNKNOWN,
    "geometry": BaseType.UNKNOWN,
    "hierarchyid": BaseType.UNKNOWN,
    "image": BaseType.UNKNOWN,
    "int": BaseType.INTEGER,
    "integer": BaseType.INTEGER,
    "int identity": BaseType.INTEGER,
    "money": BaseType.DECIMAL,
    "nchar": BaseType.CHAR,
    "ntext": BaseType.TEXT,
    "numeric": BaseType.DECIMAL,
    "nvarchar": BaseType.TEXT,
    "real": BaseType.FLOAT,
    "smalldatetime": BaseType.DATETIME,
    "smallint": BaseType.INTEGER,
    "smallmoney": BaseType.DECIMAL,
    "sql_variant": BaseType.UNKNOWN,
    "table": BaseType.UNKNOWN,
    "text": BaseType.TEXT,
    "time": BaseType.TIME,
    # rowversion, not a SQL timestamp
    "timestamp": BaseType.UNKNOWN,
    "tinyint": BaseType.INTEGER,
    "uniqueidentifier": BaseType.UUID,
    "varbinary": BaseType.UNKNOWN,
    "varchar": BaseType.TEXT,
    "xml": BaseType.UNKNOWN,
}

_DATEPART = {
    "minute-of-hour": "minute",
    "hour-of-day": "hour",
    "day-of-week": "weekday",
    "day-of-month": "day",
    "day-of-year": "dayofyear",
    "week-of-year": "iso_week",
    "month-of-year": "month",
    "quarter-of-year": "quarter",
}

_TRUNCATE_BY_DIFF = ("minute", "hour", "month", "quarter", "year")


def _keyword(name: str) -> ColumnElement:
    return literal_column(name)


def _start_of(unit: str, expr: ColumnElement) -> ColumnElement:
    """DATEADD(unit, DATEDIFF(unit, 0, expr), 0): whole UNITs elapsed since 1900-01-01."""
    zero = _keyword("0")
    return func.DATEADD(_keyword(unit), func.DATEDIFF(_keyword(unit), zero, expr), zero)


def apply_top(limit: int, builder: QueryBuilder) -> QueryBuilder:
    builder.select = builder.select.prefix_with(f"TOP {int(limit)}")
    return builder


def _offset_fetch(stmt: Select, ordered: bool, offset: int, items: int) -> Select:
    # OFFSET .. FETCH is only valid after an ORDER BY
    if not ordered:
        stmt = stmt.order_by(_keyword("(SELECT NULL)"))
    return stmt.suffix_with(f"OFFSET {int(offset)} ROWS FETCH NEXT {int(items)} ROWS ONLY")


def apply_offset_fetch(page, builder: QueryBuilder) -> QueryBuilder:
    builder.select = _offset_fetch(builder.select, builder.ordered, page.items * (page.page - 1), page.items)
    return builder


class SQLServerDriver(BaseSQLAlchemyDriver):
    engine = "sqlserver"
    name = "SQL Server"
    details_model = SQLServerDetails
    native_type_map = SQLSERVER_TYPE_MAP
    connection_error_patterns = (
        (re.compile(r"Login failed for user", re.IGNORECASE), ConnectionErrorMessage.BAD_USERNAME_OR_PASSWORD),
        (re.compile(r"Cannot open database", re.IGNORECASE), ConnectionErrorMessage.BAD_DB_NAME),
        (
            re.compile(r"Name or service not known|getaddrinfo failed|Unknown host", re.IGNORECASE),
            ConnectionErrorMessage.INVALID_HOSTNAME,
        ),
        (
            re.compile(r"Adaptive Server is unavailable|Unable to connect|Connection refused", re.IGNORECASE),
            ConnectionErrorMessage.CANNOT_CONNECT,
        ),
    )

    def connection_spec(self, details: Mapping[str, Any]) -> ConnectionSpec:
        details = self.parse_details(details)
        host, port = details.host, details.port
        if details.instance:
            # the named instance resolves its own port through the SQL Browser service
            host, port = f"{details.host}\\{details.instance}", None
        url = URL.create(
            "mssql+pymssql",
            username=details.user,
            password=details.secret_value("password"),
            host=host,
            port=port,
            database=details.db,
        )
        return ConnectionSpec(url=url, connect_args=details.passthrough())

    def excluded_schemas(self) -> Set[str]:
        return {"sys", "INFORMATION_SCHEMA"}

    def string_length_fn(self) -> Optional[str]:
        return "LEN"

    def stddev_fn(self) -> str:
        return "STDEV"

    def current_datetime_fn(self) -> ColumnElement:
        return func.GETUTCDATE()

    def url_match(self, expr: ColumnElement) -> Optional[ColumnElement]:
        return expr.collate("Latin1_General_CS_AS").like("http%://_%.__%")

    def date_trunc(self, unit: str, expr: ColumnElement) -> ColumnElement:
        if unit in _DATEPART:
            return func.DATEPART(_keyword(_DATEPART[unit]), expr)
        if unit in _TRUNCATE_BY_DIFF:
            return _start_of(unit, expr)
        if unit == "day":
            return cast(cast(expr, Date), DateTime)
        if unit == "week":
            # days back to Monday, independent of the session's DATEFIRST
            days_since_monday = (func.DATEPART(_keyword("weekday"), expr) + _keyword("@@DATEFIRST + 5")) % _keyword("7")
            return cast(func.DATEADD(_keyword("day"), -days_since_monday, cast(expr, Date)), DateTime)
        if unit == "default":
            return cast(expr, DateTime)
        raise ValueError(f"Invalid date unit: {unit!r}")

    def date_interval(self, unit: str, amount: int) -> ColumnElement:
        if unit not in DATE_INTERVAL_UNITS:
            raise ValueError(f"Invalid date interval unit: {unit!r}. Expected one of {DATE_INTERVAL_UNITS}.")
        return func.DATEADD(_keyword(unit), _keyword(str(int(amount))), func.GETUTCDATE())

    def unix_timestamp_to_timestamp(self, resolution: str, expr: ColumnElement) -> ColumnElement:
        # DATEADD takes a 32-bit int, so add whole minutes first and the remainder after
        if resolution == "seconds":
            per_minute, remainder_unit = 60, "second"
        elif resolution == "milliseconds":
            per_minute, remainder_unit = 60000, "millisecond"
        else:
            raise ValueError(f"Invalid timestamp resolution: {resolution!r}")
        epoch = cast(_keyword("'1970-01-01'"), DateTime)
        minutes = func.DATEADD(_keyword("minute"), expr / _keyword(str(per_minute)), epoch)
        return func.DATEADD(_keyword(remainder_unit), expr % _keyword(str(per_minute)), minutes)

    def paginate(self, stmt: Select, offset: int, limit: int) -> Select:
        return _offset_fetch(stmt, False, offset, limit)

    def clause_handlers(self):
        handlers = super().clause_handlers()
        handlers["limit"] = apply_top
        handlers["page"] = apply_offset_fetch
        return handlers
