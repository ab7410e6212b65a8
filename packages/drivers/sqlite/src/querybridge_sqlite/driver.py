import re
from typing import Any, Mapping, Optional, Set

from pydantic import Field
from sqlalchemy import Integer, cast, func, literal_column
from sqlalchemy.engine import URL
from sqlalchemy.sql.elements import ColumnElement

from querybridge_driver_sdk import BaseType, ConnectionDetails, ConnectionErrorMessage, Feature
from querybridge_driver_sdk.dates import DATE_INTERVAL_UNITS
from querybridge_sqlalchemy_driver import BaseSQLAlchemyDriver, ConnectionSpec


class SQLiteDetails(ConnectionDetails):
    db: str = Field(..., title="Filename", json_schema_extra={"placeholder": "/home/birds/sightings.sqlite"})


SQLITE_TYPE_MAP = {
    "bigint": BaseType.BIG_INTEGER,
    "blob": BaseType.UNKNOWN,
    "boolean": BaseType.BOOLEAN,
    "char": BaseType.CHAR,
    "clob": BaseType.TEXT,
    "date": BaseType.DATE,
    "datetime": BaseType.DATETIME,
    "decimal": BaseType.DECIMAL,
    "double": BaseType.FLOAT,
    "float": BaseType.FLOAT,
    "int": BaseType.INTEGER,
    "integer": BaseType.INTEGER,
    "json": BaseType.TEXT,
    "nchar": BaseType.CHAR,
    "numeric": BaseType.DECIMAL,
    "nvarchar": BaseType.TEXT,
    "real": BaseType.FLOAT,
    "smallint": BaseType.INTEGER,
    "text": BaseType.TEXT,
    "time": BaseType.TIME,
    "timestamp": BaseType.DATETIME,
    "tinyint": BaseType.INTEGER,
    "varchar": BaseType.TEXT,
}

_STRFTIME_PART = {
    "minute-of-hour": "%M",
    "hour-of-day": "%H",
    "day-of-month": "%d",
    "day-of-year": "%j",
    "week-of-year": "%W",
    "month-of-year": "%m",
}

_START_OF = {
    "day": "start of day",
    "month": "start of month",
    "year": "start of year",
}

_INTERVAL_MODIFIER = {
    "minute": ("minutes", 1),
    "hour": ("hours", 1),
    "day": ("days", 1),
    "week": ("days", 7),
    "month": ("months", 1),
    "quarter": ("months", 3),
    "year": ("years", 1),
}


def _part(fmt: str, expr: ColumnElement) -> ColumnElement:
    return cast(func.strftime(fmt, expr), Integer)


class SQLiteDriver(BaseSQLAlchemyDriver):
    """SQLite stores dates as text; every date function goes through ``datetime``/``strftime``."""

    engine = "sqlite"
    name = "SQLite"
    details_model = SQLiteDetails
    native_type_map = SQLITE_TYPE_MAP
    connection_error_patterns = (
        (re.compile(r"unable to open database file", re.IGNORECASE), ConnectionErrorMessage.BAD_DB_NAME),
    )

    def connection_spec(self, details: Mapping[str, Any]) -> ConnectionSpec:
        details = self.parse_details(details)
        # mode=rw refuses to create a missing file
        url = URL.create("sqlite", database=f"file:{details.db}", query={"mode": "rw", "uri": "true"})
        return ConnectionSpec(url=url, connect_args=details.passthrough())

    def features(self) -> Set[Feature]:
        return {Feature.FOREIGN_KEYS}

    def current_datetime_fn(self) -> ColumnElement:
        return func.datetime("now")

    def url_match(self, expr: ColumnElement) -> Optional[ColumnElement]:
        # GLOB is case-sensitive, LIKE is not
        return expr.op("GLOB", is_comparison=True)("http*://?*.??*")

    def date_trunc(self, unit: str, expr: ColumnElement) -> ColumnElement:
        if unit in _STRFTIME_PART:
            return _part(_STRFTIME_PART[unit], expr)
        if unit in _START_OF:
            return func.datetime(expr, _START_OF[unit])
        if unit == "default":
            return func.datetime(expr)
        if unit == "minute":
            return func.strftime("%Y-%m-%d %H:%M:00", expr)
        if unit == "hour":
            return func.strftime("%Y-%m-%d %H:00:00", expr)
        if unit == "day-of-week":
            return _part("%w", expr) + literal_column("1")
        if unit == "week":
            days_since_monday = (_part("%w", expr) + literal_column("6")) % literal_column("7")
            return func.datetime(expr, "start of day", func.printf("-%d days", days_since_monday))
        if unit == "quarter":
            months_into_quarter = (_part("%m", expr) - literal_column("1")) % literal_column("3")
            return func.datetime(expr, "start of month", func.printf("-%d months", months_into_quarter))
        if unit == "quarter-of-year":
            # "/" compiles to true division; truncate back to the quarter number
            return cast((_part("%m", expr) + literal_column("2")) / literal_column("3"), Integer)
        raise ValueError(f"Invalid date unit: {unit!r}")

    def date_interval(self, unit: str, amount: int) -> ColumnElement:
        if unit not in DATE_INTERVAL_UNITS:
            raise ValueError(f"Invalid date interval unit: {unit!r}. Expected one of {DATE_INTERVAL_UNITS}.")
        modifier, multiplier = _INTERVAL_MODIFIER[unit]
        return func.datetime("now", f"{int(amount) * multiplier:+d} {modifier}")

    def unix_timestamp_to_timestamp(self, resolution: str, expr: ColumnElement) -> ColumnElement:
        if resolution == "seconds":
            return func.datetime(expr, "unixepoch")
        if resolution == "milliseconds":
            return func.datetime(expr / literal_column("1000"), "unixepoch")
        raise ValueError(f"Invalid timestamp resolution: {resolution!r}")
