import re
from typing import Any, Mapping, Optional, Set

from pydantic import Field, SecretStr
from sqlalchemy import Integer, cast, extract, func, literal_column
from sqlalchemy.engine import URL
from sqlalchemy.sql.elements import ColumnElement

from querybridge_driver_sdk import (
    BaseType,
    ConnectionDetails,
    ConnectionErrorMessage,
    FieldDescriptor,
    SpecialType,
)
from querybridge_driver_sdk.dates import DATE_INTERVAL_UNITS
from querybridge_sqlalchemy_driver import BaseSQLAlchemyDriver, ConnectionSpec


class PostgresDetails(ConnectionDetails):
    host: str = Field(default="localhost", title="Host")
    port: int = Field(default=5432, title="Port")
    dbname: str = Field(..., title="Database name", json_schema_extra={"placeholder": "birds_of_the_world"})
    user: str = Field(
        ...,
        title="Database username",
        json_schema_extra={"placeholder": "What username do you use to login to the database?"},
    )
    password: Optional[SecretStr] = Field(
        default=None, title="Database password", json_schema_extra={"placeholder": "*******"}
    )
    ssl: bool = Field(default=False, title="Use a secure connection (SSL)?")


POSTGRES_TYPE_MAP = {
    "bigint": BaseType.BIG_INTEGER,
    "bigserial": BaseType.BIG_INTEGER,
    "bit": BaseType.UNKNOWN,
    "bool": BaseType.BOOLEAN,
    "boolean": BaseType.BOOLEAN,
    "box": BaseType.UNKNOWN,
    "bytea": BaseType.UNKNOWN,
    "char": BaseType.CHAR,
    "character": BaseType.CHAR,
    "character varying": BaseType.TEXT,
    "cidr": BaseType.TEXT,
    "circle": BaseType.UNKNOWN,
    "date": BaseType.DATE,
    "decimal": BaseType.DECIMAL,
    "double precision": BaseType.FLOAT,
    "float": BaseType.FLOAT,
    "float4": BaseType.FLOAT,
    "float8": BaseType.FLOAT,
    "inet": BaseType.TEXT,
    "int": BaseType.INTEGER,
    "int2": BaseType.INTEGER,
    "int4": BaseType.INTEGER,
    "int8": BaseType.BIG_INTEGER,
    "integer": BaseType.INTEGER,
    "interval": BaseType.UNKNOWN,
    "json": BaseType.TEXT,
    "jsonb": BaseType.TEXT,
    "line": BaseType.UNKNOWN,
    "lseg": BaseType.UNKNOWN,
    "macaddr": BaseType.TEXT,
    "money": BaseType.DECIMAL,
    "numeric": BaseType.DECIMAL,
    "path": BaseType.UNKNOWN,
    "pg_lsn": BaseType.INTEGER,
    "point": BaseType.UNKNOWN,
    "polygon": BaseType.UNKNOWN,
    "real": BaseType.FLOAT,
    "serial": BaseType.INTEGER,
    "smallint": BaseType.INTEGER,
    "smallserial": BaseType.INTEGER,
    "text": BaseType.TEXT,
    "time": BaseType.TIME,
    "time with time zone": BaseType.TIME,
    "time without time zone": BaseType.TIME,
    "timestamp": BaseType.DATETIME,
    "timestamp with time zone": BaseType.DATETIME,
    "timestamp without time zone": BaseType.DATETIME,
    "timestamptz": BaseType.DATETIME,
    "timetz": BaseType.TIME,
    "tsquery": BaseType.UNKNOWN,
    "tsvector": BaseType.UNKNOWN,
    "txid_snapshot": BaseType.UNKNOWN,
    "uuid": BaseType.UUID,
    "varbit": BaseType.UNKNOWN,
    "varchar": BaseType.TEXT,
    "xml": BaseType.TEXT,
}

_JSON_TYPES = {"json", "jsonb"}

_EXTRACT_FIELD = {
    "minute-of-hour": "minute",
    "hour-of-day": "hour",
    "day-of-month": "day",
    "day-of-year": "doy",
    "week-of-year": "week",
    "month-of-year": "month",
    "quarter-of-year": "quarter",
}

_TRUNCATE = ("minute", "hour", "day", "week", "month", "quarter", "year")


def _extract(field: str, expr: ColumnElement) -> ColumnElement:
    return cast(extract(field, expr), Integer)


class PostgresDriver(BaseSQLAlchemyDriver):
    engine = "postgres"
    name = "PostgreSQL"
    details_model = PostgresDetails
    native_type_map = POSTGRES_TYPE_MAP
    connection_error_patterns = (
        (re.compile(r"Connection refused", re.IGNORECASE), ConnectionErrorMessage.CANNOT_CONNECT),
        (re.compile(r"database \".*\" does not exist"), ConnectionErrorMessage.BAD_DB_NAME),
        (re.compile(r"no password supplied"), ConnectionErrorMessage.MISSING_PASSWORD),
        (re.compile(r"password authentication failed for user"), ConnectionErrorMessage.BAD_USERNAME_OR_PASSWORD),
        (re.compile(r"role \".*\" does not exist"), ConnectionErrorMessage.BAD_USERNAME),
        (
            re.compile(r"could not translate host name|Name or service not known"),
            ConnectionErrorMessage.INVALID_HOSTNAME,
        ),
    )

    def connection_spec(self, details: Mapping[str, Any]) -> ConnectionSpec:
        details = self.parse_details(details)
        url = URL.create(
            "postgresql+psycopg2",
            username=details.user,
            password=details.secret_value("password"),
            host=details.host,
            port=details.port,
            database=details.dbname,
        )
        connect_args = details.passthrough()
        if details.ssl:
            connect_args.setdefault("sslmode", "require")
        return ConnectionSpec(url=url, connect_args=connect_args)

    def excluded_schemas(self) -> Set[str]:
        return {"information_schema", "pg_catalog"}

    def set_timezone_statement(self) -> Optional[str]:
        return "SET SESSION TIMEZONE TO :timezone"

    def date_trunc(self, unit: str, expr: ColumnElement) -> ColumnElement:
        if unit in _TRUNCATE:
            return func.date_trunc(unit, expr)
        if unit in _EXTRACT_FIELD:
            return _extract(_EXTRACT_FIELD[unit], expr)
        if unit == "day-of-week":
            # dow is 0 for Sunday
            return _extract("dow", expr) + literal_column("1")
        if unit == "default":
            return expr
        raise ValueError(f"Invalid date unit: {unit!r}")

    def date_interval(self, unit: str, amount: int) -> ColumnElement:
        if unit not in DATE_INTERVAL_UNITS:
            raise ValueError(f"Invalid date interval unit: {unit!r}. Expected one of {DATE_INTERVAL_UNITS}.")
        if unit == "quarter":
            unit, amount = "month", amount * 3
        return func.now() + literal_column(f"INTERVAL '{int(amount)} {unit}'")

    def unix_timestamp_to_timestamp(self, resolution: str, expr: ColumnElement) -> ColumnElement:
        if resolution == "seconds":
            return func.to_timestamp(expr)
        if resolution == "milliseconds":
            return func.to_timestamp(expr / literal_column("1000.0"))
        raise ValueError(f"Invalid timestamp resolution: {resolution!r}")

    def driver_specific_field_sync(self, field: FieldDescriptor) -> Optional[FieldDescriptor]:
        native_type = self.native_column_types(field.table).get(field.name)
        if native_type in _JSON_TYPES:
            return field.model_copy(update={"special_type": SpecialType.JSON})
        return None
