import re
from typing import Any, List, Mapping, Optional

from pydantic import Field, SecretStr
from sqlalchemy import func, literal_column
from sqlalchemy.engine import URL
from sqlalchemy.engine.reflection import Inspector
from sqlalchemy.sql.elements import ColumnElement

from querybridge_driver_sdk import BaseType, ConnectionDetails, ConnectionErrorMessage
from querybridge_driver_sdk.dates import DATE_INTERVAL_UNITS
from querybridge_sqlalchemy_driver import URL_LIKE_PATTERN, BaseSQLAlchemyDriver, ConnectionSpec


class MySQLDetails(ConnectionDetails):
    host: str = Field(default="localhost", title="Host")
    port: int = Field(default=3306, title="Port")
    dbname: str = Field(..., title="Database name", json_schema_extra={"placeholder": "birds_of_the_world"})
    user: str = Field(
        ...,
        title="Database username",
        json_schema_extra={"placeholder": "What username do you use to login to the database?"},
    )
    password: Optional[SecretStr] = Field(
        default=None, title="Database password", json_schema_extra={"placeholder": "*******"}
    )


MYSQL_TYPE_MAP = {
    "bigint": BaseType.BIG_INTEGER,
    "binary": BaseType.UNKNOWN,
    "bit": BaseType.UNKNOWN,
    "blob": BaseType.UNKNOWN,
    "bool": BaseType.BOOLEAN,
    "boolean": BaseType.BOOLEAN,
    "char": BaseType.CHAR,
    "date": BaseType.DATE,
    "datetime": BaseType.DATETIME,
    "decimal": BaseType.DECIMAL,
    "double": BaseType.FLOAT,
    "enum": BaseType.UNKNOWN,
    "float": BaseType.FLOAT,
    "int": BaseType.INTEGER,
    "integer": BaseType.INTEGER,
    "json": BaseType.TEXT,
    "longblob": BaseType.UNKNOWN,
    "longtext": BaseType.TEXT,
    "mediumblob": BaseType.UNKNOWN,
    "mediumint": BaseType.INTEGER,
    "mediumtext": BaseType.TEXT,
    "numeric": BaseType.DECIMAL,
    "real": BaseType.FLOAT,
    "set": BaseType.UNKNOWN,
    "smallint": BaseType.INTEGER,
    "text": BaseType.TEXT,
    "time": BaseType.TIME,
    "timestamp": BaseType.DATETIME,
    "tinyblob": BaseType.UNKNOWN,
    "tinyint": BaseType.INTEGER,
    "tinytext": BaseType.TEXT,
    "varbinary": BaseType.UNKNOWN,
    "varchar": BaseType.TEXT,
    "year": BaseType.INTEGER,
}

_TYPE_MODIFIERS = re.compile(r"\s+(unsigned|zerofill)\b")

_EXTRACT_FN = {
    "minute-of-hour": func.minute,
    "hour-of-day": func.hour,
    "day-of-week": func.dayofweek,
    "day-of-month": func.dayofmonth,
    "day-of-year": func.dayofyear,
    "month-of-year": func.month,
    "quarter-of-year": func.quarter,
}

_TRUNCATE_FORMAT = {
    "minute": ("%Y-%m-%d %H:%i", "%Y-%m-%d %H:%i"),
    "hour": ("%Y-%m-%d %H", "%Y-%m-%d %H"),
    "month": ("%Y-%m-01", "%Y-%m-%d"),
    "year": ("%Y-01-01", "%Y-%m-%d"),
}


class MySQLDriver(BaseSQLAlchemyDriver):
    engine = "mysql"
    name = "MySQL"
    details_model = MySQLDetails
    native_type_map = MYSQL_TYPE_MAP
    connection_error_patterns = (
        (
            re.compile(r"Name or service not known|getaddrinfo failed|nodename nor servname"),
            ConnectionErrorMessage.INVALID_HOSTNAME,
        ),
        (re.compile(r"Can't connect to MySQL server"), ConnectionErrorMessage.CANNOT_CONNECT),
        (re.compile(r"Unknown database"), ConnectionErrorMessage.BAD_DB_NAME),
        (re.compile(r"Access denied for user"), ConnectionErrorMessage.BAD_USERNAME_OR_PASSWORD),
    )

    def connection_spec(self, details: Mapping[str, Any]) -> ConnectionSpec:
        details = self.parse_details(details)
        url = URL.create(
            "mysql+pymysql",
            username=details.user,
            password=details.secret_value("password"),
            host=details.host,
            port=details.port,
            database=details.dbname,
        )
        return ConnectionSpec(url=url, connect_args=details.passthrough())

    def native_type_to_base_type(self, native_type: str) -> Optional[BaseType]:
        return super().native_type_to_base_type(_TYPE_MODIFIERS.sub("", native_type.lower()))

    def introspection_schemas(self, inspector: Inspector) -> List[Optional[str]]:
        # a MySQL "schema" is a database; only the connected one is synced
        return [inspector.default_schema_name]

    def set_timezone_statement(self) -> Optional[str]:
        return "SET @@session.time_zone = :timezone"

    def url_match(self, expr: ColumnElement) -> Optional[ColumnElement]:
        return expr.op("LIKE BINARY", is_comparison=True)(URL_LIKE_PATTERN)

    def date_trunc(self, unit: str, expr: ColumnElement) -> ColumnElement:
        if unit in _EXTRACT_FN:
            return _EXTRACT_FN[unit](expr)
        if unit in _TRUNCATE_FORMAT:
            output_format, parse_format = _TRUNCATE_FORMAT[unit]
            return func.str_to_date(func.date_format(expr, output_format), parse_format)
        if unit == "day":
            return func.date(expr)
        if unit == "week":
            return func.date(func.subdate(expr, func.weekday(expr)))
        if unit == "week-of-year":
            # mode 3: weeks start on Monday, ISO numbering
            return func.week(expr, literal_column("3"))
        if unit == "quarter":
            first_month = func.quarter(expr) * literal_column("3") - literal_column("2")
            return func.str_to_date(func.concat(func.year(expr), "-", first_month, "-01"), "%Y-%m-%d")
        if unit == "default":
            return expr
        raise ValueError(f"Invalid date unit: {unit!r}")

    def date_interval(self, unit: str, amount: int) -> ColumnElement:
        if unit not in DATE_INTERVAL_UNITS:
            raise ValueError(f"Invalid date interval unit: {unit!r}. Expected one of {DATE_INTERVAL_UNITS}.")
        return func.date_add(func.now(), literal_column(f"INTERVAL {int(amount)} {unit.upper()}"))

    def unix_timestamp_to_timestamp(self, resolution: str, expr: ColumnElement) -> ColumnElement:
        if resolution == "seconds":
            return func.from_unixtime(expr)
        if resolution == "milliseconds":
            return func.from_unixtime(expr / literal_column("1000"))
        raise ValueError(f"Invalid timestamp resolution: {resolution!r}")
