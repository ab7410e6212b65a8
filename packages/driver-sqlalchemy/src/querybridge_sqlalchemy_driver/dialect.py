"""SQL-generation hooks a concrete engine supplies to the generic SQL driver."""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Set, Type

from sqlalchemy import func
from sqlalchemy.engine import URL
from sqlalchemy.engine.reflection import Inspector
from sqlalchemy.sql import Select
from sqlalchemy.sql.elements import ColumnElement

from querybridge_driver_sdk import BaseType, ConnectionDetails

from .compiler import DEFAULT_CLAUSE_HANDLERS, ClauseHandler

#: Strings such as ``http://a.bc`` match; ``http://localhost`` does not.
URL_LIKE_PATTERN = "http%://_%.__%"


@dataclass(frozen=True)
class ConnectionSpec:
    """Everything `create_engine` needs to reach one database."""

    url: URL
    connect_args: Dict[str, Any] = field(default_factory=dict)

    @property
    def cache_key(self) -> str:
        return self.url.render_as_string(hide_password=False) + repr(sorted(self.connect_args.items()))


class SQLDialect(ABC):
    """Engine-specific pieces of SQL generation.

    Subclasses provide the mandatory hooks; the rest have generic defaults.
    """

    #: pydantic model describing the connection details of the engine.
    details_model: Type[ConnectionDetails] = ConnectionDetails
    #: Lower-cased native type name -> base type.
    native_type_map: Mapping[str, BaseType] = {}

    @abstractmethod
    def connection_spec(self, details: Mapping[str, Any]) -> ConnectionSpec:
        """Translates connection DETAILS into an engine URL and driver arguments."""

    @abstractmethod
    def date_trunc(self, unit: str, expr: ColumnElement) -> ColumnElement:
        """Truncates or extracts EXPR according to the date UNIT."""

    @abstractmethod
    def date_interval(self, unit: str, amount: int) -> ColumnElement:
        """SQL expression for now shifted by AMOUNT units."""

    @abstractmethod
    def unix_timestamp_to_timestamp(self, resolution: str, expr: ColumnElement) -> ColumnElement:
        """Converts an epoch number in ``seconds`` or ``milliseconds`` to a timestamp."""

    def native_type_to_base_type(self, native_type: str) -> Optional[BaseType]:
        return self.native_type_map.get(native_type.lower())

    def string_length_fn(self) -> Optional[str]:
        return "LENGTH"

    def stddev_fn(self) -> str:
        return "STDDEV"

    def current_datetime_fn(self) -> ColumnElement:
        return func.now()

    def set_timezone_statement(self) -> Optional[str]:
        """Statement with a ``:timezone`` bind parameter, or None if unsupported."""
        return None

    def excluded_schemas(self) -> Set[str]:
        return set()

    def introspection_schemas(self, inspector: Inspector) -> List[Optional[str]]:
        excluded = self.excluded_schemas()
        return [s for s in inspector.get_schema_names() if s not in excluded]

    def url_match(self, expr: ColumnElement) -> Optional[ColumnElement]:
        """Predicate matching URL-looking values; None disables the pushdown."""
        return expr.like(URL_LIKE_PATTERN)

    def paginate(self, stmt: Select, offset: int, limit: int) -> Select:
        return stmt.limit(limit).offset(offset)

    def clause_handlers(self) -> Dict[str, ClauseHandler]:
        return dict(DEFAULT_CLAUSE_HANDLERS)
