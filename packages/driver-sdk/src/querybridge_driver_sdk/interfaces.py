from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Set, TypeVar, Union

from .capabilities import Feature
from .contracts import NativeQuery, StructuredQuery
from .dates import relative_datetime
from .errors import UnsupportedFeatureError, UnsupportedOperationError
from .models import (
    BaseType,
    DatabaseDescriptor,
    DetailsField,
    FieldDescriptor,
    ForeignKeyDescriptor,
    QueryResult,
    TableDescriptor,
    TableRef,
)
from .sampling import average_length, sampled_percent_urls

T = TypeVar("T")


class Driver(ABC):
    """Canonical contract every database driver implements.

    Mandatory operations are abstract. Optional operations have a default here
    which drivers may override:

    * ``features`` - no optional features.
    * ``table_foreign_keys`` - required for ``Feature.FOREIGN_KEYS``; fails otherwise.
    * ``active_nested_fields`` - required for ``Feature.NESTED_FIELDS``; fails otherwise.
    * ``humanize_error`` - identity.
    * ``sync_in_context`` / ``process_query_in_context`` - call the thunk once.
    * ``field_avg_length`` / ``field_percent_urls`` - computed client-side from
      ``field_values``.
    * ``driver_specific_field_sync`` - no changes.
    * ``date_interval`` - relative datetime computed client-side.
    * ``table_rows`` - not supported.

    Drivers are stateless singletons: connection details are passed into every
    call and never retained.
    """

    #: Engine identifier the driver is registered under.
    engine: str = ""
    #: Human readable name.
    name: str = ""

    def __str__(self) -> str:
        return self.name or self.engine

    # Mandatory

    @abstractmethod
    def details_fields(self) -> List[DetailsField]:
        """Ordered description of the connection form for this engine."""

    @abstractmethod
    def can_connect(self, details: Mapping[str, Any]) -> bool:
        """Open a connection with DETAILS and run a trivial query."""

    @abstractmethod
    def active_tables(self, database: DatabaseDescriptor) -> Set[TableRef]:
        """Tables and views currently present in DATABASE."""

    @abstractmethod
    def active_columns(self, table: TableDescriptor) -> Dict[str, BaseType]:
        """Column name -> base type for TABLE."""

    @abstractmethod
    def table_primary_keys(self, table: TableDescriptor) -> Set[str]:
        """Names of the primary key columns of TABLE."""

    @abstractmethod
    def field_values(self, field: FieldDescriptor) -> Iterator[Any]:
        """Lazy, finite, forward-only stream of the values of FIELD."""

    @abstractmethod
    def process_query(self, query: Union[NativeQuery, StructuredQuery]) -> QueryResult:
        """Run an already expanded query."""

    # Optional

    def features(self) -> Set[Feature]:
        return set()

    def supports(self, feature: Feature) -> bool:
        return feature in self.features()

    def table_foreign_keys(self, table: TableDescriptor) -> Set[ForeignKeyDescriptor]:
        raise UnsupportedFeatureError(str(self), Feature.FOREIGN_KEYS)

    def active_nested_fields(self, field: FieldDescriptor) -> Dict[str, BaseType]:
        raise UnsupportedFeatureError(str(self), Feature.NESTED_FIELDS)

    def humanize_error(self, message: str) -> str:
        return message

    def sync_in_context(self, database: DatabaseDescriptor, thunk: Callable[[], T]) -> T:
        return thunk()

    def process_query_in_context(self, thunk: Callable[[], T]) -> T:
        return thunk()

    def field_avg_length(self, field: FieldDescriptor) -> float:
        return average_length(self.field_values(field))

    def field_percent_urls(self, field: FieldDescriptor) -> float:
        return sampled_percent_urls(self.field_values(field))

    def driver_specific_field_sync(self, field: FieldDescriptor) -> Optional[FieldDescriptor]:
        return None

    def date_interval(self, unit: str, amount: int) -> Any:
        return relative_datetime(unit, amount)

    def table_rows(self, database: DatabaseDescriptor, table_name: str) -> List[Dict[str, Any]]:
        raise UnsupportedOperationError(str(self), "table_rows")
