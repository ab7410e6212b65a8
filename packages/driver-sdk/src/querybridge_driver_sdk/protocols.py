from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Protocol, Set, Union, runtime_checkable

from .capabilities import Feature
from .contracts import NativeQuery, StructuredQuery
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


@runtime_checkable
class DriverProtocol(Protocol):
    """Structural definition of a driver.

    Any object implementing these methods can be registered, whether or not it
    inherits from `Driver`.
    """

    engine: str
    name: str

    def details_fields(self) -> List[DetailsField]:
        ...

    def features(self) -> Set[Feature]:
        ...

    def can_connect(self, details: Mapping[str, Any]) -> bool:
        ...

    def active_tables(self, database: DatabaseDescriptor) -> Set[TableRef]:
        ...

    def active_columns(self, table: TableDescriptor) -> Dict[str, BaseType]:
        ...

    def table_primary_keys(self, table: TableDescriptor) -> Set[str]:
        ...

    def table_foreign_keys(self, table: TableDescriptor) -> Set[ForeignKeyDescriptor]:
        ...

    def field_values(self, field: FieldDescriptor) -> Iterator[Any]:
        ...

    def process_query(self, query: Union[NativeQuery, StructuredQuery]) -> QueryResult:
        ...

    def sync_in_context(self, database: DatabaseDescriptor, thunk: Callable[[], Any]) -> Any:
        ...

    def process_query_in_context(self, thunk: Callable[[], Any]) -> Any:
        ...

    def humanize_error(self, message: str) -> str:
        ...

    def field_avg_length(self, field: FieldDescriptor) -> float:
        ...

    def field_percent_urls(self, field: FieldDescriptor) -> float:
        ...

    def driver_specific_field_sync(self, field: FieldDescriptor) -> Optional[FieldDescriptor]:
        ...
