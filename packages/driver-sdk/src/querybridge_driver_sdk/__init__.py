from .interfaces import Driver
from .protocols import DriverProtocol
from .capabilities import Feature
from .contracts import (
    NativeQuery,
    StructuredQuery,
    ExpandedQuery,
    QuerySettings,
    parse_expanded_query,
)
from .details import ConnectionDetails, details_fields_from_model
from .errors import (
    ConnectionErrorMessage,
    DriverError,
    UnsupportedFeatureError,
    UnsupportedOperationError,
    DatabaseConnectionError,
    NativeQueryError,
)
from .models import (
    BaseType,
    SpecialType,
    DetailsField,
    DetailsFieldType,
    DatabaseDescriptor,
    TableRef,
    TableDescriptor,
    FieldDescriptor,
    ForeignKeyDescriptor,
    ResultColumn,
    QueryResult,
)
from .base_types import class_to_base_type, value_to_base_type
from .sampling import MAX_SYNC_LAZY_SEQ_RESULTS

__all__ = [
    "Driver",
    "DriverProtocol",
    "Feature",
    "NativeQuery",
    "StructuredQuery",
    "ExpandedQuery",
    "QuerySettings",
    "parse_expanded_query",
    "ConnectionDetails",
    "details_fields_from_model",
    "ConnectionErrorMessage",
    "DriverError",
    "UnsupportedFeatureError",
    "UnsupportedOperationError",
    "DatabaseConnectionError",
    "NativeQueryError",
    "BaseType",
    "SpecialType",
    "DetailsField",
    "DetailsFieldType",
    "DatabaseDescriptor",
    "TableRef",
    "TableDescriptor",
    "FieldDescriptor",
    "ForeignKeyDescriptor",
    "ResultColumn",
    "QueryResult",
    "class_to_base_type",
    "value_to_base_type",
    "MAX_SYNC_LAZY_SEQ_RESULTS",
]
