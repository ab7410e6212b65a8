from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


class BaseType(str, Enum):
    """Engine-agnostic semantic type of a column or value."""

    BOOLEAN = "Boolean"
    INTEGER = "Integer"
    FLOAT = "Float"
    DECIMAL = "Decimal"
    BIG_INTEGER = "BigInteger"
    TEXT = "Text"
    CHAR = "Char"
    DATE = "Date"
    DATETIME = "DateTime"
    TIME = "Time"
    UUID = "UUID"
    DICTIONARY = "Dictionary"
    UNKNOWN = "Unknown"


TEXTUAL_BASE_TYPES = frozenset({BaseType.TEXT, BaseType.CHAR})


class SpecialType(str, Enum):
    """Semantic annotations assigned to fields during sync."""

    ID = "id"
    FK = "fk"
    URL = "url"
    JSON = "json"


class DetailsFieldType(str, Enum):
    STRING = "string"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    PASSWORD = "password"


class DetailsField(BaseModel):
    """One entry of the connection-editing form exposed by a driver."""

    name: str
    display_name: str
    type: DetailsFieldType = DetailsFieldType.STRING
    default: Optional[Union[str, int, bool]] = None
    placeholder: Optional[str] = None
    required: bool = False

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _default_xor_placeholder(self) -> "DetailsField":
        if self.default is not None and self.placeholder is not None:
            raise ValueError(
                f"Details field '{self.name}' cannot declare both a default and a placeholder."
            )
        return self


class DatabaseDescriptor(BaseModel):
    """A database record as seen by drivers: engine plus opaque connection details."""

    id: int
    engine: str
    name: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)


class TableRef(BaseModel):
    name: str
    schema_name: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @property
    def full_name(self) -> str:
        if self.schema_name:
            return f"{self.schema_name}.{self.name}"
        return self.name


class TableDescriptor(BaseModel):
    """A table snapshot together with the database it belongs to."""

    name: str
    schema_name: Optional[str] = None
    database: DatabaseDescriptor

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_ref(cls, ref: TableRef, database: DatabaseDescriptor) -> "TableDescriptor":
        return cls(name=ref.name, schema_name=ref.schema_name, database=database)

    @property
    def ref(self) -> TableRef:
        return TableRef(name=self.name, schema_name=self.schema_name)


class FieldDescriptor(BaseModel):
    """A column snapshot taken at sync time."""

    name: str
    base_type: BaseType = BaseType.UNKNOWN
    table: TableDescriptor
    special_type: Optional[SpecialType] = None
    preview_display: bool = True

    model_config = ConfigDict(frozen=True)

    @property
    def qualified_name_components(self) -> List[str]:
        components = [self.table.name, self.name]
        if self.table.schema_name:
            components.insert(0, self.table.schema_name)
        return components

    @property
    def is_textual(self) -> bool:
        return self.base_type in TEXTUAL_BASE_TYPES


class ForeignKeyDescriptor(BaseModel):
    fk_column_name: str
    dest_table_name: str
    dest_column_name: str
    dest_schema_name: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class ResultColumn(BaseModel):
    name: str
    base_type: BaseType = BaseType.UNKNOWN


class QueryResult(BaseModel):
    """Rows and column metadata produced by one query execution."""

    columns: List[str] = Field(default_factory=list)
    cols: List[ResultColumn] = Field(default_factory=list)
    rows: List[List[Any]] = Field(default_factory=list)
    row_count: int = 0
    native_query: Optional[str] = None
    execution_time_ms: Optional[float] = None

    @property
    def column_types(self) -> Dict[str, BaseType]:
        return {col.name: col.base_type for col in self.cols}
