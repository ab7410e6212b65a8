from typing import Any, Dict, List, Literal, Optional, Union, get_args

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from typing_extensions import Annotated

from .models import DatabaseDescriptor, TableRef

DateUnit = Literal[
    "default",
    "minute",
    "minute-of-hour",
    "hour",
    "hour-of-day",
    "day",
    "day-of-week",
    "day-of-month",
    "day-of-year",
    "week",
    "week-of-year",
    "month",
    "month-of-year",
    "quarter",
    "quarter-of-year",
    "year",
]

DATE_UNITS = get_args(DateUnit)


class QuerySettings(BaseModel):
    """Process-wide settings injected into a query before it reaches the driver."""

    report_timezone: Optional[str] = None


class NativeBody(BaseModel):
    query: str = Field(..., description="Raw SQL passed verbatim to the backend.")


class NativeQuery(BaseModel):
    type: Literal["native"] = "native"
    database: DatabaseDescriptor
    native: NativeBody
    settings: QuerySettings = Field(default_factory=QuerySettings)

    model_config = ConfigDict(extra="ignore")


class BreakoutField(BaseModel):
    field: str
    unit: Optional[DateUnit] = None


class Aggregation(BaseModel):
    type: Literal["rows", "count", "sum", "avg", "distinct", "min", "max", "stddev"] = "rows"
    field: Optional[str] = None


class FilterClause(BaseModel):
    operator: Literal["=", "!=", "<", ">", "<=", ">=", "is-null", "not-null", "contains", "starts-with"]
    field: str
    value: Any = None


class OrderBy(BaseModel):
    field: str
    direction: Literal["ascending", "descending"] = "ascending"


class Page(BaseModel):
    items: int = Field(..., gt=0)
    page: int = Field(..., ge=1)


class StructuredQuery(BaseModel):
    """An engine-agnostic query already expanded by the upstream query processor.

    Clause semantics are deliberately small; drivers compile each clause through
    their clause handler table and may override any of them.
    """

    type: Literal["query"] = "query"
    database: DatabaseDescriptor
    source_table: TableRef
    fields: List[str] = Field(default_factory=list)
    aggregation: Optional[Aggregation] = None
    breakout: List[BreakoutField] = Field(default_factory=list)
    filter: List[FilterClause] = Field(default_factory=list)
    order_by: List[OrderBy] = Field(default_factory=list)
    limit: Optional[int] = Field(default=None, gt=0)
    page: Optional[Page] = None
    settings: QuerySettings = Field(default_factory=QuerySettings)

    model_config = ConfigDict(extra="ignore")


ExpandedQuery = Annotated[Union[NativeQuery, StructuredQuery], Field(discriminator="type")]

_EXPANDED_QUERY = TypeAdapter(ExpandedQuery)


def parse_expanded_query(raw: Dict[str, Any]) -> Union[NativeQuery, StructuredQuery]:
    """Validates a raw query tree, dispatching on its ``type`` discriminator."""
    return _EXPANDED_QUERY.validate_python(raw)
