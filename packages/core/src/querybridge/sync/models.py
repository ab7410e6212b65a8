from typing import List, Optional

from pydantic import BaseModel, Field

from querybridge_driver_sdk import BaseType, ForeignKeyDescriptor, SpecialType, TableRef


class SyncedField(BaseModel):
    """Field metadata produced by a sync, without the connection details of its table."""

    name: str
    base_type: BaseType
    special_type: Optional[SpecialType] = None
    preview_display: bool = True


class TableSyncResult(BaseModel):
    table: TableRef
    fields: List[SyncedField] = Field(default_factory=list)
    foreign_keys: List[ForeignKeyDescriptor] = Field(default_factory=list)


class DatabaseSyncResult(BaseModel):
    database_id: int
    engine: str
    tables: List[TableSyncResult] = Field(default_factory=list)
