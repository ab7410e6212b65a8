from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from querybridge_driver_sdk import DatabaseDescriptor


class DatabaseConfig(BaseModel):
    """One database entry of the databases file."""

    model_config = ConfigDict(extra="forbid")

    id: int
    name: Optional[str] = None
    engine: str
    details: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("engine")
    @classmethod
    def _normalize_engine(cls, value: str) -> str:
        return value.strip().lower()

    def to_descriptor(self) -> DatabaseDescriptor:
        return DatabaseDescriptor(id=self.id, name=self.name, engine=self.engine, details=self.details)


class DatabasesFileConfig(BaseModel):
    """Top-level structure of the databases YAML file."""

    model_config = ConfigDict(extra="forbid")

    version: Literal[1] = 1
    databases: List[DatabaseConfig] = Field(default_factory=list)

    @field_validator("databases")
    @classmethod
    def _unique_ids(cls, databases: List[DatabaseConfig]) -> List[DatabaseConfig]:
        seen = set()
        for database in databases:
            if database.id in seen:
                raise ValueError(f"Duplicate database id: {database.id}")
            seen.add(database.id)
        return databases
