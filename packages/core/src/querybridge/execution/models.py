import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from querybridge_driver_sdk import QueryResult

from querybridge.common.errors import InvalidStatusTransitionError


class QueryStatus(str, Enum):
    STARTING = "starting"
    COMPLETED = "completed"
    FAILED = "failed"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class QueryExecution(BaseModel):
    """Audit record of one query run.

    A record starts as ``starting`` and moves exactly once to ``completed``
    or ``failed``. Any other transition raises ``InvalidStatusTransitionError``.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: Optional[int] = None
    uuid: str = Field(default_factory=lambda: str(uuid.uuid4()))
    executor_id: Optional[str] = None
    database_id: Optional[int] = None
    json_query: Dict[str, Any] = Field(default_factory=dict)
    status: QueryStatus = QueryStatus.STARTING
    error: str = ""
    started_at: datetime = Field(default_factory=_utcnow)
    finished_at: Optional[datetime] = None
    running_time: int = Field(default=0, description="Milliseconds")
    result_rows: int = 0
    raw_query: str = ""
    additional_info: str = ""

    def _finish(self, target: QueryStatus, running_time_ms: float) -> None:
        if self.status != QueryStatus.STARTING:
            raise InvalidStatusTransitionError(self.status.value, target.value)
        self.status = target
        self.finished_at = _utcnow()
        self.running_time = int(running_time_ms)

    def complete(self, result: QueryResult, running_time_ms: float) -> "QueryExecution":
        self._finish(QueryStatus.COMPLETED, running_time_ms)
        self.result_rows = result.row_count
        if result.native_query:
            self.raw_query = result.native_query
        return self

    def fail(self, message: str, running_time_ms: float) -> "QueryExecution":
        self._finish(QueryStatus.FAILED, running_time_ms)
        self.error = message
        return self
