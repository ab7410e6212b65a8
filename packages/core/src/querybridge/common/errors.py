from enum import Enum
from typing import Any, Iterable, Optional

from pydantic import BaseModel, ConfigDict

from querybridge_driver_sdk import (
    DatabaseConnectionError,
    NativeQueryError,
    UnsupportedFeatureError,
    UnsupportedOperationError,
)


class ErrorSeverity(str, Enum):
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ErrorCode(str, Enum):
    """Error codes reported on failed query executions."""

    DRIVER_NOT_FOUND = "DRIVER_NOT_FOUND"
    DATABASE_NOT_FOUND = "DATABASE_NOT_FOUND"
    INVALID_QUERY = "INVALID_QUERY"
    NATIVE_QUERY_FAILED = "NATIVE_QUERY_FAILED"
    CONNECTION_FAILED = "CONNECTION_FAILED"
    UNSUPPORTED_FEATURE = "UNSUPPORTED_FEATURE"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class DriverNotFoundError(LookupError):
    """No driver is registered for an engine."""

    def __init__(self, engine: str, known_engines: Iterable[str]):
        self.engine = engine
        self.known_engines = sorted(known_engines)
        super().__init__(
            f"No driver registered for engine '{engine}'. Known engines: {', '.join(self.known_engines) or 'none'}."
        )


class DatabaseNotFoundError(LookupError):
    def __init__(self, database_id: Any):
        self.database_id = database_id
        super().__init__(f"No database with id {database_id!r}.")


class InvalidStatusTransitionError(RuntimeError):
    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Query execution cannot move from '{current}' to '{target}'.")


class QueryBridgeError(BaseModel):
    """Structured error attached to a failed query response.

    Attributes:
        message (str): User-facing error text.
        error_code (ErrorCode): The standardized error code.
        severity (ErrorSeverity): The severity of the error.
        details (Optional[Any]): Raw driver message or other context.
    """

    model_config = ConfigDict(extra="ignore")

    message: str
    error_code: ErrorCode
    severity: ErrorSeverity = ErrorSeverity.ERROR
    details: Optional[Any] = None

    @classmethod
    def from_exception(cls, exc: BaseException) -> "QueryBridgeError":
        if isinstance(exc, NativeQueryError):
            return cls(message=str(exc), error_code=ErrorCode.NATIVE_QUERY_FAILED, details=exc.raw_message)
        if isinstance(exc, DriverNotFoundError):
            return cls(message=str(exc), error_code=ErrorCode.DRIVER_NOT_FOUND, details=exc.known_engines)
        if isinstance(exc, DatabaseNotFoundError):
            return cls(message=str(exc), error_code=ErrorCode.DATABASE_NOT_FOUND)
        if isinstance(exc, DatabaseConnectionError):
            return cls(message=str(exc), error_code=ErrorCode.CONNECTION_FAILED)
        if isinstance(exc, (UnsupportedFeatureError, UnsupportedOperationError)):
            return cls(message=str(exc), error_code=ErrorCode.UNSUPPORTED_FEATURE)
        if isinstance(exc, ValueError):
            return cls(message=str(exc), error_code=ErrorCode.INVALID_QUERY)
        return cls(message=str(exc), error_code=ErrorCode.UNKNOWN_ERROR, severity=ErrorSeverity.CRITICAL)
