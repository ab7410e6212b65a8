from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from typing import Any, Mapping, Optional

from sqlalchemy.exc import DBAPIError

from querybridge_driver_sdk import (
    ConnectionErrorMessage,
    DatabaseConnectionError,
    DatabaseDescriptor,
    Driver,
)

from querybridge.common.logger import get_logger
from querybridge.common.settings import CAN_CONNECT_TIMEOUT_MS

logger = get_logger(__name__)


def _failure_message(exc: BaseException) -> str:
    if isinstance(exc, DBAPIError) and exc.orig is not None:
        return str(exc.orig)
    return str(exc)


def check_driver_connection(
    driver: Driver,
    details: Mapping[str, Any],
    rethrow: bool = False,
    timeout_ms: int = CAN_CONNECT_TIMEOUT_MS,
) -> bool:
    """Runs ``driver.can_connect`` on a worker thread bounded by TIMEOUT_MS.

    Expected failures (timeouts, database errors, network errors) are logged
    and reported as ``False``. With RETHROW they are raised as
    ``DatabaseConnectionError`` carrying the driver's humanized message.
    """
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="querybridge-can-connect")
    try:
        future = executor.submit(driver.can_connect, details)
        return bool(future.result(timeout=timeout_ms / 1000))
    except FuturesTimeoutError as e:
        logger.error(f"Failed to connect to {driver} database: timed out after {timeout_ms} ms")
        if rethrow:
            raise DatabaseConnectionError(ConnectionErrorMessage.CANNOT_CONNECT.value) from e
        return False
    except (DBAPIError, OSError) as e:
        message = _failure_message(e)
        logger.error(f"Failed to connect to {driver} database: {message}")
        if rethrow:
            raise DatabaseConnectionError(driver.humanize_error(message)) from e
        return False
    finally:
        # A timed-out attempt keeps running in the background and disposes its own engine
        executor.shutdown(wait=False)


class ConnectivityChecker:
    """Timeout-bounded connectivity checks resolved through a driver registry."""

    def __init__(self, registry, timeout_ms: Optional[int] = None):
        self.registry = registry
        self.timeout_ms = timeout_ms or CAN_CONNECT_TIMEOUT_MS

    def can_connect_with_details(self, engine: str, details: Mapping[str, Any], rethrow: bool = False) -> bool:
        driver = self.registry.resolve(engine)
        return check_driver_connection(driver, details, rethrow=rethrow, timeout_ms=self.timeout_ms)

    def can_connect(self, database: DatabaseDescriptor) -> bool:
        return self.can_connect_with_details(database.engine, database.details)
