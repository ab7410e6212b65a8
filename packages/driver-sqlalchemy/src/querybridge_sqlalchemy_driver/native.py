import logging
import re
import time
from typing import TYPE_CHECKING, Any, List, Optional

from sqlalchemy import text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import DBAPIError

from querybridge_driver_sdk import (
    BaseType,
    Feature,
    NativeQuery,
    NativeQueryError,
    QueryResult,
    ResultColumn,
    value_to_base_type,
)

if TYPE_CHECKING:
    from .driver import BaseSQLAlchemyDriver

logger = logging.getLogger(__name__)

_FIRST_SENTENCE = re.compile(r"^(.*?);", re.DOTALL)


def user_facing_message(message: str) -> str:
    """Drops the driver chatter following the first ``;`` of an error message."""
    match = _FIRST_SENTENCE.match(message)
    return (match.group(1) if match else message).strip()


def infer_result_columns(columns: List[str], rows: List[List[Any]]) -> List[ResultColumn]:
    """Column base types come from the classes of the first row's values."""
    if not rows:
        return [ResultColumn(name=name, base_type=BaseType.UNKNOWN) for name in columns]
    return [ResultColumn(name=name, base_type=value_to_base_type(value)) for name, value in zip(columns, rows[0])]


class NativeQueryExecutor:
    """
    Runs raw SQL inside a transaction that is always rolled back, so a native
    query can never leave changes behind.
    """

    def __init__(self, driver: "BaseSQLAlchemyDriver"):
        self.driver = driver

    def execute(self, query: NativeQuery) -> QueryResult:
        sql = query.native.query
        engine = self.driver.engine_for(query.database.details)
        start = time.perf_counter()

        try:
            with engine.connect() as conn:
                # Never committed. Closing the connection rolls the open transaction
                # back exactly once and the pool skips its own reset-on-return.
                conn.begin()
                self._set_timezone(conn, query.settings.report_timezone)
                logger.debug(f"Running native query on {self.driver}: {sql}")
                result = conn.exec_driver_sql(sql)
                if result.returns_rows:
                    columns = list(result.keys())
                    rows = [list(row) for row in result.fetchall()]
                else:
                    columns, rows = [], []
        except DBAPIError as e:
            raw_message = str(e.orig) if e.orig is not None else str(e)
            raise NativeQueryError(user_facing_message(raw_message), raw_message=raw_message) from e

        duration = time.perf_counter() - start
        return QueryResult(
            columns=columns,
            cols=infer_result_columns(columns, rows),
            rows=rows,
            row_count=len(rows),
            native_query=sql,
            execution_time_ms=duration * 1000,
        )

    def _set_timezone(self, conn: Connection, timezone: Optional[str]) -> None:
        if not timezone or not self.driver.supports(Feature.SET_TIMEZONE):
            return
        statement = self.driver.set_timezone_statement()
        savepoint = conn.begin_nested()
        try:
            conn.execute(text(statement), {"timezone": timezone})
        except DBAPIError as e:
            savepoint.rollback()
            logger.error(f"Failed to set timezone '{timezone}' on {self.driver}: {e}")
        else:
            savepoint.commit()
