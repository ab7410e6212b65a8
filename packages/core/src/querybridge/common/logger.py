import contextvars
import json
import logging
from contextlib import contextmanager
from typing import Optional

_trace_id_ctx: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("querybridge_trace_id", default=None)

# Attributes every LogRecord carries; anything else was passed through ``extra``.
_RESERVED_ATTRS = frozenset(
    {
        "args", "asctime", "created", "exc_info", "exc_text", "filename", "funcName",
        "levelname", "levelno", "lineno", "module", "msecs", "message", "msg", "name",
        "pathname", "process", "processName", "relativeCreated", "stack_info", "thread",
        "threadName", "taskName", "trace_id",
    }
)


class TraceContextFilter(logging.Filter):
    """Stamps every record with the trace id of the query being processed, if any."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.trace_id = _trace_id_ctx.get()
        return True


@contextmanager
def trace_context(trace_id: str):
    """Tags log records emitted inside the block with TRACE_ID."""
    token = _trace_id_ctx.set(trace_id)
    try:
        yield
    finally:
        _trace_id_ctx.reset(token)


def current_trace_id() -> Optional[str]:
    return _trace_id_ctx.get()


class JsonFormatter(logging.Formatter):
    """One JSON object per line, with ``extra`` fields merged in."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        if getattr(record, "trace_id", None):
            payload["trace_id"] = record.trace_id
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                payload[key] = value

        return json.dumps(payload, default=str)


def configure_logging(level: str = "INFO", json_format: bool = False) -> None:
    """Configures the root logger.

    Args:
        level (str): The logging level (default: INFO).
        json_format (bool): Emit JSON lines instead of plain text (default: False).
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.addFilter(TraceContextFilter())
    if json_format:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s - [%(trace_id)s] - %(name)s - %(levelname)s - %(message)s")
        )
    root_logger.addHandler(handler)

    # SQL is already logged at debug level by the drivers
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.pool").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
