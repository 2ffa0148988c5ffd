"""Structured JSON logging: request ids on every record, one access line per request."""

import contextvars
import logging
import uuid

from pythonjsonlogger.json import JsonFormatter

request_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("request_id", default="")

access_logger = logging.getLogger("app.access")

# Libraries that are too chatty at INFO for a public endpoint
_QUIET_LOGGERS = ("sqlalchemy.engine", "uvicorn.access", "aiosqlite")


class RequestIdFilter(logging.Filter):
    """Inject request_id into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get("")  # type: ignore[attr-defined]
        return True


def setup_logging(*, debug: bool = False) -> None:
    """Configure root logger with JSON formatter and request-id filter.

    uvicorn's own access log is silenced since ``log_access`` already writes
    one line per request with the request id attached.
    """
    handler = logging.StreamHandler()
    formatter = JsonFormatter(
        fmt="%(asctime)s %(levelname)s %(name)s %(message)s %(request_id)s",
        rename_fields={"asctime": "timestamp", "levelname": "level"},
    )
    handler.setFormatter(formatter)
    handler.addFilter(RequestIdFilter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if debug else logging.INFO)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def log_access(method: str, path: str, status_code: int, elapsed_ms: float) -> None:
    """Write the access line for a finished request.

    Server errors go out at ERROR so they stand out from normal traffic.
    """
    level = logging.ERROR if status_code >= 500 else logging.INFO
    access_logger.log(
        level,
        "HTTP %s %s responded %d in %.4f ms",
        method,
        path,
        status_code,
        elapsed_ms,
        extra={"method": method, "path": path, "status_code": status_code},
    )


def generate_request_id() -> str:
    """Generate a new request ID."""
    return uuid.uuid4().hex[:16]
