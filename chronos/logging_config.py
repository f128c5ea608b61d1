"""
Structured logging configuration using structlog.

structlog events and plain stdlib records (tenacity, SQLAlchemy, uvicorn)
share one handler and are rendered to JSON once, by python-json-logger.
"""
import logging
import structlog
from pythonjsonlogger import jsonlogger
from typing import Any, Optional, TextIO
import sys


class ContextVarsFilter(logging.Filter):
    """Copy the bound request/meeting context onto stdlib records."""

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in structlog.contextvars.get_contextvars().items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


def setup_logging(debug: bool = False, stream: Optional[TextIO] = None) -> None:
    """
    Configure structured logging for the application.

    Args:
        debug: Enable debug level logging
        stream: Output stream (default stdout)
    """
    log_level = logging.DEBUG if debug else logging.INFO

    log_handler = logging.StreamHandler(stream or sys.stdout)
    formatter = jsonlogger.JsonFormatter(
        "%(asctime)s %(name)s %(levelname)s %(message)s",
        rename_fields={"asctime": "timestamp", "levelname": "level", "name": "logger"}
    )
    log_handler.setFormatter(formatter)
    log_handler.addFilter(ContextVarsFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = []
    root_logger.addHandler(log_handler)

    # SQL echo is controlled by the engine, keep the logger quiet otherwise
    logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO if debug else logging.WARNING)

    # Timestamp, level and logger name come from the JSON formatter
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.render_to_log_kwargs,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> Any:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Structured logger instance
    """
    return structlog.get_logger(name)


class LogContext:
    """
    Context manager for adding structured context to logs.

    Nested contexts may rebind a key; the outer value is restored on exit.
    """

    def __init__(self, **kwargs):
        self.context = kwargs
        self._tokens = {}

    def __enter__(self):
        self._tokens = structlog.contextvars.bind_contextvars(**self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        structlog.contextvars.reset_contextvars(**self._tokens)
