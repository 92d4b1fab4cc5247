import logging
import os
import sys
import uuid
from contextvars import ContextVar
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

REQUEST_ID: ContextVar[str] = ContextVar("request_id", default="-")

LOGGER_NAME = "progress"


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = REQUEST_ID.get("-")
        return True


def _parse_level(level: str) -> int:
    value = logging.getLevelName((level or "INFO").upper())
    return value if isinstance(value, int) else logging.INFO


def configure_logging(level: str = "INFO", log_file: Optional[str] = None) -> logging.Logger:
    """
    Console logger plus an optional rotating file (LOG_FILE env).
    Safe to call more than once.
    """
    logger = logging.getLogger(LOGGER_NAME)
    if getattr(logger, "_configured", False):
        return logger

    logger.setLevel(_parse_level(os.getenv("LOG_LEVEL", level)))
    logger.propagate = False

    formatter = logging.Formatter(
        fmt="%(asctime)s %(levelname)-8s %(name)s request_id=%(request_id)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    request_filter = RequestIdFilter()

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(formatter)
    console.addFilter(request_filter)
    logger.addHandler(console)

    log_file = os.getenv("LOG_FILE", log_file or "")
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        fh = RotatingFileHandler(log_file, maxBytes=10 * 1024 * 1024, backupCount=5, encoding="utf-8")
        fh.setFormatter(formatter)
        fh.addFilter(request_filter)
        logger.addHandler(fh)

    logger._configured = True  # type: ignore[attr-defined]
    return logger


def get_logger(name: str) -> logging.Logger:
    """Child of the progress logger, e.g. get_logger(__name__)."""
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


def set_request_id(request_id: Optional[str] = None) -> str:
    rid = request_id or uuid.uuid4().hex
    REQUEST_ID.set(rid)
    return rid


def clear_request_id() -> None:
    REQUEST_ID.set("-")
