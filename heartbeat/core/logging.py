import logging
import logging.handlers
import sys
import os
from heartbeat.core.config import settings

# Third-party loggers that are too chatty at INFO
QUIET_LOGGERS = {
    "uvicorn": logging.INFO,
    "uvicorn.access": logging.INFO,
    "uvicorn.error": logging.INFO,
    "websockets": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
    "sqlalchemy.pool": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
}


class RequestIDFilter(logging.Filter):
    """Give every record a request_id so the format string can always use it."""

    def filter(self, record):
        if not hasattr(record, "request_id"):
            record.request_id = "N/A"
        return True


def _level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def _file_handler(path: str) -> logging.Handler:
    log_dir = os.path.dirname(path)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
    return logging.handlers.RotatingFileHandler(
        path,
        maxBytes=10*1024*1024,  # 10MB
        backupCount=5,
        encoding='utf-8'
    )


def setup_logging() -> logging.Logger:
    """
    Route application logs to stdout, and to a rotating file outside DEBUG.

    Realtime sockets and the change feed log through the same handlers, so
    request-scoped and socket-scoped lines share one format.
    """
    level = _level(settings.LOG_LEVEL)
    formatter = logging.Formatter(settings.LOG_FORMAT)
    request_id_filter = RequestIDFilter()

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handlers = [logging.StreamHandler(sys.stdout)]
    if not settings.DEBUG:
        handlers.append(_file_handler(settings.LOG_FILE))

    for handler in handlers:
        handler.setFormatter(formatter)
        handler.setLevel(level)
        handler.addFilter(request_id_filter)
        root_logger.addHandler(handler)

    for name, quiet_level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(quiet_level)

    return logging.getLogger("heartbeat")


logger = setup_logging()
