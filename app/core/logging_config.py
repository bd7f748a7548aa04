# app/core/logging_config.py
"""
Logging configuration for the compensation service.

JSON logs to rotating files in production, coloured console output plus a
plain rotating file in development.
"""

import json
import logging
import logging.handlers
import os
import sys
from datetime import datetime, timezone
from pathlib import Path

# Record attributes copied into JSON output when present
_CONTEXT_FIELDS = ("event_id", "holiday_id", "month")


def is_production() -> bool:
    return os.getenv("PRODUCTION", "false").lower() == "true"


def log_dir() -> Path:
    return Path(os.getenv("LOG_DIR", "logs"))


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Outputs one JSON object per line for log aggregation tools.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra_fields"):
            log_data.update(record.extra_fields)

        for name in _CONTEXT_FIELDS:
            if hasattr(record, name):
                log_data[name] = getattr(record, name)

        return json.dumps(log_data, ensure_ascii=False, default=str)


class ColoredFormatter(logging.Formatter):
    """
    Colored formatter for console output in development.
    """

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        original = record.levelname
        if original in self.COLORS:
            record.levelname = f"{self.COLORS[original]}{original}{self.RESET}"
        try:
            return super().format(record)
        finally:
            # Other handlers share the record
            record.levelname = original


def _rotating_handler(path: Path, level: int, max_bytes: int, backups: int) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(path, maxBytes=max_bytes, backupCount=backups, encoding="utf-8")
    handler.setLevel(level)
    return handler


def setup_logging() -> None:
    """
    Configure the root logger.

    In production:
    - JSON format
    - app.log (INFO) and error.log (ERROR), both rotating
    - WARNING and above on stdout

    In development:
    - Colored console output at DEBUG
    - Plain rotating app.log
    """
    production = is_production()
    directory = log_dir()
    directory.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.INFO if production else logging.DEBUG)
    root_logger.handlers.clear()

    if production:
        app_handler = _rotating_handler(directory / "app.log", logging.INFO, 10_000_000, 5)
        app_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(app_handler)

        error_handler = _rotating_handler(directory / "error.log", logging.ERROR, 10_000_000, 10)
        error_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(error_handler)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.WARNING)
        console_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(console_handler)
    else:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.DEBUG)
        console_handler.setFormatter(
            ColoredFormatter(fmt="%(levelname)-8s %(asctime)s [%(name)s] %(message)s", datefmt="%Y-%m-%d %H:%M:%S")
        )
        root_logger.addHandler(console_handler)

        file_handler = _rotating_handler(directory / "app.log", logging.DEBUG, 5_000_000, 2)
        file_handler.setFormatter(logging.Formatter("%(levelname)s %(asctime)s [%(name)s:%(lineno)d] %(message)s"))
        root_logger.addHandler(file_handler)

    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("uvicorn.access").setLevel(logging.INFO)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        "Logging configured (production=%s)",
        production,
        extra={"extra_fields": {"log_dir": str(directory.absolute()), "production": production}},
    )


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
