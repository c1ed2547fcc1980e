"""
Logging setup for the Job Portal API.

Everything logs under the "job_portal" namespace through get_logger. Output
goes to stdout and, unless disabled, to a daily rotating log plus an
errors-only log in LOG_DIR.
"""
import functools
import logging
import logging.config
import os
import time
from datetime import date
from pathlib import Path
from typing import Dict, Any, Optional

LOGGER_NAMESPACE = "job_portal"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5

FORMATS = {
    "simple": "%(levelname)s %(name)s: %(message)s",
    "detailed": "%(asctime)s %(levelname)-8s [%(name)s:%(funcName)s:%(lineno)d] %(message)s",
    "json": '{"time": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "line": %(lineno)d, "message": "%(message)s"}'
}

# ENVIRONMENT -> keyword arguments for setup_logging; level None means LOG_LEVEL
ENVIRONMENT_PRESETS: Dict[str, Dict[str, Any]] = {
    "production": {"level": None, "format_style": "json"},
    "development": {"level": "DEBUG", "format_style": "detailed"},
    "testing": {"level": "WARNING", "format_style": "simple", "enable_file": False},
}


def _rotating_file(path: Path, level: str) -> Dict[str, Any]:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "level": level,
        "formatter": "main",
        "filename": str(path),
        "maxBytes": LOG_FILE_MAX_BYTES,
        "backupCount": LOG_FILE_BACKUPS,
        "encoding": "utf8"
    }


def setup_logging(
    level: str = "INFO",
    log_dir: str = "logs",
    enable_console: bool = True,
    enable_file: bool = True,
    format_style: str = "detailed"
) -> None:
    """
    Apply the dictConfig for the whole process.

    Args:
        level: root level name
        log_dir: where the rotating files are written
        enable_console: log to stdout
        enable_file: write job_portal_<day>.log and job_portal_errors_<day>.log
        format_style: one of FORMATS
    """
    handlers: Dict[str, Any] = {}

    if enable_console:
        handlers["console"] = {
            "class": "logging.StreamHandler",
            "level": level,
            "formatter": "main",
            "stream": "ext://sys.stdout"
        }

    if enable_file:
        directory = Path(log_dir)
        directory.mkdir(parents=True, exist_ok=True)
        day = date.today().strftime("%Y%m%d")
        handlers["file"] = _rotating_file(directory / f"job_portal_{day}.log", level)
        handlers["error_file"] = _rotating_file(directory / f"job_portal_errors_{day}.log", "ERROR")

    # uvicorn keeps its own loggers; they share the handlers but skip the errors file
    server_handlers = [name for name in handlers if name != "error_file"]

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "main": {"format": FORMATS.get(format_style, FORMATS["detailed"]), "datefmt": "%Y-%m-%d %H:%M:%S"}
        },
        "handlers": handlers,
        "root": {"level": level, "handlers": list(handlers)},
        "loggers": {
            "uvicorn": {"level": "INFO", "handlers": server_handlers, "propagate": False},
            "uvicorn.access": {"level": "INFO", "handlers": server_handlers, "propagate": False},
            "pymongo": {"level": "WARNING"},
        }
    })

    get_logger("logging").info(f"Logging ready: level={level} console={enable_console} file={enable_file}")


def configure_for_environment():
    """Pick a preset from ENVIRONMENT (default development); LOG_LEVEL overrides the production level"""
    environment = os.getenv("ENVIRONMENT", "development").lower()
    preset = dict(ENVIRONMENT_PRESETS.get(environment, {"level": None}))
    if preset.get("level") is None:
        preset["level"] = os.getenv("LOG_LEVEL", "INFO").upper()
    setup_logging(log_dir=os.getenv("LOG_DIR", "logs"), **preset)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")


class PerformanceMonitor:
    """
    Time a block and log it: info when fast, warning past threshold_ms,
    error if the block raised. The exception is never suppressed.
    """

    def __init__(self, operation_name: str, logger: Optional[logging.Logger] = None, threshold_ms: float = 1000):
        self.operation_name = operation_name
        self.logger = logger or get_logger("performance")
        self.threshold_ms = threshold_ms
        self.elapsed_ms = 0.0
        self._started = 0.0

    def __enter__(self):
        self._started = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.elapsed_ms = (time.perf_counter() - self._started) * 1000
        timing = f"{self.operation_name} took {self.elapsed_ms:.1f}ms"

        if exc_type is not None:
            self.logger.error(f"{timing} and failed: {exc_val}")
        elif self.elapsed_ms > self.threshold_ms:
            self.logger.warning(f"{timing}, over the {self.threshold_ms:.0f}ms budget")
        else:
            self.logger.debug(timing)
        return False


def log_api_call(operation: str):
    """Decorate an async route so each call is timed under the api.<module> logger"""
    def decorator(func):
        logger = get_logger(f"api.{func.__module__}")

        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            with PerformanceMonitor(operation, logger, threshold_ms=5000):
                return await func(*args, **kwargs)

        return wrapper
    return decorator
