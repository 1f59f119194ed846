"""
Logging Configuration
====================

Structured logging configuration with environment-specific settings.
Uses structlog for structured logging with JSON output in production.
Request-scoped values (such as the request ID) are carried through
structlog context variables and appear on every event of that request.
"""

import logging
import logging.config
import sys
from typing import Dict, Any, List, TYPE_CHECKING
import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from .settings import get_settings

if TYPE_CHECKING:
    from .settings import Settings

LOG_FILE_MAX_BYTES = 10485760  # 10MB
LOG_FILE_BACKUPS = 5


def add_service_info(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Tag events with the service name and environment."""
    settings = get_settings()
    event_dict.setdefault("service", settings.app_name)
    event_dict.setdefault("environment", settings.environment)
    return event_dict


def setup_logging() -> None:
    """Setup application logging configuration."""
    settings = get_settings()

    processors: List[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.environment == "production":
        processors.extend(
            [
                structlog.processors.TimeStamper(fmt="iso", utc=True),
                add_service_info,
                structlog.processors.JSONRenderer(),
            ]
        )
    else:
        # No ANSI colors in test output
        processors.append(structlog.dev.ConsoleRenderer(colors=settings.environment != "testing"))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.config.dictConfig(get_logging_config(settings))


def _rotating_file_handler(settings: "Settings", filename: str, level: str) -> Dict[str, Any]:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "level": level,
        "formatter": "detailed",
        "filename": str(settings.storage_path / "logs" / filename),
        "maxBytes": LOG_FILE_MAX_BYTES,
        "backupCount": LOG_FILE_BACKUPS,
    }


def get_logging_config(settings: "Settings") -> Dict[str, Any]:
    """
    Get logging configuration dictionary.

    Test runs log to the console only; other environments also write
    rotating ``app.log`` and ``error.log`` files under ``storage_path/logs``.
    """
    handlers: Dict[str, Any] = {
        "console": {
            "class": "logging.StreamHandler",
            "level": settings.log_level,
            "formatter": "json" if settings.environment == "production" else "standard",
            "stream": sys.stdout,
        },
    }
    if settings.environment != "testing":
        handlers["file"] = _rotating_file_handler(settings, "app.log", settings.log_level)
        handlers["error_file"] = _rotating_file_handler(settings, "error.log", "ERROR")

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "detailed": {
                "format": "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d: %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "json": {
                "()": "pythonjsonlogger.jsonlogger.JsonFormatter",
                "format": "%(asctime)s %(name)s %(levelname)s %(message)s",
            },
        },
        "handlers": handlers,
        "loggers": {
            "": {  # Root logger
                "level": settings.log_level,
                "handlers": list(handlers),
                "propagate": False,
            },
            "uvicorn": {
                "level": "INFO",
                "handlers": ["console"],
                "propagate": False,
            },
            "uvicorn.access": {
                "level": "WARNING" if settings.environment == "testing" else "INFO",
                "handlers": ["console"],
                "propagate": False,
            },
        },
    }


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


def bind_request_context(**values: Any) -> None:
    """Attach values to every log event emitted while handling the current request."""
    structlog.contextvars.bind_contextvars(**values)


def clear_request_context() -> None:
    """Drop request-scoped log values."""
    structlog.contextvars.clear_contextvars()


def ensure_log_directories() -> None:
    """Ensure log directories exist."""
    settings = get_settings()
    log_dir = settings.storage_path / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)


# Initialize logging on import
ensure_log_directories()
setup_logging()
