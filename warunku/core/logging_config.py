"""
Logging configuration.

Console output through the standard library ``logging`` module. Modules get
their logger with ``logging.getLogger(__name__)``; this module only installs
handlers and levels once at start-up.
"""
import logging.config

from warunku.core.config import settings


def get_logging_config(level: str | None = None) -> dict:
    """Build the ``dictConfig`` mapping for the API process."""
    log_level = (level or settings.LOG_LEVEL).upper()

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "verbose": {
                "format": "[{asctime}] {levelname} {name} {message}",
                "style": "{",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "verbose",
                "stream": "ext://sys.stdout",
            },
        },
        "loggers": {
            "warunku": {
                "handlers": ["console"],
                "level": log_level,
                "propagate": False,
            },
            # Motor/pymongo are chatty at DEBUG
            "pymongo": {
                "handlers": ["console"],
                "level": "WARNING",
                "propagate": False,
            },
        },
        "root": {
            "handlers": ["console"],
            "level": log_level,
        },
    }


def configure_logging(level: str | None = None) -> None:
    logging.config.dictConfig(get_logging_config(level))
