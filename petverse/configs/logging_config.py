"""
Logging configuration for the PETVERSE API.

Call setup_logging() once at application startup.
"""

import logging
import logging.config
import sys
from typing import Dict, Any


def get_logging_config(log_level: str = "INFO") -> Dict[str, Any]:
    """
    Build the dictConfig for the application.

    Args:
        log_level: Level for the petverse loggers (DEBUG, INFO, WARNING, ERROR)

    Returns:
        Logging configuration dict
    """
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": log_level,
                "formatter": "default",
                "stream": sys.stdout,
            },
        },
        "loggers": {
            "petverse": {
                "level": log_level,
                "handlers": ["console"],
                "propagate": False,
            },
            # Third party loggers are noisy at INFO
            "pymongo": {"level": "WARNING"},
            "httpx": {"level": "WARNING"},
        },
        "root": {
            "level": "WARNING",
            "handlers": ["console"],
        },
    }


def setup_logging(log_level: str = "INFO") -> None:
    logging.config.dictConfig(get_logging_config(log_level))
    logging.getLogger(__name__).debug(f"Logging configured at level {log_level}")
