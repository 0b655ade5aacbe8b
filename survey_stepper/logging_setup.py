"""Central logging configuration for the survey stepper service.

Applies a root stdout handler so all module loggers emit without per-module
setup. Routes uvicorn loggers to the same handler and avoids duplicate
handlers on reloads.
"""
from __future__ import annotations

import logging
import os
from logging.config import dictConfig


def _level() -> str:
    level = (os.environ.get("LOG_LEVEL") or "INFO").strip().upper()
    return level if level in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"} else "INFO"


def _dict_config(level: str) -> dict:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s %(levelname)s:%(name)s:%(message)s",
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "default",
                "stream": "ext://sys.stdout",
            }
        },
        "root": {"level": level, "handlers": ["console"]},
        "loggers": {
            "uvicorn": {"level": level, "handlers": ["console"], "propagate": False},
            "uvicorn.error": {"level": level, "handlers": ["console"], "propagate": False},
            "uvicorn.access": {"level": level, "handlers": ["console"], "propagate": False},
        },
    }


def configure_logging() -> None:
    """Configure application-wide logging once.

    If the root logger already has handlers, return to prevent duplicate output
    (important under reloaders and test runners).
    """
    root = logging.getLogger()
    if root.handlers:
        return
    dictConfig(_dict_config(_level()))
