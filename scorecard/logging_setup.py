"""Central logging configuration for the application.

Applies a root stdout handler so all module loggers emit INFO-level logs
without per-module setup. Keeps uvicorn loggers visible and avoids duplicate
handlers on reloads. ``SCORECARD_LOG_LEVEL`` overrides the root level.
"""
from __future__ import annotations
import copy
import logging
import os
from logging.config import dictConfig

_DICT_CONFIG = {
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
            "level": "DEBUG",
            "formatter": "default",
            "stream": "ext://sys.stdout",
        }
    },
    "root": {"level": "INFO", "handlers": ["console"]},
    "loggers": {
        "uvicorn": {"level": "INFO", "handlers": ["console"], "propagate": False},
        "uvicorn.error": {"level": "INFO", "handlers": ["console"], "propagate": False},
        "uvicorn.access": {"level": "INFO", "handlers": ["console"], "propagate": False},
        # Timer arm/fire chatter is DEBUG only
        "scorecard.logic.timers": {"level": "INFO"},
    },
}

def configure_logging() -> None:
    """Configure application-wide logging once.

    If the root logger already has handlers, return to prevent duplicate output
    (important under reloaders/watchers and pytest's log capture).
    """
    root = logging.getLogger()
    if root.handlers:
        return
    config = copy.deepcopy(_DICT_CONFIG)
    level = (os.environ.get("SCORECARD_LOG_LEVEL") or "").strip().upper()
    if level in {"DEBUG", "INFO", "WARNING", "ERROR"}:
        config["root"]["level"] = level
        if level == "DEBUG":
            config["loggers"]["scorecard.logic.timers"]["level"] = "DEBUG"
    dictConfig(config)
