from __future__ import annotations

import logging
from logging.config import dictConfig

from clientdesk.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def _resolve_level() -> str:
    explicit = str(settings.LOG_LEVEL or "").strip().upper()
    if explicit in logging.getLevelNamesMapping():
        return explicit
    return "DEBUG" if settings.is_development else "INFO"


def configure_logging() -> None:
    level = _resolve_level()
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {"format": LOG_FORMAT, "datefmt": LOG_DATEFMT},
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                },
            },
            "loggers": {
                "clientdesk": {"handlers": ["console"], "level": level, "propagate": False},
            },
        }
    )
