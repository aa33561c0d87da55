"""Process-wide logging setup, applied once from the app lifespan."""

import logging
import logging.config

from config.settings import settings

_CONFIGURED = False


def configure_logging() -> None:
    global _CONFIGURED  # noqa: PLW0603
    if _CONFIGURED:
        return

    root_level = _coerce_log_level(settings.LOG_LEVEL)
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "plain": {
                    "class": "logging.Formatter",
                    "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
                },
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "formatter": "plain",
                },
            },
            "root": {"level": root_level, "handlers": ["default"]},
            "loggers": {
                "httpx": {"level": max(root_level, logging.WARNING)},
                "httpcore": {"level": max(root_level, logging.WARNING)},
                "sqlalchemy.engine": {
                    "level": logging.INFO if settings.DEBUG else logging.WARNING
                },
                "uvicorn.access": {"level": max(root_level, logging.WARNING)},
            },
        }
    )
    _CONFIGURED = True


def _coerce_log_level(value: str | int, default: int = logging.INFO) -> int:
    if isinstance(value, int):
        return value
    level = logging.getLevelName(value.strip().upper())
    return level if isinstance(level, int) else default
