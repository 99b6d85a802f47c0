from __future__ import annotations

import logging
from logging.config import dictConfig
from typing import Any, Iterable, Sequence

from settings import get_settings

_DEFAULT_EXTRA_KEYS = (
    "spreadsheet_id",
    "action",
    "upload_name",
    "row_count",
    "row_index",
    "field",
    "reason",
    "status_code",
    "elapsed_ms",
)

# Chatty third-party loggers kept at WARNING unless the root level is DEBUG.
_QUIET_LOGGERS = ("httpx", "httpcore", "multipart")

_configured = False


class ContextualFormatter(logging.Formatter):
    """Append ``key=value`` pairs for known ``extra`` attributes to each line."""

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        style: str = "%",
        extra_keys: Iterable[str] | None = None,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt, style=style)
        self._extra_keys: Sequence[str] = tuple(extra_keys or _DEFAULT_EXTRA_KEYS)

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context_parts: list[str] = []
        for key in self._extra_keys:
            value = getattr(record, key, None)
            if value is None:
                continue
            context_parts.append(f"{key}={_render_value(value)}")
        if context_parts:
            return f"{message} | {' '.join(context_parts)}"
        return message


def _render_value(value: Any) -> str:
    text = str(value)
    if not text or any(char.isspace() for char in text):
        return repr(text)
    return text


def configure_logging(level: str | int | None = None) -> None:
    """Configure application-wide logging with contextual formatting."""
    global _configured
    if _configured:
        return

    settings = get_settings()
    log_level = level if level is not None else settings.log_level
    quiet_level = "DEBUG" if str(log_level).upper() == "DEBUG" else "WARNING"

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "contextual": {
                    "()": "logging_config.ContextualFormatter",
                    "fmt": "%(asctime)sZ | %(levelname)s | %(name)s | %(message)s",
                    "datefmt": "%Y-%m-%dT%H:%M:%S",
                    "style": "%",
                    "extra_keys": list(_DEFAULT_EXTRA_KEYS),
                }
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "level": log_level,
                    "formatter": "contextual",
                }
            },
            "loggers": {name: {"level": quiet_level} for name in _QUIET_LOGGERS},
            "root": {"handlers": ["default"], "level": log_level},
        }
    )

    _configured = True
