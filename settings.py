from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Tuple


_API_URL_ENV = "REPORT_API_URL"
_API_TIMEOUT_ENV = "REPORT_API_TIMEOUT"
_EXTENSIONS_ENV = "SPREADSHEET_EXTENSIONS"
_LOG_LEVEL_ENV = "LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    api_url: str
    api_timeout: Optional[float]
    spreadsheet_extensions: Tuple[str, ...]
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_timeout(default: Optional[float]) -> Optional[float]:
    value = os.getenv(_API_TIMEOUT_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_extensions(default: Tuple[str, ...]) -> Tuple[str, ...]:
    value = os.getenv(_EXTENSIONS_ENV)
    if value is None:
        return default
    extensions = []
    for part in value.split(","):
        candidate = part.strip().lower()
        if not candidate:
            continue
        if not candidate.startswith("."):
            candidate = f".{candidate}"
        extensions.append(candidate)
    return tuple(extensions) or default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        api_url=_read_str_env(_API_URL_ENV, ""),
        api_timeout=_read_timeout(None),
        spreadsheet_extensions=_read_extensions((".xlsx",)),
        log_level=_read_log_level("INFO"),
    )
