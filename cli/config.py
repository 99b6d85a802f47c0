from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

_API_URL_ENV = "REPORT_API_URL"
_TIMEOUT_ENV = "REPORT_API_TIMEOUT"


@dataclass(frozen=True)
class CLIConfig:
    api_url: str = ""
    timeout: Optional[float] = None


def _read_float(value: Optional[str], default: Optional[float]) -> Optional[float]:
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


def load_config(
    api_url: Optional[str] = None,
    timeout: Optional[float] = None,
) -> CLIConfig:
    url = api_url or os.getenv(_API_URL_ENV) or ""
    if timeout is None:
        timeout = _read_float(os.getenv(_TIMEOUT_ENV), None)
    elif timeout <= 0:
        timeout = None
    return CLIConfig(api_url=url.strip(), timeout=timeout)
