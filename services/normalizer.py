"""Conversion of raw spreadsheet records into :class:`Reading` rows.

Every function here is total: spreadsheet data is untrusted, so malformed
cells degrade to ``0`` / ``False`` / ``"N/A"`` instead of aborting an import.
"""

from __future__ import annotations

import math
import re
from numbers import Real
from typing import Any, Mapping

from models.readings import Reading

UNIT_KEY = "unidade"
PREVIOUS_KEY = "leitura_anterior"
CURRENT_KEY = "leitura_atual"
COMMON_AREA_KEY = "area_comum"

MISSING_UNIT = "N/A"
COMMON_AREA_TOKENS = frozenset({"true", "sim", "1", "s", "verdadeiro"})

_WHITESPACE_RUN = re.compile(r"\s+")
_LEADING_NUMBER = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


def normalize_key(key: Any) -> str:
    """``"  Leitura   Anterior "`` -> ``"leitura_anterior"``."""
    return _WHITESPACE_RUN.sub("_", str(key).strip().lower())


def cell_text(value: Any) -> str:
    """Render a cell value the way it reads in the sheet."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def parse_number(value: Any) -> float:
    """Parse a reading value, falling back to ``0.0`` for anything unusable.

    Text uses leading-number semantics: ``"12.5 m3"`` parses as ``12.5``.
    """
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, Real):
        try:
            number = float(value)
        except OverflowError:
            return 0.0
        return number if math.isfinite(number) else 0.0
    if value is None:
        return 0.0

    match = _LEADING_NUMBER.match(str(value).strip())
    if match is None:
        return 0.0
    try:
        number = float(match.group(0))
    except ValueError:
        return 0.0
    return number if math.isfinite(number) else 0.0


def is_numeric_text(value: Any) -> bool:
    """True when :func:`parse_number` reads ``value`` without falling back."""
    if isinstance(value, bool) or value is None:
        return False
    if isinstance(value, Real):
        return parse_number(value) != 0.0 or value == 0
    return _LEADING_NUMBER.match(str(value).strip()) is not None


def parse_common_area(value: Any) -> bool:
    return cell_text(value).strip().lower() in COMMON_AREA_TOKENS


def _parse_unit(value: Any) -> str:
    label = cell_text(value).strip()
    return label or MISSING_UNIT


def normalize_row(raw: Mapping[Any, Any]) -> Reading:
    """Build a :class:`Reading` from one record keyed by arbitrary headers."""
    row = {normalize_key(key): value for key, value in raw.items()}
    return Reading(
        unit=_parse_unit(row.get(UNIT_KEY)),
        previous_reading=parse_number(row.get(PREVIOUS_KEY)),
        current_reading=parse_number(row.get(CURRENT_KEY)),
        is_common_area=parse_common_area(row.get(COMMON_AREA_KEY)),
    )
