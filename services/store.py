"""Ordered, index-addressable collection of imported readings."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Mapping, Tuple

from models.readings import Reading
from services.errors import ReadingIndexError
from services.normalizer import is_numeric_text, normalize_row, parse_number

logger = logging.getLogger(__name__)

_EDITABLE_FIELDS = {
    "previous_reading": "previous_reading",
    "current_reading": "current_reading",
    "leitura_anterior": "previous_reading",
    "leitura_atual": "current_reading",
}


class ReadingStore:
    """Holds the readings of the current import in their original order.

    Edits mutate rows in place by position and never reorder them. Readers
    get copies from :meth:`get` and :meth:`all`, so changes must go through
    :meth:`set_field` and :meth:`set_common_area`.
    """

    def __init__(self) -> None:
        self._readings: List[Reading] = []

    def replace_all(self, rows: Iterable[Mapping[Any, Any]]) -> None:
        self._readings = [normalize_row(row) for row in rows]
        logger.info("Reading store replaced", extra={"row_count": len(self._readings)})

    def clear(self) -> None:
        self._readings = []

    def get(self, index: int) -> Reading:
        return replace(self._reading_at(index))

    def set_field(self, index: int, field: str, raw_text: Any) -> float:
        """Coerce ``raw_text`` and store it; returns the stored value."""
        attribute = _EDITABLE_FIELDS.get(field)
        if attribute is None:
            raise ValueError(f"Field {field!r} is not editable.")
        reading = self._reading_at(index)
        value = parse_number(raw_text)
        if not is_numeric_text(raw_text):
            logger.warning(
                "Edited value is not numeric, stored as 0",
                extra={"row_index": index, "field": attribute, "reason": repr(raw_text)},
            )
        setattr(reading, attribute, value)
        return value

    def set_common_area(self, index: int, value: bool) -> None:
        self._reading_at(index).is_common_area = value

    def size(self) -> int:
        return len(self._readings)

    def all(self) -> Tuple[Reading, ...]:
        return tuple(replace(reading) for reading in self._readings)

    def to_payload(self) -> List[Dict[str, Any]]:
        return [reading.to_payload() for reading in self._readings]

    def __len__(self) -> int:
        return len(self._readings)

    def _reading_at(self, index: int) -> Reading:
        if not 0 <= index < len(self._readings):
            raise ReadingIndexError(
                f"Reading index {index} is out of range for {len(self._readings)} rows."
            )
        return self._readings[index]
