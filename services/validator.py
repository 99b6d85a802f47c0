"""Submission gate shared by the preview and process actions."""

from __future__ import annotations

from typing import Optional

from models.readings import FormFields
from services.store import ReadingStore


def _is_filled(value: Optional[str]) -> bool:
    return isinstance(value, str) and bool(value.strip())


def can_submit(store: ReadingStore, fields: FormFields) -> bool:
    """Readings imported and both period dates plus the energy tariff filled in.

    Values are not range- or order-checked; the report service owns that.
    """
    return (
        store.size() > 0
        and _is_filled(fields.period_from)
        and _is_filled(fields.period_to)
        and _is_filled(fields.energy_tariff)
    )
