"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


@dataclass(slots=True)
class Reading:
    """One row of meter data for a billing unit."""

    unit: str
    previous_reading: float
    current_reading: float
    is_common_area: bool = False

    @property
    def consumption(self) -> float:
        return self.current_reading - self.previous_reading

    @property
    def is_negative(self) -> bool:
        return self.consumption < 0

    def to_payload(self) -> Dict[str, Any]:
        """Serialize using the field names the report service expects."""
        return {
            "unidade": self.unit,
            "leitura_anterior": self.previous_reading,
            "leitura_atual": self.current_reading,
            "isCommonArea": self.is_common_area,
        }


@dataclass
class FormFields:
    """Values typed into the dashboard form, read at submission time."""

    period_from: Optional[str] = None
    period_to: Optional[str] = None
    next_reading_date: Optional[str] = None
    energy_tariff: Optional[str] = None
    management_fee: Optional[str] = None
    common_area_apportionment: bool = False


class NotificationLevel(str, Enum):
    info = "info"
    success = "success"
    warning = "warning"
    error = "error"


@dataclass(frozen=True)
class Notification:
    """A user-facing message produced while handling a dashboard action."""

    level: NotificationLevel
    message: str
