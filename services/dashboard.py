"""Dashboard orchestration: owns the session state and handles user actions."""

from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from functools import lru_cache
from threading import Lock
from typing import Any, Callable, Dict, List, Optional

from app.schemas import Condominium, DownloadLinks
from models.readings import FormFields, Notification, NotificationLevel
from services.errors import (
    ApiNotConfiguredError,
    ImportFormatError,
    ReadingIndexError,
    RemoteError,
    SpreadsheetParseError,
    TransportError,
)
from services.presenter import PreviewPresenter
from services.report_client import PREVIEW_ACTION, PROCESS_ACTION, ReportClient, build_payload
from services.spreadsheet import encode_logo, read_spreadsheet
from services.store import ReadingStore
from services.validator import can_submit
from settings import get_settings

logger = logging.getLogger(__name__)

CONNECTION_FAILED_MESSAGE = (
    "Could not connect to the report service. Check your connection and try again."
)
NOT_CONFIGURED_MESSAGE = "The report service URL is not configured (set REPORT_API_URL)."


class DashboardAction(str, Enum):
    condominium_selected = "condominium-selected"
    back_to_selector = "back-to-selector"
    spreadsheet_imported = "spreadsheet-imported"
    logo_selected = "logo-selected"
    fields_changed = "fields-changed"
    cell_edited = "cell-edited"
    checkbox_toggled = "checkbox-toggled"
    preview_requested = "preview-requested"
    process_requested = "process-requested"


@dataclass
class CondominiumListing:
    """Outcome of loading the selector screen."""

    condominiums: List[Condominium] = field(default_factory=list)
    configured: bool = True
    error: Optional[str] = None


def default_period(today: date) -> tuple[str, str]:
    """First and last day of ``today``'s month as ISO dates."""
    last_day = calendar.monthrange(today.year, today.month)[1]
    return (
        today.replace(day=1).isoformat(),
        today.replace(day=last_day).isoformat(),
    )


class DashboardSession:
    """Single-user dashboard state plus the handlers that mutate it.

    Every handler recovers its own errors and reports them as
    :class:`Notification` entries, so :meth:`dispatch` only raises for an
    unknown action name. Preview and process each hold a busy lock while their
    remote call is in flight; an overlapping request of the same kind is
    refused.
    """

    def __init__(
        self,
        client: ReportClient,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.client = client
        self.store = ReadingStore()
        self.presenter = PreviewPresenter()
        self.fields = FormFields()
        self.spreadsheet_id: Optional[str] = None
        self.condominium_name: Optional[str] = None
        self.spreadsheet_filename: Optional[str] = None
        self.logo_filename: Optional[str] = None
        self.logo_content: Optional[str] = None
        self.download_links: Optional[DownloadLinks] = None
        self._today = today
        self._pending: List[Notification] = []
        self._busy_locks = {PREVIEW_ACTION: Lock(), PROCESS_ACTION: Lock()}
        self._handlers: Dict[DashboardAction, Callable[..., None]] = {
            DashboardAction.condominium_selected: self.select_condominium,
            DashboardAction.back_to_selector: self.back_to_selector,
            DashboardAction.spreadsheet_imported: self.import_spreadsheet,
            DashboardAction.logo_selected: self.select_logo,
            DashboardAction.fields_changed: self.update_fields,
            DashboardAction.cell_edited: self.edit_cell,
            DashboardAction.checkbox_toggled: self.toggle_common_area,
            DashboardAction.preview_requested: self.request_preview,
            DashboardAction.process_requested: self.request_process,
        }

    # -- state queries -------------------------------------------------

    @property
    def can_submit(self) -> bool:
        return can_submit(self.store, self.fields)

    def is_busy(self, action: str) -> bool:
        return self._busy_locks[action].locked()

    def pop_notifications(self) -> List[Notification]:
        pending, self._pending = self._pending, []
        return pending

    def load_condominiums(self) -> CondominiumListing:
        if not self.client.configured:
            return CondominiumListing(configured=False, error=NOT_CONFIGURED_MESSAGE)
        try:
            condominiums = self.client.list_condominiums()
        except (TransportError, RemoteError) as exc:
            return CondominiumListing(error=str(exc))
        return CondominiumListing(condominiums=condominiums)

    # -- dispatch --------------------------------------------------------

    def dispatch(self, action: DashboardAction | str, **payload: Any) -> List[Notification]:
        """Run the handler for ``action``; returns the notifications it produced."""
        handler = self._handlers[DashboardAction(action)]
        start = len(self._pending)
        handler(**payload)
        return list(self._pending[start:])

    # -- handlers --------------------------------------------------------

    def select_condominium(self, spreadsheet_id: str, name: Optional[str] = None) -> None:
        self.spreadsheet_id = spreadsheet_id
        self.condominium_name = name or spreadsheet_id
        self.reset()
        logger.info("Condominium selected", extra={"spreadsheet_id": spreadsheet_id})

    def back_to_selector(self) -> None:
        self.reset()
        self.spreadsheet_id = None
        self.condominium_name = None

    def reset(self) -> None:
        self.store.clear()
        self.presenter.clear()
        self.spreadsheet_filename = None
        self.logo_filename = None
        self.logo_content = None
        self.download_links = None
        period_from, period_to = default_period(self._today())
        self.fields = FormFields(period_from=period_from, period_to=period_to)

    def import_spreadsheet(self, filename: str, content: bytes) -> None:
        try:
            records = read_spreadsheet(filename, content)
        except ImportFormatError:
            extensions = ", ".join(get_settings().spreadsheet_extensions)
            self._notify(NotificationLevel.error, f"Invalid file format. Use {extensions}")
            return
        except SpreadsheetParseError:
            self._notify(NotificationLevel.error, "Could not read the spreadsheet file.")
            return

        self.store.replace_all(records)
        self.spreadsheet_filename = filename
        if not records:
            self._notify(NotificationLevel.warning, "The spreadsheet is empty.")
            return
        self._notify(
            NotificationLevel.success,
            f'File "{filename}" loaded with {self.store.size()} readings.',
        )

    def select_logo(self, filename: Optional[str], content: bytes) -> None:
        encoded = encode_logo(content)
        if encoded is None:
            self.logo_filename = None
            self.logo_content = None
            return
        self.logo_filename = filename
        self.logo_content = encoded
        self._notify(NotificationLevel.success, "Logo loaded.")

    def update_fields(self, **values: Any) -> None:
        unknown = sorted(name for name in values if not hasattr(self.fields, name))
        if unknown:
            self._notify(NotificationLevel.error, f"Unknown form field(s): {', '.join(unknown)}.")
            return
        for name, value in values.items():
            setattr(self.fields, name, value)

    def edit_cell(self, index: int, field: str, value: Any) -> None:
        try:
            self.store.set_field(index, field, value)
        except (ReadingIndexError, ValueError) as exc:
            self._notify(NotificationLevel.error, str(exc))

    def toggle_common_area(self, index: int, value: bool) -> None:
        try:
            self.store.set_common_area(index, value)
        except ReadingIndexError as exc:
            self._notify(NotificationLevel.error, str(exc))

    def request_preview(self) -> None:
        if not self.can_submit:
            self._notify(
                NotificationLevel.warning,
                "Fill in all fields and import a spreadsheet to preview the reports.",
            )
            return
        lock = self._busy_locks[PREVIEW_ACTION]
        if not lock.acquire(blocking=False):
            self._notify(NotificationLevel.warning, "A preview is already being generated.")
            return
        try:
            payload = self._payload(PREVIEW_ACTION)
            try:
                result = self.client.preview(payload)
            except (TransportError, RemoteError) as exc:
                self._notify_failure("Error generating preview", exc)
                return
            self.presenter.replace(result)
        finally:
            lock.release()

    def request_process(self) -> None:
        if not self.can_submit:
            self._notify(
                NotificationLevel.warning,
                "Fill in all fields and import a spreadsheet to generate the reports.",
            )
            return
        lock = self._busy_locks[PROCESS_ACTION]
        if not lock.acquire(blocking=False):
            self._notify(NotificationLevel.warning, "Reports are already being generated.")
            return
        try:
            payload = self._payload(PROCESS_ACTION)
            try:
                links = self.client.process(payload)
            except (TransportError, RemoteError) as exc:
                self._notify_failure("Error", exc)
                return
            self.download_links = links
            self._notify(NotificationLevel.success, self.client.last_message or "Reports ready.")
        finally:
            lock.release()

    # -- helpers ---------------------------------------------------------

    def _payload(self, action: str) -> Dict[str, Any]:
        return build_payload(
            action,
            self.spreadsheet_id,
            self.store,
            self.fields,
            self.logo_content,
        )

    def _notify(self, level: NotificationLevel, message: str) -> None:
        self._pending.append(Notification(level=level, message=message))

    def _notify_failure(self, prefix: str, exc: Exception) -> None:
        if isinstance(exc, RemoteError):
            self._notify(NotificationLevel.error, f"{prefix}: {exc.message}")
        elif isinstance(exc, ApiNotConfiguredError):
            self._notify(NotificationLevel.error, NOT_CONFIGURED_MESSAGE)
        else:
            self._notify(NotificationLevel.error, CONNECTION_FAILED_MESSAGE)


@lru_cache
def build_default_session() -> DashboardSession:
    """Factory that wires the session with a client for the configured service."""
    settings = get_settings()
    client = ReportClient(settings.api_url, timeout=settings.api_timeout)
    return DashboardSession(client=client)
