"""HTTP client for the remote report service."""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from app.schemas import Condominium, DownloadLinks, PreviewResult, RemoteResponse
from models.readings import FormFields
from services.errors import ApiNotConfiguredError, RemoteError, TransportError
from services.store import ReadingStore

logger = logging.getLogger(__name__)

PREVIEW_ACTION = "getPreviewHtml"
PROCESS_ACTION = "processReport"


def normalize_decimal(value: Optional[str]) -> str:
    """``"0,85"`` -> ``"0.85"``; the service only understands dot separators."""
    if value is None:
        return ""
    return value.strip().replace(",", ".")


def build_payload(
    action: str,
    spreadsheet_id: Optional[str],
    store: ReadingStore,
    fields: FormFields,
    logo_content: Optional[str] = None,
) -> Dict[str, Any]:
    return {
        "action": action,
        "spreadsheetId": spreadsheet_id,
        "medicoes": store.to_payload(),
        "logoContent": logo_content,
        "periodoDe": fields.period_from or "",
        "periodoAte": fields.period_to or "",
        "proximaLeitura": fields.next_reading_date or "",
        "tarifaEnergia": normalize_decimal(fields.energy_tariff),
        "taxaGestao": normalize_decimal(fields.management_fee),
        "rateioAreaComum": bool(fields.common_area_apportionment),
    }


class ReportClient:
    """Minimal HTTP client for the report service.

    The service exposes a single URL: ``GET`` lists condominiums and ``POST``
    runs the action named in the JSON payload. Every answer is an envelope
    with a ``success`` flag; failures are raised as :class:`RemoteError`
    (service said no) or :class:`TransportError` (service unreachable or
    answer unreadable).
    """

    def __init__(
        self,
        api_url: str,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._api_url = api_url
        self._client = httpx.Client(timeout=timeout, follow_redirects=True, transport=transport)
        self.last_message: Optional[str] = None

    @property
    def configured(self) -> bool:
        return bool(self._api_url)

    def close(self) -> None:
        self._client.close()

    def list_condominiums(self) -> List[Condominium]:
        envelope = self._send("GET", action="listCondominiums")
        if envelope.data is None:
            raise TransportError("Report service answered without a condominium list.")
        return envelope.data

    def preview(self, payload: Dict[str, Any]) -> PreviewResult:
        envelope = self._send("POST", action=PREVIEW_ACTION, payload=payload)
        if envelope.previews is None:
            raise TransportError("Report service answered without preview documents.")
        return envelope.previews

    def process(self, payload: Dict[str, Any]) -> DownloadLinks:
        envelope = self._send("POST", action=PROCESS_ACTION, payload=payload)
        if envelope.download_links is None:
            raise TransportError("Report service answered without download links.")
        return envelope.download_links

    def _send(
        self,
        method: str,
        action: str,
        payload: Optional[Dict[str, Any]] = None,
    ) -> RemoteResponse:
        if not self._api_url:
            raise ApiNotConfiguredError("The report service URL is not configured.")

        request_kwargs: Dict[str, Any] = {}
        log_extra: Dict[str, Any] = {"action": action}
        if payload is not None:
            request_kwargs["json"] = {**payload, "action": action}
            log_extra["spreadsheet_id"] = payload.get("spreadsheetId")
            log_extra["row_count"] = len(payload.get("medicoes") or [])

        started = time.perf_counter()
        try:
            response = self._client.request(method, self._api_url, **request_kwargs)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning(
                "Report service request failed",
                extra={**log_extra, "reason": type(exc).__name__},
            )
            raise TransportError(f"Could not reach the report service: {exc}") from exc

        log_extra["status_code"] = response.status_code
        log_extra["elapsed_ms"] = int((time.perf_counter() - started) * 1000)
        envelope = self._decode(response, log_extra)
        self.last_message = envelope.message
        logger.info("Report service request succeeded", extra=log_extra)
        return envelope

    @staticmethod
    def _decode(response: httpx.Response, log_extra: Dict[str, Any]) -> RemoteResponse:
        try:
            envelope = RemoteResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            logger.warning(
                "Report service answer could not be decoded",
                extra={**log_extra, "reason": type(exc).__name__},
            )
            raise TransportError(
                f"Report service answered with status {response.status_code} "
                "and an unreadable body."
            ) from exc

        if not envelope.success:
            message = envelope.message
            if message is None:
                message = "The report service reported a failure."
            logger.warning(
                "Report service reported a failure",
                extra={**log_extra, "reason": message},
            )
            raise RemoteError(message)

        if response.is_error:
            raise TransportError(f"Report service answered with status {response.status_code}.")
        return envelope
