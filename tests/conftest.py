from __future__ import annotations

import zipfile
from io import BytesIO
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

import pytest
from openpyxl import Workbook

from settings import get_settings

DEFAULT_HEADER = ("Unidade", "Leitura Anterior", "Leitura Atual", "Area Comum")


def build_workbook(rows: Iterable[Sequence[Any]], header: Sequence[Any] | None = DEFAULT_HEADER) -> bytes:
    """Serialize ``rows`` under ``header`` into .xlsx bytes."""
    workbook = Workbook()
    sheet = workbook.active
    if header is not None:
        sheet.append(list(header))
    for row in rows:
        sheet.append(list(row))
    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def make_workbook() -> Callable[..., bytes]:
    return build_workbook


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch) -> Iterable[None]:
    monkeypatch.delenv("REPORT_API_URL", raising=False)
    monkeypatch.delenv("REPORT_API_TIMEOUT", raising=False)
    monkeypatch.delenv("SPREADSHEET_EXTENSIONS", raising=False)
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class StubReportClient:
    """Stands in for :class:`ReportClient`; records payloads and replays canned answers."""

    def __init__(self, *_args: Any, **_kwargs: Any) -> None:
        from app.schemas import Condominium, DownloadLinks, PreviewResult

        self.configured = True
        self.closed = False
        self.last_message: Optional[str] = None
        self.preview_payloads: List[Dict[str, Any]] = []
        self.process_payloads: List[Dict[str, Any]] = []
        self.preview_error: Optional[Exception] = None
        self.process_error: Optional[Exception] = None
        self.list_error: Optional[Exception] = None
        self.condominiums = [Condominium(id="sheet-1", name="Ed. Aurora")]
        self.preview_result = PreviewResult.model_validate(
            {
                "global": "<h1>Global</h1>",
                "individuals": [{"unidade": "101", "html": "<p>101</p>"}],
            }
        )
        self.links = DownloadLinks(
            globalPdfUrl="https://files.example.test/global.pdf",
            individualZipUrl="https://files.example.test/units.zip",
        )

    def list_condominiums(self):
        if self.list_error is not None:
            raise self.list_error
        return self.condominiums

    def preview(self, payload: Dict[str, Any]):
        self.preview_payloads.append(payload)
        if self.preview_error is not None:
            raise self.preview_error
        return self.preview_result

    def process(self, payload: Dict[str, Any]):
        self.process_payloads.append(payload)
        if self.process_error is not None:
            raise self.process_error
        self.last_message = "Reports generated."
        return self.links

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def stub_client() -> StubReportClient:
    return StubReportClient()


def tear_first_sheet(content: bytes) -> bytes:
    """Re-zip ``content`` with ``xl/worksheets/sheet1.xml`` cut in half."""
    source = zipfile.ZipFile(BytesIO(content))
    buffer = BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as target:
        for item in source.infolist():
            data = source.read(item.filename)
            if item.filename == "xl/worksheets/sheet1.xml":
                data = data[: len(data) // 2]
            target.writestr(item, data)
    source.close()
    return buffer.getvalue()


@pytest.fixture
def torn_workbook(make_workbook) -> bytes:
    return tear_first_sheet(make_workbook([["101", 10, 15, "nao"], ["102", 20, 18, "sim"]]))
