"""Reading uploaded workbooks and logo files."""

from __future__ import annotations

import base64
import logging
from io import BytesIO
from pathlib import PurePath
from typing import Any, Dict, Iterable, List, Optional
from zipfile import BadZipFile

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from services.errors import ImportFormatError, SpreadsheetParseError
from settings import get_settings

logger = logging.getLogger(__name__)


def check_spreadsheet_name(filename: str, extensions: Optional[Iterable[str]] = None) -> None:
    """Raise :class:`ImportFormatError` unless ``filename`` has an accepted extension."""
    accepted = tuple(extensions) if extensions is not None else get_settings().spreadsheet_extensions
    suffix = PurePath(filename or "").suffix.lower()
    if suffix not in accepted:
        raise ImportFormatError(
            f"Invalid file format for {filename!r}. Use {', '.join(accepted)}."
        )


def read_spreadsheet(
    filename: str,
    content: bytes,
    extensions: Optional[Iterable[str]] = None,
) -> List[Dict[str, Any]]:
    """Return the first worksheet as one dict per data row, keyed by header text.

    Blank header cells drop their column, empty cells are left out of the
    record and rows without any value are skipped.
    """
    check_spreadsheet_name(filename, extensions)

    # Read-only mode parses sheet XML lazily, inside iter_rows.
    workbook = None
    try:
        workbook = load_workbook(BytesIO(content), read_only=True, data_only=True)
        if not workbook.worksheets:
            raise SpreadsheetParseError(f"Workbook {filename!r} has no worksheets.")
        rows = workbook.worksheets[0].iter_rows(values_only=True)
        header = next(rows, None)
        records: List[Dict[str, Any]] = [] if header is None else _rows_to_records(header, rows)
    except (InvalidFileException, BadZipFile, KeyError, OSError, ValueError, SyntaxError) as exc:
        logger.warning(
            "Spreadsheet could not be read",
            extra={"upload_name": filename, "reason": type(exc).__name__},
        )
        raise SpreadsheetParseError(f"Could not read {filename!r} as a workbook.") from exc
    finally:
        if workbook is not None:
            workbook.close()

    logger.info("Spreadsheet read", extra={"upload_name": filename, "row_count": len(records)})
    return records


def _rows_to_records(header: Iterable[Any], rows: Iterable[Iterable[Any]]) -> List[Dict[str, Any]]:
    columns = [
        (position, str(name).strip())
        for position, name in enumerate(header)
        if name is not None and str(name).strip()
    ]
    records: List[Dict[str, Any]] = []
    for row in rows:
        values = list(row)
        record: Dict[str, Any] = {}
        for position, name in columns:
            if position >= len(values):
                continue
            value = values[position]
            if value is None or (isinstance(value, str) and value == ""):
                continue
            record[name] = value
        if record:
            records.append(record)
    return records


def encode_logo(content: bytes) -> Optional[str]:
    """Base64 text for embedding the logo in generated reports, ``None`` when empty."""
    if not content:
        return None
    return base64.b64encode(content).decode("ascii")
