"""Error taxonomy for the import, edit and submission pipeline."""

from __future__ import annotations


class DashboardError(Exception):
    """Base class for failures surfaced to the dashboard user."""


class ImportFormatError(DashboardError):
    """The uploaded file does not carry an accepted spreadsheet extension."""


class SpreadsheetParseError(DashboardError):
    """The uploaded file could not be read as a workbook."""


class TransportError(DashboardError):
    """The report service could not be reached or answered garbage."""


class ApiNotConfiguredError(TransportError):
    """No report service URL has been configured."""


class RemoteError(DashboardError):
    """The report service answered with ``success: false``."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ReadingIndexError(DashboardError, IndexError):
    """A reading position outside the current store."""


class PreviewNotFoundError(DashboardError, LookupError):
    """No preview document exists for the requested selector."""
