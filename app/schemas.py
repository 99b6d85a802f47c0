"""Pydantic schemas for the report service wire format and the HTTP API layer."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Condominium(BaseModel):
    """A selectable condominium; ``id`` addresses its spreadsheet on the service."""

    id: str
    name: str


class IndividualPreview(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    unit: str = Field(..., alias="unidade")
    html: str = ""


class PreviewResult(BaseModel):
    """Rendered preview documents: one global report plus one per unit."""

    model_config = ConfigDict(populate_by_name=True)

    global_html: str = Field("", alias="global")
    individuals: List[IndividualPreview] = Field(default_factory=list)


class DownloadLinks(BaseModel):
    global_pdf_url: str = Field(..., alias="globalPdfUrl")
    individual_zip_url: str = Field(..., alias="individualZipUrl")

    model_config = ConfigDict(populate_by_name=True)


class RemoteResponse(BaseModel):
    """Envelope shared by every answer of the report service."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    message: Optional[str] = None
    data: Optional[List[Condominium]] = None
    previews: Optional[PreviewResult] = None
    download_links: Optional[DownloadLinks] = Field(None, alias="downloadLinks")


class ReadingOut(BaseModel):
    """A reading as exposed by the JSON API, with its derived consumption."""

    index: int = Field(..., ge=0)
    unit: str
    previous_reading: float
    current_reading: float
    consumption: float
    is_common_area: bool
    is_negative: bool


class ReadingPatch(BaseModel):
    """Partial edit of one reading; readings accept free text like the table cells."""

    previous_reading: Optional[str] = None
    current_reading: Optional[str] = None
    is_common_area: Optional[bool] = None


class PreviewDocument(BaseModel):
    selector: str
    content: str
