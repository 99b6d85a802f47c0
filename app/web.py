from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

from fastapi import APIRouter, Depends, File, Form, Request, Response, UploadFile
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from services.dashboard import DashboardAction, DashboardSession, build_default_session
from services.errors import PreviewNotFoundError
from services.presenter import GLOBAL_SELECTOR


templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))


def get_session() -> DashboardSession:
    return build_default_session()


def _fields_form(
    period_from: str = Form(""),
    period_to: str = Form(""),
    next_reading_date: str = Form(""),
    energy_tariff: str = Form(""),
    management_fee: str = Form(""),
    common_area_apportionment: bool = Form(False),
) -> Dict[str, Any]:
    return {
        "period_from": period_from,
        "period_to": period_to,
        "next_reading_date": next_reading_date,
        "energy_tariff": energy_tariff,
        "management_fee": management_fee,
        "common_area_apportionment": common_area_apportionment,
    }


def _redirect(request: Request, name: str, query: str = "") -> RedirectResponse:
    url = str(request.url_for(name))
    if query:
        url = f"{url}?{query}"
    return RedirectResponse(url=url, status_code=303)


router = APIRouter(include_in_schema=False)


@router.get("/ui", name="ui_index", response_class=HTMLResponse)
def ui_index(
    request: Request,
    session: DashboardSession = Depends(get_session),
) -> HTMLResponse:
    listing = session.load_condominiums()
    return templates.TemplateResponse(
        request,
        "ui/index.html",
        {
            "listing": listing,
            "notifications": session.pop_notifications(),
        },
    )


@router.post("/ui/condominiums/{spreadsheet_id}", name="ui_select_condominium")
async def ui_select_condominium(
    request: Request,
    spreadsheet_id: str,
    name: str = Form(""),
    session: DashboardSession = Depends(get_session),
) -> RedirectResponse:
    session.dispatch(DashboardAction.condominium_selected, spreadsheet_id=spreadsheet_id, name=name)
    return _redirect(request, "ui_dashboard")


@router.post("/ui/back", name="ui_back")
async def ui_back(
    request: Request,
    session: DashboardSession = Depends(get_session),
) -> RedirectResponse:
    session.dispatch(DashboardAction.back_to_selector)
    return _redirect(request, "ui_index")


@router.get("/ui/dashboard", name="ui_dashboard", response_class=HTMLResponse)
async def ui_dashboard(
    request: Request,
    session: DashboardSession = Depends(get_session),
) -> Response:
    if session.spreadsheet_id is None:
        return _redirect(request, "ui_index")
    return templates.TemplateResponse(
        request,
        "ui/dashboard.html",
        {
            "session": session,
            "readings": session.store.all(),
            "notifications": session.pop_notifications(),
        },
    )


@router.post("/ui/dashboard/spreadsheet", name="ui_import_spreadsheet")
async def ui_import_spreadsheet(
    request: Request,
    file: UploadFile = File(..., description="Spreadsheet with the meter readings."),
    session: DashboardSession = Depends(get_session),
) -> RedirectResponse:
    content = await file.read()
    await file.close()
    session.dispatch(
        DashboardAction.spreadsheet_imported,
        filename=file.filename or "",
        content=content,
    )
    return _redirect(request, "ui_dashboard")


@router.post("/ui/dashboard/logo", name="ui_select_logo")
async def ui_select_logo(
    request: Request,
    file: UploadFile = File(..., description="Optional logo for the generated reports."),
    session: DashboardSession = Depends(get_session),
) -> RedirectResponse:
    content = await file.read()
    await file.close()
    session.dispatch(DashboardAction.logo_selected, filename=file.filename, content=content)
    return _redirect(request, "ui_dashboard")


@router.post("/ui/dashboard/fields", name="ui_update_fields")
async def ui_update_fields(
    request: Request,
    fields: Dict[str, Any] = Depends(_fields_form),
    session: DashboardSession = Depends(get_session),
) -> RedirectResponse:
    session.dispatch(DashboardAction.fields_changed, **fields)
    return _redirect(request, "ui_dashboard")


@router.post("/ui/dashboard/readings/{index}", name="ui_edit_reading")
async def ui_edit_reading(
    request: Request,
    index: int,
    previous_reading: str = Form(""),
    current_reading: str = Form(""),
    is_common_area: bool = Form(False),
    session: DashboardSession = Depends(get_session),
) -> RedirectResponse:
    session.dispatch(
        DashboardAction.cell_edited, index=index, field="previous_reading", value=previous_reading
    )
    session.dispatch(
        DashboardAction.cell_edited, index=index, field="current_reading", value=current_reading
    )
    session.dispatch(DashboardAction.checkbox_toggled, index=index, value=is_common_area)
    return _redirect(request, "ui_dashboard")


@router.post("/ui/dashboard/preview", name="ui_request_preview")
def ui_request_preview(
    request: Request,
    fields: Dict[str, Any] = Depends(_fields_form),
    session: DashboardSession = Depends(get_session),
) -> RedirectResponse:
    session.dispatch(DashboardAction.fields_changed, **fields)
    notifications = session.dispatch(DashboardAction.preview_requested)
    if notifications or not session.presenter.has_preview:
        return _redirect(request, "ui_dashboard")
    return _redirect(request, "ui_preview", f"tab={GLOBAL_SELECTOR}")


@router.post("/ui/dashboard/process", name="ui_request_process")
def ui_request_process(
    request: Request,
    fields: Dict[str, Any] = Depends(_fields_form),
    session: DashboardSession = Depends(get_session),
) -> RedirectResponse:
    session.dispatch(DashboardAction.fields_changed, **fields)
    session.dispatch(DashboardAction.process_requested)
    return _redirect(request, "ui_dashboard")


@router.get("/ui/dashboard/preview", name="ui_preview", response_class=HTMLResponse)
async def ui_preview(
    request: Request,
    tab: str = GLOBAL_SELECTOR,
    session: DashboardSession = Depends(get_session),
) -> Response:
    if session.spreadsheet_id is None:
        return _redirect(request, "ui_index")
    try:
        content = session.presenter.content_for(tab)
    except PreviewNotFoundError:
        content = None
    return templates.TemplateResponse(
        request,
        "ui/preview.html",
        {
            "session": session,
            "tabs": session.presenter.tabs(),
            "active_tab": tab,
            "content": content,
            "notifications": session.pop_notifications(),
        },
    )
