from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional

import typer

from cli.config import CLIConfig, load_config
from cli.render import (
    render_condominiums,
    render_links,
    render_notifications,
    render_readings,
)
from logging_config import configure_logging
from models.readings import Notification, NotificationLevel
from services.dashboard import DashboardAction, DashboardSession
from services.errors import PreviewNotFoundError
from services.presenter import GLOBAL_SELECTOR
from services.report_client import ReportClient


@dataclass
class CLIState:
    config: CLIConfig
    session: DashboardSession


app = typer.Typer(
    help="Import meter readings and request billing reports from the report service.",
    context_settings={"help_option_names": ["-h", "--help"]},
)

_SPREADSHEET_ARGUMENT = typer.Argument(
    ..., exists=True, dir_okay=False, readable=True, help="Readings spreadsheet (.xlsx)."
)
_CONDO_OPTION = typer.Option(..., "--condo", "-c", help="Condominium (spreadsheet) identifier.")
_PERIOD_FROM_OPTION = typer.Option(
    None, "--from", help="Period start (defaults to the first day of this month)."
)
_PERIOD_TO_OPTION = typer.Option(
    None, "--to", help="Period end (defaults to the last day of this month)."
)
_NEXT_READING_OPTION = typer.Option(None, "--next-reading", help="Date of the next reading.")
_TARIFF_OPTION = typer.Option(..., "--tariff", help="Energy tariff, e.g. 0,85.")
_FEE_OPTION = typer.Option(None, "--fee", help="Management fee, e.g. 12,50.")
_LOGO_OPTION = typer.Option(
    None, "--logo", exists=True, dir_okay=False, readable=True, help="Logo for the reports."
)
_APPORTION_OPTION = typer.Option(
    False, "--apportion/--no-apportion", help="Apportion common-area consumption."
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1)
    return state


def _finish(notifications: Iterable[Notification]) -> None:
    notifications = list(notifications)
    render_notifications(notifications)
    if any(item.level is NotificationLevel.error for item in notifications):
        raise typer.Exit(code=1)


def _load_readings(session: DashboardSession, spreadsheet: Path) -> List[Notification]:
    return session.dispatch(
        DashboardAction.spreadsheet_imported,
        filename=spreadsheet.name,
        content=spreadsheet.read_bytes(),
    )


def _prepare_submission(
    session: DashboardSession,
    spreadsheet: Path,
    condo: str,
    period_from: Optional[str],
    period_to: Optional[str],
    next_reading: Optional[str],
    tariff: str,
    fee: Optional[str],
    logo: Optional[Path],
    apportion: bool,
) -> None:
    session.dispatch(DashboardAction.condominium_selected, spreadsheet_id=condo)
    _finish(_load_readings(session, spreadsheet))
    if logo is not None:
        session.dispatch(
            DashboardAction.logo_selected, filename=logo.name, content=logo.read_bytes()
        )
    fields = {
        "next_reading_date": next_reading,
        "energy_tariff": tariff,
        "management_fee": fee,
        "common_area_apportionment": apportion,
    }
    if period_from is not None:
        fields["period_from"] = period_from
    if period_to is not None:
        fields["period_to"] = period_to
    session.dispatch(DashboardAction.fields_changed, **fields)


@app.callback()
def main(
    ctx: typer.Context,
    api_url: Optional[str] = typer.Option(
        None,
        "--api-url",
        "-u",
        help="Report service URL (defaults to the REPORT_API_URL env).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for the report service (default: no limit).",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(api_url=api_url, timeout=timeout)
    client = ReportClient(config.api_url, timeout=config.timeout)
    ctx.obj = CLIState(config=config, session=DashboardSession(client=client))
    ctx.call_on_close(client.close)


@app.command("condos")
def condos_command(ctx: typer.Context) -> None:
    """List the condominiums known to the report service."""
    state = _get_state(ctx)
    listing = state.session.load_condominiums()
    if listing.error:
        typer.secho(listing.error, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    render_condominiums(listing.condominiums)


@app.command("readings")
def readings_command(
    ctx: typer.Context,
    spreadsheet: Path = _SPREADSHEET_ARGUMENT,
) -> None:
    """Import a spreadsheet and show the readings with their consumption."""
    state = _get_state(ctx)
    _finish(_load_readings(state.session, spreadsheet))
    render_readings(state.session.store.all())


@app.command("preview")
def preview_command(
    ctx: typer.Context,
    spreadsheet: Path = _SPREADSHEET_ARGUMENT,
    condo: str = _CONDO_OPTION,
    period_from: Optional[str] = _PERIOD_FROM_OPTION,
    period_to: Optional[str] = _PERIOD_TO_OPTION,
    next_reading: Optional[str] = _NEXT_READING_OPTION,
    tariff: str = _TARIFF_OPTION,
    fee: Optional[str] = _FEE_OPTION,
    logo: Optional[Path] = _LOGO_OPTION,
    apportion: bool = _APPORTION_OPTION,
    tab: str = typer.Option(
        GLOBAL_SELECTOR, "--tab", help="Document to show: 'global' or a unit position."
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", dir_okay=False, help="Write the document here instead of stdout."
    ),
) -> None:
    """Render a preview of the reports without committing to them."""
    state = _get_state(ctx)
    session = state.session
    _prepare_submission(
        session, spreadsheet, condo, period_from, period_to, next_reading, tariff, fee, logo, apportion
    )
    _finish(session.dispatch(DashboardAction.preview_requested))
    if not session.presenter.has_preview:
        raise typer.Exit(code=1)

    try:
        content = session.presenter.content_for(tab)
    except PreviewNotFoundError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        available = ", ".join(selector for selector, _label in session.presenter.tabs())
        typer.echo(f"Available documents: {available}", err=True)
        raise typer.Exit(code=1)

    if output is None:
        typer.echo(content)
        return
    output.write_text(content, encoding="utf-8")
    typer.secho(f"Preview written to {output}", fg=typer.colors.GREEN)


@app.command("process")
def process_command(
    ctx: typer.Context,
    spreadsheet: Path = _SPREADSHEET_ARGUMENT,
    condo: str = _CONDO_OPTION,
    period_from: Optional[str] = _PERIOD_FROM_OPTION,
    period_to: Optional[str] = _PERIOD_TO_OPTION,
    next_reading: Optional[str] = _NEXT_READING_OPTION,
    tariff: str = _TARIFF_OPTION,
    fee: Optional[str] = _FEE_OPTION,
    logo: Optional[Path] = _LOGO_OPTION,
    apportion: bool = _APPORTION_OPTION,
) -> None:
    """Generate the final reports and print their download links."""
    state = _get_state(ctx)
    session = state.session
    _prepare_submission(
        session, spreadsheet, condo, period_from, period_to, next_reading, tariff, fee, logo, apportion
    )
    _finish(session.dispatch(DashboardAction.process_requested))
    if session.download_links is None:
        raise typer.Exit(code=1)
    render_links(session.download_links)


def run() -> None:
    """Console-script entry point."""
    configure_logging()
    app()
