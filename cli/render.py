from __future__ import annotations

from typing import Any, Iterable, Sequence

import typer

from app.schemas import Condominium, DownloadLinks
from models.readings import Notification, NotificationLevel, Reading

_LEVEL_COLORS = {
    NotificationLevel.info: typer.colors.BLUE,
    NotificationLevel.success: typer.colors.GREEN,
    NotificationLevel.warning: typer.colors.YELLOW,
    NotificationLevel.error: typer.colors.RED,
}


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def render_notifications(notifications: Iterable[Notification]) -> None:
    for notification in notifications:
        typer.secho(
            notification.message,
            fg=_LEVEL_COLORS[notification.level],
            err=notification.level is NotificationLevel.error,
        )


def render_condominiums(condominiums: Sequence[Condominium]) -> None:
    echo_heading("Condominiums")
    if not condominiums:
        typer.echo("No condominiums found.")
        return
    for condo in condominiums:
        typer.echo(f"  - {condo.name} (id={condo.id})")


def render_readings(readings: Sequence[Reading]) -> None:
    echo_heading("Readings")
    if not readings:
        typer.echo("No readings imported.")
        return
    typer.echo(f"{'#':>3}  {'unit':<12} {'previous':>12} {'current':>12} {'consumption':>12}  common")
    for index, reading in enumerate(readings):
        line = (
            f"{index:>3}  {reading.unit:<12} {reading.previous_reading:>12g} "
            f"{reading.current_reading:>12g} {reading.consumption:>12.3f}  "
            f"{'yes' if reading.is_common_area else 'no'}"
        )
        typer.secho(line, fg=typer.colors.RED if reading.is_negative else None)


def render_links(links: DownloadLinks) -> None:
    echo_heading("Downloads")
    echo_key_values(
        [
            ("global_pdf_url", links.global_pdf_url),
            ("individual_zip_url", links.individual_zip_url),
        ]
    )
