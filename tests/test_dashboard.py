"""Tests for the dashboard session and its action handlers."""

from __future__ import annotations

import logging
import threading
from datetime import date

import pytest

from models.readings import NotificationLevel
from services.dashboard import DashboardAction, DashboardSession, default_period
from services.errors import ApiNotConfiguredError, RemoteError, TransportError


@pytest.fixture()
def client(stub_client):
    return stub_client


@pytest.fixture()
def session(client) -> DashboardSession:
    return DashboardSession(client=client, today=lambda: date(2024, 2, 10))


def _ready(session: DashboardSession, make_workbook) -> None:
    session.dispatch(DashboardAction.condominium_selected, spreadsheet_id="sheet-1", name="Ed. Aurora")
    session.dispatch(
        DashboardAction.spreadsheet_imported,
        filename="leituras.xlsx",
        content=make_workbook([["101", 10, 15, "nao"], ["102", 20, 18, "sim"]]),
    )
    session.dispatch(DashboardAction.fields_changed, energy_tariff="0,85")


def test_default_period_covers_the_month() -> None:
    assert default_period(date(2024, 2, 10)) == ("2024-02-01", "2024-02-29")
    assert default_period(date(2023, 12, 31)) == ("2023-12-01", "2023-12-31")


def test_selecting_condominium_resets_state(session: DashboardSession, make_workbook) -> None:
    _ready(session, make_workbook)
    session.dispatch(DashboardAction.logo_selected, filename="logo.png", content=b"png")
    session.dispatch(DashboardAction.preview_requested)
    session.dispatch(DashboardAction.process_requested)

    session.dispatch(DashboardAction.condominium_selected, spreadsheet_id="sheet-2", name="Ed. Brisa")

    assert session.spreadsheet_id == "sheet-2"
    assert session.condominium_name == "Ed. Brisa"
    assert session.store.size() == 0
    assert session.presenter.has_preview is False
    assert session.logo_content is None
    assert session.download_links is None
    assert session.fields.period_from == "2024-02-01"
    assert session.fields.period_to == "2024-02-29"
    assert session.fields.energy_tariff is None
    assert session.can_submit is False


def test_back_to_selector_clears_selection(session: DashboardSession, make_workbook) -> None:
    _ready(session, make_workbook)

    session.dispatch(DashboardAction.back_to_selector)

    assert session.spreadsheet_id is None
    assert session.store.size() == 0


def test_import_populates_store_and_enables_submission(session: DashboardSession, make_workbook) -> None:
    _ready(session, make_workbook)

    assert [reading.unit for reading in session.store.all()] == ["101", "102"]
    assert session.store.get(1).is_common_area is True
    assert session.store.get(1).consumption == -2
    assert session.can_submit is True
    notifications = session.pop_notifications()
    assert notifications[-1].level is NotificationLevel.success
    assert "2 readings" in notifications[-1].message


def test_wrong_extension_leaves_store_untouched(session: DashboardSession, make_workbook) -> None:
    _ready(session, make_workbook)

    notifications = session.dispatch(
        DashboardAction.spreadsheet_imported, filename="leituras.csv", content=b"a,b\n1,2\n"
    )

    assert [item.level for item in notifications] == [NotificationLevel.error]
    assert ".xlsx" in notifications[0].message
    assert session.store.size() == 2


def test_unreadable_spreadsheet_keeps_previous_store(session: DashboardSession, make_workbook) -> None:
    _ready(session, make_workbook)

    notifications = session.dispatch(
        DashboardAction.spreadsheet_imported, filename="broken.xlsx", content=b"garbage"
    )

    assert notifications[0].level is NotificationLevel.error
    assert session.store.size() == 2
    assert session.spreadsheet_filename == "leituras.xlsx"


def test_torn_spreadsheet_keeps_previous_store(
    session: DashboardSession, make_workbook, torn_workbook
) -> None:
    _ready(session, make_workbook)

    notifications = session.dispatch(
        DashboardAction.spreadsheet_imported, filename="torn.xlsx", content=torn_workbook
    )

    assert [item.level for item in notifications] == [NotificationLevel.error]
    assert notifications[0].message == "Could not read the spreadsheet file."
    assert session.store.size() == 2
    assert session.spreadsheet_filename == "leituras.xlsx"


def test_import_succeeds_with_info_logging(session: DashboardSession, make_workbook, caplog) -> None:
    with caplog.at_level(logging.INFO):
        notifications = session.dispatch(
            DashboardAction.spreadsheet_imported,
            filename="leituras.xlsx",
            content=make_workbook([["101", "12.5", "20", "Sim"]]),
        )

    assert notifications[0].level is NotificationLevel.success
    assert session.store.get(0).is_common_area is True


def test_empty_spreadsheet_empties_store_and_blocks_submission(
    session: DashboardSession, make_workbook
) -> None:
    _ready(session, make_workbook)

    notifications = session.dispatch(
        DashboardAction.spreadsheet_imported, filename="vazia.xlsx", content=make_workbook([])
    )

    assert [item.level for item in notifications] == [NotificationLevel.warning]
    assert session.store.size() == 0
    assert session.can_submit is False


def test_cell_edit_and_checkbox_toggle(session: DashboardSession, make_workbook) -> None:
    _ready(session, make_workbook)

    session.dispatch(DashboardAction.cell_edited, index=0, field="current_reading", value="abc")
    session.dispatch(DashboardAction.checkbox_toggled, index=0, value=True)

    reading = session.store.get(0)
    assert reading.current_reading == 0
    assert reading.consumption == -10
    assert reading.is_common_area is True


def test_edits_out_of_range_are_reported(session: DashboardSession, make_workbook) -> None:
    _ready(session, make_workbook)

    edit = session.dispatch(DashboardAction.cell_edited, index=5, field="current_reading", value="1")
    toggle = session.dispatch(DashboardAction.checkbox_toggled, index=-1, value=True)

    assert edit[0].level is NotificationLevel.error
    assert toggle[0].level is NotificationLevel.error


def test_unknown_form_field_is_reported(session: DashboardSession) -> None:
    session.dispatch(DashboardAction.fields_changed, energy_tariff="0,85")

    notifications = session.dispatch(
        DashboardAction.fields_changed, energy_tariff="1,00", colour="blue"
    )

    assert [item.level for item in notifications] == [NotificationLevel.error]
    assert "colour" in notifications[0].message
    assert session.fields.energy_tariff == "0,85"


def test_non_editable_column_is_reported(session: DashboardSession, make_workbook) -> None:
    _ready(session, make_workbook)

    notifications = session.dispatch(DashboardAction.cell_edited, index=0, field="unit", value="999")

    assert [item.level for item in notifications] == [NotificationLevel.error]
    assert session.store.get(0).unit == "101"


def test_preview_success_replaces_presenter(
    session: DashboardSession, client, make_workbook
) -> None:
    _ready(session, make_workbook)
    session.dispatch(DashboardAction.logo_selected, filename="logo.png", content=b"png")

    notifications = session.dispatch(DashboardAction.preview_requested)

    assert notifications == []
    assert session.presenter.content_for("global") == "<h1>Global</h1>"
    payload = client.preview_payloads[0]
    assert payload["action"] == "getPreviewHtml"
    assert payload["spreadsheetId"] == "sheet-1"
    assert payload["tarifaEnergia"] == "0.85"
    assert payload["logoContent"] == "cG5n"
    assert payload["periodoDe"] == "2024-02-01"


def test_submission_is_blocked_when_form_incomplete(
    session: DashboardSession, client, make_workbook
) -> None:
    _ready(session, make_workbook)
    session.dispatch(DashboardAction.fields_changed, period_to="  ")

    preview = session.dispatch(DashboardAction.preview_requested)
    process = session.dispatch(DashboardAction.process_requested)

    assert preview[0].level is NotificationLevel.warning
    assert process[0].level is NotificationLevel.warning
    assert client.preview_payloads == []
    assert client.process_payloads == []


@pytest.mark.parametrize("action", [DashboardAction.preview_requested, DashboardAction.process_requested])
def test_remote_error_message_is_shown_and_state_kept(
    session: DashboardSession, client, make_workbook, action
) -> None:
    _ready(session, make_workbook)
    session.dispatch(DashboardAction.preview_requested)
    session.dispatch(DashboardAction.process_requested)
    client.preview_error = RemoteError("X")
    client.process_error = RemoteError("X")

    notifications = session.dispatch(action)

    assert len(notifications) == 1
    assert notifications[0].level is NotificationLevel.error
    assert "X" in notifications[0].message
    assert session.presenter.content_for("global") == "<h1>Global</h1>"
    assert session.download_links == client.links


def test_transport_error_shows_generic_message(
    session: DashboardSession, client, make_workbook
) -> None:
    _ready(session, make_workbook)
    client.preview_error = TransportError("connection refused at 10.0.0.1")

    notifications = session.dispatch(DashboardAction.preview_requested)

    assert notifications[0].level is NotificationLevel.error
    assert "connect" in notifications[0].message.lower()
    assert "10.0.0.1" not in notifications[0].message
    assert session.presenter.has_preview is False


def test_unconfigured_service_is_reported(
    session: DashboardSession, client, make_workbook
) -> None:
    _ready(session, make_workbook)
    client.process_error = ApiNotConfiguredError("no url")

    notifications = session.dispatch(DashboardAction.process_requested)

    assert "REPORT_API_URL" in notifications[0].message


def test_process_success_stores_links_and_service_message(
    session: DashboardSession, client, make_workbook
) -> None:
    _ready(session, make_workbook)

    notifications = session.dispatch(DashboardAction.process_requested)

    assert session.download_links == client.links
    assert [(item.level, item.message) for item in notifications] == [
        (NotificationLevel.success, "Reports generated.")
    ]
    assert client.process_payloads[0]["action"] == "processReport"


def test_overlapping_preview_is_refused(
    session: DashboardSession, client, make_workbook
) -> None:
    _ready(session, make_workbook)
    entered = threading.Event()
    release = threading.Event()
    original_preview = client.preview

    def slow_preview(payload):
        entered.set()
        release.wait(timeout=5)
        return original_preview(payload)

    client.preview = slow_preview  # type: ignore[method-assign]
    worker = threading.Thread(target=session.dispatch, args=(DashboardAction.preview_requested,))
    worker.start()
    try:
        assert entered.wait(timeout=5)
        assert session.is_busy("getPreviewHtml") is True

        notifications = session.dispatch(DashboardAction.preview_requested)
    finally:
        release.set()
        worker.join(timeout=5)

    assert [item.level for item in notifications] == [NotificationLevel.warning]
    assert len(client.preview_payloads) == 1
    assert session.is_busy("getPreviewHtml") is False
    assert session.presenter.has_preview is True


def test_load_condominiums_states(session: DashboardSession, client) -> None:
    listing = session.load_condominiums()
    assert [condo.name for condo in listing.condominiums] == ["Ed. Aurora"]
    assert listing.error is None

    client.list_error = TransportError("boom")
    failed = session.load_condominiums()
    assert failed.error == "boom"
    assert failed.condominiums == []

    client.configured = False
    unconfigured = session.load_condominiums()
    assert unconfigured.configured is False


def test_pop_notifications_drains_queue(session: DashboardSession, make_workbook) -> None:
    _ready(session, make_workbook)

    assert session.pop_notifications()
    assert session.pop_notifications() == []


def test_dispatch_accepts_action_names(session: DashboardSession) -> None:
    session.dispatch("condominium-selected", spreadsheet_id="sheet-9")

    assert session.spreadsheet_id == "sheet-9"
    assert session.condominium_name == "sheet-9"
