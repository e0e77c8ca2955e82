from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import dash
from dash import Input, Output, State, dcc

from data_explorer.ui.ids import IDs

if TYPE_CHECKING:
    from data_explorer.ui.config import AppConfig

logger = logging.getLogger(__name__)


def register_reports_callbacks(app: dash.Dash, ctx: AppConfig) -> None:
    # ---------------------------------------------------------
    # Download the report as a ZIP (report.json + report.md)
    # ---------------------------------------------------------
    @app.callback(
        Output(IDs.Control.REPORT_DOWNLOAD, "data"),
        Input(IDs.Control.REPORT_DOWNLOAD_BTN, "n_clicks"),
        State(IDs.Store.SESSION_ID, "data"),
        prevent_initial_call=True,
    )
    def download_report(n_clicks, session_id):
        if not n_clicks:
            raise dash.exceptions.PreventUpdate
        session = ctx.session_manager.get(session_id)
        if session is None or not session.reporter.cards:
            raise dash.exceptions.PreventUpdate

        filename = f"{session.reporter.id or 'report'}_{session.session_id[:8]}.zip"
        return dcc.send_bytes(session.reporter.to_zip_bytes(), filename)

    # ---------------------------------------------------------
    # Reset the report
    # ---------------------------------------------------------
    @app.callback(
        Output(IDs.Store.REPORT_VERSION, "data", allow_duplicate=True),
        Output(IDs.Control.REPORT_STATUS, "children"),
        Input(IDs.Control.REPORT_RESET_BTN, "n_clicks"),
        State(IDs.Store.SESSION_ID, "data"),
        prevent_initial_call=True,
    )
    def reset_report(n_clicks, session_id):
        if not n_clicks:
            raise dash.exceptions.PreventUpdate
        session = ctx.session_manager.get(session_id)
        if session is None:
            raise dash.exceptions.PreventUpdate

        session.reporter.reset()
        return session.reporter.version, "Report cleared."
