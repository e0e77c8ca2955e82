from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import dash
from dash import Input, Output, State, dcc

from data_explorer.services.session_info import lockfile_text, session_info_text
from data_explorer.ui.ids import IDs

if TYPE_CHECKING:
    from data_explorer.ui.config import AppConfig

logger = logging.getLogger(__name__)

CLIENT_TIMEZONE_JS = """
function(_pathname) {
    try {
        return Intl.DateTimeFormat().resolvedOptions().timeZone;
    } catch (e) {
        return null;
    }
}
"""


def register_session_callbacks(app: dash.Dash, ctx: AppConfig) -> None:
    # ---------------------------------------------------------
    # Timezone handshake: ask the browser once, keep the first answer
    # ---------------------------------------------------------
    app.clientside_callback(
        CLIENT_TIMEZONE_JS,
        Output(IDs.Store.TIMEZONE, "data"),
        Input(IDs.Control.URL, "pathname"),
    )

    @app.callback(
        Output(IDs.Store.TIMEZONE_ACK, "data"),
        Input(IDs.Store.TIMEZONE, "data"),
        Input(IDs.Store.SESSION_ID, "data"),
    )
    def store_timezone(timezone, session_id):
        session = ctx.session_manager.get(session_id)
        if session is None or not timezone:
            raise dash.exceptions.PreventUpdate
        session.receive_timezone(timezone)
        return session.timezone

    # ---------------------------------------------------------
    # Footer diagnostics
    # ---------------------------------------------------------
    @app.callback(
        Output(IDs.Control.IDENTIFIER, "children"),
        Input(IDs.Store.SESSION_ID, "data"),
    )
    def show_identifier(session_id):
        session = ctx.session_manager.get(session_id)
        if session is None:
            raise dash.exceptions.PreventUpdate
        return session.identifier()

    @app.callback(
        Output(IDs.Control.SESSION_INFO_MODAL, "is_open"),
        Output(IDs.Control.SESSION_INFO_TEXT, "children"),
        Input(IDs.Control.SESSION_INFO_LINK, "n_clicks"),
        State(IDs.Control.SESSION_INFO_MODAL, "is_open"),
        prevent_initial_call=True,
    )
    def toggle_session_info(n_clicks, is_open):
        if not n_clicks:
            raise dash.exceptions.PreventUpdate
        return not is_open, session_info_text()

    @app.callback(
        Output(IDs.Control.LOCKFILE_DOWNLOAD, "data"),
        Input(IDs.Control.LOCKFILE_LINK, "n_clicks"),
        prevent_initial_call=True,
    )
    def download_lockfile(n_clicks):
        if not n_clicks:
            raise dash.exceptions.PreventUpdate
        logger.info("Lock file requested")
        return dcc.send_string(lockfile_text(), "requirements.lock")
