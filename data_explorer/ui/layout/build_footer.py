from __future__ import annotations

import dash_bootstrap_components as dbc
from dash import dcc, html
from dash.development.base_component import Component

from data_explorer.ui.ids import IDs


def build_footer(footer: Component) -> html.Footer:
    """
    Footer content plus the session diagnostics: session info popup,
    lock file download and the pid/token identifier.
    """
    return html.Footer(
        html.Div(
            [
                footer,
                html.A("Session Info", id=IDs.Control.SESSION_INFO_LINK, href="#", className="small me-3"),
                html.A("Download .lock file", id=IDs.Control.LOCKFILE_LINK, href="#", className="small"),
                dcc.Download(id=IDs.Control.LOCKFILE_DOWNLOAD),
                html.Div(id=IDs.Control.IDENTIFIER, className="text-muted small mt-1"),
                dbc.Modal(
                    [
                        dbc.ModalHeader(dbc.ModalTitle("SessionInfo")),
                        dbc.ModalBody(html.Pre(id=IDs.Control.SESSION_INFO_TEXT, className="small")),
                    ],
                    id=IDs.Control.SESSION_INFO_MODAL,
                    is_open=False,
                    size="lg",
                    scrollable=True,
                ),
            ]
        ),
        className="dx-footer mb-3",
    )
