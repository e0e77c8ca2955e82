from __future__ import annotations

from typing import TYPE_CHECKING

import dash_bootstrap_components as dbc
from dash import dcc, html

from data_explorer.ui.ids import IDs
from data_explorer.ui.layout.build_footer import build_footer
from data_explorer.ui.layout.build_splash import build_splash

if TYPE_CHECKING:
    from data_explorer.ui.config import AppConfig


def build_layout(ctx: AppConfig) -> dbc.Container:
    """
    Page skeleton served to every new browser session. The main container
    only holds the splash screen; the tab UI is patched in once the session's
    data is ready.
    """
    return dbc.Container(
        fluid=True,
        className="dx-root",
        children=[
            dcc.Location(id=IDs.Control.URL, refresh=False),

            # Session-level stores; "memory" means every page load is a new session
            dcc.Store(id=IDs.Store.SESSION_ID, storage_type="memory"),
            dcc.Store(id=IDs.Store.FILTER_VERSION, storage_type="memory", data=0),
            dcc.Store(id=IDs.Store.REPORT_VERSION, storage_type="memory", data=0),
            dcc.Store(id=IDs.Store.ACTIVE_MODULE, storage_type="memory"),
            dcc.Store(id=IDs.Store.TIMEZONE, storage_type="memory"),
            dcc.Store(id=IDs.Store.TIMEZONE_ACK, storage_type="memory"),
            dcc.Interval(
                id=IDs.Control.DATA_POLL,
                interval=ctx.settings.poll_interval_ms,
                disabled=False,
            ),

            html.Header([ctx.title_component, ctx.header], className="mt-3"),
            html.Hr(className="my-2"),
            html.Div(
                id=IDs.Control.MAIN_UI_CONTAINER,
                children=[build_splash(ctx.splash_ui)],
            ),
            html.Hr(),
            build_footer(ctx.footer),
        ],
    )
