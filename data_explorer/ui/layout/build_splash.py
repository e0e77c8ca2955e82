from __future__ import annotations

import dash_bootstrap_components as dbc
from dash import html
from dash.development.base_component import Component

from data_explorer.ui.ids import IDs


def build_password_form() -> html.Div:
    """Hidden until the session's resolver asks for credentials."""
    return html.Div(
        id=IDs.Control.PASSWORD_FORM,
        style={"display": "none"},
        children=[
            dbc.InputGroup(
                [
                    dbc.Input(id=IDs.Control.PASSWORD_INPUT, type="password", placeholder="Password"),
                    dbc.Button("Load data", id=IDs.Control.PASSWORD_SUBMIT, color="primary"),
                ],
                size="sm",
                className="mt-3",
                style={"maxWidth": "360px"},
            ),
            html.Div(id=IDs.Control.PASSWORD_FEEDBACK, className="small text-danger mt-1"),
        ],
    )


def build_splash(splash_ui: Component) -> html.Div:
    """
    Splash wrapper: always the first child of the main container, so it can
    be removed as a whole even when splash_ui is a list of components.
    """
    return html.Div(
        id=IDs.Control.SPLASH,
        className="dx-splash py-4",
        children=[
            splash_ui,
            build_password_form(),
            dbc.Progress(
                id=IDs.Control.SPLASH_PROGRESS,
                value=0,
                max=100,
                striped=True,
                animated=True,
                className="mt-3",
                style={"height": "6px", "maxWidth": "480px"},
            ),
            html.Div(id=IDs.Control.SPLASH_STATUS, className="text-muted small mt-1"),
        ],
    )
