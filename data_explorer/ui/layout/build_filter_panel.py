from __future__ import annotations

import dash_bootstrap_components as dbc
from dash import dcc, html

from data_explorer.ui.ids import IDs


def build_filter_panel() -> dbc.Card:
    """
    Filter panel for the active module's datasets:
    - summary of rows kept per dataset + active filters (populated by callback)
    - editor: dataset -> column -> values, Apply / Clear
    - bookmark button to save the current filters as a URL
    """
    return dbc.Card(
        [
            dbc.CardHeader("Filters", className="fw-semibold"),
            dbc.CardBody(
                [
                    html.Div(id=IDs.Control.FILTER_ACTIVE_LIST, className="mb-3"),
                    html.Hr(),
                    html.Label("Dataset", className="form-label"),
                    dcc.Dropdown(
                        id=IDs.Control.FILTER_DATASET,
                        options=[],
                        clearable=False,
                        placeholder="Select dataset",
                        className="mb-3",
                    ),
                    html.Label("Column", className="form-label"),
                    dcc.Dropdown(
                        id=IDs.Control.FILTER_VARIABLE,
                        options=[],
                        placeholder="Select column",
                        className="mb-3",
                    ),
                    html.Label("Keep values", className="form-label"),
                    dcc.Dropdown(
                        id=IDs.Control.FILTER_VALUES,
                        options=[],
                        multi=True,
                        placeholder="All values",
                        className="mb-3",
                    ),
                    html.Div(
                        [
                            dbc.Button("Apply", id=IDs.Control.FILTER_APPLY_BTN, color="primary", size="sm", className="me-2"),
                            dbc.Button("Clear all", id=IDs.Control.FILTER_CLEAR_BTN, color="secondary", outline=True, size="sm"),
                        ],
                        className="d-flex",
                    ),
                    html.Hr(),
                    dbc.Button("Bookmark filters", id=IDs.Control.BOOKMARK_BTN, color="link", size="sm", className="p-0"),
                    html.Div(id=IDs.Control.BOOKMARK_STATUS, className="small text-muted mt-1"),
                ]
            ),
        ],
        className="dx-sidebar shadow-sm",
    )
