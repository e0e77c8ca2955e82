from __future__ import annotations

from typing import Sequence

import dash_bootstrap_components as dbc
from dash import dcc, html

from data_explorer.core.modules import REPORTER_PREVIEWER_TYPE, Module, ModuleContext
from data_explorer.views.base import BaseModuleHandle
from data_explorer.ui.ids import IDs

KNOWN_BUTTONS = ("download", "reset")


class ReporterPreviewerHandle(BaseModuleHandle):
    """Lists the cards collected in the session report."""

    def __init__(self, ctx: ModuleContext):
        super().__init__(ctx)
        if ctx.reporter is None:
            raise ValueError("The report previewer needs the session reporter")
        self.reporter = ctx.reporter

    def render(self):
        cards = self.reporter.cards
        if not cards:
            return html.Div(
                [
                    html.Div("The report is empty.", className="fw-semibold"),
                    html.Div(
                        'Open a module and click "Add to report" to start building a report.',
                        className="text-muted small mt-1",
                    ),
                ],
                className="mt-2",
            )

        items = []
        for card in cards:
            body = [dcc.Markdown(card.text)] if card.text else []
            if card.figure:
                body.append(dcc.Graph(figure=card.figure, config={"displaylogo": False}))
            items.append(
                dbc.Card(
                    [
                        dbc.CardHeader(card.title, className="fw-semibold"),
                        dbc.CardBody(body),
                        dbc.CardFooter(f"Added {card.created_at}", className="text-muted small"),
                    ],
                    className="mb-3 shadow-sm",
                )
            )
        n = len(cards)
        return html.Div([html.Div(f"{n} card{'s' if n != 1 else ''} in this report.", className="text-muted small mb-2"), *items])


def _previewer_ui(buttons: Sequence[str]):
    def ui(module_id: str):
        actions = []
        if "download" in buttons:
            actions.append(
                dbc.Button("Download report", id=IDs.Control.REPORT_DOWNLOAD_BTN, color="primary", size="sm", className="me-2")
            )
            actions.append(dcc.Download(id=IDs.Control.REPORT_DOWNLOAD))
        if "reset" in buttons:
            actions.append(
                dbc.Button("Reset report", id=IDs.Control.REPORT_RESET_BTN, color="secondary", outline=True, size="sm")
            )
        return html.Div(
            [
                html.Div(actions, className="d-flex justify-content-end align-items-center"),
                html.Div(id=IDs.Control.REPORT_STATUS, className="small text-success fw-bold"),
            ],
            className="mb-3",
        )

    return ui


def reporter_previewer_module(buttons: Sequence[str] = KNOWN_BUTTONS, label: str = "Report previewer") -> Module:
    unknown = [b for b in buttons if b not in KNOWN_BUTTONS]
    if unknown:
        raise ValueError(f"Unknown previewer buttons: {', '.join(unknown)}")
    return Module(
        label=label,
        server=ReporterPreviewerHandle,
        ui=_previewer_ui(tuple(buttons)),
        datanames=(),
        server_args={"buttons": tuple(buttons)},
        uses_reporter=True,
        module_type=REPORTER_PREVIEWER_TYPE,
    )
