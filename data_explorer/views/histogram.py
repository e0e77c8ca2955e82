from __future__ import annotations

import json

import plotly.graph_objs as go
from dash import dcc, html

from data_explorer.core.modules import Module, ModuleContext
from data_explorer.core.reporter import ReportCard
from data_explorer.views.base import BaseModuleHandle


class HistogramHandle(BaseModuleHandle):
    """
    Histogram of one column of one dataset.

    server_args:
        dataname: dataset to read
        column: column to plot
        nbins: number of bins (default 20)
    """

    def __init__(self, ctx: ModuleContext):
        super().__init__(ctx)
        self.dataname = ctx.server_args["dataname"]
        self.column = ctx.server_args["column"]
        self.nbins = int(ctx.server_args.get("nbins", 20))

    def figure(self) -> go.Figure:
        df = self.filtered(self.dataname)
        if self.column not in df.columns:
            return self.empty_figure(f"Column '{self.column}' not found in {self.dataname}")
        values = df[self.column].dropna()
        if values.empty:
            return self.empty_figure("No rows match the current filters")

        fig = go.Figure(go.Histogram(x=values, nbinsx=self.nbins))
        fig.update_layout(
            title=f"{self.dataname}: {self.column} (n={len(values)})",
            xaxis_title=self.column,
            yaxis_title="Count",
            margin={"l": 40, "r": 20, "t": 50, "b": 40},
            template="plotly_white",
        )
        return fig

    def render(self):
        return html.Div(dcc.Graph(figure=self.figure(), config={"displaylogo": False}))

    def report_card(self) -> ReportCard:
        df = self.filtered(self.dataname)
        text = ""
        if self.column in df.columns:
            desc = df[self.column].describe()
            text = "\n".join(f"- {k}: {v}" for k, v in desc.items())
        return ReportCard(
            title=f"{self.ctx.module.label}: {self.column}",
            text=text,
            figure=json.loads(self.figure().to_json()),
            filters=self.ctx.filter_state.to_dict(),
            source=self.ctx.module_id,
        )


def histogram_module(
        label: str,
        dataname: str,
        column: str,
        nbins: int = 20,
        uses_reporter: bool = False,
) -> Module:
    return Module(
        label=label,
        server=HistogramHandle,
        datanames=(dataname,),
        server_args={"dataname": dataname, "column": column, "nbins": nbins},
        uses_reporter=uses_reporter,
        module_type="histogram",
    )
