from __future__ import annotations

from typing import Sequence, Union

from dash import dash_table, html

from data_explorer.core.modules import ALL_DATANAMES, Module, ModuleContext
from data_explorer.core.reporter import ReportCard
from data_explorer.views.base import BaseModuleHandle

TABLE_FONT = 'system-ui, -apple-system, BlinkMacSystemFont, "SF Pro Text", "Segoe UI", sans-serif'


class DataTableHandle(BaseModuleHandle):
    """Preview of every dataset the module can see, after filtering."""

    def __init__(self, ctx: ModuleContext):
        super().__init__(ctx)
        self.page_size = int(ctx.server_args.get("page_size", 10))

    def render(self):
        names = self.ctx.datasets.datanames
        if not names:
            return html.Div("This module has no datasets.", className="text-muted small mt-2")

        blocks = []
        for name in names:
            df = self.filtered(name)
            total = len(self.ctx.datasets.raw(name))
            preview = df.head(self.page_size).reset_index(drop=True)
            blocks.append(
                html.Div(
                    [
                        html.H6(name, className="mb-1"),
                        html.Div(f"{len(df)} of {total} rows", className="text-muted small mb-2"),
                        dash_table.DataTable(
                            data=preview.to_dict("records"),
                            columns=[{"name": str(c), "id": str(c)} for c in preview.columns],
                            style_table={"overflowX": "auto"},
                            style_as_list_view=True,
                            style_cell={
                                "fontFamily": TABLE_FONT,
                                "fontSize": "12px",
                                "padding": "6px 8px",
                                "textAlign": "left",
                            },
                            style_header={
                                "fontFamily": TABLE_FONT,
                                "fontWeight": "600",
                                "backgroundColor": "#f3f4f6",
                            },
                            page_size=self.page_size,
                        ),
                    ],
                    className="mb-4",
                )
            )
        return html.Div(blocks)

    def report_card(self) -> ReportCard:
        names = self.ctx.datasets.datanames
        counts = self.ctx.datasets.row_counts()
        text = "\n".join(f"- {n}: {counts[n][0]} of {counts[n][1]} rows" for n in names)
        table = None
        if names:
            table = self.filtered(names[0]).head(self.page_size).to_dict("records")
        return ReportCard(
            title=self.ctx.module.label,
            text=text,
            table=table,
            filters=self.ctx.filter_state.to_dict(),
            source=self.ctx.module_id,
        )


def data_table_module(
        label: str = "Data",
        datanames: Union[Sequence[str], str] = ALL_DATANAMES,
        page_size: int = 10,
        uses_reporter: bool = False,
) -> Module:
    return Module(
        label=label,
        server=DataTableHandle,
        datanames=datanames if isinstance(datanames, str) else tuple(datanames),
        server_args={"page_size": page_size},
        uses_reporter=uses_reporter,
        module_type="data_table",
    )
