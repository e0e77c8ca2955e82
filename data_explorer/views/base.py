from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import pandas as pd
import plotly.graph_objs as go

from data_explorer.core.modules import ModuleContext
from data_explorer.core.reporter import ReportCard


class BaseModuleHandle(ABC):
    """
    Abstract base class for the server side of the bundled modules.

    Defines the contract that every activated module follows
    - 'render' - build the tab content from the current (filtered) datasets
    - 'report_card' - snapshot of what is shown, for modules that use the reporter
    """

    def __init__(self, ctx: ModuleContext):
        self.ctx = ctx

    @abstractmethod
    def render(self) -> Any:
        raise NotImplementedError()

    def report_card(self) -> ReportCard:
        raise NotImplementedError(f"Module '{self.ctx.module.label}' does not produce report cards")

    # ------------------------------------------------------------------
    # Common helpers for all modules
    # ------------------------------------------------------------------
    def filtered(self, name: str) -> pd.DataFrame:
        """
        All modules should read data through here so the session filters are always applied.
        """
        return self.ctx.datasets.filtered(name)

    @staticmethod
    def empty_figure(message: str) -> go.Figure:
        """
        Standardised 'no data' figure used by all modules.
        """
        fig = go.Figure()
        fig.update_layout(
            title=message,
            xaxis={"visible": False},
            yaxis={"visible": False},
        )
        return fig
