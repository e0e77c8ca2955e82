from __future__ import annotations

import dash_bootstrap_components as dbc
import pandas as pd
import plotly.graph_objs as go
import pytest
from dash import dash_table, dcc

from data_explorer.core.data import DatasetView
from data_explorer.core.filter_state import FilterSlice, FilterState
from data_explorer.core.modules import ModuleContext
from data_explorer.core.reporter import ReportCard, Reporter
from data_explorer.views import data_table_module, histogram_module, reporter_previewer_module


def _storage():
    return {
        "patients": pd.DataFrame(
            {
                "arm": ["placebo", "placebo", "high dose", "low dose"],
                "age": [34, 51, 47, 62],
            }
        ),
    }


def _context(module, filter_state=None, reporter=None, module_id="m") -> ModuleContext:
    filter_state = filter_state or FilterState()
    return ModuleContext(
        module_id=module_id,
        datasets=DatasetView(_storage() if module.datanames != () else {}, filter_state),
        module=module,
        reporter=reporter,
        filter_state=filter_state,
    )


def test_data_table_renders_filtered_rows():
    module = data_table_module("Data", page_size=5)
    st = FilterState([FilterSlice("patients", "arm", ("placebo",))])
    handle = module.server(_context(module, st))

    out = handle.render()
    block = out.children[0]

    assert block.children[1].children == "2 of 4 rows"
    assert isinstance(block.children[2], dash_table.DataTable)
    assert len(block.children[2].data) == 2


def test_data_table_report_card():
    module = data_table_module("Data", uses_reporter=True)
    handle = module.server(_context(module, reporter=Reporter()))

    card = handle.report_card()

    assert isinstance(card, ReportCard)
    assert card.title == "Data"
    assert "patients: 4 of 4 rows" in card.text
    assert len(card.table) == 4


def test_histogram_figure_and_empty_states():
    module = histogram_module("Age", dataname="patients", column="age", nbins=5)
    handle = module.server(_context(module))

    fig = handle.figure()
    assert isinstance(fig.data[0], go.Histogram)
    assert isinstance(handle.render().children, dcc.Graph)

    missing = histogram_module("Oops", dataname="patients", column="weight")
    assert "not found" in missing.server(_context(missing)).figure().layout.title.text

    st = FilterState([FilterSlice("patients", "arm", ("nobody",))])
    assert "No rows" in handle.__class__(_context(module, st)).figure().layout.title.text


def test_histogram_report_card_is_json_ready():
    module = histogram_module("Age", dataname="patients", column="age", uses_reporter=True)
    handle = module.server(_context(module, reporter=Reporter()))

    card = handle.report_card()

    assert card.figure["data"][0]["type"] == "histogram"
    assert "mean" in card.text


def test_reporter_previewer_lists_cards():
    reporter = Reporter()
    module = reporter_previewer_module()
    handle = module.server(_context(module, reporter=reporter))

    assert "empty" in handle.render().children[0].children

    reporter.append_card(ReportCard(title="Data", text="hello"))
    out = handle.render()
    assert isinstance(out.children[1], dbc.Card)


def test_reporter_previewer_validation():
    with pytest.raises(ValueError):
        reporter_previewer_module(buttons=("download", "print"))

    module = reporter_previewer_module()
    with pytest.raises(ValueError):
        module.server(_context(module, reporter=None))
