from __future__ import annotations

import dash_bootstrap_components as dbc
import pandas as pd
import pytest
from dash import no_update

from data_explorer.core.exceptions import SessionError
from data_explorer.core.filter_state import FilterSlice, FilterState
from data_explorer.core.lifecycle import AppLifecycle
from data_explorer.core.modules import Module, modules
from data_explorer.core.resolver import DataResolver, PasswordDataResolver, StaticDataResolver
from data_explorer.core.session import SessionContext
from data_explorer.ui.callbacks.callbacks_filters import apply_filter_action, filter_summary, value_options
from data_explorer.ui.callbacks.callbacks_lifecycle import bookmark_id_from_search, build_swap_patch, poll_session
from data_explorer.ui.callbacks.callbacks_modules import render_module_outputs, resolve_active_module
from data_explorer.ui.ids import IDs, module_output_id
from data_explorer.ui.swapper import DashUiSwapper


class _Handle:
    def __init__(self, ctx):
        self.ctx = ctx

    def render(self):
        return f"rendered {self.ctx.module_id}"


class _Broken(_Handle):
    def render(self):
        raise RuntimeError("boom")


def _data():
    return {"iris": pd.DataFrame({"Species": ["setosa", "virginica", "setosa"]})}


def _active_session(tree=None) -> SessionContext:
    session = SessionContext()
    tree = tree or modules(Module("Data", _Handle), Module("Other", _Handle))
    AppLifecycle(session, tree, StaticDataResolver(_data()), swapper=DashUiSwapper()).start()
    return session


def test_bookmark_id_from_search():
    assert bookmark_id_from_search("?bookmark=abc123") == "abc123"
    assert bookmark_id_from_search("?x=1&bookmark=b2") == "b2"
    assert bookmark_id_from_search("?x=1") is None
    assert bookmark_id_from_search(None) is None


def test_swap_patch_removes_splash_and_appends_main_ui():
    patch = build_swap_patch("main")

    ops = [op["operation"] for op in patch.to_plotly_json()["operations"]]

    assert ops == ["Delete", "Append"]


def test_poll_waits_then_delivers_the_ui_once():
    session = SessionContext()
    resolver = DataResolver()
    AppLifecycle(session, modules(Module("Data", _Handle)), resolver, swapper=DashUiSwapper()).start()

    children, disabled, progress, status = poll_session(session)
    assert children is no_update
    assert disabled is False
    assert status == "Loading data ..."

    resolver.emit(_data())

    children, disabled, _progress, _status = poll_session(session)
    assert children is not no_update
    assert disabled is True

    children, disabled, _progress, _status = poll_session(session)
    assert children is no_update
    assert disabled is True


class _PollingSwapper(DashUiSwapper):
    def __init__(self):
        self.seen = None

    def swap(self, session, modules, registry):
        super().swap(session, modules, registry)
        # modules are not activated yet
        self.seen = poll_session(session)


def test_poll_holds_the_ui_back_until_modules_are_active():
    session = SessionContext()
    swapper = _PollingSwapper()
    AppLifecycle(session, modules(Module("Data", _Handle)), StaticDataResolver(_data()), swapper=swapper).start()

    children, disabled, _progress, _status = swapper.seen
    assert session.main_ui is not None
    assert children is no_update
    assert disabled is False

    children, disabled, _progress, _status = poll_session(session)
    assert children is not no_update
    assert disabled is True


def test_poll_reports_credentials_and_errors():
    session = SessionContext()
    resolver = PasswordDataResolver(loader=_data, check=lambda pw: pw == "pw")
    AppLifecycle(session, modules(Module("Data", _Handle, datanames=("missing",))), resolver).start()

    assert poll_session(session)[3] == "Waiting for credentials ..."

    with pytest.raises(SessionError):
        resolver.submit("pw")

    children, disabled, _progress, status = poll_session(session)
    assert children is no_update
    assert disabled is True
    assert status.startswith("The data could not be loaded")


def test_resolve_active_module():
    group_ids = [{"type": "module-group-tabs", "index": "group-plots"}]

    assert resolve_active_module("data", ["plots--hist"], group_ids) == "data"
    assert resolve_active_module("group-plots", ["plots--hist"], group_ids) == "plots--hist"
    assert resolve_active_module(None, [], []) is None


def test_render_only_the_active_module():
    session = _active_session(modules(Module("Data", _Handle), Module("Broken", _Broken)))
    output_ids = [module_output_id("data"), module_output_id("broken")]

    assert render_module_outputs(session, output_ids, "data") == ["rendered data", no_update]

    out = render_module_outputs(session, output_ids, "broken")
    assert out[0] is no_update
    assert isinstance(out[1], dbc.Alert)


def test_apply_filter_action():
    st = FilterState([FilterSlice("iris", "Species", ("setosa",), fixed=True)])

    assert apply_filter_action(st, IDs.Control.FILTER_APPLY_BTN, "iris", "Petal", ["1"]) is True
    assert st.get("iris", "Petal").selected == ("1",)
    # empty selection removes the slice
    assert apply_filter_action(st, IDs.Control.FILTER_APPLY_BTN, "iris", "Petal", []) is True
    assert st.get("iris", "Petal") is None
    # nothing chosen
    assert apply_filter_action(st, IDs.Control.FILTER_APPLY_BTN, None, None, ["x"]) is False

    apply_filter_action(st, IDs.Control.FILTER_APPLY_BTN, "iris", "Petal", ["2"])
    remove = {"type": IDs.Pattern.REMOVE_FILTER, "index": "iris Petal"}
    assert apply_filter_action(st, remove, None, None, None) is True
    # fixed slices survive clear
    assert apply_filter_action(st, IDs.Control.FILTER_CLEAR_BTN, None, None, None) is False
    assert [s.id for s in st.slices] == ["iris Species"]


def test_filter_summary_and_value_options():
    session = _active_session()
    session.filter_state.set_slice(FilterSlice("iris", "Species", ("setosa",)))
    view = session.registry["data"]

    summary = filter_summary(view)

    assert "2 / 3 rows" in summary.children[0].children[1]
    assert value_options(view.raw("iris"), "Species") == [
        {"label": "setosa", "value": "setosa"},
        {"label": "virginica", "value": "virginica"},
    ]
    assert value_options(view.raw("iris"), "nope") == []
