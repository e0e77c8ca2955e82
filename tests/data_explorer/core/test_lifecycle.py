from __future__ import annotations

import pandas as pd
import pytest

from data_explorer.core.exceptions import SessionError
from data_explorer.core.filter_state import FilterSlice, FilterState
from data_explorer.core.lifecycle import AppLifecycle, LifecycleState
from data_explorer.core.modules import Module, ModuleGroup, modules
from data_explorer.core.resolver import DataResolver, StaticDataResolver
from data_explorer.core.session import SessionContext


class _Handle:
    def __init__(self, ctx):
        self.ctx = ctx

    def render(self):
        return self.ctx.module.label


class _CountingSwapper:
    def __init__(self):
        self.calls = 0

    def swap(self, session, modules, registry):
        self.calls += 1
        session.main_ui = "main-ui"


class _BrokenSwapper:
    def swap(self, session, modules, registry):
        session.main_ui = "half-built"
        raise RuntimeError("layout exploded")


def _data():
    return {"iris": pd.DataFrame({"Species": ["setosa", "virginica"]})}


def _tree():
    return modules(
        Module("Table", _Handle, uses_reporter=True),
        ModuleGroup("Plots", (Module("Hist", _Handle, datanames=("iris",)),)),
    )


def test_first_non_empty_emission_wins():
    session = SessionContext()
    resolver = DataResolver()
    swapper = _CountingSwapper()
    lifecycle = AppLifecycle(session, _tree(), resolver, swapper=swapper)
    lifecycle.start()

    resolver.emit(None)
    resolver.emit({})
    assert lifecycle.state is LifecycleState.AWAITING_DATA

    resolver.emit(_data())
    resolver.emit({"other": pd.DataFrame({"a": [1]})})

    assert lifecycle.state is LifecycleState.ACTIVE
    assert swapper.calls == 1
    assert session.registry["table"].datanames == ("iris",)
    # the lifecycle detached after the first value
    assert resolver.subscriber_count == 0


def test_modules_are_activated_once_with_their_context():
    session = SessionContext()
    lifecycle = AppLifecycle(session, _tree(), StaticDataResolver(_data()), swapper=_CountingSwapper())
    lifecycle.start()

    assert set(session.active_modules) == {"table", "plots--hist"}
    assert session.active_module_id == "table"
    table = session.active_modules["table"].ctx
    hist = session.active_modules["plots--hist"].ctx
    assert table.reporter is session.reporter
    assert hist.reporter is None
    assert table.filter_state is session.filter_state is hist.filter_state
    assert session.is_active


def test_default_filter_is_copied_per_session():
    default = FilterState([FilterSlice("iris", "Species", ("setosa",))], app_id="app")
    s1, s2 = SessionContext(), SessionContext()

    AppLifecycle(s1, _tree(), StaticDataResolver(_data()), default_filter=default).start()
    AppLifecycle(s2, _tree(), StaticDataResolver(_data()), default_filter=default).start()

    s1.filter_state.clear()

    assert len(s2.filter_state.slices) == 1
    assert len(default.slices) == 1
    assert s1.reporter.id == "app"


def test_bookmark_snapshot_restores_filters():
    snapshot = FilterState([FilterSlice("iris", "Species", ("virginica",))], app_id="app").to_dict()
    session = SessionContext()

    AppLifecycle(
        session, _tree(), StaticDataResolver(_data()),
        default_filter=FilterState(app_id="app"), bookmark_snapshot=snapshot,
    ).start()

    assert list(session.registry["table"]["iris"]["Species"]) == ["virginica"]


def test_build_failure_moves_to_failed_without_swap():
    session = SessionContext()
    swapper = _CountingSwapper()
    tree = modules(Module("A", _Handle, datanames=("missing",)))
    lifecycle = AppLifecycle(session, tree, StaticDataResolver(_data()), swapper=swapper)

    with pytest.raises(SessionError):
        lifecycle.start()

    assert lifecycle.state is LifecycleState.FAILED
    assert swapper.calls == 0
    assert session.error
    assert session.progress.snapshot()[2] is True
    assert session.active_modules == {}


def test_dispose_before_data_closes_the_lifecycle():
    session = SessionContext()
    resolver = DataResolver()
    lifecycle = AppLifecycle(session, _tree(), resolver)
    lifecycle.start()

    lifecycle.dispose()
    resolver.emit(_data())

    assert lifecycle.state is LifecycleState.CLOSED
    assert resolver.subscriber_count == 0
    assert session.registry is None


def test_malformed_bookmark_falls_back_to_the_default_filter():
    default = FilterState([FilterSlice("iris", "Species", ("setosa",))], app_id="app")
    session = SessionContext()
    lifecycle = AppLifecycle(
        session, _tree(), StaticDataResolver(_data()),
        default_filter=default, bookmark_snapshot={"slices": [["iris", "a"]]},
    )

    lifecycle.start()

    assert lifecycle.state is LifecycleState.ACTIVE
    assert session.filter_state == default
    assert list(session.registry["table"]["iris"]["Species"]) == ["setosa"]


def test_swap_failure_moves_to_failed_without_activation():
    session = SessionContext()
    lifecycle = AppLifecycle(session, _tree(), StaticDataResolver(_data()), swapper=_BrokenSwapper())

    with pytest.raises(SessionError):
        lifecycle.start()

    assert lifecycle.state is LifecycleState.FAILED
    assert "layout exploded" in session.error
    assert session.main_ui is None
    assert session.active_modules == {}
    assert not session.is_active
