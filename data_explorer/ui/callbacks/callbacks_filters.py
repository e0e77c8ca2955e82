from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

import dash
import dash_bootstrap_components as dbc
import pandas as pd
from dash import ALL, Input, Output, State, html

from data_explorer.core.data import DatasetView
from data_explorer.core.filter_state import FilterSlice, FilterState
from data_explorer.core.session import SessionContext
from data_explorer.ui.ids import IDs

if TYPE_CHECKING:
    from data_explorer.ui.config import AppConfig

logger = logging.getLogger(__name__)

MAX_VALUE_OPTIONS = 500


def active_view(session: Optional[SessionContext], module_id: Optional[str]) -> Optional[DatasetView]:
    if session is None or session.registry is None or not module_id:
        return None
    return session.registry.get(module_id)


def value_options(df: pd.DataFrame, varname: Optional[str]) -> List[Dict[str, str]]:
    if not varname or varname not in df.columns:
        return []
    values = df[varname].dropna().astype(str).unique()
    return [{"label": v, "value": v} for v in sorted(values)[:MAX_VALUE_OPTIONS]]


def apply_filter_action(
        filter_state: FilterState,
        action: Any,
        dataname: Optional[str],
        varname: Optional[str],
        values: Optional[Sequence[Any]],
) -> bool:
    """
    Apply one edit from the filter panel. Returns True when the state changed.

    action:
      - "apply": set the slice for (dataname, varname); an empty selection removes it
      - "clear": remove every non-fixed slice
      - {"type": REMOVE_FILTER, "index": "<dataname> <varname>"}: remove that slice
    """
    before = filter_state.version

    if action == IDs.Control.FILTER_CLEAR_BTN:
        filter_state.clear()
    elif action == IDs.Control.FILTER_APPLY_BTN:
        if not dataname or not varname:
            return False
        if values:
            filter_state.set_slice(FilterSlice(dataname=dataname, varname=varname, selected=tuple(values)))
        else:
            filter_state.remove_slice(dataname, varname)
    elif isinstance(action, dict) and action.get("type") == IDs.Pattern.REMOVE_FILTER:
        target = next((s for s in filter_state.slices if s.id == action.get("index")), None)
        if target is not None:
            filter_state.remove_slice(target.dataname, target.varname)

    return filter_state.version != before


def filter_summary(view: DatasetView) -> html.Div:
    """Rows kept per dataset and the list of active slices for the module's datasets."""
    blocks: List[Any] = []
    for name in view.datanames:
        kept, total = view.row_counts(name)[name]
        blocks.append(html.Div([html.Strong(name), f" {kept} / {total} rows"], className="small"))
        for s in view.filter_state.slices_for(name):
            label = f"{s.varname}: {', '.join(str(v) for v in s.selected) or 'all'}"
            remove = (
                None if s.fixed else
                dbc.Button("×", id={"type": IDs.Pattern.REMOVE_FILTER, "index": s.id}, color="link", size="sm", className="p-0 ms-2")
            )
            blocks.append(html.Div([html.Span(label, className="badge bg-light text-dark"), remove], className="ms-2 mb-1"))

    if not blocks:
        blocks.append(html.Div("This module does not use any dataset.", className="text-muted small"))
    return html.Div(blocks)


def register_filter_callbacks(app: dash.Dash, ctx: AppConfig) -> None:
    # ---------------------------------------------------------
    # Summary + dataset choices follow the active module
    # ---------------------------------------------------------
    @app.callback(
        Output(IDs.Control.FILTER_ACTIVE_LIST, "children"),
        Output(IDs.Control.FILTER_DATASET, "options"),
        Output(IDs.Control.FILTER_DATASET, "value"),
        Input(IDs.Store.ACTIVE_MODULE, "data"),
        Input(IDs.Store.FILTER_VERSION, "data"),
        State(IDs.Control.FILTER_DATASET, "value"),
        State(IDs.Store.SESSION_ID, "data"),
    )
    def update_filter_panel(active, _version, current_dataset, session_id):
        view = active_view(ctx.session_manager.get(session_id), active)
        if view is None:
            raise dash.exceptions.PreventUpdate

        names = list(view.datanames)
        options = [{"label": n, "value": n} for n in names]
        value = current_dataset if current_dataset in names else (names[0] if names else None)
        return filter_summary(view), options, value

    @app.callback(
        Output(IDs.Control.FILTER_VARIABLE, "options"),
        Output(IDs.Control.FILTER_VARIABLE, "value"),
        Input(IDs.Control.FILTER_DATASET, "value"),
        State(IDs.Store.ACTIVE_MODULE, "data"),
        State(IDs.Store.SESSION_ID, "data"),
    )
    def update_variable_options(dataname, active, session_id):
        view = active_view(ctx.session_manager.get(session_id), active)
        if view is None or not dataname or dataname not in view.datanames:
            return [], None
        columns = [str(c) for c in view.raw(dataname).columns]
        return [{"label": c, "value": c} for c in columns], None

    @app.callback(
        Output(IDs.Control.FILTER_VALUES, "options"),
        Output(IDs.Control.FILTER_VALUES, "value"),
        Input(IDs.Control.FILTER_VARIABLE, "value"),
        State(IDs.Control.FILTER_DATASET, "value"),
        State(IDs.Store.ACTIVE_MODULE, "data"),
        State(IDs.Store.SESSION_ID, "data"),
    )
    def update_value_options(varname, dataname, active, session_id):
        view = active_view(ctx.session_manager.get(session_id), active)
        if view is None or not dataname or dataname not in view.datanames:
            return [], []
        current = view.filter_state.get(dataname, varname) if varname else None
        selected = [str(v) for v in current.selected] if current is not None else []
        return value_options(view.raw(dataname), varname), selected

    # ---------------------------------------------------------
    # Apply / clear / remove -> bump the filter version
    # ---------------------------------------------------------
    @app.callback(
        Output(IDs.Store.FILTER_VERSION, "data"),
        Input(IDs.Control.FILTER_APPLY_BTN, "n_clicks"),
        Input(IDs.Control.FILTER_CLEAR_BTN, "n_clicks"),
        Input({"type": IDs.Pattern.REMOVE_FILTER, "index": ALL}, "n_clicks"),
        State(IDs.Control.FILTER_DATASET, "value"),
        State(IDs.Control.FILTER_VARIABLE, "value"),
        State(IDs.Control.FILTER_VALUES, "value"),
        State(IDs.Store.SESSION_ID, "data"),
        prevent_initial_call=True,
    )
    def edit_filters(_apply, _clear, _remove, dataname, varname, values, session_id):
        triggered = dash.ctx.triggered_id
        if triggered is None or not dash.ctx.triggered[0].get("value"):
            raise dash.exceptions.PreventUpdate

        session = ctx.session_manager.get(session_id)
        if session is None or session.filter_state is None:
            raise dash.exceptions.PreventUpdate

        try:
            changed = apply_filter_action(session.filter_state, triggered, dataname, varname, values)
        except ValueError as e:
            logger.warning("Filter edit rejected: %s", e)
            raise dash.exceptions.PreventUpdate
        if not changed:
            raise dash.exceptions.PreventUpdate

        logger.info(
            "Filters updated",
            extra={"session_id": session.session_id, "version": session.filter_state.version},
        )
        return session.filter_state.version

    # ---------------------------------------------------------
    # Bookmark the current filters
    # ---------------------------------------------------------
    @app.callback(
        Output(IDs.Control.BOOKMARK_STATUS, "children"),
        Input(IDs.Control.BOOKMARK_BTN, "n_clicks"),
        State(IDs.Control.URL, "href"),
        State(IDs.Store.SESSION_ID, "data"),
        prevent_initial_call=True,
    )
    def bookmark_filters(n_clicks, href, session_id):
        if not n_clicks:
            raise dash.exceptions.PreventUpdate
        session = ctx.session_manager.get(session_id)
        if session is None or session.filter_state is None:
            raise dash.exceptions.PreventUpdate

        try:
            bookmark_id = ctx.bookmark_service.save(session.filter_state)
        except OSError:
            logger.exception("Failed to save bookmark")
            return "Bookmark could not be saved."

        base = (href or "").split("?", 1)[0]
        url = f"{base}?bookmark={bookmark_id}"
        return html.A(url, href=url, target="_blank")
