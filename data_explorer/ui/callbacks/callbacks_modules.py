from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, List, Optional, Sequence

import dash
import dash_bootstrap_components as dbc
from dash import ALL, Input, Output, State, no_update

from data_explorer.core.session import SessionContext
from data_explorer.ui.ids import IDs

if TYPE_CHECKING:
    from data_explorer.ui.config import AppConfig

logger = logging.getLogger(__name__)


def resolve_active_module(
        top_value: Optional[str],
        group_values: Sequence[Optional[str]],
        group_ids: Sequence[dict],
) -> Optional[str]:
    """
    The top-level tab value is either a module id or a group id; for a group
    the active module is the value of that group's nested tabs.
    """
    if top_value is None:
        return None
    for gid, value in zip(group_ids, group_values):
        if gid.get("index") == top_value:
            return value
    return top_value


def render_module_outputs(session: SessionContext, output_ids: Sequence[dict], active: Optional[str]) -> List[Any]:
    """
    Render only the active module; every other output is left untouched.
    A failing module shows an error in its own tab instead of breaking the page.
    """
    results: List[Any] = []
    for oid in output_ids:
        module_id = oid.get("index")
        handle = session.active_modules.get(module_id)
        if module_id != active or handle is None:
            results.append(no_update)
            continue
        try:
            results.append(handle.render())
        except Exception as e:
            logger.exception("Module render failed", extra={"module_id": module_id, "session_id": session.session_id})
            results.append(dbc.Alert(f"This module failed to render: {e}", color="danger", className="mt-2"))
    return results


def register_module_callbacks(app: dash.Dash, ctx: AppConfig) -> None:
    # ---------------------------------------------------------
    # Track the active tab (nested groups included)
    # ---------------------------------------------------------
    @app.callback(
        Output(IDs.Store.ACTIVE_MODULE, "data"),
        Input(IDs.Control.MODULE_TABS, "value"),
        Input({"type": IDs.Pattern.GROUP_TABS, "index": ALL}, "value"),
        State({"type": IDs.Pattern.GROUP_TABS, "index": ALL}, "id"),
        State(IDs.Store.SESSION_ID, "data"),
    )
    def track_active_module(top_value, group_values, group_ids, session_id):
        session = ctx.session_manager.get(session_id)
        if session is None:
            raise dash.exceptions.PreventUpdate

        active = resolve_active_module(top_value, group_values, group_ids)
        if active is None:
            raise dash.exceptions.PreventUpdate
        session.active_module_id = active
        return active

    # ---------------------------------------------------------
    # Render the active module on tab / filter / report changes
    # ---------------------------------------------------------
    @app.callback(
        Output({"type": IDs.Pattern.MODULE_OUTPUT, "index": ALL}, "children"),
        Input(IDs.Store.ACTIVE_MODULE, "data"),
        Input(IDs.Store.FILTER_VERSION, "data"),
        Input(IDs.Store.REPORT_VERSION, "data"),
        State(IDs.Store.SESSION_ID, "data"),
    )
    def render_active_module(active, _filter_version, _report_version, session_id):
        session = ctx.session_manager.get(session_id)
        if session is None or not session.active_modules:
            raise dash.exceptions.PreventUpdate

        output_ids = [o["id"] for o in dash.ctx.outputs_list]
        return render_module_outputs(session, output_ids, active)

    # ---------------------------------------------------------
    # "Add to report" buttons
    # ---------------------------------------------------------
    @app.callback(
        Output(IDs.Store.REPORT_VERSION, "data"),
        Input({"type": IDs.Pattern.ADD_CARD, "index": ALL}, "n_clicks"),
        State(IDs.Store.SESSION_ID, "data"),
        prevent_initial_call=True,
    )
    def add_report_card(_n_clicks_list, session_id):
        triggered = dash.ctx.triggered_id
        if not triggered or not isinstance(triggered, dict):
            raise dash.exceptions.PreventUpdate
        # buttons inserted with the tab UI trigger once with n_clicks=None
        if not dash.ctx.triggered[0].get("value"):
            raise dash.exceptions.PreventUpdate

        session = ctx.session_manager.get(session_id)
        if session is None:
            raise dash.exceptions.PreventUpdate

        handle = session.active_modules.get(triggered.get("index"))
        if handle is None:
            raise dash.exceptions.PreventUpdate

        session.reporter.append_card(handle.report_card())
        return session.reporter.version
