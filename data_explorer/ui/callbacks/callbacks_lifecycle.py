from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional, Tuple
from urllib.parse import parse_qs

import dash
from dash import Input, Output, Patch, State, html, no_update

from data_explorer.core.exceptions import CredentialsError, SessionError
from data_explorer.core.resolver import PasswordDataResolver
from data_explorer.core.session import SessionContext
from data_explorer.ui.ids import IDs

if TYPE_CHECKING:
    from data_explorer.ui.config import AppConfig

logger = logging.getLogger(__name__)

HIDDEN = {"display": "none"}
VISIBLE = {"display": "block"}


def bookmark_id_from_search(search: Optional[str]) -> Optional[str]:
    if not search:
        return None
    values = parse_qs(search.lstrip("?")).get("bookmark")
    return values[0] if values else None


def open_session(ctx: AppConfig, search: Optional[str]) -> SessionContext:
    """
    Open a new session for a page load, restoring filters from ?bookmark=<id>
    when present, and start waiting for data. Errors while resolving are kept
    on the session and shown on the splash screen.
    """
    snapshot: Any = None
    bookmark_id = bookmark_id_from_search(search)
    if bookmark_id:
        snapshot = ctx.bookmark_service.load(bookmark_id)

    ctx.session_manager.prune_idle(ctx.settings.session_max_idle_s)
    session = ctx.session_manager.open(bookmark_snapshot=snapshot)

    try:
        session.lifecycle.start()
    except Exception as e:
        logger.exception("Session failed while resolving data", extra={"session_id": session.session_id})
        session.error = session.error or str(e)
    return session


def build_swap_patch(main_ui: Any) -> Patch:
    """
    Remove only the first child of the main container (the splash wrapper)
    and append the tab UI wrapped in a div.
    """
    patch = Patch()
    del patch[0]
    patch.append(html.Div(main_ui, className="dx-main"))
    return patch


def poll_session(session: SessionContext) -> Tuple[Any, bool, Any, Any]:
    """
    Returns (container children, interval disabled, progress value, status text).
    The tab UI is handed out once, and only after every module is activated;
    every later poll leaves the page alone.
    """
    # ACTIVE is set last, after activation; the lock is not taken so progress keeps flowing during the build
    error = session.error
    main_ui = session.main_ui if session.is_active else None

    if error:
        return no_update, True, no_update, f"The data could not be loaded: {error}"

    if main_ui is not None:
        if session.ui_delivery.fire(lambda: None):
            # the splash (progress + status) goes away with this patch
            return build_swap_patch(main_ui), True, no_update, no_update
        return no_update, True, no_update, no_update

    fraction, label, _closed = session.progress.snapshot()
    if label:
        status = label
    elif session.resolver is not None and session.resolver.requires_credentials:
        status = "Waiting for credentials ..."
    else:
        status = "Loading data ..."
    return no_update, False, round(fraction * 100), status


def register_lifecycle_callbacks(app: dash.Dash, ctx: AppConfig) -> None:
    # ---------------------------------------------------------
    # New page load -> new session
    # ---------------------------------------------------------
    @app.callback(
        Output(IDs.Store.SESSION_ID, "data"),
        Output(IDs.Control.PASSWORD_FORM, "style"),
        Input(IDs.Control.URL, "search"),
        State(IDs.Store.SESSION_ID, "data"),
    )
    def bootstrap_session(search, existing_session_id):
        if existing_session_id and existing_session_id in ctx.session_manager:
            raise dash.exceptions.PreventUpdate

        session = open_session(ctx, search)
        needs_password = session.resolver is not None and session.resolver.requires_credentials
        return session.session_id, VISIBLE if needs_password else HIDDEN

    # ---------------------------------------------------------
    # Credentials for password-protected data
    # ---------------------------------------------------------
    @app.callback(
        Output(IDs.Control.PASSWORD_FEEDBACK, "children"),
        Input(IDs.Control.PASSWORD_SUBMIT, "n_clicks"),
        State(IDs.Control.PASSWORD_INPUT, "value"),
        State(IDs.Store.SESSION_ID, "data"),
        prevent_initial_call=True,
    )
    def submit_password(n_clicks, password, session_id):
        if not n_clicks:
            raise dash.exceptions.PreventUpdate

        session = ctx.session_manager.get(session_id)
        if session is None or not isinstance(session.resolver, PasswordDataResolver):
            raise dash.exceptions.PreventUpdate
        if not session.resolver.requires_credentials:
            raise dash.exceptions.PreventUpdate

        try:
            session.resolver.submit(password)
        except CredentialsError:
            return "Invalid password."
        except SessionError:
            # already logged by the lifecycle; poll shows session.error
            return ""
        return ""

    # ---------------------------------------------------------
    # Splash progress + one-time swap to the tab UI
    # ---------------------------------------------------------
    @app.callback(
        Output(IDs.Control.MAIN_UI_CONTAINER, "children"),
        Output(IDs.Control.DATA_POLL, "disabled"),
        Output(IDs.Control.SPLASH_PROGRESS, "value"),
        Output(IDs.Control.SPLASH_STATUS, "children"),
        Input(IDs.Control.DATA_POLL, "n_intervals"),
        State(IDs.Store.SESSION_ID, "data"),
    )
    def poll_data(_n_intervals, session_id):
        session = ctx.session_manager.get(session_id)
        if session is None:
            raise dash.exceptions.PreventUpdate
        return poll_session(session)
