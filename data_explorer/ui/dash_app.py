from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Optional, Sequence, Union

import dash_bootstrap_components as dbc
from dash import Dash
from dash.development.base_component import Component

from data_explorer.config.settings import Settings, load_settings
from data_explorer.core.filter_state import FilterState
from data_explorer.core.lifecycle import AppLifecycle
from data_explorer.core.modules import Module, ModuleGroup, ensure_reporter_previewer, modules as module_tree
from data_explorer.core.resolver import DataResolver, StaticDataResolver
from data_explorer.core.session import SessionContext, SessionManager
from data_explorer.services.bookmark_service import BookmarkService
from data_explorer.services.storage import LocalFileSystemStorage
from data_explorer.ui.callbacks.callbacks_filters import register_filter_callbacks
from data_explorer.ui.callbacks.callbacks_lifecycle import register_lifecycle_callbacks
from data_explorer.ui.callbacks.callbacks_modules import register_module_callbacks
from data_explorer.ui.callbacks.callbacks_reports import register_reports_callbacks
from data_explorer.ui.callbacks.callbacks_session import register_session_callbacks
from data_explorer.ui.config import AppConfig
from data_explorer.ui.layout.build_layout import build_layout
from data_explorer.ui.swapper import DashUiSwapper
from data_explorer.ui.title import coerce_content, resolve_title
from data_explorer.validation.errors import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_APP_ID = "data-explorer"

Content = Union[str, Component, Sequence[Component], None]


def _resolve_modules(tree: Union[ModuleGroup, Module]) -> ModuleGroup:
    if isinstance(tree, Module):
        return module_tree(tree)
    if not isinstance(tree, ModuleGroup):
        raise ValidationError.single(
            "MODULES_TYPE", f"modules must be a Module or ModuleGroup, got {type(tree).__name__}.", "modules"
        )
    return module_tree(*tree.children, label=tree.label)


def _resolve_data_source(
        data: Any,
        resolver_factory: Optional[Callable[[], DataResolver]],
) -> Callable[[], DataResolver]:
    if resolver_factory is not None and data is not None:
        raise ValidationError.single("DATA_SOURCE", "Pass either data or resolver_factory, not both.", "data")
    if resolver_factory is not None:
        if not callable(resolver_factory):
            raise ValidationError.single("RESOLVER_TYPE", "resolver_factory must be callable.", "resolver_factory")
        return resolver_factory
    if data is None:
        raise ValidationError.single("DATA_SOURCE", "One of data or resolver_factory is required.", "data")
    return lambda: StaticDataResolver(data)


def create_dash_app(
        modules: Union[ModuleGroup, Module],
        data: Any = None,
        resolver_factory: Optional[Callable[[], DataResolver]] = None,
        filter: Optional[FilterState] = None,
        title: Union[str, Component, None] = None,
        header: Content = "",
        footer: Content = "",
        splash_ui: Content = None,
        settings: Optional[Settings] = None,
        config_root: Optional[Path | str] = None,
) -> Dash:
    """
    Build the Dash app: splash screen first, then the module tabs once the
    session's data has been resolved.

    Each page load is a session with its own resolver, filter state, dataset
    registry and reporter. 'data' is a mapping of dataset name -> DataFrame
    shared by every session; pass 'resolver_factory' instead to resolve data
    per session (loaders, password protected data, ...).

    Raises:
        ValidationError: invalid title/header/footer/splash/filter/data arguments
        ModuleTreeError: invalid module tree
    """
    # 1) Settings
    settings = settings if settings is not None else load_settings(config_root)

    # 2) Validate arguments
    if filter is not None and not isinstance(filter, FilterState):
        raise ValidationError.single("FILTER_TYPE", "filter must be a FilterState.", "filter")
    browser_title, title_component = resolve_title(title if title is not None else settings.ui_title)
    header_component = coerce_content(header, "header")
    footer_component = coerce_content(footer, "footer")
    splash_component = coerce_content(splash_ui, "splash_ui")

    factory = _resolve_data_source(data, resolver_factory)
    default_filter = filter if filter is not None else FilterState(app_id=DEFAULT_APP_ID)

    # 3) Module tree (+ report previewer when some module reports)
    from data_explorer.views import reporter_previewer_module

    tree = ensure_reporter_previewer(_resolve_modules(modules), reporter_previewer_module)

    # 4) Services
    swapper = DashUiSwapper()

    def on_session_open(session: SessionContext) -> None:
        AppLifecycle(
            session,
            tree,
            factory(),
            default_filter=default_filter,
            swapper=swapper,
            bookmark_snapshot=session.bookmark_snapshot,
        )

    ctx = AppConfig(
        settings=settings,
        modules=tree,
        resolver_factory=factory,
        default_filter=default_filter,
        browser_title=browser_title,
        title_component=title_component,
        header=header_component,
        footer=footer_component,
        splash_ui=splash_component,
        session_manager=SessionManager(on_open=on_session_open),
        bookmark_service=BookmarkService(LocalFileSystemStorage(settings.bookmark_dir)),
    )
    ctx.validate()

    # 5) Dash app
    app = Dash(
        __name__,
        external_stylesheets=[dbc.themes.FLATLY],
        # tabs, filter panel and module outputs only exist after the UI swap
        suppress_callback_exceptions=True,
    )
    app.title = browser_title
    app.layout = build_layout(ctx)

    register_lifecycle_callbacks(app, ctx)
    register_session_callbacks(app, ctx)
    register_module_callbacks(app, ctx)
    register_filter_callbacks(app, ctx)
    register_reports_callbacks(app, ctx)

    logger.info("Dash app created", extra={"title": browser_title, "modules": len(ctx.modules.children)})
    return app
