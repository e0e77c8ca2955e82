from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from dash.development.base_component import Component

from data_explorer.config.settings import Settings
from data_explorer.core.filter_state import FilterState
from data_explorer.core.modules import ModuleGroup
from data_explorer.core.resolver import DataResolver
from data_explorer.core.session import SessionManager
from data_explorer.services.bookmark_service import BookmarkService


@dataclass
class AppConfig:
    """
    Holds shared, read-only app state for the Dash layer: settings, the
    module tree, how to build a resolver per session and the services. This
    is passed into layout + callback registration functions instead of using
    module-level globals. Per-session state lives in SessionContext.
    """
    settings: Settings
    modules: ModuleGroup
    resolver_factory: Callable[[], DataResolver]
    default_filter: FilterState
    browser_title: str
    title_component: Component
    header: Component
    footer: Component
    splash_ui: Component

    session_manager: Optional[SessionManager] = None
    bookmark_service: Optional[BookmarkService] = None

    def validate(self) -> None:
        """Ensure all required services are attached before the app starts."""
        if self.session_manager is None:
            raise RuntimeError("AppConfig.session_manager must be initialized.")
        if self.bookmark_service is None:
            raise RuntimeError("AppConfig.bookmark_service must be initialized.")
