from __future__ import annotations

import logging

from data_explorer.core.modules import ModuleGroup
from data_explorer.core.registry import DatasetRegistry
from data_explorer.core.session import SessionContext
from data_explorer.ui.layout.build_tabs import build_main_ui

logger = logging.getLogger(__name__)


class DashUiSwapper:
    """
    Builds the tab UI when the lifecycle asks for the swap and parks it on
    the session; the poll callback hands it to the browser exactly once
    (see callbacks_lifecycle.build_swap_patch).
    """

    def swap(self, session: SessionContext, modules: ModuleGroup, registry: DatasetRegistry) -> None:
        session.main_ui = build_main_ui(modules)
        logger.debug("Main UI built", extra={"session_id": session.session_id, "modules": len(registry)})
