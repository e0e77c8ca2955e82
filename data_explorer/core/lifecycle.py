from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Optional, Protocol

from data_explorer.core.data import DataBundle, is_empty
from data_explorer.core.exceptions import SessionError
from data_explorer.core.filter_state import FilterState, restore_filter_state
from data_explorer.core.modules import ModuleContext, ModuleGroup, walk_leaves
from data_explorer.core.progress import ProgressSink
from data_explorer.core.registry import DatasetRegistry, build_dataset_registry
from data_explorer.core.resolver import DataResolver, Subscription
from data_explorer.core.session import OneShot, SessionContext

logger = logging.getLogger(__name__)


class LifecycleState(Enum):
    AWAITING_DATA = "awaiting_data"
    BUILDING_REGISTRY = "building_registry"
    ACTIVE = "active"
    FAILED = "failed"
    CLOSED = "closed"


class UiSwapper(Protocol):
    """Replaces the splash screen with the tab UI once the registry exists."""

    def swap(self, session: SessionContext, modules: ModuleGroup, registry: DatasetRegistry) -> None: ...


class AppLifecycle:
    """
    Session state machine: AWAITING_DATA -> BUILDING_REGISTRY -> ACTIVE.

    - subscribes to the resolver and reacts to the first non-empty emission only;
      the subscription is detached before anything else happens
    - restores the filter state (bookmark snapshot or a copy of the default),
      builds the dataset registry, swaps the UI, then activates every module once
    - a build or swap failure moves to FAILED and raises SessionError; modules are not activated
      and the progress sink is closed
    - there is no way back to an earlier state
    """

    def __init__(
            self,
            session: SessionContext,
            modules: ModuleGroup,
            resolver: DataResolver,
            default_filter: Optional[FilterState] = None,
            swapper: Optional[UiSwapper] = None,
            bookmark_snapshot: Any = None,
            progress: Optional[ProgressSink] = None,
    ):
        self.session = session
        self.modules = modules
        self.resolver = resolver
        self.default_filter = default_filter if default_filter is not None else FilterState()
        self.swapper = swapper
        self.bookmark_snapshot = bookmark_snapshot
        self.progress = progress if progress is not None else session.progress

        self.state = LifecycleState.AWAITING_DATA
        self._subscription: Optional[Subscription] = None
        self._armed = True
        self._activation = OneShot("module-activation")

        session.lifecycle = self
        session.resolver = resolver

    def start(self) -> None:
        """Subscribe to the resolver, then let it start resolving."""
        with self.session.lock:
            if self._subscription is not None or not self._armed:
                return
            self._subscription = self.resolver.subscribe(self._on_emission)
        logger.debug("Lifecycle waiting for data", extra={"session_id": self.session.session_id})
        self.resolver.start()

    def _detach(self) -> None:
        if self._subscription is not None:
            self._subscription.detach()
            self._subscription = None

    def _on_emission(self, value: Any) -> None:
        with self.session.lock:
            if is_empty(value):
                logger.debug("Ignoring empty data emission", extra={"session_id": self.session.session_id})
                return
            if not self._armed:
                logger.debug("Ignoring data emission after first", extra={"session_id": self.session.session_id})
                return
            self._armed = False
            self._detach()
            self._build_and_activate(value)

    def _build_and_activate(self, value: Any) -> None:
        sid = self.session.session_id
        self.state = LifecycleState.BUILDING_REGISTRY
        logger.info("Data received, building dataset registry", extra={"session_id": sid})

        try:
            bundle = DataBundle.coerce(value)
            # the default is shared across sessions: each session filters its own copy
            filter_state = restore_filter_state(self.bookmark_snapshot, self.default_filter.copy())
            registry = build_dataset_registry(bundle, self.modules, filter_state, self.progress)
        except Exception as e:
            self.state = LifecycleState.FAILED
            self.session.error = str(e)
            logger.exception("Dataset registry build failed", extra={"session_id": sid})
            raise SessionError(f"Could not prepare data for session {sid}: {e}") from e
        finally:
            self.progress.close()

        self.session.filter_state = filter_state
        self.session.registry = registry
        self.session.reporter.set_id(filter_state.app_id)

        if self.swapper is not None:
            try:
                self.swapper.swap(self.session, self.modules, registry)
            except Exception as e:
                self.state = LifecycleState.FAILED
                self.session.error = str(e)
                self.session.main_ui = None
                logger.exception("Main UI swap failed", extra={"session_id": sid})
                raise SessionError(f"Could not build the main UI for session {sid}: {e}") from e
        logger.info("Main UI ready", extra={"session_id": sid})

        # modules assume their server logic is only set up once per session
        try:
            self._activation.fire(self._activate_modules, registry, filter_state)
        except Exception as e:
            self.state = LifecycleState.FAILED
            self.session.error = str(e)
            logger.exception("Module activation failed", extra={"session_id": sid})
            raise SessionError(f"Could not activate modules for session {sid}: {e}") from e

        self.state = LifecycleState.ACTIVE
        logger.info("Session active", extra={"session_id": sid, "modules": len(self.session.active_modules)})

    def _activate_modules(self, registry: DatasetRegistry, filter_state: FilterState) -> None:
        for module_id, module in walk_leaves(self.modules):
            ctx = ModuleContext(
                module_id=module_id,
                datasets=registry.for_module(module_id),
                module=module,
                reporter=self.session.reporter if module.uses_reporter else None,
                filter_state=filter_state,
                session=self.session,
            )
            self.session.active_modules[module_id] = module.server(ctx)
            if self.session.active_module_id is None:
                self.session.active_module_id = module_id

    def dispose(self) -> None:
        """Release the subscription (session disconnected). Safe to call at any point."""
        with self.session.lock:
            self._armed = False
            self._detach()
            if self.state is LifecycleState.AWAITING_DATA:
                self.state = LifecycleState.CLOSED
        self.progress.close()
