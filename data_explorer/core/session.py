from __future__ import annotations

import logging
import os
import secrets
import threading
import time
import uuid
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

from data_explorer.core.progress import SessionProgress
from data_explorer.core.reporter import Reporter

if TYPE_CHECKING:
    from data_explorer.core.filter_state import FilterState
    from data_explorer.core.lifecycle import AppLifecycle
    from data_explorer.core.modules import ModuleHandle
    from data_explorer.core.registry import DatasetRegistry
    from data_explorer.core.resolver import DataResolver

logger = logging.getLogger(__name__)


class OneShot:
    """
    Runs a function at most once. Once fired (even if the function raised)
    every later fire() is a no-op returning False.
    """

    def __init__(self, name: str = "one-shot"):
        self.name = name
        self._lock = threading.Lock()
        self._fired = False

    @property
    def fired(self) -> bool:
        return self._fired

    def fire(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> bool:
        with self._lock:
            if self._fired:
                logger.debug("Ignoring repeated trigger", extra={"one_shot": self.name})
                return False
            self._fired = True
        fn(*args, **kwargs)
        return True


class SessionContext:
    """
    Per-client state. One instance per connected browser session, passed
    explicitly to every component that needs session data instead of using
    module-level globals.
    """

    def __init__(self, session_id: Optional[str] = None, token: Optional[str] = None):
        self.session_id: str = session_id or str(uuid.uuid4())
        self.token: str = token or secrets.token_hex(16)
        self.lock = threading.RLock()

        self.filter_state: Optional[FilterState] = None
        self.registry: Optional[DatasetRegistry] = None
        self.reporter = Reporter()
        self.progress = SessionProgress()

        self.resolver: Optional[DataResolver] = None
        self.lifecycle: Optional[AppLifecycle] = None
        self.bookmark_snapshot: Any = None

        self.active_modules: Dict[str, ModuleHandle] = {}
        self.active_module_id: Optional[str] = None

        # built by the UI swapper, handed to the browser once
        self.main_ui: Any = None
        self.ui_delivery = OneShot("ui-delivery")
        self.error: Optional[str] = None

        self.timezone: Optional[str] = None
        self._timezone_once = OneShot("timezone")

        self.created_at = time.monotonic()
        self.last_seen = self.created_at

    def touch(self) -> None:
        self.last_seen = time.monotonic()

    def receive_timezone(self, tz: Optional[str]) -> bool:
        """Store the client's timezone the first time a value arrives; later values are ignored."""
        if not tz:
            return False

        def _store() -> None:
            self.timezone = tz
            logger.debug("Timezone set to client's timezone", extra={"session_id": self.session_id, "tz": tz})

        return self._timezone_once.fire(_store)

    def identifier(self) -> str:
        return f"Pid:{os.getpid()} Token:{self.token[24:32]}"

    @property
    def is_active(self) -> bool:
        from data_explorer.core.lifecycle import LifecycleState

        return self.lifecycle is not None and self.lifecycle.state is LifecycleState.ACTIVE


class SessionManager:
    """
    Creates sessions on connect, hands them out by id and destroys them on
    disconnect. 'on_open' wires each new session (resolver, lifecycle, ...).
    """

    def __init__(self, on_open: Optional[Callable[[SessionContext], None]] = None):
        self._on_open = on_open
        self._lock = threading.Lock()
        self._sessions: Dict[str, SessionContext] = {}

    def open(self, session_id: Optional[str] = None, bookmark_snapshot: Any = None) -> SessionContext:
        with self._lock:
            if session_id and session_id in self._sessions:
                return self._sessions[session_id]
            session = SessionContext(session_id=session_id)
            session.bookmark_snapshot = bookmark_snapshot
            self._sessions[session.session_id] = session

        logger.info("Session opened", extra={"session_id": session.session_id})
        if self._on_open is not None:
            self._on_open(session)
        return session

    def get(self, session_id: Optional[str]) -> Optional[SessionContext]:
        if not session_id:
            return None
        with self._lock:
            session = self._sessions.get(session_id)
        if session is not None:
            session.touch()
        return session

    def close(self, session_id: str) -> bool:
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        if session.lifecycle is not None:
            session.lifecycle.dispose()
        session.progress.close()
        logger.info("Session closed", extra={"session_id": session_id})
        return True

    def prune_idle(self, max_age_s: float) -> List[str]:
        """Close sessions not seen for max_age_s seconds; Dash has no disconnect hook."""
        cutoff = time.monotonic() - max_age_s
        with self._lock:
            stale = [sid for sid, s in self._sessions.items() if s.last_seen < cutoff]
        for sid in stale:
            self.close(sid)
        return stale

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._sessions
