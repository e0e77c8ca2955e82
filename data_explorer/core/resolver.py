from __future__ import annotations

import logging
import threading
import uuid
from typing import Any, Callable, Dict, Optional

from data_explorer.core.exceptions import CredentialsError

logger = logging.getLogger(__name__)

Handler = Callable[[Any], None]


class Subscription:
    """Handle returned by DataResolver.subscribe; detach() is idempotent."""

    def __init__(self, resolver: DataResolver, sub_id: str):
        self._resolver = resolver
        self.id = sub_id
        self.active = True

    def detach(self) -> None:
        if self.active:
            self.active = False
            self._resolver._unsubscribe(self.id)


class DataResolver:
    """
    Asynchronous source of the session's data.

    Emits zero or more values over time to its subscribers, in order. Values
    are usually a mapping of dataset name -> DataFrame; None means "not yet".
    Subclasses decide when to emit (start(), credentials, ...).
    """

    requires_credentials: bool = False

    def __init__(self):
        self._lock = threading.RLock()
        self._subscribers: Dict[str, Handler] = {}

    def subscribe(self, handler: Handler) -> Subscription:
        sub_id = str(uuid.uuid4())
        with self._lock:
            self._subscribers[sub_id] = handler
        return Subscription(self, sub_id)

    def _unsubscribe(self, sub_id: str) -> None:
        with self._lock:
            self._subscribers.pop(sub_id, None)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def emit(self, value: Any) -> None:
        # emissions are serialised so subscribers see them in order
        with self._lock:
            handlers = list(self._subscribers.values())
            for handler in handlers:
                handler(value)

    def start(self) -> None:
        """Begin resolving. Default: nothing to do, someone else calls emit()."""
        pass


class StaticDataResolver(DataResolver):
    """Emits an already-loaded value as soon as the session starts."""

    def __init__(self, data: Any):
        super().__init__()
        self._data = data

    def start(self) -> None:
        self.emit(self._data)


class LoaderDataResolver(DataResolver):
    """
    Calls 'loader' on start() and emits its result. Loader exceptions
    propagate to the caller; nothing is emitted.
    """

    def __init__(self, loader: Callable[[], Any]):
        super().__init__()
        self._loader = loader

    def start(self) -> None:
        logger.info("Loading data", extra={"loader": getattr(self._loader, "__name__", repr(self._loader))})
        self.emit(self._loader())


class PasswordDataResolver(DataResolver):
    """
    Loads data only after the user supplied a password accepted by 'check'.
    Until then the session stays on the splash screen.
    """

    def __init__(self, loader: Callable[[], Any], check: Callable[[str], bool]):
        super().__init__()
        self._loader = loader
        self._check = check
        self.requires_credentials = True

    def submit(self, password: Optional[str]) -> None:
        """
        Raises:
            CredentialsError: password missing or rejected
        """
        if not password or not self._check(password):
            logger.warning("Rejected data access credentials")
            raise CredentialsError("Invalid password")
        self.requires_credentials = False
        self.emit(self._loader())
