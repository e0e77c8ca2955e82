from __future__ import annotations

import json
import logging
import re
import uuid
from typing import Any, List, Optional

from data_explorer.core.filter_state import FilterState
from data_explorer.core.reporter import now_iso
from data_explorer.services.storage import StorageBackend

logger = logging.getLogger(__name__)

_BOOKMARK_ID = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


class BookmarkService:
    """
    Saves filter-state snapshots so a session can be restored from a URL
    (?bookmark=<id>). Loading returns the raw JSON payload: turning it into a
    FilterState is the lifecycle's job (restore_filter_state).
    """

    def __init__(self, storage: StorageBackend):
        self.storage = storage

    @staticmethod
    def _path(bookmark_id: str) -> str:
        return f"{bookmark_id}.json"

    def save(self, filter_state: FilterState) -> str:
        bookmark_id = uuid.uuid4().hex[:12]
        payload = {
            "bookmark_id": bookmark_id,
            "created_at": now_iso(),
            "filter_state": filter_state.to_dict(),
        }
        self.storage.write_bytes(self._path(bookmark_id), json.dumps(payload, indent=2).encode("utf-8"))
        logger.info("Bookmark saved", extra={"bookmark_id": bookmark_id, "slices": len(filter_state.slices)})
        return bookmark_id

    def load(self, bookmark_id: Optional[str]) -> Any:
        """
        Return the stored snapshot, or None if the id is malformed, unknown or the file is corrupt.
        """
        if not bookmark_id or not _BOOKMARK_ID.match(bookmark_id):
            return None
        path = self._path(bookmark_id)
        if not self.storage.exists(path):
            logger.warning("Unknown bookmark requested", extra={"bookmark_id": bookmark_id})
            return None
        try:
            data = json.loads(self.storage.read_bytes(path))
        except (OSError, ValueError):
            logger.exception("Failed to read bookmark %s", bookmark_id)
            return None
        if isinstance(data, dict) and "filter_state" in data:
            return data["filter_state"]
        return data

    def list_ids(self) -> List[str]:
        return [p[: -len(".json")] for p in self.storage.list_files("", suffix=".json")]
