from __future__ import annotations

import io
import json
import logging
import threading
import uuid
import zipfile
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class ReportCard:
    """
    One entry of the session report.

    - title: heading shown in the previewer
    - text: free text (markdown friendly)
    - table: optional list-of-records snapshot of a filtered table
    - figure: optional plotly figure as a JSON-compatible dict
    - filters: filter state at the time the card was added
    """

    title: str
    text: str = ""
    table: Optional[List[Dict[str, Any]]] = None
    figure: Optional[Dict[str, Any]] = None
    filters: Optional[Dict[str, Any]] = None
    source: Optional[str] = None
    id: str = field(default_factory=lambda: f"card-{uuid.uuid4().hex[:8]}")
    created_at: str = field(default_factory=now_iso)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_markdown(self) -> str:
        lines = [f"## {self.title}", ""]
        if self.source:
            lines.append(f"_Source: {self.source}_")
            lines.append("")
        if self.text:
            lines.append(self.text)
            lines.append("")
        if self.table:
            cols = list(self.table[0].keys())
            lines.append("| " + " | ".join(cols) + " |")
            lines.append("|" + "---|" * len(cols))
            for row in self.table:
                lines.append("| " + " | ".join(str(row.get(c, "")) for c in cols) + " |")
            lines.append("")
        return "\n".join(lines)


class Reporter:
    """
    Session-scoped report aggregator shared by all modules that use it.
    """

    def __init__(self):
        self.id: str = ""
        self._lock = threading.Lock()
        self._cards: List[ReportCard] = []
        self.version = 0

    def set_id(self, report_id: Optional[str]) -> Reporter:
        self.id = report_id or ""
        return self

    @property
    def cards(self) -> List[ReportCard]:
        with self._lock:
            return list(self._cards)

    def append_card(self, card: ReportCard) -> ReportCard:
        with self._lock:
            self._cards.append(card)
            self.version += 1
        logger.info("Report card added", extra={"card_id": card.id, "source": card.source})
        return card

    def remove_card(self, card_id: str) -> bool:
        with self._lock:
            before = len(self._cards)
            self._cards = [c for c in self._cards if c.id != card_id]
            changed = len(self._cards) != before
            if changed:
                self.version += 1
            return changed

    def reset(self) -> None:
        with self._lock:
            self._cards = []
            self.version += 1
        logger.info("Report reset", extra={"report_id": self.id})

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "generated_at": now_iso(),
            "cards": [c.to_dict() for c in self.cards],
        }

    def to_markdown(self) -> str:
        header = f"# Report {self.id}".rstrip() + "\n\n"
        return header + "\n".join(c.to_markdown() for c in self.cards)

    def to_zip_bytes(self) -> bytes:
        """
        ZIP bundle containing report.json (all cards) and report.md (readable version).
        """
        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as zf:
            zf.writestr("report.json", json.dumps(self.to_dict(), indent=2, default=str).encode("utf-8"))
            zf.writestr("report.md", self.to_markdown().encode("utf-8"))
        return buf.getvalue()
