from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from data_explorer.core.exceptions import ConfigError

logger = logging.getLogger(__name__)


@dataclass
class Settings:
    """
    Runtime settings for the Dash app.

    - ui_title: browser tab title when the app is not given one
    - poll_interval_ms: how often the splash screen checks whether data is ready
    - bookmark_dir: where bookmarked filter states are written
    - session_max_idle_s: sessions not seen for this long are closed
    """
    ui_title: str = "Data Explorer"
    poll_interval_ms: int = 500
    bookmark_dir: Path = Path("bookmarks")
    session_max_idle_s: float = 3600.0
    port: int = 8050
    debug: bool = False


def _read_global_json(root: Path) -> Dict[str, Any]:
    global_path = root / "global.json"
    if not global_path.is_file():
        return {}
    try:
        with global_path.open() as f:
            raw = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Could not read {global_path}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"{global_path} must contain a JSON object")
    return raw


def load_settings(root: Optional[Path | str] = None) -> Settings:
    """
    Load settings from <root>/global.json (optional) then apply env overrides.

    Selection Order (per field):
        1) env var (PORT, DEBUG, DATA_EXPLORER_BOOKMARK_DIR)
        2) global.json
        3) dataclass default
    """
    root = Path(root) if root is not None else Path("config")
    logger.info("Loading settings", extra={"config_root": str(root)})
    raw = _read_global_json(root)

    try:
        bookmark_dir = Path(os.getenv("DATA_EXPLORER_BOOKMARK_DIR") or raw.get("bookmark_dir", "bookmarks"))
        if not bookmark_dir.is_absolute():
            bookmark_dir = root / bookmark_dir

        return Settings(
            ui_title=str(raw.get("ui_title", Settings.ui_title)),
            poll_interval_ms=int(raw.get("poll_interval_ms", Settings.poll_interval_ms)),
            bookmark_dir=bookmark_dir,
            session_max_idle_s=float(raw.get("session_max_idle_s", Settings.session_max_idle_s)),
            port=int(os.getenv("PORT", raw.get("port", Settings.port))),
            debug=os.getenv("DEBUG", "1" if raw.get("debug") else "0") == "1",
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid setting value: {e}") from e
