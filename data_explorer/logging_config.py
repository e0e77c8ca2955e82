from __future__ import annotations

import logging
import os
from typing import Optional, Union

from pythonjsonlogger import jsonlogger

# Dash's dev server logs every poll request at INFO
NOISY_LOGGERS = ("werkzeug",)


def configure_logging(
        level: Union[int, str, None] = None,
        force_format: Optional[str] = None,
) -> None:
    """
    Configure the root logger for the app.

    Format selection:
        1) force_format argument ("json" or "plain") if provided
        2) env var DATA_EXPLORER_LOG_FORMAT
        3) default = "json"

    Level selection:
        1) level argument (int or name)
        2) env var DATA_EXPLORER_LOG_LEVEL
        3) default = INFO

    Session ids, module ids etc. passed via extra={...} become JSON fields.
    """
    format_mode = (force_format or os.getenv("DATA_EXPLORER_LOG_FORMAT", "json")).lower()
    if level is None:
        level = os.getenv("DATA_EXPLORER_LOG_LEVEL", "INFO")
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)

    handler = logging.StreamHandler()
    if format_mode == "plain":
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)-7s %(name)s | %(message)s"))
    else:
        handler.setFormatter(
            jsonlogger.JsonFormatter(
                "%(asctime)s %(levelname)s %(name)s %(message)s",
                rename_fields={"asctime": "ts", "levelname": "level", "name": "logger"},
            )
        )

    # one handler only, also when called again (tests, dev reloader)
    root.handlers.clear()
    root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
