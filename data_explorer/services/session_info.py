from __future__ import annotations

import platform
import sys
from importlib import metadata
from typing import Iterable, List

KEY_PACKAGES = (
    "dash",
    "dash-bootstrap-components",
    "pandas",
    "numpy",
    "plotly",
    "python-json-logger",
)


def _version(dist_name: str) -> str:
    try:
        return metadata.version(dist_name)
    except metadata.PackageNotFoundError:
        return "not installed"


def session_info_text(packages: Iterable[str] = KEY_PACKAGES) -> str:
    """Plain-text environment summary shown in the 'Session Info' popup."""
    lines: List[str] = [
        f"Python {sys.version.split()[0]} ({platform.python_implementation()})",
        f"Platform: {platform.platform()}",
        "",
        "Packages:",
    ]
    lines.extend(f"  {name}=={_version(name)}" for name in packages)
    return "\n".join(lines)


def lockfile_text() -> str:
    """
    Pinned requirements (name==version) for every installed distribution,
    sorted case-insensitively. Offered as a downloadable .lock file.
    """
    pins = {}
    for dist in metadata.distributions():
        name = dist.metadata.get("Name")
        if name:
            pins[name.lower()] = f"{name}=={dist.version}"
    header = f"# Generated for Python {sys.version.split()[0]}\n"
    return header + "\n".join(pins[k] for k in sorted(pins)) + "\n"
