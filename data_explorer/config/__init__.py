"""
Config package for data_explorer.

Responsible for:
- the Settings model
- loading global.json + environment overrides (load_settings)
"""

from .settings import Settings, load_settings

__all__ = ["Settings", "load_settings"]
