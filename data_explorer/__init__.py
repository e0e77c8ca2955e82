"""
Top-level package for the data explorer.

This package exposes the core architecture (lifecycle, datasets, modules, UI adapters).
Most code should import from submodules such as:
    data_explorer.core
    data_explorer.views
    data_explorer.ui
"""

__all__: list[str] = []
