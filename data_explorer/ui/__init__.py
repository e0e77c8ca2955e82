"""
Dash layer: layout, callbacks and the create_dash_app entry point
"""

from .dash_app import create_dash_app

__all__ = ["create_dash_app"]
