"""
Core domain layer: data bundle and views, filter state, module tree,
dataset registry, reporter, resolvers and the session lifecycle
"""

from .data import DataBundle, DatasetView
from .filter_state import FilterSlice, FilterState
from .lifecycle import AppLifecycle, LifecycleState
from .modules import Module, ModuleContext, ModuleGroup, modules
from .registry import DatasetRegistry, build_dataset_registry
from .reporter import ReportCard, Reporter
from .resolver import DataResolver, LoaderDataResolver, PasswordDataResolver, StaticDataResolver
from .session import SessionContext, SessionManager

__all__ = [
    "AppLifecycle",
    "DataBundle",
    "DataResolver",
    "DatasetRegistry",
    "DatasetView",
    "FilterSlice",
    "FilterState",
    "LifecycleState",
    "LoaderDataResolver",
    "Module",
    "ModuleContext",
    "ModuleGroup",
    "PasswordDataResolver",
    "ReportCard",
    "Reporter",
    "SessionContext",
    "SessionManager",
    "StaticDataResolver",
    "build_dataset_registry",
    "modules",
]
