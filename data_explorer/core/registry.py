from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Optional, Tuple

import pandas as pd

from data_explorer.core.data import DataBundle, DatasetView
from data_explorer.core.exceptions import RegistryBuildError
from data_explorer.core.filter_state import FilterState
from data_explorer.core.modules import ALL_DATANAMES, Module, ModuleNode, count_leaves, walk_leaves
from data_explorer.core.progress import ProgressSink, ProgressTracker

logger = logging.getLogger(__name__)


class DatasetRegistry(Mapping[str, DatasetView]):
    """
    Per-module filtered views over one resolved DataBundle.

    - Keys are module ids (see modules.walk_leaves), values are DatasetViews
    - 'storage' holds the shared DataFrames; every view referencing a dataset
      holds the very same object, so nothing is copied per module
    - every view reads through the same FilterState
    """

    def __init__(
            self,
            views: Dict[str, DatasetView],
            storage: Dict[str, pd.DataFrame],
            filter_state: FilterState,
    ):
        self._views = MappingProxyType(dict(views))
        self.storage = MappingProxyType(dict(storage))
        self.filter_state = filter_state

    def __getitem__(self, module_id: str) -> DatasetView:
        return self._views[module_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._views)

    def __len__(self) -> int:
        return len(self._views)

    def for_module(self, module_id: str) -> DatasetView:
        try:
            return self._views[module_id]
        except KeyError:
            raise KeyError(f"No datasets registered for module '{module_id}'") from None


def _resolve_datanames(module: Module, bundle: DataBundle) -> Tuple[str, ...]:
    if module.datanames == ALL_DATANAMES:
        return bundle.datanames

    missing = [n for n in module.datanames if n not in bundle]
    if missing:
        raise RegistryBuildError(
            f"Module '{module.label}' needs datasets not present in the data: {', '.join(missing)}"
        )
    # de-duplicate, keep declaration order
    return tuple(dict.fromkeys(module.datanames))


def build_dataset_registry(
        bundle: DataBundle,
        tree: ModuleNode,
        filter_state: FilterState,
        progress: Optional[ProgressSink] = None,
) -> DatasetRegistry:
    """
    Walk the module tree depth-first and build one DatasetView per leaf.

    Progress is advanced after each leaf (processed / total) and the sink is
    always closed, including when the build fails.

    Raises:
        RegistryBuildError: a module declares a dataset that the bundle doesn't contain
    """
    total = count_leaves(tree)
    storage: Dict[str, pd.DataFrame] = {}
    views: Dict[str, DatasetView] = {}

    with ProgressTracker(progress, total=total, message="Preparing data filtering") as tracker:
        for module_id, module in walk_leaves(tree):
            names = _resolve_datanames(module, bundle)
            for name in names:
                if name not in storage:
                    storage[name] = bundle[name]
            views[module_id] = DatasetView({n: storage[n] for n in names}, filter_state)
            logger.debug(
                "Registered datasets for module",
                extra={"module_id": module_id, "datanames": list(names)},
            )
            tracker.step()
        tracker.finish()

    logger.info(
        "Dataset registry built",
        extra={"modules": len(views), "datasets": list(storage)},
    )
    return DatasetRegistry(views, storage, filter_state)
