from __future__ import annotations

from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple, TYPE_CHECKING

import pandas as pd

from data_explorer.core.exceptions import DatasetSchemaError

if TYPE_CHECKING:
    from data_explorer.core.filter_state import FilterState


class DataBundle(Mapping[str, pd.DataFrame]):
    """
    Immutable snapshot of the raw datasets produced by a DataResolver.

    - Keys are dataset names ("datanames"), values are pandas DataFrames
    - The underlying dict is wrapped in a read-only proxy after construction
    - Consumed exactly once by the dataset registry build
    """

    def __init__(self, datasets: Mapping[str, pd.DataFrame]):
        frames: Dict[str, pd.DataFrame] = {}
        for name, df in datasets.items():
            if not isinstance(name, str) or not name:
                raise DatasetSchemaError(f"Dataset names must be non-empty strings, got {name!r}")
            if not isinstance(df, pd.DataFrame):
                raise DatasetSchemaError(
                    f"Dataset '{name}' must be a pandas DataFrame, got {type(df).__name__}"
                )
            frames[name] = df
        self._frames = MappingProxyType(frames)

    @classmethod
    def coerce(cls, value: Any) -> DataBundle:
        if isinstance(value, DataBundle):
            return value
        if isinstance(value, Mapping):
            return cls(value)
        raise DatasetSchemaError(f"Cannot build a DataBundle from {type(value).__name__}")

    def __getitem__(self, name: str) -> pd.DataFrame:
        return self._frames[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._frames)

    def __len__(self) -> int:
        return len(self._frames)

    @property
    def datanames(self) -> Tuple[str, ...]:
        return tuple(self._frames)

    def __repr__(self) -> str:
        shapes = ", ".join(f"{k}={v.shape}" for k, v in self._frames.items())
        return f"DataBundle({shapes})"


def is_empty(value: Any) -> bool:
    """
    True for emissions the lifecycle must ignore: None and empty mappings/bundles.
    """
    if value is None:
        return True
    if isinstance(value, Mapping):
        return len(value) == 0
    return False


class DatasetView(Mapping[str, pd.DataFrame]):
    """
    Filtered view over a subset of the shared dataset storage.

    The view never copies data: it keeps references to the same DataFrame
    objects as the registry storage and applies the session FilterState on
    every read, so filter changes are visible immediately in every view that
    exposes the affected dataset.

    Mapping access (view["iris"]) returns the *filtered* frame.
    """

    def __init__(self, storage: Mapping[str, pd.DataFrame], filter_state: FilterState):
        self._storage = MappingProxyType(dict(storage))
        self.filter_state = filter_state

    @property
    def datanames(self) -> Tuple[str, ...]:
        return tuple(self._storage)

    def raw(self, name: str) -> pd.DataFrame:
        try:
            return self._storage[name]
        except KeyError:
            raise KeyError(f"Dataset '{name}' is not available in this view") from None

    def filtered(self, name: str) -> pd.DataFrame:
        return self.filter_state.apply(name, self.raw(name))

    def __getitem__(self, name: str) -> pd.DataFrame:
        return self.filtered(name)

    def __iter__(self) -> Iterator[str]:
        return iter(self._storage)

    def __len__(self) -> int:
        return len(self._storage)

    def row_counts(self, name: Optional[str] = None) -> Dict[str, Tuple[int, int]]:
        """
        (filtered, total) row counts per dataset, used by the filter panel header.
        """
        names = [name] if name is not None else list(self._storage)
        return {n: (len(self.filtered(n)), len(self.raw(n))) for n in names}
