from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import pandas as pd

logger = logging.getLogger(__name__)

KIND_CHOICES = "choices"
KIND_RANGE = "range"


@dataclass(frozen=True)
class FilterSlice:
    """
    A single row predicate on one column of one dataset.

    Fields:

    - dataname: name of the dataset the slice applies to
    - varname: column the predicate reads
    - selected: chosen values ("choices") or (low, high) bounds ("range")
    - kind: "choices" or "range"
    - keep_na: if True, rows with a missing value are kept
    - fixed: if True, the slice cannot be removed by the user

    An empty "choices" selection means "all values", same as an unset dropdown.
    """

    dataname: str
    varname: str
    selected: Tuple[Any, ...] = field(default_factory=tuple)
    kind: str = KIND_CHOICES
    keep_na: bool = False
    fixed: bool = False

    def __post_init__(self) -> None:
        if not self.dataname or not self.varname:
            raise ValueError("FilterSlice needs both dataname and varname")
        if self.kind not in (KIND_CHOICES, KIND_RANGE):
            raise ValueError(f"Unknown filter kind '{self.kind}'")
        object.__setattr__(self, "selected", tuple(self.selected))
        if self.kind == KIND_RANGE:
            if len(self.selected) != 2:
                raise ValueError(f"Range filter on '{self.id}' needs exactly two bounds")
            low, high = self.selected
            try:
                ordered = low <= high
            except TypeError:
                raise ValueError(f"Range filter on '{self.id}' has incomparable bounds {low!r}, {high!r}") from None
            if not ordered:
                raise ValueError(f"Range filter on '{self.id}' has low > high")

    @property
    def id(self) -> str:
        return f"{self.dataname} {self.varname}"

    def mask(self, df: pd.DataFrame) -> pd.Series:
        if self.varname not in df.columns:
            return pd.Series(True, index=df.index)

        col = df[self.varname]
        missing = col.isna()

        if self.kind == KIND_RANGE:
            low, high = self.selected
            keep = col.between(low, high) & ~missing
        elif not self.selected:
            return pd.Series(True, index=df.index)
        else:
            wanted = {str(v) for v in self.selected}
            keep = col.astype(str).isin(wanted) & ~missing

        if self.keep_na:
            keep = keep | missing
        return keep

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dataname": self.dataname,
            "varname": self.varname,
            "selected": list(self.selected),
            "kind": self.kind,
            "keep_na": self.keep_na,
            "fixed": self.fixed,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> FilterSlice:
        if not isinstance(data, dict):
            raise TypeError(f"Cannot interpret {type(data).__name__} as a filter slice")
        selected = data.get("selected", [])
        if isinstance(selected, (str, bytes)) or not isinstance(selected, Iterable):
            selected = [selected]
        return cls(
            dataname=data["dataname"],
            varname=data["varname"],
            selected=tuple(selected),
            kind=data.get("kind", KIND_CHOICES),
            keep_na=bool(data.get("keep_na", False)),
            fixed=bool(data.get("fixed", False)),
        )


class FilterState:
    """
    Ordered, versioned set of FilterSlices scoped per dataset.

    The same instance is shared by every DatasetView of a session, so any
    mutation here is seen by all views on their next read. 'version' bumps on
    every effective change; the UI uses it to know when to re-render.
    """

    def __init__(self, slices: Iterable[FilterSlice] = (), app_id: Optional[str] = None):
        self.app_id: str = app_id or ""
        self.version: int = 0
        self._lock = threading.RLock()
        self._slices: Dict[str, FilterSlice] = {}
        for s in slices:
            self._slices[s.id] = s

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------
    @property
    def slices(self) -> List[FilterSlice]:
        with self._lock:
            return list(self._slices.values())

    def slices_for(self, dataname: str) -> List[FilterSlice]:
        return [s for s in self.slices if s.dataname == dataname]

    def get(self, dataname: str, varname: str) -> Optional[FilterSlice]:
        with self._lock:
            return self._slices.get(f"{dataname} {varname}")

    def apply(self, dataname: str, df: pd.DataFrame) -> pd.DataFrame:
        slices = self.slices_for(dataname)
        if not slices:
            return df
        keep = pd.Series(True, index=df.index)
        for s in slices:
            keep &= s.mask(df)
        return df.loc[keep]

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------
    def set_slice(self, new_slice: FilterSlice) -> None:
        with self._lock:
            current = self._slices.get(new_slice.id)
            if current == new_slice:
                return
            if current is not None and current.fixed:
                raise ValueError(f"Filter '{new_slice.id}' is fixed")
            self._slices[new_slice.id] = new_slice
            self.version += 1

    def remove_slice(self, dataname: str, varname: str) -> bool:
        key = f"{dataname} {varname}"
        with self._lock:
            current = self._slices.get(key)
            if current is None or current.fixed:
                return False
            del self._slices[key]
            self.version += 1
            return True

    def clear(self, dataname: Optional[str] = None) -> int:
        """
        Remove every non-fixed slice (optionally only for one dataset).
        Returns how many slices were removed.
        """
        with self._lock:
            doomed = [
                k for k, s in self._slices.items()
                if not s.fixed and (dataname is None or s.dataname == dataname)
            ]
            for k in doomed:
                del self._slices[k]
            if doomed:
                self.version += 1
            return len(doomed)

    # ------------------------------------------------------------------
    # Serialisation
    # ------------------------------------------------------------------
    def to_dict(self) -> Dict[str, Any]:
        return {
            "app_id": self.app_id,
            "slices": [s.to_dict() for s in self.slices],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> FilterState:
        raw_slices = data.get("slices", [])
        if not isinstance(raw_slices, list):
            raise TypeError("'slices' must be a list")
        return cls(
            slices=[s if isinstance(s, FilterSlice) else FilterSlice.from_dict(s) for s in raw_slices],
            app_id=data.get("app_id"),
        )

    def copy(self) -> FilterState:
        return FilterState(self.slices, app_id=self.app_id)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FilterState):
            return NotImplemented
        return self.app_id == other.app_id and self.slices == other.slices

    def __repr__(self) -> str:
        ids = ", ".join(s.id for s in self.slices)
        return f"FilterState(app_id={self.app_id!r}, slices=[{ids}])"


# ----------------------------------------------------------------------
# Restore from bookmark snapshots
# ----------------------------------------------------------------------
class SnapshotKind(Enum):
    VALID = "valid"
    NEEDS_NORMALIZATION = "needs_normalization"
    INVALID = "invalid"


@dataclass(frozen=True)
class SnapshotClassification:
    kind: SnapshotKind
    value: Any


def classify_snapshot(raw: Any) -> SnapshotClassification:
    if isinstance(raw, FilterState):
        return SnapshotClassification(SnapshotKind.VALID, raw)
    if isinstance(raw, (dict, list, tuple, FilterSlice)):
        return SnapshotClassification(SnapshotKind.NEEDS_NORMALIZATION, raw)
    return SnapshotClassification(SnapshotKind.INVALID, raw)


def _coerce_slice(item: Any) -> FilterSlice:
    if isinstance(item, FilterSlice):
        return item
    if isinstance(item, dict):
        return FilterSlice.from_dict(item)
    raise TypeError(f"Cannot interpret {type(item).__name__} as a filter slice")


def normalise_snapshot(raw: Any, app_id: str = "") -> FilterState:
    """
    Pure coercion of a bookmarked snapshot into a FilterState.
    Supports:
      1) serialised state: {"app_id": ..., "slices": [...]}
      2) a single slice dict: {"dataname": ..., "varname": ..., ...}
      3) a list/tuple of slice dicts or FilterSlice objects
      4) a bare FilterSlice

    Raises ValueError if the snapshot cannot be coerced.
    """
    try:
        if isinstance(raw, dict) and "slices" in raw:
            state = FilterState.from_dict(raw)
            if not state.app_id:
                state.app_id = app_id
            return state
        if isinstance(raw, dict) and "dataname" in raw:
            return FilterState([FilterSlice.from_dict(raw)], app_id=app_id)
        if isinstance(raw, FilterSlice):
            return FilterState([raw], app_id=app_id)
        if isinstance(raw, (list, tuple)):
            return FilterState([_coerce_slice(item) for item in raw], app_id=app_id)
    except (KeyError, TypeError, ValueError) as e:
        raise ValueError(f"Invalid filter snapshot: {e}") from e
    raise ValueError(f"Unrecognised filter snapshot of type {type(raw).__name__}")


def restore_filter_state(snapshot: Any, default: FilterState) -> FilterState:
    """
    Return the FilterState a session starts with.

    - no snapshot -> default
    - valid FilterState snapshot -> the snapshot itself
    - coercible snapshot -> its normalised form
    - anything else -> default (logged)
    """
    if snapshot is None:
        return default

    classified = classify_snapshot(snapshot)
    if classified.kind is SnapshotKind.VALID:
        return classified.value

    if classified.kind is SnapshotKind.NEEDS_NORMALIZATION:
        try:
            return normalise_snapshot(classified.value, app_id=default.app_id)
        except ValueError as e:
            logger.warning("Bookmarked filter snapshot could not be normalised, using default: %s", e)
            return default

    logger.warning(
        "Bookmarked filter snapshot has unsupported type, using default",
        extra={"snapshot_type": type(snapshot).__name__},
    )
    return default


def slices_from_pairs(dataname: str, pairs: Sequence[Tuple[str, Sequence[Any]]]) -> List[FilterSlice]:
    """Convenience for building categorical slices: [("Species", ["setosa"]), ...]"""
    return [FilterSlice(dataname=dataname, varname=v, selected=tuple(sel)) for v, sel in pairs]
