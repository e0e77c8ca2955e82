from __future__ import annotations

import pandas as pd
import pytest

from data_explorer.core.filter_state import (
    FilterSlice,
    FilterState,
    SnapshotKind,
    classify_snapshot,
    normalise_snapshot,
    restore_filter_state,
    slices_from_pairs,
)


def _iris_like() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "Species": ["setosa", "setosa", "versicolor", "virginica", None],
            "Petal.Length": [1.4, 1.5, 4.5, 6.0, 5.1],
        }
    )


def test_choices_slice_keeps_matching_rows():
    df = _iris_like()
    st = FilterState([FilterSlice("iris", "Species", ("setosa",))])

    out = st.apply("iris", df)

    assert list(out["Species"]) == ["setosa", "setosa"]


def test_empty_choices_selection_keeps_everything():
    df = _iris_like()
    st = FilterState([FilterSlice("iris", "Species", ())])

    assert len(st.apply("iris", df)) == len(df)


def test_range_slice_and_keep_na():
    df = _iris_like()
    st = FilterState([FilterSlice("iris", "Petal.Length", (4.0, 5.5), kind="range")])
    assert list(st.apply("iris", df)["Petal.Length"]) == [4.5, 5.1]

    na_df = pd.DataFrame({"x": [1.0, None, 10.0]})
    keep_na = FilterState([FilterSlice("d", "x", (0, 5), kind="range", keep_na=True)])
    assert len(keep_na.apply("d", na_df)) == 2


def test_slices_only_apply_to_their_dataset():
    df = _iris_like()
    st = FilterState([FilterSlice("iris", "Species", ("setosa",))])

    assert len(st.apply("mtcars", df)) == len(df)


def test_unknown_column_keeps_all_rows():
    df = _iris_like()
    st = FilterState([FilterSlice("iris", "NotAColumn", ("x",))])

    assert len(st.apply("iris", df)) == len(df)


def test_version_bumps_only_on_effective_change():
    st = FilterState()
    s = FilterSlice("iris", "Species", ("setosa",))

    st.set_slice(s)
    assert st.version == 1
    st.set_slice(s)
    assert st.version == 1

    assert st.remove_slice("iris", "Species") is True
    assert st.version == 2
    assert st.remove_slice("iris", "Species") is False
    assert st.version == 2


def test_fixed_slices_survive_clear_and_cannot_be_replaced():
    fixed = FilterSlice("iris", "Species", ("setosa",), fixed=True)
    st = FilterState([fixed, FilterSlice("iris", "Petal.Length", (1, 2), kind="range")])

    removed = st.clear()

    assert removed == 1
    assert st.slices == [fixed]
    with pytest.raises(ValueError):
        st.set_slice(FilterSlice("iris", "Species", ("virginica",)))


def test_range_slice_needs_two_bounds():
    with pytest.raises(ValueError):
        FilterSlice("iris", "Petal.Length", (1,), kind="range")


def test_filter_state_to_from_dict_roundtrip():
    st = FilterState(slices_from_pairs("iris", [("Species", ["setosa", "virginica"])]), app_id="app")

    rebuilt = FilterState.from_dict(st.to_dict())

    assert rebuilt == st


def test_copy_is_independent():
    st = FilterState(slices_from_pairs("iris", [("Species", ["setosa"])]), app_id="app")
    clone = st.copy()

    clone.clear()

    assert len(st.slices) == 1
    assert clone.app_id == "app"


def test_classify_snapshot():
    assert classify_snapshot(FilterState()).kind is SnapshotKind.VALID
    assert classify_snapshot({"slices": []}).kind is SnapshotKind.NEEDS_NORMALIZATION
    assert classify_snapshot(42).kind is SnapshotKind.INVALID


def test_normalise_snapshot_accepts_single_slice_and_lists():
    single = normalise_snapshot({"dataname": "iris", "varname": "Species", "selected": "setosa"}, app_id="a")
    assert single.get("iris", "Species").selected == ("setosa",)
    assert single.app_id == "a"

    many = normalise_snapshot([FilterSlice("iris", "Species", ("setosa",)), {"dataname": "mtcars", "varname": "cyl"}])
    assert [s.id for s in many.slices] == ["iris Species", "mtcars cyl"]

    with pytest.raises(ValueError):
        normalise_snapshot({"slices": "nope"})


def test_restore_filter_state():
    default = FilterState(app_id="default")
    saved = FilterState(slices_from_pairs("iris", [("Species", ["setosa"])]), app_id="saved")

    # no snapshot -> default
    assert restore_filter_state(None, default) is default
    # already a FilterState -> used as is
    assert restore_filter_state(saved, default) is saved
    # serialised -> normalised
    assert restore_filter_state(saved.to_dict(), default) == saved
    # garbage -> default
    assert restore_filter_state("not a snapshot", default) is default
    assert restore_filter_state({"slices": [{"varname": "x"}]}, default) is default


def test_restore_falls_back_when_slice_entries_are_not_mappings():
    default = FilterState(app_id="default")

    assert restore_filter_state({"slices": ["x"]}, default) is default
    assert restore_filter_state({"slices": [["iris", "a"]]}, default) is default
    assert restore_filter_state([42], default) is default


def test_range_slice_rejects_incomparable_bounds():
    with pytest.raises(ValueError):
        FilterSlice("iris", "Petal.Length", ("a", 5), kind="range")

    default = FilterState(app_id="default")
    snapshot = {"slices": [{"dataname": "iris", "varname": "x", "selected": ["a", 5], "kind": "range"}]}
    assert restore_filter_state(snapshot, default) is default
