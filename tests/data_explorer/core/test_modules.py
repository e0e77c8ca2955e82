from __future__ import annotations

import pytest

from data_explorer.core.exceptions import ModuleTreeError
from data_explorer.core.modules import (
    REPORTER_PREVIEWER_TYPE,
    Module,
    ModuleGroup,
    count_leaves,
    ensure_reporter_previewer,
    extract_module,
    is_arg_used,
    module_ids,
    module_labels,
    modules,
    walk_leaves,
    walk_nodes,
)


def _server(ctx):
    return None


def _leaf(label: str, **kwargs) -> Module:
    return Module(label=label, server=_server, **kwargs)


def _previewer(buttons=("download", "reset")) -> Module:
    return Module(
        label="Report previewer",
        server=_server,
        datanames=(),
        uses_reporter=True,
        module_type=REPORTER_PREVIEWER_TYPE,
        server_args={"buttons": buttons},
    )


def test_module_ids_follow_label_path_and_are_unique():
    tree = modules(
        _leaf("Data"),
        ModuleGroup("Plots", (_leaf("Histogram"), _leaf("Histogram"))),
        _leaf("Data"),
    )

    assert module_ids(tree) == ["data", "plots--histogram", "plots--histogram-2", "data-2"]
    assert count_leaves(tree) == 4


def test_suffixed_ids_never_clash_with_literal_labels():
    tree = modules(_leaf("A"), _leaf("A"), _leaf("A-2"))

    ids = module_ids(tree)

    assert ids == ["a", "a-2", "a-2-2"]
    assert len(set(ids)) == count_leaves(tree) == 3


def test_group_and_leaf_ids_are_unique_across_the_tree():
    tree = modules(
        ModuleGroup("X", (_leaf("A"),)),
        ModuleGroup("X", (_leaf("A"),)),
        _leaf("Group X"),
    )

    ids = [node_id for node_id, _node in walk_nodes(tree)]

    assert ids == ["group-x", "x--a", "group-x-2", "x-2--a", "group-x-3"]
    assert module_ids(tree) == ["x--a", "x-2--a", "group-x-3"]


def test_walk_leaves_is_depth_first():
    tree = modules(
        ModuleGroup("G", (_leaf("A"), _leaf("B"))),
        _leaf("C"),
    )

    assert [m.label for _id, m in walk_leaves(tree)] == ["A", "B", "C"]
    assert module_labels(tree) == {"G": {"A": "A", "B": "B"}, "C": "C"}


def test_nesting_deeper_than_two_levels_is_rejected():
    with pytest.raises(ModuleTreeError):
        modules(ModuleGroup("outer", (ModuleGroup("inner", (_leaf("A"),)),)))


def test_empty_trees_and_groups_are_rejected():
    with pytest.raises(ModuleTreeError):
        modules()
    with pytest.raises(ModuleTreeError):
        modules(ModuleGroup("empty", ()))


def test_module_validation():
    with pytest.raises(ModuleTreeError):
        Module(label="", server=_server)
    with pytest.raises(ModuleTreeError):
        Module(label="x", server="not callable")

    assert _leaf("x", datanames="iris").datanames == ("iris",)
    assert _leaf("x").datanames == "all"


def test_ensure_reporter_previewer_appends_exactly_one():
    tree = modules(_leaf("Data", uses_reporter=True), _leaf("Other"))

    out = ensure_reporter_previewer(tree, _previewer)
    again = ensure_reporter_previewer(out, _previewer)

    assert len(extract_module(out, REPORTER_PREVIEWER_TYPE)) == 1
    assert again is out
    # the previewer goes last, at the top level
    assert out.children[-1].module_type == REPORTER_PREVIEWER_TYPE
    # the input tree is not modified
    assert len(tree.children) == 2


def test_ensure_reporter_previewer_skips_trees_without_reporting():
    tree = modules(_leaf("Data"))

    assert is_arg_used(tree, "reporter") is False
    assert ensure_reporter_previewer(tree, _previewer) is tree


def test_ensure_reporter_previewer_keeps_existing_previewer():
    existing = _previewer(buttons=("download",))
    tree = modules(_leaf("Data", uses_reporter=True), ModuleGroup("Report", (existing,)))

    out = ensure_reporter_previewer(tree, _previewer)

    assert out is tree
    assert extract_module(out, REPORTER_PREVIEWER_TYPE) == [existing]
