from __future__ import annotations

from typing import Any, Iterator, List, Tuple

import dash_bootstrap_components as dbc
from dash import dcc, html

from data_explorer.core.modules import REPORTER_PREVIEWER_TYPE, Module, ModuleGroup, ModuleNode, walk_nodes
from data_explorer.ui.ids import IDs, add_card_id, group_tabs_id, module_output_id
from data_explorer.ui.layout.build_filter_panel import build_filter_panel


def _leaf_content(module_id: str, module: Module) -> html.Div:
    children: List[Any] = []
    if module.ui is not None:
        children.append(module.ui(module_id))
    if module.uses_reporter and module.module_type != REPORTER_PREVIEWER_TYPE:
        children.append(
            html.Div(
                dbc.Button(
                    "Add to report",
                    id=add_card_id(module_id),
                    color="secondary",
                    outline=True,
                    size="sm",
                ),
                className="d-flex justify-content-end mb-2",
            )
        )
    # show a busy indicator while the module is computing
    children.append(
        dcc.Loading(
            type="circle",
            children=html.Div(id=module_output_id(module_id), className="dx-module-output"),
        )
    )
    return html.Div(children, className="dx-module pt-3")


def _tabs_for(nodes: Tuple[Any, ...], node_ids: Iterator[Tuple[str, ModuleNode]]) -> List[dcc.Tab]:
    tabs: List[dcc.Tab] = []
    for _ in nodes:
        node_id, node = next(node_ids)
        if isinstance(node, Module):
            tabs.append(dcc.Tab(label=node.label, value=node_id, children=_leaf_content(node_id, node)))
            continue

        inner = _tabs_for(node.children, node_ids)
        tabs.append(
            dcc.Tab(
                label=node.label,
                value=node_id,
                children=dcc.Tabs(
                    id=group_tabs_id(node_id),
                    value=inner[0].value,
                    children=inner,
                    className="mt-2",
                ),
            )
        )
    return tabs


def build_module_tabs(tree: ModuleGroup) -> dcc.Tabs:
    """
    One tab per top-level node; groups become a nested dcc.Tabs.
    Leaf tab values are module ids, group tab values are group ids.
    """
    # walk_nodes is pre-order, the same order _tabs_for visits the tree
    tabs = _tabs_for(tree.children, walk_nodes(tree))
    return dcc.Tabs(id=IDs.Control.MODULE_TABS, value=tabs[0].value, children=tabs)


def build_main_ui(tree: ModuleGroup) -> dbc.Row:
    """Composed tabs + filter panel that replaces the splash screen."""
    return dbc.Row(
        [
            dbc.Col(build_module_tabs(tree), md=9, className="mt-2"),
            dbc.Col(build_filter_panel(), md=3, className="mt-2"),
        ],
        className="gx-3 dx-main-ui",
    )
