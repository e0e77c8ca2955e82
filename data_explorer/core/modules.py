from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, replace
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Dict,
    Iterator,
    List,
    Mapping,
    Optional,
    Protocol,
    Set,
    Tuple,
    Union,
)

from data_explorer.core.exceptions import ModuleTreeError

if TYPE_CHECKING:
    from data_explorer.core.data import DatasetView
    from data_explorer.core.filter_state import FilterState
    from data_explorer.core.reporter import Reporter
    from data_explorer.core.session import SessionContext

logger = logging.getLogger(__name__)

ALL_DATANAMES = "all"
MAX_NESTING_DEPTH = 2
REPORTER_PREVIEWER_TYPE = "reporter_previewer"


class ModuleHandle(Protocol):
    """
    What a leaf's server function returns on activation.

    render() is called by the UI whenever the tab is shown or filters change;
    report_card() is only called for modules that use the reporter.
    """

    def render(self) -> Any: ...


@dataclass(frozen=True)
class Module:
    """
    A leaf of the module tree: one pluggable analysis unit shown as a tab.

    Fields:

    - label: tab title
    - server: activation function, called once per session with a ModuleContext
    - ui: builds the static tab content given the module id
    - datanames: dataset names the module needs, or "all"
    - server_args: extra keyword arguments exposed through the context
    - uses_reporter: if True the module receives the session Reporter
    - module_type: free-form tag used to find special modules (e.g. the report previewer)
    """

    label: str
    server: Callable[["ModuleContext"], ModuleHandle]
    ui: Optional[Callable[[str], Any]] = None
    datanames: Union[Tuple[str, ...], str] = ALL_DATANAMES
    server_args: Mapping[str, Any] = field(default_factory=dict)
    uses_reporter: bool = False
    module_type: str = "module"

    def __post_init__(self) -> None:
        if not isinstance(self.label, str) or not self.label.strip():
            raise ModuleTreeError("Module label must be a non-empty string")
        if not callable(self.server):
            raise ModuleTreeError(f"Module '{self.label}' server must be callable")
        if self.datanames != ALL_DATANAMES:
            if isinstance(self.datanames, str):
                object.__setattr__(self, "datanames", (self.datanames,))
            else:
                object.__setattr__(self, "datanames", tuple(self.datanames))


@dataclass(frozen=True)
class ModuleGroup:
    """A tab group: a labelled collection of modules shown as nested tabs."""

    label: str
    children: Tuple[Union[Module, "ModuleGroup"], ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "children", tuple(self.children))


ModuleNode = Union[Module, ModuleGroup]


@dataclass
class ModuleContext:
    """Everything a leaf receives when it is activated."""

    module_id: str
    datasets: "DatasetView"
    module: Module
    reporter: Optional["Reporter"]
    filter_state: "FilterState"
    session: Optional["SessionContext"] = None

    @property
    def server_args(self) -> Mapping[str, Any]:
        return self.module.server_args


def modules(*children: ModuleNode, label: str = "root") -> ModuleGroup:
    """Build a validated root tree from modules and groups."""
    tree = ModuleGroup(label=label, children=tuple(children))
    validate_module_tree(tree)
    return tree


# ----------------------------------------------------------------------
# Tree walking
# ----------------------------------------------------------------------
def validate_module_tree(tree: ModuleNode) -> None:
    """
    Raises:
        ModuleTreeError: unknown node types, empty groups, or nesting deeper than two levels
    """

    def _check(node: Any, depth: int) -> None:
        # depth is the tab level: root children are level 1, a group adds one level
        if isinstance(node, Module):
            return
        if not isinstance(node, ModuleGroup):
            raise ModuleTreeError(f"Unsupported module tree node: {type(node).__name__}")
        if not node.children:
            raise ModuleTreeError(f"Module group '{node.label}' has no children")
        if depth >= MAX_NESTING_DEPTH:
            raise ModuleTreeError(
                f"Module group '{node.label}' exceeds the maximum nesting depth of {MAX_NESTING_DEPTH}"
            )
        for child in node.children:
            _check(child, depth + 1)

    if isinstance(tree, ModuleGroup):
        if not tree.children:
            raise ModuleTreeError("Module tree has no modules")
        for child in tree.children:
            _check(child, 1)
    else:
        _check(tree, 1)


def slugify(label: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", label.lower()).strip("-")
    return slug or "module"


def _unique(base: str, issued: Set[str]) -> str:
    candidate, n = base, 1
    while candidate in issued:
        n += 1
        candidate = f"{base}-{n}"
    issued.add(candidate)
    return candidate


def walk_nodes(tree: ModuleNode) -> Iterator[Tuple[str, ModuleNode]]:
    """
    Depth-first, pre-order (node_id, node) pairs for every group and leaf
    below the root.

    Leaf ids are slugs of the label path ("group--leaf"); group ids are
    "group-<label path>". Every id is unique across the tree: a clash gets
    the first free numeric suffix ("a", "a-2", "a-3", ...).
    """
    issued: Set[str] = set()

    def _walk(node: ModuleNode, prefix: str, is_root: bool) -> Iterator[Tuple[str, ModuleNode]]:
        if isinstance(node, Module):
            yield _unique(f"{prefix}{slugify(node.label)}", issued), node
            return
        # the root group does not contribute to ids
        if is_root:
            child_prefix = ""
        else:
            group_id = _unique(f"group-{prefix}{slugify(node.label)}", issued)
            yield group_id, node
            child_prefix = f"{group_id[len('group-'):]}--"
        for child in node.children:
            yield from _walk(child, child_prefix, False)

    yield from _walk(tree, "", True)


def walk_leaves(tree: ModuleNode) -> Iterator[Tuple[str, Module]]:
    """Depth-first (module_id, Module) pairs, ids as in walk_nodes."""
    for node_id, node in walk_nodes(tree):
        if isinstance(node, Module):
            yield node_id, node


def iter_leaves(tree: ModuleNode) -> Iterator[Module]:
    for _module_id, module in walk_leaves(tree):
        yield module


def module_ids(tree: ModuleNode) -> List[str]:
    return [module_id for module_id, _m in walk_leaves(tree)]


def count_leaves(tree: ModuleNode) -> int:
    return sum(1 for _ in iter_leaves(tree))


def module_labels(tree: ModuleNode) -> Union[str, Dict[str, Any]]:
    """Nested labels mirroring the tree: {"Group": {"Leaf": "Leaf"}, "Other": "Other"}"""
    if isinstance(tree, Module):
        return tree.label
    return {child.label: module_labels(child) for child in tree.children}


def is_arg_used(tree: ModuleNode, arg: str) -> bool:
    """Whether any leaf requests the given capability (only "reporter" is known)."""
    if arg != "reporter":
        return False
    return any(m.uses_reporter for m in iter_leaves(tree))


def extract_module(tree: ModuleNode, module_type: str) -> List[Module]:
    return [m for m in iter_leaves(tree) if m.module_type == module_type]


def append_module(tree: ModuleGroup, module: ModuleNode) -> ModuleGroup:
    """Return a new tree with 'module' appended at the top level."""
    if not isinstance(tree, ModuleGroup):
        raise ModuleTreeError("Modules can only be appended to a module group")
    new_tree = replace(tree, children=tree.children + (module,))
    validate_module_tree(new_tree)
    return new_tree


def ensure_reporter_previewer(
        tree: ModuleGroup,
        previewer_factory: Callable[..., Module],
        buttons: Tuple[str, ...] = ("download", "reset"),
) -> ModuleGroup:
    """
    Append a report previewer tab when some module uses the reporter and no
    previewer exists yet. Returns the tree unchanged otherwise.
    """
    if not is_arg_used(tree, "reporter"):
        return tree
    if extract_module(tree, REPORTER_PREVIEWER_TYPE):
        return tree

    logger.info("Appending report previewer module", extra={"buttons": list(buttons)})
    return append_module(tree, previewer_factory(buttons=buttons))
