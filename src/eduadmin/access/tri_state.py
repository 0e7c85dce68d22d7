from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import AbstractSet, FrozenSet, List, Sequence

from eduadmin.access.menu_tree import all_descendant_ids, root_menus
from eduadmin.access.models import MenuNode
from eduadmin.exceptions.handlers import MalformedTreeError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NodeState:
    checked: bool
    indeterminate: bool

    @property
    def symbol(self) -> str:
        if self.checked:
            return "[x]"
        if self.indeterminate:
            return "[-]"
        return "[ ]"


UNCHECKED = NodeState(checked=False, indeterminate=False)


@dataclass(frozen=True)
class MenuRow:
    node: MenuNode
    level: int
    state: NodeState


def state_of(node: MenuNode, selection: AbstractSet[int]) -> NodeState:
    if node.is_leaf:
        return NodeState(checked=node.id in selection, indeterminate=False)
    ids = all_descendant_ids(node)
    hit = len(ids & selection)
    if hit == 0:
        return UNCHECKED
    if hit == len(ids):
        return NodeState(checked=True, indeterminate=False)
    return NodeState(checked=False, indeterminate=True)


def toggle(node: MenuNode, selection: AbstractSet[int], target_checked: bool) -> FrozenSet[int]:
    """Cascade a check/uncheck of ``node`` through its whole subtree."""
    ids = all_descendant_ids(node)
    if target_checked:
        return frozenset(selection) | ids
    return frozenset(selection) - ids


def render_menu_rows(menus: Sequence[MenuNode], selection: AbstractSet[int]) -> List[MenuRow]:
    """
    Flatten the root menus into display rows, top-down.

    A malformed subtree is dropped with a warning; its siblings still render.
    """
    rows: List[MenuRow] = []
    for root in root_menus(menus):
        try:
            rows.extend(_subtree_rows(root, selection))
        except MalformedTreeError as exc:
            logger.warning("Skipping malformed menu subtree %s: %s", root.id, exc.message)
    return rows


def _subtree_rows(root: MenuNode, selection: AbstractSet[int]) -> List[MenuRow]:
    # Raises before _walk recurses into a malformed subtree.
    all_descendant_ids(root)

    rows: List[MenuRow] = []

    def _walk(node: MenuNode, level: int) -> None:
        rows.append(MenuRow(node=node, level=level, state=state_of(node, selection)))
        for child in node.children_items:
            _walk(child, level + 1)

    _walk(root, 0)
    return rows
