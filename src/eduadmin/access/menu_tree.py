"""
Menu tree model.

Menu data arrives either as a nested tree (``children_items``) or as the flat
``system-menus-list`` payload linked by ``parent_id``. Every walk here keeps a
visited set keyed by menu id, so malformed input (a cycle, or the same id in two
places) fails with MalformedTreeError instead of recursing forever.
"""

from __future__ import annotations

from typing import Any, Dict, FrozenSet, Iterable, Iterator, List, Mapping, Optional, Set, Tuple, Union

from eduadmin.access.models import MenuNode
from eduadmin.exceptions.handlers import MalformedTreeError


_ICONS: Dict[str, str] = {
    "LayoutDashboard": "📊",
    "Building2": "🏢",
    "Users": "👥",
    "User": "👤",
    "Shield": "🛡️",
    "GraduationCap": "🎓",
    "BookOpen": "📚",
    "DollarSign": "💰",
    "Settings": "⚙️",
    "FileText": "📄",
    "BarChart3": "📊",
    "Calendar": "📅",
}
_DEFAULT_ICON = "📄"


def all_descendant_ids(node: MenuNode) -> FrozenSet[int]:
    """Return ``node.id`` plus every id reachable through ``children_items``."""
    visited: Set[int] = {node.id}
    stack: List[MenuNode] = [node]
    while stack:
        current = stack.pop()
        for child in current.children_items:
            if child.id in visited:
                raise MalformedTreeError(
                    f"Menu {child.id} reached twice below menu {node.id}",
                    node_id=child.id,
                    root_id=node.id,
                )
            visited.add(child.id)
            stack.append(child)
    return frozenset(visited)


def iter_nodes(nodes: Iterable[MenuNode]) -> Iterator[Tuple[MenuNode, int]]:
    """Depth-first, pre-order walk yielding ``(node, level)``."""
    visited: Set[int] = set()
    stack: List[Tuple[MenuNode, int]] = [(n, 0) for n in reversed(list(nodes))]
    while stack:
        node, level = stack.pop()
        if node.id in visited:
            raise MalformedTreeError(f"Menu {node.id} visited twice", node_id=node.id)
        visited.add(node.id)
        yield node, level
        for child in reversed(node.children_items):
            stack.append((child, level + 1))


def root_menus(nodes: Iterable[MenuNode]) -> List[MenuNode]:
    return [node for node in nodes if not node.parent_id]


def find_node(nodes: Iterable[MenuNode], menu_id: int) -> Optional[MenuNode]:
    for node, _ in iter_nodes(nodes):
        if node.id == menu_id:
            return node
    return None


def build_menu_tree(records: Iterable[Union[MenuNode, Mapping[str, Any]]]) -> List[MenuNode]:
    """
    Build the menu forest from flat records linked by ``parent_id``.

    Children are ordered by ``sort_order`` then id. A ``parent_id`` that names no
    record, a duplicated id, or a parent cycle raises MalformedTreeError.
    """
    by_id: Dict[int, MenuNode] = {}
    for record in records:
        if isinstance(record, MenuNode):
            node = record.model_copy(update={"children_items": []})
        else:
            node = MenuNode.model_validate({**record, "children_items": []})
        if node.id in by_id:
            raise MalformedTreeError(f"Duplicate menu id {node.id}", node_id=node.id)
        by_id[node.id] = node

    roots: List[MenuNode] = []
    for node in by_id.values():
        if not node.parent_id:
            roots.append(node)
            continue
        parent = by_id.get(node.parent_id)
        if parent is None:
            raise MalformedTreeError(
                f"Menu {node.id} references missing parent {node.parent_id}",
                node_id=node.id,
                parent_id=node.parent_id,
            )
        parent.children_items.append(node)

    def _key(n: MenuNode) -> Tuple[int, int]:
        return (n.sort_order, n.id)

    for node in by_id.values():
        node.children_items.sort(key=_key)
    roots.sort(key=_key)

    reachable = {node.id for node, _ in iter_nodes(roots)}
    orphaned = sorted(set(by_id) - reachable)
    if orphaned:
        raise MalformedTreeError(
            f"Menus {orphaned} form a parent cycle",
            node_id=orphaned[0],
            cycle=orphaned,
        )
    return roots


def filter_menus_by_codes(nodes: Iterable[MenuNode], codes: Iterable[str]) -> List[MenuNode]:
    """
    Navigation visible to a user holding the permission ``codes``.

    A parent stays while any child survives; a leaf (or a parent left without
    children) stays only when its own code is granted.
    """
    granted = set(codes)
    visited: Set[int] = set()

    def _filter(items: Iterable[MenuNode]) -> List[MenuNode]:
        kept: List[MenuNode] = []
        for menu in items:
            if menu.id in visited:
                raise MalformedTreeError(f"Menu {menu.id} visited twice", node_id=menu.id)
            visited.add(menu.id)
            children = _filter(menu.children_items)
            if children or menu.code in granted:
                kept.append(menu.model_copy(update={"children_items": children}))
        return kept

    return _filter(nodes)


def menu_icon(icon_name: Optional[str]) -> str:
    return _ICONS.get(icon_name or "", _DEFAULT_ICON)
