"""
In-memory query cache keyed by tuples, e.g. ("roles",) or ("students", 42).

Mutations do not refresh views themselves: each one declares the key prefixes
it invalidates in MUTATION_INVALIDATIONS, and the caller runs
``after_mutation(name)`` once the server confirms the change.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Hashable, List, Tuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
QueryKey = Tuple[Hashable, ...]

ROLES: QueryKey = ("roles",)
PERMISSIONS_ALL: QueryKey = ("permissions", "all")
MENU_TREE: QueryKey = ("system-menus-tree",)
CURRENT_USER: QueryKey = ("current-user",)
STUDENTS: QueryKey = ("students",)

MUTATION_INVALIDATIONS: Dict[str, Tuple[QueryKey, ...]] = {
    "save_role": (ROLES,),
    "create_role": (ROLES,),
    "delete_role": (ROLES,),
    "link_user": (STUDENTS,),
    "unlink_user": (STUDENTS,),
}


class QueryCache:
    def __init__(self) -> None:
        self._entries: Dict[QueryKey, Any] = {}

    def __contains__(self, key: QueryKey) -> bool:
        return key in self._entries

    def get_or_fetch(self, key: QueryKey, fetch: Callable[[], T]) -> T:
        if key in self._entries:
            return self._entries[key]
        value = fetch()
        self._entries[key] = value
        return value

    def set(self, key: QueryKey, value: Any) -> None:
        self._entries[key] = value

    def invalidate(self, prefix: QueryKey) -> List[QueryKey]:
        """Drop every entry whose key starts with ``prefix``."""
        dropped = [key for key in self._entries if key[: len(prefix)] == prefix]
        for key in dropped:
            del self._entries[key]
        return dropped

    def after_mutation(self, mutation: str) -> List[QueryKey]:
        prefixes = MUTATION_INVALIDATIONS.get(mutation)
        if prefixes is None:
            raise KeyError(f"No invalidations declared for mutation {mutation!r}")
        dropped: List[QueryKey] = []
        for prefix in prefixes:
            dropped.extend(self.invalidate(prefix))
        logger.debug("Mutation %s invalidated %s", mutation, dropped)
        return dropped

    def clear(self) -> None:
        self._entries.clear()
