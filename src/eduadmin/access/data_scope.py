"""
Data-scope exclusivity.

Each resource type (student, class, schedule, lesson, makeup) has exactly two
catalog entries: one ``all`` scope and one ``partial`` scope. A role holds at most
one of the two; picking one swaps out the other.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import AbstractSet, Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence

from eduadmin.access.models import DataPermission, PermissionCatalog, ResourceType, ScopeType
from eduadmin.exceptions.handlers import ConfigurationError, ExclusivityViolation, ValidationError

logger = logging.getLogger(__name__)

RESOURCE_LABELS: Dict[str, str] = {
    ResourceType.student.value: "Student data",
    ResourceType.class_.value: "Class data",
    ResourceType.schedule.value: "Schedule data",
    ResourceType.lesson.value: "Lesson records",
    ResourceType.makeup.value: "Absence & makeup",
}
_TYPE_ORDER: Dict[str, int] = {rt.value: index for index, rt in enumerate(ResourceType)}


@dataclass(frozen=True)
class ResourceScopeGroup:
    resource_type: str
    label: str
    all: DataPermission
    partial: DataPermission

    def selected(self, selection: AbstractSet[int]) -> Optional[DataPermission]:
        for permission in (self.all, self.partial):
            if permission.id in selection:
                return permission
        return None


class DataScopeCatalog:
    def __init__(self, data_permissions: Mapping[str, Sequence[DataPermission]]):
        self._by_type: Dict[str, List[DataPermission]] = {
            resource_type: list(permissions)
            for resource_type, permissions in data_permissions.items()
        }
        self._type_of: Dict[int, str] = {}
        for resource_type, permissions in self._by_type.items():
            for permission in permissions:
                self._type_of[permission.id] = resource_type

    @classmethod
    def from_catalog(cls, catalog: PermissionCatalog) -> "DataScopeCatalog":
        return cls(catalog.data_permissions)

    @property
    def resource_types(self) -> List[str]:
        # Known types first in their fixed order, then the rest as received.
        known = len(_TYPE_ORDER)
        positions = {rt: index for index, rt in enumerate(self._by_type)}
        return sorted(self._by_type, key=lambda rt: (_TYPE_ORDER.get(rt, known), positions[rt]))

    def permissions_for(self, resource_type: str) -> List[DataPermission]:
        return list(self._by_type.get(resource_type, []))

    def ids_for(self, resource_type: str) -> FrozenSet[int]:
        return frozenset(p.id for p in self._by_type.get(resource_type, []))

    def resource_type_of(self, permission_id: int) -> Optional[str]:
        return self._type_of.get(permission_id)

    def label(self, resource_type: str) -> str:
        return RESOURCE_LABELS.get(resource_type, resource_type)

    def groups(self) -> List[ResourceScopeGroup]:
        groups: List[ResourceScopeGroup] = []
        for resource_type in self.resource_types:
            permissions = self._by_type[resource_type]
            all_scope = _find_scope(permissions, ScopeType.all)
            partial_scope = _find_scope(permissions, ScopeType.partial)
            if all_scope is None or partial_scope is None:
                logger.warning("Data scope catalog incomplete for %s; hiding it", resource_type)
                continue
            groups.append(
                ResourceScopeGroup(
                    resource_type=resource_type,
                    label=self.label(resource_type),
                    all=all_scope,
                    partial=partial_scope,
                )
            )
        return groups

    def selected_for(
        self, resource_type: str, selection: AbstractSet[int]
    ) -> Optional[DataPermission]:
        for permission in self._by_type.get(resource_type, []):
            if permission.id in selection:
                return permission
        return None

    def choose(
        self,
        resource_type: str,
        permission_id: int,
        selection: AbstractSet[int],
        *,
        reclick_clears: bool = True,
    ) -> FrozenSet[int]:
        """
        Select ``permission_id`` for ``resource_type``, dropping the other scope.

        Choosing the scope that is already the only one selected clears the
        type when ``reclick_clears`` is set, and leaves it selected otherwise.
        """
        ids = self.ids_for(resource_type)
        if permission_id not in ids:
            raise ValidationError(
                f"Data permission {permission_id} does not belong to {resource_type}",
                field="data_permission_ids",
            )

        current = self.selected_for(resource_type, selection)
        was_sole_choice = (
            current is not None
            and current.id == permission_id
            and len(ids & selection) == 1
        )

        result = frozenset(selection) - ids
        if not (was_sole_choice and reclick_clears):
            result = result | {permission_id}

        violating = self.violations(result)
        if violating:
            logger.warning("Data scope selection still ambiguous for %s", violating)
        return result

    def violations(self, selection: AbstractSet[int]) -> List[str]:
        return [
            resource_type
            for resource_type in self._by_type
            if len(self.ids_for(resource_type) & selection) > 1
        ]

    def check_exclusivity(self, selection: AbstractSet[int]) -> None:
        violating = self.violations(selection)
        if violating:
            raise ExclusivityViolation(violating)

    def normalize(self, selection: Iterable[int], prefer: str = ScopeType.all.value) -> FrozenSet[int]:
        """
        Repair a loaded selection that holds both scopes of a resource type.

        The ``prefer`` scope is kept and the other dropped; each repair is logged.
        """
        try:
            preferred = ScopeType(prefer)
        except ValueError:
            raise ConfigurationError(
                f"Unknown data scope preference: {prefer}",
                config_key="DATA_SCOPE_CONFLICT_PREFERENCE",
            )

        result = frozenset(selection)
        try:
            self.check_exclusivity(result)
            return result
        except ExclusivityViolation as exc:
            for resource_type in exc.resource_types:
                dropped = {
                    p.id
                    for p in self._by_type[resource_type]
                    if p.scope_type != preferred
                }
                logger.warning(
                    "Role holds both data scopes for %s; keeping %s, dropping %s",
                    resource_type,
                    preferred.value,
                    sorted(dropped & result),
                )
                result = result - dropped
        return result


def _find_scope(permissions: Iterable[DataPermission], scope: ScopeType) -> Optional[DataPermission]:
    for permission in permissions:
        if permission.scope_type == scope:
            return permission
    return None
