from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from eduadmin.access.models import Role

GROUP_LABELS: Dict[str, str] = {
    "custom": "Custom roles",
    "system": "System roles",
}


@dataclass(frozen=True)
class DirectoryGroup:
    key: str
    label: str
    roles: List[Role]
    expanded: bool

    @property
    def visible_roles(self) -> List[Role]:
        return self.roles if self.expanded else []


class RoleDirectory:
    """Searchable role list split into custom and system groups."""

    def __init__(self, roles: Sequence[Role] = ()) -> None:
        self.roles: List[Role] = list(roles)
        self.search_term = ""
        self.expanded: Dict[str, bool] = {key: True for key in GROUP_LABELS}

    def set_roles(self, roles: Sequence[Role]) -> None:
        self.roles = list(roles)

    def search(self, term: str) -> None:
        self.search_term = term or ""

    def toggle_group(self, key: str) -> bool:
        if key not in self.expanded:
            raise KeyError(key)
        self.expanded[key] = not self.expanded[key]
        return self.expanded[key]

    def filtered(self) -> List[Role]:
        term = self.search_term.lower()
        if not term:
            return list(self.roles)
        return [
            role
            for role in self.roles
            if term in role.name.lower() or term in (role.description or "").lower()
        ]

    def groups(self) -> List[DirectoryGroup]:
        matched = self.filtered()
        members = {
            "custom": [role for role in matched if not role.is_system],
            "system": [role for role in matched if role.is_system],
        }
        return [
            DirectoryGroup(
                key=key,
                label=label,
                roles=members[key],
                expanded=self.expanded[key],
            )
            for key, label in GROUP_LABELS.items()
        ]

    def first_role_id(self) -> Optional[int]:
        return self.roles[0].id if self.roles else None

    def get(self, role_id: Optional[int]) -> Optional[Role]:
        if role_id is None:
            return None
        for role in self.roles:
            if role.id == role_id:
                return role
        return None

    def contains(self, role_id: Optional[int]) -> bool:
        return self.get(role_id) is not None
