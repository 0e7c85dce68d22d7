from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


class ScopeType(str, Enum):
    all = "all"
    partial = "partial"


class ResourceType(str, Enum):
    student = "student"
    class_ = "class"
    schedule = "schedule"
    lesson = "lesson"
    makeup = "makeup"


class MenuNode(BaseModel):
    """
    One entry of the institution's menu/feature hierarchy.

    The wire payload is self-referential through ``children_items``.
    """

    id: int
    name: str
    code: str = ""
    icon: Optional[str] = None
    path: Optional[str] = None
    parent_id: Optional[int] = None
    sort_order: int = 0
    status: Optional[str] = None
    description: Optional[str] = None
    children_items: List["MenuNode"] = Field(default_factory=list)

    @field_validator("children_items", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return value or []

    @property
    def is_leaf(self) -> bool:
        return not self.children_items


class DataPermission(BaseModel):
    id: int
    name: str
    code: str = ""
    resource_type: str
    scope_type: ScopeType

    @property
    def short_name(self) -> str:
        # "Student data-All" -> "All"
        return self.name.rsplit("-", 1)[-1]


class Role(BaseModel):
    id: Optional[int] = None
    name: str
    code: str = ""
    description: Optional[str] = None
    institution_id: Optional[int] = None
    is_system: bool = False
    status: Optional[str] = None
    permissions: List[Dict[str, Any]] = Field(default_factory=list)
    menus: List[MenuNode] = Field(default_factory=list)
    data_permissions: List[DataPermission] = Field(default_factory=list)

    @field_validator("permissions", "menus", "data_permissions", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return value or []


class PermissionCatalog(BaseModel):
    """Payload of ``GET /permissions/all``."""

    permissions: List[Dict[str, Any]] = Field(default_factory=list)
    data_permissions: Dict[str, List[DataPermission]] = Field(default_factory=dict)

    @field_validator("permissions", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return value or []

    @field_validator("data_permissions", mode="before")
    @classmethod
    def _empty_list_as_dict(cls, value: Any) -> Any:
        # PHP backends serialise an empty map as []
        if value is None or value == []:
            return {}
        return value


class RoleSavePayload(BaseModel):
    """Body of ``PUT /roles/{id}``."""

    name: str
    description: str = ""
    # Kept for backward compatibility; menu-derived permissions supersede it.
    permission_ids: List[int] = Field(default_factory=list)
    menu_ids: List[int] = Field(default_factory=list)
    data_permission_ids: List[int] = Field(default_factory=list)


class RoleCreatePayload(RoleSavePayload):
    """Body of ``POST /roles``."""

    code: str
    institution_id: int


class CurrentUser(BaseModel):
    id: Optional[int] = None
    name: Optional[str] = None
    username: Optional[str] = None
    institution_id: Optional[int] = None
    role: Optional[str] = None


MenuNode.model_rebuild()
