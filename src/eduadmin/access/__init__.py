from eduadmin.access.data_scope import DataScopeCatalog, ResourceScopeGroup
from eduadmin.access.directory import DirectoryGroup, RoleDirectory
from eduadmin.access.menu_tree import all_descendant_ids, build_menu_tree
from eduadmin.access.models import DataPermission, MenuNode, Role, ScopeType
from eduadmin.access.session import EditorMode, EditorSession, SaveTicket
from eduadmin.access.tri_state import NodeState, state_of, toggle

__all__ = [
    "DataPermission",
    "DataScopeCatalog",
    "DirectoryGroup",
    "EditorMode",
    "EditorSession",
    "MenuNode",
    "NodeState",
    "ResourceScopeGroup",
    "Role",
    "RoleDirectory",
    "SaveTicket",
    "ScopeType",
    "all_descendant_ids",
    "build_menu_tree",
    "state_of",
    "toggle",
]
