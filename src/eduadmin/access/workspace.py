from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, List, Optional

from eduadmin.access import session as editor
from eduadmin.access.data_scope import DataScopeCatalog, ResourceScopeGroup
from eduadmin.access.directory import RoleDirectory
from eduadmin.access.menu_tree import build_menu_tree, find_node, root_menus
from eduadmin.access.models import DataPermission, MenuNode, Role, RoleCreatePayload
from eduadmin.access.session import EditorSession, SaveTicket
from eduadmin.access.tri_state import MenuRow, render_menu_rows
from eduadmin.cache import CURRENT_USER, MENU_TREE, PERMISSIONS_ALL, ROLES, QueryCache
from eduadmin.config import Settings, get_settings
from eduadmin.context import get_request_context
from eduadmin.exceptions.handlers import (
    AdminException,
    ApiError,
    MalformedTreeError,
    SaveConflict,
    ValidationError,
)
from eduadmin.integrations.admin_api import AdminApiClient

logger = logging.getLogger(__name__)

CONFIRM_SWITCH = "There are unsaved changes. Switch to another role anyway?"
CONFIRM_CREATE = "There are unsaved changes. Start a new role anyway?"


@dataclass(frozen=True)
class Notice:
    level: str
    title: str
    message: str


def _decline(_: str) -> bool:
    return False


def role_code(name: str) -> str:
    return re.sub(r"\s+", "_", name.strip().lower())


class RoleWorkspace:
    """
    Role management screen state: the role directory on the left, the editor
    session on the right, and the admin API behind both.

    ``confirm`` is asked before pending edits are discarded; without one,
    discarding is refused.
    """

    def __init__(
        self,
        client: AdminApiClient,
        *,
        confirm: Optional[Callable[[str], bool]] = None,
        cache: Optional[QueryCache] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.client = client
        self.confirm = confirm or _decline
        self.cache = cache or QueryCache()
        self.settings = settings or get_settings()
        self.directory = RoleDirectory()
        self.session = EditorSession()
        self.menus: List[MenuNode] = []
        self.catalog = DataScopeCatalog({})
        self.notices: List[Notice] = []
        self.last_error: Optional[AdminException] = None

    # Loading

    def refresh(self) -> None:
        self.directory.set_roles(self.cache.get_or_fetch(ROLES, self.client.list_roles))
        permissions = self.cache.get_or_fetch(PERMISSIONS_ALL, self.client.get_permission_catalog)
        self.catalog = DataScopeCatalog.from_catalog(permissions)
        self.menus = self.cache.get_or_fetch(MENU_TREE, self._fetch_menus)
        self._sync_selected()

    def _fetch_menus(self) -> List[MenuNode]:
        tree = self.client.get_menu_tree()
        if tree:
            return tree
        # Older backends only serve the flat admin list.
        records = self.client.list_menus_flat()
        try:
            return build_menu_tree(records)
        except MalformedTreeError as exc:
            logger.warning("Flat menu list is malformed, keeping root menus only: %s", exc.message)
            return [record.model_copy(update={"children_items": []}) for record in root_menus(records)]

    def _reload_roles(self) -> bool:
        try:
            self.directory.set_roles(self.cache.get_or_fetch(ROLES, self.client.list_roles))
        except ApiError as exc:
            logger.warning("Role list refresh failed: %s", exc.message)
            return False
        return True

    def _sync_selected(self) -> None:
        if self.session.is_creating:
            return
        role_id = self.session.role_id
        if role_id is None:
            first = self.directory.first_role_id()
            if first is not None and self.session.mode == editor.EditorMode.idle:
                self.session = self._load(self.directory.get(first))
            return
        role = self.directory.get(role_id)
        if role is None:
            self.session = editor.clear(self.session)
            self._sync_selected()
        elif self.session.mode == editor.EditorMode.viewing:
            self.session = self._load(role)

    def _load(self, role: Role) -> EditorSession:
        return editor.load(
            self.session,
            role,
            self.catalog,
            prefer=self.settings.DATA_SCOPE_CONFLICT_PREFERENCE,
        )

    # Navigation

    def select_role(self, role_id: int) -> bool:
        if role_id == self.session.role_id and not self.session.is_creating:
            return True
        role = self.directory.get(role_id)
        if role is None:
            raise ValidationError(f"Unknown role {role_id}", field="role_id")
        if self.session.needs_confirmation and not self.confirm(CONFIRM_SWITCH):
            return False
        self.session = self._load(role)
        return True

    def start_create(self) -> bool:
        if self.session.needs_confirmation and not self.confirm(CONFIRM_CREATE):
            return False
        self.session = editor.start_create(self.session)
        return True

    def cancel(self) -> None:
        self.session = editor.cancel(self.session)
        if self.session.mode == editor.EditorMode.idle:
            self._sync_selected()

    # Editing

    def set_name(self, name: str) -> None:
        self.session = editor.set_name(self.session, name)

    def set_description(self, description: str) -> None:
        self.session = editor.set_description(self.session, description)

    def toggle_menu(self, menu_id: int, checked: bool) -> None:
        malformed = False
        for root in root_menus(self.menus):
            try:
                node = find_node([root], menu_id)
                if node is None:
                    continue
                self.session = editor.toggle_menu(self.session, node, checked)
                return
            except MalformedTreeError as exc:
                # Only this root's subtree is disabled; keep looking in the others.
                logger.warning("Skipping malformed menu subtree %s: %s", root.id, exc.message)
                malformed = True
        if malformed:
            logger.warning("Menu toggle for %s ignored, it may sit in a malformed subtree", menu_id)
            return
        raise ValidationError(f"Unknown menu {menu_id}", field="menu_ids")

    def choose_scope(self, resource_type: str, permission_id: int) -> None:
        self.session = editor.choose_scope(
            self.session,
            self.catalog,
            resource_type,
            permission_id,
            reclick_clears=self.settings.DATA_SCOPE_RECLICK_CLEARS,
        )

    # Saving

    def submit(self) -> SaveTicket:
        self.session, ticket = editor.begin_save(self.session)
        return ticket

    def resolve(
        self,
        ticket: SaveTicket,
        *,
        role: Optional[Role] = None,
        error: Optional[AdminException] = None,
    ) -> bool:
        """Apply the outcome of ``ticket``; outcomes for replaced sessions are dropped."""
        current = editor.is_current(self.session, ticket)
        action = "Create" if ticket.is_create else "Save"

        if error is not None:
            conflict = SaveConflict(
                error.user_message,
                ticket.role_id,
                status_code=error.status_code,
                cause=error.code,
            )
            self.session = editor.save_failed(self.session, ticket)
            if current:
                self.last_error = conflict
                self._notify("error", f"{action} failed", conflict.user_message)
            return False

        self.cache.after_mutation("create_role" if ticket.is_create else "save_role")
        reloaded = self._reload_roles()
        if not current:
            return True

        stored = role
        if reloaded:
            listed = self.directory.get(role.id if role is not None else ticket.role_id)
            stored = listed or role
        self.session = editor.save_succeeded(
            self.session,
            ticket,
            stored,
            self.catalog,
            prefer=self.settings.DATA_SCOPE_CONFLICT_PREFERENCE,
        )
        logger.info("%s succeeded for role %s", action, self.session.role_id)
        if ticket.is_create:
            self._notify("success", "Role created", "The new role has been created")
        else:
            self._notify("success", "Role saved", "Role permissions have been updated")
        return True

    def save(self) -> bool:
        try:
            ticket = self.submit()
        except ValidationError as exc:
            self._notify("error", "Cannot save", exc.user_message)
            return False

        try:
            if ticket.is_create:
                institution_id = self._institution_id()
                if institution_id is None:
                    self.session = editor.save_failed(self.session, ticket)
                    self._notify(
                        "error", "Create failed", "Unable to determine the current user's institution"
                    )
                    return False
                payload = RoleCreatePayload(
                    **ticket.payload.model_dump(),
                    code=role_code(ticket.payload.name),
                    institution_id=institution_id,
                )
                role: Optional[Role] = self.client.create_role(payload)
            else:
                role = self.client.update_role(ticket.role_id, ticket.payload)
        except ApiError as exc:
            return self.resolve(ticket, error=exc)
        return self.resolve(ticket, role=role)

    def _institution_id(self) -> Optional[int]:
        user = self.cache.get_or_fetch(CURRENT_USER, self.client.get_current_user)
        if user.institution_id is not None:
            return user.institution_id
        return get_request_context().institution_id

    # Deleting

    def delete_role(self, role_id: int) -> bool:
        role = self.directory.get(role_id)
        if role is not None and role.is_system:
            self._notify("error", "Delete failed", "System roles cannot be deleted")
            return False
        try:
            self.client.delete_role(role_id)
        except ApiError as exc:
            self._notify("error", "Delete failed", exc.user_message)
            return False

        self.cache.after_mutation("delete_role")
        if self.session.role_id == role_id and not self.session.is_creating:
            self.session = editor.clear(self.session)
        self._reload_roles()
        self._sync_selected()
        self._notify("success", "Role deleted", "The role has been deleted")
        return True

    # Rendering

    def menu_rows(self) -> List[MenuRow]:
        return render_menu_rows(self.menus, self.session.menu_selection)

    def scope_groups(self) -> List[ResourceScopeGroup]:
        return self.catalog.groups()

    def selected_scope(self, resource_type: str) -> Optional[DataPermission]:
        return self.catalog.selected_for(resource_type, self.session.data_scope_selection)

    def _notify(self, level: str, title: str, message: str) -> None:
        self.notices.append(Notice(level=level, title=title, message=message))
