"""
Role editing session.

The session is an immutable value; every operator action is a function that
takes the current session and returns the next one. Modes:

- idle:     no role selected
- viewing:  a persisted role is loaded and unchanged
- dirty:    the loaded role has unsaved edits
- creating: a new, unpersisted role is being drafted
- saving:   a save request is in flight; edits are ignored

System roles are read-only: edit functions return the session unchanged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import FrozenSet, Optional, Tuple

from eduadmin.access.data_scope import DataScopeCatalog
from eduadmin.access.models import MenuNode, Role, RoleSavePayload, ScopeType
from eduadmin.access.tri_state import toggle
from eduadmin.exceptions.handlers import ReadOnlyViolation, ValidationError

logger = logging.getLogger(__name__)


class EditorMode(str, Enum):
    idle = "idle"
    viewing = "viewing"
    dirty = "dirty"
    creating = "creating"
    saving = "saving"


@dataclass(frozen=True)
class EditorSession:
    mode: EditorMode = EditorMode.idle
    role: Optional[Role] = None
    draft_name: str = ""
    draft_description: str = ""
    menu_selection: FrozenSet[int] = field(default_factory=frozenset)
    data_scope_selection: FrozenSet[int] = field(default_factory=frozenset)
    dirty: bool = False
    generation: int = 0
    saving_from: Optional[EditorMode] = None
    # Selections as last loaded or saved; cancel restores these.
    baseline_menus: FrozenSet[int] = field(default_factory=frozenset)
    baseline_data_scopes: FrozenSet[int] = field(default_factory=frozenset)

    @property
    def role_id(self) -> Optional[int]:
        return self.role.id if self.role is not None else None

    @property
    def is_creating(self) -> bool:
        if self.mode == EditorMode.saving:
            return self.saving_from == EditorMode.creating
        return self.mode == EditorMode.creating

    @property
    def is_read_only(self) -> bool:
        return self.role is not None and self.role.is_system and not self.is_creating

    @property
    def is_saving(self) -> bool:
        return self.mode == EditorMode.saving

    @property
    def can_save(self) -> bool:
        return (
            self.mode in (EditorMode.dirty, EditorMode.creating)
            and self.dirty
            and bool(self.draft_name.strip())
        )

    @property
    def needs_confirmation(self) -> bool:
        return self.dirty and self.mode in (EditorMode.dirty, EditorMode.creating)


@dataclass(frozen=True)
class SaveTicket:
    """Identifies one in-flight save and the session it belongs to."""

    generation: int
    role_id: Optional[int]
    payload: RoleSavePayload

    @property
    def is_create(self) -> bool:
        return self.role_id is None


def load(
    session: EditorSession,
    role: Role,
    catalog: Optional[DataScopeCatalog] = None,
    *,
    prefer: str = ScopeType.all.value,
) -> EditorSession:
    menu_ids = frozenset(menu.id for menu in role.menus)
    data_ids = frozenset(dp.id for dp in role.data_permissions)
    if catalog is not None:
        data_ids = catalog.normalize(data_ids, prefer=prefer)
    return EditorSession(
        mode=EditorMode.viewing,
        role=role,
        draft_name=role.name,
        draft_description=role.description or "",
        menu_selection=menu_ids,
        data_scope_selection=data_ids,
        dirty=False,
        generation=session.generation + 1,
        baseline_menus=menu_ids,
        baseline_data_scopes=data_ids,
    )


def start_create(session: EditorSession) -> EditorSession:
    return EditorSession(mode=EditorMode.creating, generation=session.generation + 1)


def clear(session: EditorSession) -> EditorSession:
    return EditorSession(generation=session.generation + 1)


def set_name(session: EditorSession, name: str) -> EditorSession:
    return _edit(session, draft_name=name)


def set_description(session: EditorSession, description: str) -> EditorSession:
    return _edit(session, draft_description=description)


def toggle_menu(session: EditorSession, node: MenuNode, checked: bool) -> EditorSession:
    if not _editable(session):
        return session
    return _edit(session, menu_selection=toggle(node, session.menu_selection, checked))


def choose_scope(
    session: EditorSession,
    catalog: DataScopeCatalog,
    resource_type: str,
    permission_id: int,
    *,
    reclick_clears: bool = True,
) -> EditorSession:
    if not _editable(session):
        return session
    selection = catalog.choose(
        resource_type,
        permission_id,
        session.data_scope_selection,
        reclick_clears=reclick_clears,
    )
    return _edit(session, data_scope_selection=selection)


def begin_save(session: EditorSession) -> Tuple[EditorSession, SaveTicket]:
    if session.mode not in (EditorMode.dirty, EditorMode.creating) or not session.dirty:
        raise ValidationError(f"Nothing to save in mode {session.mode.value}")
    name = session.draft_name.strip()
    if not name:
        raise ValidationError("Role name is required", field="name")

    payload = RoleSavePayload(
        name=name,
        description=session.draft_description.strip(),
        permission_ids=[],
        menu_ids=sorted(session.menu_selection),
        data_permission_ids=sorted(session.data_scope_selection),
    )
    role_id = None if session.mode == EditorMode.creating else session.role_id
    ticket = SaveTicket(generation=session.generation, role_id=role_id, payload=payload)
    return replace(session, mode=EditorMode.saving, saving_from=session.mode), ticket


def save_succeeded(
    session: EditorSession,
    ticket: SaveTicket,
    role: Optional[Role] = None,
    catalog: Optional[DataScopeCatalog] = None,
    *,
    prefer: str = ScopeType.all.value,
) -> EditorSession:
    """
    Apply a confirmed save.

    ``role`` is the stored record when the backend returned one; without it the
    submitted selections are taken as the new baseline of the loaded role.
    """
    if not is_current(session, ticket):
        logger.info("Dropping save result for replaced session (role %s)", ticket.role_id)
        return session
    if role is not None:
        return load(session, role, catalog, prefer=prefer)
    if session.role is None:
        raise ValidationError("A created role must be returned by the server")
    saved = session.role.model_copy(
        update={"name": ticket.payload.name, "description": ticket.payload.description}
    )
    return replace(
        session,
        mode=EditorMode.viewing,
        role=saved,
        draft_name=saved.name,
        draft_description=saved.description or "",
        dirty=False,
        saving_from=None,
        baseline_menus=session.menu_selection,
        baseline_data_scopes=session.data_scope_selection,
    )


def save_failed(session: EditorSession, ticket: SaveTicket) -> EditorSession:
    if not is_current(session, ticket):
        logger.info("Dropping save failure for replaced session (role %s)", ticket.role_id)
        return session
    return replace(
        session,
        mode=session.saving_from or EditorMode.dirty,
        saving_from=None,
        dirty=True,
    )


def cancel(session: EditorSession) -> EditorSession:
    if session.mode == EditorMode.creating:
        return clear(session)
    if session.mode == EditorMode.dirty and session.role is not None:
        return replace(
            session,
            mode=EditorMode.viewing,
            draft_name=session.role.name,
            draft_description=session.role.description or "",
            menu_selection=session.baseline_menus,
            data_scope_selection=session.baseline_data_scopes,
            dirty=False,
        )
    return session


def is_current(session: EditorSession, ticket: SaveTicket) -> bool:
    return session.mode == EditorMode.saving and session.generation == ticket.generation


def _editable(session: EditorSession) -> bool:
    if session.mode not in (EditorMode.viewing, EditorMode.dirty, EditorMode.creating):
        return False
    if session.is_read_only:
        logger.debug("Ignored edit: %s", ReadOnlyViolation(session.role_id).message)
        return False
    return True


def _edit(session: EditorSession, **changes) -> EditorSession:
    if not _editable(session):
        return session
    if all(getattr(session, key) == value for key, value in changes.items()):
        return session
    mode = EditorMode.creating if session.mode == EditorMode.creating else EditorMode.dirty
    return replace(session, mode=mode, dirty=True, **changes)
