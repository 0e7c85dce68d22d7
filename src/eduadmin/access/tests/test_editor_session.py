import random

import pytest

from eduadmin.access import session as editor
from eduadmin.access.data_scope import DataScopeCatalog
from eduadmin.access.models import DataPermission, MenuNode, Role
from eduadmin.access.session import EditorMode, EditorSession
from eduadmin.exceptions.handlers import ValidationError


def _menus():
    return [
        MenuNode.model_validate(
            {
                "id": 1,
                "name": "Academic",
                "children_items": [
                    {"id": 2, "name": "Students", "parent_id": 1},
                    {"id": 3, "name": "Classes", "parent_id": 1},
                ],
            }
        ),
        MenuNode(id=4, name="Dashboard"),
    ]


def _catalog():
    return DataScopeCatalog(
        {
            "student": [
                DataPermission(id=1, name="Student data-All", resource_type="student", scope_type="all"),
                DataPermission(id=2, name="Student data-Own", resource_type="student", scope_type="partial"),
            ],
            "class": [
                DataPermission(id=3, name="Class data-All", resource_type="class", scope_type="all"),
                DataPermission(id=4, name="Class data-Own", resource_type="class", scope_type="partial"),
            ],
        }
    )


def _role(**overrides):
    data = {
        "id": 7,
        "name": "Teacher",
        "code": "teacher",
        "description": "Front desk staff",
        "menus": [{"id": 2, "name": "Students", "parent_id": 1}],
        "data_permissions": [
            {"id": 2, "name": "Student data-Own", "resource_type": "student", "scope_type": "partial"}
        ],
    }
    data.update(overrides)
    return Role.model_validate(data)


def _loaded(**overrides):
    return editor.load(EditorSession(), _role(**overrides), _catalog())


def test_load_hydrates_selection_from_role():
    session = _loaded()

    assert session.mode == EditorMode.viewing
    assert session.draft_name == "Teacher"
    assert session.draft_description == "Front desk staff"
    assert session.menu_selection == {2}
    assert session.data_scope_selection == {2}
    assert not session.dirty
    assert session.generation == 1


def test_load_repairs_conflicting_data_scopes():
    role = _role(
        data_permissions=[
            {"id": 1, "name": "Student data-All", "resource_type": "student", "scope_type": "all"},
            {"id": 2, "name": "Student data-Own", "resource_type": "student", "scope_type": "partial"},
        ]
    )
    assert editor.load(EditorSession(), role, _catalog()).data_scope_selection == {1}
    assert editor.load(EditorSession(), role, _catalog(), prefer="partial").data_scope_selection == {2}


def test_toggle_menu_marks_session_dirty():
    session = editor.toggle_menu(_loaded(), _menus()[0], True)

    assert session.mode == EditorMode.dirty
    assert session.dirty
    assert session.menu_selection == {1, 2, 3}
    assert session.needs_confirmation


def test_edit_that_changes_nothing_keeps_session_clean():
    session = _loaded()
    assert editor.set_name(session, "Teacher") is session
    assert editor.toggle_menu(session, MenuNode(id=2, name="Students"), True) is session


def test_choose_scope_swaps_within_resource_type():
    session = editor.choose_scope(_loaded(), _catalog(), "student", 1)

    assert session.data_scope_selection == {1}
    assert session.mode == EditorMode.dirty


def test_start_create_begins_blank_draft():
    session = editor.start_create(_loaded())

    assert session.mode == EditorMode.creating
    assert session.role is None
    assert session.menu_selection == frozenset()
    assert not session.dirty
    assert not session.can_save

    session = editor.set_name(session, "Accountant")
    assert session.mode == EditorMode.creating
    assert session.dirty
    assert session.can_save


def test_begin_save_builds_payload_and_ticket():
    session = editor.set_name(_loaded(), "  Head teacher ")
    session = editor.toggle_menu(session, MenuNode(id=4, name="Dashboard"), True)

    saving, ticket = editor.begin_save(session)

    assert saving.mode == EditorMode.saving
    assert saving.is_saving
    assert ticket.role_id == 7
    assert not ticket.is_create
    assert ticket.generation == session.generation
    assert ticket.payload.model_dump() == {
        "name": "Head teacher",
        "description": "Front desk staff",
        "permission_ids": [],
        "menu_ids": [2, 4],
        "data_permission_ids": [2],
    }


def test_begin_save_for_new_role_has_no_role_id():
    session = editor.set_name(editor.start_create(EditorSession()), "Accountant")
    _, ticket = editor.begin_save(session)
    assert ticket.is_create


def test_begin_save_requires_name_and_changes():
    with pytest.raises(ValidationError):
        editor.begin_save(_loaded())

    blank = editor.set_name(_loaded(), "   ")
    with pytest.raises(ValidationError) as exc:
        editor.begin_save(blank)
    assert exc.value.details["field"] == "name"


def test_edits_are_ignored_while_saving():
    saving, _ = editor.begin_save(editor.set_name(_loaded(), "Head teacher"))

    assert editor.set_name(saving, "Other") is saving
    assert editor.toggle_menu(saving, _menus()[1], True) is saving


def test_save_succeeded_without_role_keeps_submitted_values():
    session = editor.toggle_menu(_loaded(), _menus()[1], True)
    saving, ticket = editor.begin_save(session)

    saved = editor.save_succeeded(saving, ticket)

    assert saved.mode == EditorMode.viewing
    assert not saved.dirty
    assert saved.menu_selection == {2, 4}
    assert saved.baseline_menus == {2, 4}


def test_save_succeeded_with_stored_role_reloads_it():
    saving, ticket = editor.begin_save(editor.set_name(_loaded(), "Head teacher"))
    stored = _role(name="Head teacher", menus=[])

    saved = editor.save_succeeded(saving, ticket, stored, _catalog())

    assert saved.mode == EditorMode.viewing
    assert saved.role.name == "Head teacher"
    assert saved.menu_selection == frozenset()
    assert saved.generation == saving.generation + 1


def test_created_role_must_come_back_from_server():
    session = editor.set_name(editor.start_create(EditorSession()), "Accountant")
    saving, ticket = editor.begin_save(session)

    with pytest.raises(ValidationError):
        editor.save_succeeded(saving, ticket)

    created = editor.save_succeeded(saving, ticket, _role(id=12, name="Accountant"))
    assert created.role_id == 12
    assert created.mode == EditorMode.viewing


def test_save_failed_keeps_edits_and_returns_to_previous_mode():
    session = editor.toggle_menu(_loaded(), _menus()[1], True)
    saving, ticket = editor.begin_save(session)

    failed = editor.save_failed(saving, ticket)

    assert failed.mode == EditorMode.dirty
    assert failed.dirty
    assert failed.menu_selection == {2, 4}

    draft = editor.set_name(editor.start_create(EditorSession()), "Accountant")
    saving, ticket = editor.begin_save(draft)
    assert editor.save_failed(saving, ticket).mode == EditorMode.creating


def test_results_for_a_replaced_session_are_dropped():
    saving, ticket = editor.begin_save(editor.set_name(_loaded(), "Head teacher"))
    other = editor.load(saving, _role(id=8, name="Cashier"))

    assert not editor.is_current(other, ticket)
    assert editor.save_succeeded(other, ticket, _role(name="Head teacher")) is other
    assert editor.save_failed(other, ticket) is other


def test_cancel_restores_loaded_values():
    session = editor.set_name(_loaded(), "Renamed")
    session = editor.toggle_menu(session, _menus()[0], True)
    session = editor.choose_scope(session, _catalog(), "class", 3)

    restored = editor.cancel(session)

    assert restored.mode == EditorMode.viewing
    assert restored.draft_name == "Teacher"
    assert restored.menu_selection == {2}
    assert restored.data_scope_selection == {2}
    assert not restored.dirty


def test_cancel_after_save_restores_saved_selection():
    saving, ticket = editor.begin_save(editor.toggle_menu(_loaded(), _menus()[1], True))
    saved = editor.save_succeeded(saving, ticket)
    edited = editor.toggle_menu(saved, _menus()[1], False)

    assert editor.cancel(edited).menu_selection == {2, 4}


def test_cancel_while_creating_returns_to_idle():
    session = editor.set_name(editor.start_create(EditorSession()), "Accountant")
    assert editor.cancel(session).mode == EditorMode.idle


def test_system_role_cannot_be_edited():
    session = _loaded(is_system=True)
    catalog = _catalog()
    menus = _menus()
    nodes = [menus[0], menus[0].children_items[0], menus[0].children_items[1], menus[1]]
    rng = random.Random(7)

    assert session.is_read_only
    for _ in range(200):
        action = rng.randrange(4)
        if action == 0:
            next_session = editor.toggle_menu(session, rng.choice(nodes), rng.random() < 0.5)
        elif action == 1:
            next_session = editor.choose_scope(session, catalog, "class", rng.choice([3, 4]))
        elif action == 2:
            next_session = editor.set_name(session, "Renamed")
        else:
            next_session = editor.set_description(session, "Changed")
        assert next_session is session

    with pytest.raises(ValidationError):
        editor.begin_save(session)


def test_system_role_flag_does_not_block_drafting_a_new_role():
    session = editor.start_create(_loaded(is_system=True))
    assert not session.is_read_only
    assert editor.set_name(session, "Copy").dirty
