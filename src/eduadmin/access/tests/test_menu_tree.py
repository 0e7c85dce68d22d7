import pytest

from eduadmin.access.menu_tree import (
    all_descendant_ids,
    build_menu_tree,
    filter_menus_by_codes,
    find_node,
    iter_nodes,
    menu_icon,
    root_menus,
)
from eduadmin.access.models import MenuNode
from eduadmin.exceptions.handlers import MalformedTreeError


def _tree():
    return [
        MenuNode.model_validate(
            {
                "id": 10,
                "name": "Academic",
                "code": "academic",
                "icon": "GraduationCap",
                "parent_id": None,
                "children_items": [
                    {
                        "id": 11,
                        "name": "Students",
                        "code": "students",
                        "parent_id": 10,
                        "children_items": [
                            {"id": 111, "name": "Create student", "code": "students.create", "parent_id": 11},
                            {"id": 112, "name": "Export students", "code": "students.export", "parent_id": 11},
                        ],
                    },
                    {"id": 12, "name": "Classes", "code": "classes", "parent_id": 10, "children_items": None},
                ],
            }
        ),
        MenuNode(id=20, name="Dashboard", code="dashboard"),
    ]


def test_all_descendant_ids_includes_node_and_every_descendant():
    academic, dashboard = _tree()

    assert all_descendant_ids(academic) == {10, 11, 111, 112, 12}
    assert all_descendant_ids(academic.children_items[0]) == {11, 111, 112}
    assert all_descendant_ids(dashboard) == {20}


def test_all_descendant_ids_rejects_cycles():
    parent = MenuNode(id=1, name="Parent")
    child = MenuNode(id=2, name="Child", parent_id=1)
    parent.children_items.append(child)
    child.children_items.append(parent)

    with pytest.raises(MalformedTreeError) as exc:
        all_descendant_ids(parent)
    assert exc.value.code == "MALFORMED_TREE"
    assert exc.value.node_id == 1


def test_all_descendant_ids_rejects_repeated_ids():
    root = MenuNode.model_validate(
        {
            "id": 1,
            "name": "Root",
            "children_items": [
                {"id": 2, "name": "A", "parent_id": 1},
                {"id": 2, "name": "A again", "parent_id": 1},
            ],
        }
    )
    with pytest.raises(MalformedTreeError):
        all_descendant_ids(root)


def test_iter_nodes_is_preorder_with_levels():
    walked = [(node.id, level) for node, level in iter_nodes(_tree())]
    assert walked == [(10, 0), (11, 1), (111, 2), (112, 2), (12, 1), (20, 0)]


def test_find_node_and_root_menus():
    tree = _tree()
    assert find_node(tree, 112).name == "Export students"
    assert find_node(tree, 999) is None

    flat = [node for node, _ in iter_nodes(tree)]
    assert [node.id for node in root_menus(flat)] == [10, 20]


def test_build_menu_tree_from_flat_records_orders_children():
    records = [
        {"id": 3, "name": "Classes", "parent_id": 1, "sort_order": 2},
        {"id": 2, "name": "Students", "parent_id": 1, "sort_order": 1},
        {"id": 1, "name": "Academic", "parent_id": None, "sort_order": 5},
        {"id": 4, "name": "Dashboard", "parent_id": None, "sort_order": 0},
        {"id": 5, "name": "Create student", "parent_id": 2},
    ]

    roots = build_menu_tree(records)

    assert [root.id for root in roots] == [4, 1]
    academic = roots[1]
    assert [child.id for child in academic.children_items] == [2, 3]
    assert [child.id for child in academic.children_items[0].children_items] == [5]


def test_build_menu_tree_rejects_dangling_parent():
    records = [
        {"id": 1, "name": "Academic", "parent_id": None},
        {"id": 2, "name": "Orphan", "parent_id": 99},
    ]
    with pytest.raises(MalformedTreeError) as exc:
        build_menu_tree(records)
    assert exc.value.details["parent_id"] == 99


def test_build_menu_tree_rejects_parent_cycle():
    records = [
        {"id": 1, "name": "Root", "parent_id": None},
        {"id": 2, "name": "Loop A", "parent_id": 3},
        {"id": 3, "name": "Loop B", "parent_id": 2},
    ]
    with pytest.raises(MalformedTreeError) as exc:
        build_menu_tree(records)
    assert exc.value.details["cycle"] == [2, 3]


def test_build_menu_tree_rejects_duplicate_ids():
    records = [
        {"id": 1, "name": "Root", "parent_id": None},
        {"id": 1, "name": "Root again", "parent_id": None},
    ]
    with pytest.raises(MalformedTreeError):
        build_menu_tree(records)


def test_filter_menus_by_codes_keeps_parents_of_granted_leaves():
    visible = filter_menus_by_codes(_tree(), {"students.export", "classes"})

    assert [menu.id for menu in visible] == [10]
    academic = visible[0]
    assert [child.id for child in academic.children_items] == [11, 12]
    assert [leaf.id for leaf in academic.children_items[0].children_items] == [112]


def test_filter_menus_by_codes_drops_everything_without_grants():
    assert filter_menus_by_codes(_tree(), set()) == []


def test_menu_icon_falls_back_to_document_glyph():
    assert menu_icon("Users") == "👥"
    assert menu_icon("Unknown") == "📄"
    assert menu_icon(None) == "📄"
