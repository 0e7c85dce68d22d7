from __future__ import annotations

import pytest

from eduadmin.integrations.admin_api import AdminApiClient

pytestmark = pytest.mark.live_api


def test_live_catalogs_are_readable() -> None:
    client = AdminApiClient()

    roles = client.list_roles()
    catalog = client.get_permission_catalog()
    menus = client.get_menu_tree()

    assert all(role.id is not None for role in roles)
    assert all(not menu.parent_id for menu in menus)
    for resource_type, permissions in catalog.data_permissions.items():
        assert {p.resource_type for p in permissions} <= {resource_type}
