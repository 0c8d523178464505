"""Role permission matrix."""

from dataclasses import FrozenInstanceError, fields

import pytest

from sgpro.permissions import (
    DEFAULT_PERMISSIONS,
    Role,
    get_all_permission_codes,
    get_user_permissions,
    has_permission,
)


def _leaves(permission_set):
    for f in fields(permission_set):
        group = getattr(permission_set, f.name)
        if isinstance(group, bool):
            yield f.name, group
        else:
            for action in fields(group):
                yield f"{f.name}.{action.name}", getattr(group, action.name)


class TestMatrix:
    def test_admin_has_every_right(self):
        assert all(value for _, value in _leaves(get_user_permissions("admin")))

    def test_operator_has_no_user_rights(self):
        users = get_user_permissions("operator").users
        assert not any(getattr(users, f.name) for f in fields(users))

    def test_operator_sales(self):
        perms = get_user_permissions("operator")
        assert perms.sales.view and perms.sales.create
        assert not perms.sales.edit and not perms.sales.delete
        assert not perms.products.create
        assert not perms.reports.export

    def test_manager(self):
        perms = get_user_permissions("manager")
        assert perms.products.delete
        assert perms.logs.view and not perms.logs.export
        assert not perms.settings.view
        assert not perms.users.view

    @pytest.mark.parametrize("profile", [None, "", "superuser"])
    def test_unknown_profile_gets_default(self, profile):
        perms = get_user_permissions(profile)
        assert perms is DEFAULT_PERMISSIONS
        assert perms.products.delete
        assert perms.sales.delete and not perms.sales.edit
        assert not perms.users.view

    def test_sets_are_immutable(self):
        with pytest.raises(FrozenInstanceError):
            get_user_permissions("admin").products.view = False

    def test_to_dict_nests_groups(self):
        data = get_user_permissions("operator").to_dict()
        assert data["dashboard"] is True
        assert data["sales"] == {"view": True, "create": True, "edit": False, "delete": False}


class TestHasPermission:
    def test_codes(self):
        admin = get_user_permissions(Role.ADMIN.value)
        assert has_permission(admin, "dashboard")
        assert has_permission(admin, "logs.export")
        assert admin.allows("settings.edit")

    @pytest.mark.parametrize("code", ["", "nope", "products.fly", "dashboard.view", "products"])
    def test_unknown_codes_denied(self, code):
        assert not has_permission(get_user_permissions("admin"), code)

    def test_no_permission_set(self):
        assert not has_permission(None, "dashboard")

    def test_all_codes_resolve(self):
        codes = get_all_permission_codes()
        assert "dashboard" in codes
        assert "users.delete" in codes
        admin = get_user_permissions("admin")
        assert all(has_permission(admin, code) for code in codes)


def test_role_parse():
    assert Role.parse("manager") is Role.MANAGER
    assert Role.parse("root") is None
