# Overview: Role-based permission matrix derived from a user's profile.

"""
Permissions are a pure function of the user's profile. Each role maps to an
immutable PermissionSet; nothing is stored per user.

Permission codes used by the API layer and `has_permission()`:
- "dashboard"
- "<module>.<action>", e.g. "products.edit", "logs.export", "settings.view"
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from enum import Enum


class Role(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    OPERATOR = "operator"

    @classmethod
    def parse(cls, value: str | None) -> "Role | None":
        try:
            return cls(value)
        except ValueError:
            return None


@dataclass(frozen=True)
class CrudPermissions:
    view: bool = False
    create: bool = False
    edit: bool = False
    delete: bool = False


@dataclass(frozen=True)
class ReportPermissions:
    view: bool = False
    export: bool = False


@dataclass(frozen=True)
class LogPermissions:
    view: bool = False
    export: bool = False


@dataclass(frozen=True)
class SettingsPermissions:
    view: bool = False
    edit: bool = False


@dataclass(frozen=True)
class PermissionSet:
    dashboard: bool
    products: CrudPermissions
    sales: CrudPermissions
    expenses: CrudPermissions
    reports: ReportPermissions
    users: CrudPermissions
    logs: LogPermissions
    settings: SettingsPermissions

    def to_dict(self) -> dict:
        return asdict(self)

    def allows(self, code: str) -> bool:
        return has_permission(self, code)


FULL_CRUD = CrudPermissions(view=True, create=True, edit=True, delete=True)
NO_CRUD = CrudPermissions()
VIEW_ONLY = CrudPermissions(view=True)


ROLE_PERMISSIONS: dict[Role, PermissionSet] = {
    Role.ADMIN: PermissionSet(
        dashboard=True,
        products=FULL_CRUD,
        sales=FULL_CRUD,
        expenses=FULL_CRUD,
        reports=ReportPermissions(view=True, export=True),
        users=FULL_CRUD,
        logs=LogPermissions(view=True, export=True),
        settings=SettingsPermissions(view=True, edit=True),
    ),
    Role.MANAGER: PermissionSet(
        dashboard=True,
        products=FULL_CRUD,
        sales=FULL_CRUD,
        expenses=FULL_CRUD,
        reports=ReportPermissions(view=True, export=True),
        users=NO_CRUD,
        logs=LogPermissions(view=True, export=False),
        settings=SettingsPermissions(),
    ),
    Role.OPERATOR: PermissionSet(
        dashboard=True,
        products=VIEW_ONLY,
        sales=CrudPermissions(view=True, create=True),
        expenses=VIEW_ONLY,
        reports=ReportPermissions(view=True, export=False),
        users=NO_CRUD,
        logs=LogPermissions(),
        settings=SettingsPermissions(),
    ),
}

_GROUP_NAMES = frozenset(f.name for f in fields(PermissionSet))

# Fallback for unknown profiles. Not the operator matrix: products/expenses are
# fully writable, sales may be deleted but not edited, reports may be exported.
DEFAULT_PERMISSIONS = PermissionSet(
    dashboard=True,
    products=FULL_CRUD,
    sales=CrudPermissions(view=True, create=True, edit=False, delete=True),
    expenses=FULL_CRUD,
    reports=ReportPermissions(view=True, export=True),
    users=NO_CRUD,
    logs=LogPermissions(),
    settings=SettingsPermissions(),
)


def get_user_permissions(profile: str | None) -> PermissionSet:
    role = Role.parse(profile)
    if role is None:
        return DEFAULT_PERMISSIONS
    return ROLE_PERMISSIONS[role]


def get_all_permission_codes() -> list[str]:
    codes = []
    for f in fields(PermissionSet):
        if f.name == "dashboard":
            codes.append("dashboard")
            continue
        group = getattr(DEFAULT_PERMISSIONS, f.name)
        codes.extend(f"{f.name}.{action.name}" for action in fields(group))
    return codes


def has_permission(permissions: PermissionSet | None, code: str) -> bool:
    """Resolve "dashboard" or "<module>.<action>"; unknown codes are denied."""
    if permissions is None or not code:
        return False

    module, _, action = code.partition(".")
    group = getattr(permissions, module, None) if module in _GROUP_NAMES else None
    if group is None:
        return False

    if isinstance(group, bool):
        return group if not action else False

    if not action or action not in {f.name for f in fields(group)}:
        return False
    return bool(getattr(group, action))

