"""
Permission Engine.

Role-based checks go through an immutable `PermissionMatrix` that is built once
in `create_app()` and handed to a `PermissionEngine`; nothing here reads global
state. Finance records add an attribute-based check (`has_finance_access`) that
is deliberately independent of role.
"""
from __future__ import annotations

import enum
from collections.abc import Iterable, Mapping
from types import MappingProxyType


class Role(str, enum.Enum):
    ADMIN = "admin"
    MODERATOR = "moderator"
    USER = "user"

    @classmethod
    def parse(cls, value: "str | Role | None") -> "Role | None":
        """Return the Role for `value`, or None for anything unknown."""
        if isinstance(value, Role):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


class FinanceOperation(str, enum.Enum):
    VIEW = "view"
    MANAGE = "manage"


_ALL = (Role.ADMIN, Role.MODERATOR, Role.USER)
_STAFF = (Role.ADMIN, Role.MODERATOR)
_ADMIN = (Role.ADMIN,)

DEFAULT_PERMISSIONS: dict[str, tuple[Role, ...]] = {
    # Data operations
    "CREATE_RECORD": _ALL,
    "EDIT_RECORD": _STAFF,
    "VIEW_RECORD": _ALL,
    "SEARCH_RECORD": _ALL,
    "COPY_TABLE": _ALL,
    # Archive operations
    "ARCHIVE_DATA": _STAFF,
    "ARCHIVE_RECORD": _ADMIN,
    "HARD_DELETE_RECORD": _STAFF,
    "VIEW_ARCHIVE": _STAFF,
    "EXPORT_EXCEL": _STAFF,
    # Statistics
    "VIEW_STATISTICS": _STAFF,
    "VIEW_DASHBOARD": _STAFF,
    # Settings
    "MANAGE_SETTINGS": _STAFF,
    "DEACTIVATE_SETTINGS": _ADMIN,
    # Users
    "MANAGE_USERS": _ADMIN,
    # Installment orders: order number / installment id / magento flag vs cardholder info
    "EDIT_INSTALLMENT_BASIC": _ALL,
    "EDIT_INSTALLMENT_ADMIN": _STAFF,
}


class PermissionMatrix:
    """Read-only mapping of permission name -> roles allowed to exercise it."""

    __slots__ = ("_grants",)

    def __init__(self, grants: Mapping[str, Iterable["Role | str"]]):
        built: dict[str, frozenset[Role]] = {}
        for name, roles in grants.items():
            parsed = set()
            for r in roles:
                role = Role.parse(r)
                if role is None:
                    raise ValueError(f"Unknown role {r!r} for permission {name}")
                parsed.add(role)
            built[name] = frozenset(parsed)
        object.__setattr__(self, "_grants", MappingProxyType(built))

    def __setattr__(self, name, value):
        raise AttributeError("PermissionMatrix is immutable")

    def roles_for(self, permission: str) -> frozenset[Role]:
        return self._grants.get(permission, frozenset())

    def permissions_for(self, role: Role) -> list[str]:
        return sorted(name for name, roles in self._grants.items() if role in roles)

    def __contains__(self, permission: object) -> bool:
        return permission in self._grants

    def __len__(self) -> int:
        return len(self._grants)


def default_matrix() -> PermissionMatrix:
    return PermissionMatrix(DEFAULT_PERMISSIONS)


class PermissionEngine:
    def __init__(self, matrix: PermissionMatrix):
        self.matrix = matrix

    def has_permission(self, role: "Role | str | None", permission: str) -> bool:
        parsed = Role.parse(role)
        if parsed is None:
            return False
        return parsed in self.matrix.roles_for(permission)

    def has_finance_access(
        self,
        role: "Role | str | None",
        finance_attribute: bool | None,
        operation: "FinanceOperation | str",
    ) -> bool:
        """
        view: any authenticated role. manage: the per-user attribute alone decides,
        so an admin without it is denied and a plain user with it is allowed.
        """
        if Role.parse(role) is None:
            return False
        try:
            op = FinanceOperation(operation)
        except ValueError:
            return False
        if op is FinanceOperation.VIEW:
            return True
        return finance_attribute is True
