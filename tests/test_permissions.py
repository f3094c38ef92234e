"""
Unit tests for the permission engine.

Tests cover:
- Role parsing
- Immutability of the matrix
- Role-based checks against the default matrix
- The finance attribute check (independent of role)
"""

import pytest

from app.backoffice.permissions import (
    DEFAULT_PERMISSIONS,
    FinanceOperation,
    PermissionEngine,
    PermissionMatrix,
    Role,
    default_matrix,
)


@pytest.fixture()
def engine():
    return PermissionEngine(default_matrix())


class TestRole:
    def test_parse_known(self):
        assert Role.parse("admin") is Role.ADMIN
        assert Role.parse(" Moderator ") is Role.MODERATOR
        assert Role.parse(Role.USER) is Role.USER

    def test_parse_unknown(self):
        assert Role.parse("superuser") is None
        assert Role.parse("") is None
        assert Role.parse(None) is None
        assert Role.parse(1) is None


class TestPermissionMatrix:
    def test_is_immutable(self):
        matrix = default_matrix()
        with pytest.raises(AttributeError):
            matrix._grants = {}
        with pytest.raises(TypeError):
            matrix._grants["MANAGE_USERS"] = frozenset(Role)

    def test_source_mapping_changes_do_not_leak(self):
        grants = {"X": ["admin"]}
        matrix = PermissionMatrix(grants)
        grants["X"].append("user")
        assert matrix.roles_for("X") == frozenset({Role.ADMIN})

    def test_unknown_role_rejected(self):
        with pytest.raises(ValueError):
            PermissionMatrix({"X": ["root"]})

    def test_contains_every_default_permission(self):
        matrix = default_matrix()
        assert len(matrix) == len(DEFAULT_PERMISSIONS)
        for name in DEFAULT_PERMISSIONS:
            assert name in matrix

    def test_permissions_for_role(self):
        matrix = default_matrix()
        admin = set(matrix.permissions_for(Role.ADMIN))
        user = set(matrix.permissions_for(Role.USER))
        assert admin == set(DEFAULT_PERMISSIONS)
        assert user == {"CREATE_RECORD", "VIEW_RECORD", "SEARCH_RECORD", "COPY_TABLE", "EDIT_INSTALLMENT_BASIC"}


class TestHasPermission:
    @pytest.mark.parametrize(
        "role,permission,expected",
        [
            ("admin", "MANAGE_USERS", True),
            ("moderator", "MANAGE_USERS", False),
            ("user", "MANAGE_USERS", False),
            ("moderator", "EDIT_RECORD", True),
            ("user", "EDIT_RECORD", False),
            ("user", "CREATE_RECORD", True),
            ("moderator", "ARCHIVE_RECORD", False),
            ("admin", "ARCHIVE_RECORD", True),
            ("moderator", "HARD_DELETE_RECORD", True),
            ("moderator", "DEACTIVATE_SETTINGS", False),
            ("user", "EDIT_INSTALLMENT_ADMIN", False),
        ],
    )
    def test_default_matrix(self, engine, role, permission, expected):
        assert engine.has_permission(role, permission) is expected

    def test_unknown_permission_denied_for_everyone(self, engine):
        for role in Role:
            assert engine.has_permission(role, "LAUNCH_ROCKETS") is False

    def test_unknown_role_denied(self, engine):
        assert engine.has_permission("root", "VIEW_RECORD") is False
        assert engine.has_permission(None, "VIEW_RECORD") is False

    def test_stable_across_calls(self, engine):
        first = [engine.has_permission(r, p) for r in Role for p in DEFAULT_PERMISSIONS]
        second = [engine.has_permission(r, p) for r in Role for p in DEFAULT_PERMISSIONS]
        assert first == second


class TestFinanceAccess:
    @pytest.mark.parametrize("role", list(Role))
    @pytest.mark.parametrize("attr", [True, False])
    def test_view_allowed_for_every_role(self, engine, role, attr):
        assert engine.has_finance_access(role, attr, FinanceOperation.VIEW) is True

    @pytest.mark.parametrize("role", list(Role))
    @pytest.mark.parametrize("attr", [True, False])
    def test_manage_follows_attribute_only(self, engine, role, attr):
        assert engine.has_finance_access(role, attr, "manage") is attr

    def test_unknown_operation_denied(self, engine):
        assert engine.has_finance_access(Role.ADMIN, True, "delete") is False

    def test_unknown_role_denied(self, engine):
        assert engine.has_finance_access("root", True, "view") is False
