# tests/test_authz.py
"""
Tests for roles, permissions and user management.
"""

import io

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

from accounting.errors import AuthorizationError
from accounts.authz import actor_for_user, require, require_admin
from accounts.commands import create_user, set_user_role
from accounts.models import UserRole
from accounts.permission_defaults import permissions_for_role
from audit.models import AuditLog

PASSWORD = "Rahasia-Kantor-2025"


class TestRolePermissions:
    def test_admin_has_everything(self):
        admin = permissions_for_role("ADMIN")
        assert permissions_for_role("USER") < admin
        assert permissions_for_role("VIEWER") < admin

    @pytest.mark.parametrize("code", [
        "journal.void", "documents.void", "compliance.resolve",
        "periods.close", "periods.reopen", "users.manage", "accounts.manage",
    ])
    def test_user_lacks_admin_codes(self, code):
        assert code not in permissions_for_role("USER")

    def test_viewer_is_read_only(self):
        assert all(code.endswith(".view") for code in permissions_for_role("VIEWER"))

    def test_unknown_role_has_nothing(self):
        assert permissions_for_role("OWNER") == frozenset()


@pytest.mark.django_db
class TestActor:
    def test_inactive_role_denies_everything(self, regular_user):
        actor = actor_for_user(regular_user)
        UserRole.objects.filter(user=regular_user).update(is_active=False)

        with pytest.raises(AuthorizationError):
            actor_for_user(regular_user)
        # A cached actor keeps its permissions until the next request
        require(actor, "journal.create")

    def test_require_admin_reads_the_database(self, admin_user, admin_actor):
        require_admin(admin_actor)
        UserRole.objects.filter(user=admin_user).update(role=UserRole.Role.USER)

        with pytest.raises(AuthorizationError, match="administrators"):
            require_admin(admin_actor, "close periods")


@pytest.mark.django_db
class TestUserCommands:
    def test_create_user(self, admin_actor):
        result = create_user(admin_actor, "Kasir@Kantor.test", "Kasir", PASSWORD, UserRole.Role.VIEWER)

        assert result.success
        assert result.data["role"].role == UserRole.Role.VIEWER
        assert result.data["user"].check_password(PASSWORD)

    def test_duplicate_email(self, admin_actor, regular_user):
        result = create_user(admin_actor, regular_user.email.upper(), "Dup", PASSWORD)

        assert not result.success
        assert "already exists" in result.error

    def test_invalid_role(self, admin_actor):
        assert not create_user(admin_actor, "new@test.com", "New", PASSWORD, "OWNER").success

    def test_weak_password(self, admin_actor):
        assert not create_user(admin_actor, "new@test.com", "New", "123").success

    def test_only_admin_manages_users(self, user_actor):
        with pytest.raises(AuthorizationError):
            create_user(user_actor, "new@test.com", "New", PASSWORD)

    def test_change_role_is_audited(self, admin_actor, regular_user):
        result = set_user_role(admin_actor, regular_user.pk, UserRole.Role.ADMIN)

        assert result.success
        assert actor_for_user(regular_user).is_admin
        entry = AuditLog.objects.get(action=AuditLog.Action.CHANGE_ROLE)
        assert entry.old_values == {"role": "USER", "is_active": True}
        assert entry.new_values == {"role": "ADMIN", "is_active": True}

    def test_cannot_demote_self(self, admin_actor, admin_user):
        result = set_user_role(admin_actor, admin_user.pk, UserRole.Role.USER)

        assert not result.success
        assert UserRole.objects.get(user=admin_user).role == UserRole.Role.ADMIN

    def test_deactivate_user(self, admin_actor, regular_user):
        set_user_role(admin_actor, regular_user.pk, UserRole.Role.USER, is_active=False)

        with pytest.raises(AuthorizationError):
            actor_for_user(regular_user)

    def test_missing_user(self, admin_actor):
        assert set_user_role(admin_actor, 424242, UserRole.Role.USER).error_kind == "not_found"


@pytest.mark.django_db
class TestCreateAdminCommand:
    def test_creates_first_admin(self):
        call_command("create_admin", email="owner@kantor.id", password=PASSWORD, stdout=io.StringIO())

        role = UserRole.objects.get(user__email="owner@kantor.id")
        assert role.role == UserRole.Role.ADMIN
        assert role.user.check_password(PASSWORD)

    def test_promotes_existing_user(self, regular_user):
        call_command("create_admin", email=regular_user.email.upper(), stdout=io.StringIO())

        assert UserRole.objects.get(user=regular_user).role == UserRole.Role.ADMIN

    def test_new_user_needs_password(self):
        with pytest.raises(CommandError, match="password"):
            call_command("create_admin", email="owner@kantor.id", password=None, stdout=io.StringIO())
