# accounts/authz.py
"""
Authorization utilities.

Provides:
- ActorContext: Immutable context for the current request
- resolve_actor: Extract actor context from request
- require: Check a permission code and raise if not granted
- require_admin: Re-check the admin role against the database

Permissions come from the user's role (accounts.permission_defaults).
Roles are loaded FRESH on every request, and require_admin re-reads the
role at call time, so a demotion takes effect immediately.
"""

from dataclasses import dataclass
from typing import FrozenSet

from rest_framework.exceptions import NotAuthenticated

from accounting.errors import AuthorizationError
from accounts.models import UserRole
from accounts.permission_defaults import permissions_for_role


@dataclass(frozen=True)
class ActorContext:
    """
    Immutable context for the current actor.

    This is passed to commands and policies to provide context
    about who is performing an action.

    Attributes:
        user: The authenticated user
        role_assignment: The user's UserRole row
        perms: Permission codes granted by the role
    """
    user: object  # User model
    role_assignment: UserRole
    perms: FrozenSet[str]

    def has(self, code: str) -> bool:
        if not self.role_assignment.is_active:
            return False
        return code in self.perms

    @property
    def is_authenticated(self) -> bool:
        """Mirror Django's user.is_authenticated for compatibility."""
        return bool(getattr(self.user, "is_authenticated", False))

    @property
    def is_admin(self) -> bool:
        return self.role_assignment.is_active and self.role == UserRole.Role.ADMIN

    @property
    def role(self) -> str:
        return self.role_assignment.role


def actor_for_user(user) -> ActorContext:
    """
    Build an ActorContext from a fresh UserRole lookup.

    Raises:
        AuthorizationError: If the user has no active role
    """
    try:
        assignment = UserRole.objects.get(user=user, is_active=True)
    except UserRole.DoesNotExist:
        raise AuthorizationError("Your account has no active role. Ask an administrator for access.")

    return ActorContext(
        user=user,
        role_assignment=assignment,
        perms=permissions_for_role(assignment.role),
    )


def resolve_actor(request) -> ActorContext:
    """
    Extract ActorContext from the current request.

    Called at the start of every view that needs authorization.

    Raises:
        NotAuthenticated: If user is not authenticated
        AuthorizationError: If user has no active role
    """
    user = getattr(request, "user", None)

    if not user or not user.is_authenticated:
        raise NotAuthenticated("Authentication required.")

    return actor_for_user(user)


def require(actor: ActorContext, code: str) -> None:
    """
    Require that the actor has a specific permission.

    Raises:
        AuthorizationError: If permission is not granted

    Example:
        require(actor, "journal.post")
        # If we get here, permission is granted
    """
    if not actor.has(code):
        raise AuthorizationError(f"Permission denied: {code}")


def require_admin(actor: ActorContext, action: str = "perform this action") -> None:
    """
    Require the admin role, checked against the database at call time.

    Used by voids and period close: the cached role on the ActorContext is
    not trusted for these.
    """
    is_admin = UserRole.objects.filter(
        user_id=actor.user.pk,
        role=UserRole.Role.ADMIN,
        is_active=True,
    ).exists()
    if not is_admin:
        raise AuthorizationError(f"Only administrators can {action}.")
