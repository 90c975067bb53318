# accounts/commands.py
"""
Command layer for user and role management.

Pattern:
1. Validate permissions (require)
2. Apply business rules
3. Perform the operation inside transaction.atomic()
4. Return CommandResult
"""

import logging

from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction

from accounts.authz import ActorContext, require
from accounts.models import User, UserRole
from accounting.commands import CommandResult
from audit.models import AuditLog
from audit.recorder import record_action, snapshot

logger = logging.getLogger(__name__)


def create_user(
    actor: ActorContext,
    email: str,
    name: str,
    password: str,
    role: str = UserRole.Role.USER,
) -> CommandResult:
    """
    Create a new user with a role.

    Args:
        actor: The actor context (must have users.manage permission)
        email: User's email (must be unique)
        name: User's display name
        password: Initial password
        role: ADMIN, USER or VIEWER

    Returns:
        CommandResult with {"user", "role"}
    """
    require(actor, "users.manage")

    email = User.objects.normalize_email(email or "").strip()
    if not email:
        return CommandResult.fail("Email is required.")

    if User.objects.filter(email__iexact=email).exists():
        return CommandResult.fail(f"User with email '{email}' already exists.")

    valid_roles = [r[0] for r in UserRole.Role.choices]
    if role not in valid_roles:
        return CommandResult.fail(f"Invalid role. Must be one of: {valid_roles}")

    try:
        validate_password(password)
    except DjangoValidationError as exc:
        return CommandResult.fail(" ".join(exc.messages))

    with transaction.atomic():
        user = User.objects.create_user(email=email, name=name, password=password)
        assignment = UserRole.objects.create(user=user, role=role)

    logger.info("User created", extra={"user_id": user.pk, "role": role})
    return CommandResult.ok({"user": user, "role": assignment})


def set_user_role(
    actor: ActorContext,
    user_id: int,
    role: str,
    is_active: bool = True,
) -> CommandResult:
    """
    Change a user's role or deactivate it.

    An admin cannot demote or deactivate themselves, so the organization
    never locks itself out by accident.
    """
    require(actor, "users.manage")

    valid_roles = [r[0] for r in UserRole.Role.choices]
    if role not in valid_roles:
        return CommandResult.fail(f"Invalid role. Must be one of: {valid_roles}")

    if user_id == actor.user.pk and (role != UserRole.Role.ADMIN or not is_active):
        return CommandResult.fail("Cannot demote or deactivate yourself. Ask another admin.")

    with transaction.atomic():
        try:
            user = User.objects.get(pk=user_id)
        except User.DoesNotExist:
            return CommandResult.fail("User not found.", "not_found")

        assignment, _ = UserRole.objects.select_for_update().get_or_create(
            user=user,
            defaults={"role": role, "is_active": is_active},
        )
        before = snapshot(assignment, ["role", "is_active"])

        assignment.role = role
        assignment.is_active = is_active
        assignment.save(update_fields=["role", "is_active", "updated_at"])

        record_action(
            action=AuditLog.Action.CHANGE_ROLE,
            user=actor.user,
            instance=assignment,
            old_values=before,
            new_values=snapshot(assignment, ["role", "is_active"]),
        )

    logger.info("User role changed", extra={"user_id": user.pk, "role": role, "is_active": is_active})
    return CommandResult.ok(assignment)
