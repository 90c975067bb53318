# accounting/commands.py
"""
Command layer for accounting operations.

Commands are the single point where business operations happen.
Views call commands; commands enforce rules and write the ledger.

Pattern:
1. Validate permissions (require / require_admin)
2. Apply business policies (can_* / assert_*)
3. Perform the operation inside one transaction.atomic() block
4. Record an audit entry for administrative actions
5. Return CommandResult

A LedgerError raised inside the atomic block rolls it back and comes out
as CommandResult.fail(message, kind), so callers never see partial work.
"""

import logging
import re

from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from accounts.authz import ActorContext, require, require_admin
from accounting.errors import LedgerError, NotFoundError, ValidationError
from accounting.models import (
    PERIOD_PATTERN,
    Account,
    Journal,
    JournalLine,
    PeriodSnapshot,
    PeriodStatus,
)
from accounting.policies import (
    can_change_account_type,
    can_delete_account,
    can_delete_journal,
    can_edit_journal,
    can_post_journal,
    can_void_journal_directly,
    is_period_closed,
)
from accounting.posting import LineSpec, check_line_shapes, create_draft, post_draft, post_journal
from accounting.registry import validate_account_code
from accounting.reversal import reverse_journal
from accounting.write_barrier import command_writes_allowed
from audit.models import AuditLog
from audit.recorder import record_action, snapshot

logger = logging.getLogger(__name__)

_PERIOD_RE = re.compile(PERIOD_PATTERN)

VOID_FIELDS = ["status", "voided_at", "voided_by", "void_reason", "reversal_journal"]


class CommandResult:
    """
    Wrapper for command results with success/failure info.

    Usage:
        result = create_account(actor, code="1-10500", ...)
        if result.success:
            account = result.data
        else:
            error_message = result.error
            error_kind = result.error_kind   # "validation", "imbalance", ...
    """

    def __init__(self, success: bool, data=None, error: str = None, error_kind: str = None):
        self.success = success
        self.data = data
        self.error = error
        self.error_kind = error_kind
        # The typed error behind a failure, for callers composing commands
        self.exception = None

    @classmethod
    def ok(cls, data=None):
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str, kind: str = "validation"):
        return cls(success=False, error=error, error_kind=kind)

    @classmethod
    def from_error(cls, exc: LedgerError):
        result = cls.fail(exc.message, exc.kind)
        result.exception = exc
        return result

    def __repr__(self):
        if self.success:
            return f"CommandResult(ok, {self.data!r})"
        return f"CommandResult(fail, {self.error_kind}: {self.error})"


def rejected(exc: LedgerError, operation: str) -> CommandResult:
    """Log a refused operation and turn it into a failed result."""
    logger.info(
        "Command rejected",
        extra={"operation": operation, "error_kind": exc.kind, "detail": exc.message},
    )
    return CommandResult.from_error(exc)


def line_specs(lines) -> list[LineSpec]:
    """Build LineSpec objects from API/command dict input."""
    specs = []
    for index, line in enumerate(lines or [], start=1):
        if isinstance(line, LineSpec):
            specs.append(line)
            continue
        code = line.get("account_code")
        if not code:
            raise ValidationError(f"Line {index}: account_code is required.")
        specs.append(LineSpec(
            account_code=code,
            debit=line.get("debit") or 0,
            credit=line.get("credit") or 0,
            description=line.get("description") or "",
            project_code=line.get("project_code") or "",
        ))
    return specs


# =============================================================================
# Account Commands
# =============================================================================

def create_account(
    actor: ActorContext,
    code: str,
    name: str,
    account_type: str,
    parent_code: str = None,
    description: str = "",
    is_active: bool = True,
) -> CommandResult:
    """
    Create a new account in the chart of accounts.

    Args:
        actor: The actor context
        code: Account code, "D-DDDDD"
        name: Account name
        account_type: One of Account.AccountType choices
        parent_code: Optional parent account code
        description: Free text
        is_active: Whether postings may reference the account

    Returns:
        CommandResult with the created Account or error
    """
    require(actor, "accounts.manage")

    try:
        validate_account_code(code)
    except LedgerError as exc:
        return rejected(exc, "create_account")

    if account_type not in Account.AccountType.values:
        return CommandResult.fail(f"Invalid account type {account_type!r}.")

    if Account.objects.filter(code=code).exists():
        return CommandResult.fail(f"Account code '{code}' already exists.")

    parent = None
    if parent_code:
        parent = Account.objects.filter(code=parent_code).first()
        if parent is None:
            return CommandResult.fail("Parent account not found.", "not_found")

    with transaction.atomic():
        account = Account.objects.create(
            code=code,
            name=name,
            account_type=account_type,
            parent=parent,
            description=description or "",
            is_active=is_active,
        )

    logger.info("Account created", extra={"account_code": code, "account_type": account_type})
    return CommandResult.ok(account)


def update_account(actor: ActorContext, code: str, **updates) -> CommandResult:
    """
    Update an account.

    Allowed fields: name, description, parent_code, is_active, account_type.
    The type cannot change once posted lines reference the account.
    """
    require(actor, "accounts.manage")

    allowed_fields = {"name", "description", "parent_code", "is_active", "account_type"}
    unknown = set(updates) - allowed_fields
    if unknown:
        return CommandResult.fail(f"Cannot update fields: {sorted(unknown)}")

    with transaction.atomic():
        account = Account.objects.select_for_update().filter(code=code).first()
        if account is None:
            return CommandResult.fail("Account not found.", "not_found")

        new_type = updates.get("account_type")
        if new_type is not None and new_type != account.account_type:
            if new_type not in Account.AccountType.values:
                return CommandResult.fail(f"Invalid account type {new_type!r}.")
            allowed, reason = can_change_account_type(account)
            if not allowed:
                return CommandResult.fail(reason)
            account.account_type = new_type

        if "parent_code" in updates:
            parent_code = updates["parent_code"]
            if parent_code == account.code:
                return CommandResult.fail("An account cannot be its own parent.")
            if parent_code and not Account.objects.filter(code=parent_code).exists():
                return CommandResult.fail("Parent account not found.", "not_found")
            account.parent_id = parent_code or None

        for field in ("name", "description", "is_active"):
            if field in updates:
                setattr(account, field, updates[field])

        account.save()

    return CommandResult.ok(account)


def delete_account(actor: ActorContext, code: str) -> CommandResult:
    require(actor, "accounts.manage")

    with transaction.atomic():
        account = Account.objects.select_for_update().filter(code=code).first()
        if account is None:
            return CommandResult.fail("Account not found.", "not_found")

        allowed, reason = can_delete_account(account)
        if not allowed:
            return CommandResult.fail(reason)

        account.delete()

    logger.info("Account deleted", extra={"account_code": code})
    return CommandResult.ok({"deleted": True})


# =============================================================================
# Journal Commands
# =============================================================================

def _get_journal(journal_id, *, lock=False) -> Journal:
    qs = Journal.objects.select_for_update() if lock else Journal.objects.all()
    try:
        return qs.get(pk=journal_id)
    except Journal.DoesNotExist:
        raise NotFoundError(f"Journal {journal_id} not found.")


def create_journal(
    actor: ActorContext,
    date,
    description: str,
    lines,
    post: bool = False,
    idempotency_key: str = None,
) -> CommandResult:
    """
    Create a manual journal.

    Without ``post`` the journal is stored as a DRAFT: its accounts must be
    valid but it may be unbalanced. With ``post`` it is validated and
    posted in the same transaction.
    """
    require(actor, "journal.create")
    if post:
        require(actor, "journal.post")

    try:
        specs = line_specs(lines)
        with transaction.atomic():
            if post:
                journal = post_journal(
                    date=date,
                    description=description,
                    lines=specs,
                    user=actor.user,
                    idempotency_key=idempotency_key,
                )
            else:
                journal = create_draft(
                    date=date,
                    description=description,
                    lines=specs,
                    user=actor.user,
                )
    except LedgerError as exc:
        return rejected(exc, "create_journal")

    return CommandResult.ok(journal)


def update_draft_journal(
    actor: ActorContext,
    journal_id: int,
    date=None,
    description: str = None,
    lines=None,
) -> CommandResult:
    """Replace the header fields and/or lines of a DRAFT journal."""
    require(actor, "journal.create")

    try:
        with transaction.atomic():
            journal = _get_journal(journal_id, lock=True)
            allowed, reason = can_edit_journal(journal)
            if not allowed:
                raise ValidationError(reason)

            with command_writes_allowed():
                if date is not None:
                    journal.date = date
                if description is not None:
                    journal.description = description[:255]
                journal.save()

                if lines is not None:
                    specs = line_specs(lines)
                    check_line_shapes(specs)
                    journal.lines.all().delete()
                    JournalLine.objects.bulk_create([
                        JournalLine(
                            journal=journal,
                            line_no=index,
                            account_id=spec.account_code,
                            description=spec.description,
                            debit=spec.debit,
                            credit=spec.credit,
                            project_code=spec.project_code,
                        )
                        for index, spec in enumerate(specs, start=1)
                    ])
    except LedgerError as exc:
        return rejected(exc, "update_draft_journal")

    return CommandResult.ok(journal)


def post_draft_journal(actor: ActorContext, journal_id: int) -> CommandResult:
    """Validate a DRAFT journal, assign its number and mark it POSTED."""
    require(actor, "journal.post")

    try:
        with transaction.atomic():
            journal = _get_journal(journal_id, lock=True)
            allowed, reason = can_post_journal(journal)
            if not allowed:
                raise ValidationError(reason)
            journal = post_draft(journal, user=actor.user)
    except LedgerError as exc:
        return rejected(exc, "post_draft_journal")

    return CommandResult.ok(journal)


def delete_draft_journal(actor: ActorContext, journal_id: int) -> CommandResult:
    """Drafts are deleted; posted journals are voided."""
    require(actor, "journal.create")

    try:
        with transaction.atomic():
            journal = _get_journal(journal_id, lock=True)
            allowed, reason = can_delete_journal(journal)
            if not allowed:
                return CommandResult.fail(reason)
            with command_writes_allowed():
                journal.delete()
    except LedgerError as exc:
        return rejected(exc, "delete_draft_journal")

    return CommandResult.ok({"deleted": True})


def void_journal(actor: ActorContext, journal_id: int, reason: str) -> CommandResult:
    """
    Void a posted manual journal by posting its mirror.

    Journals generated by bills, invoices, payments and receipts are voided
    through their document so the document status follows.
    """
    require(actor, "journal.void")
    require_admin(actor, "void journals")

    try:
        with transaction.atomic():
            journal = _get_journal(journal_id, lock=True)
            allowed, message = can_void_journal_directly(journal)
            if not allowed:
                return CommandResult.fail(message)

            before = snapshot(journal, VOID_FIELDS)
            reversal = reverse_journal(journal, reason=reason, user=actor.user)
            journal.refresh_from_db()

            record_action(
                action=AuditLog.Action.VOID,
                user=actor.user,
                instance=journal,
                reason=reason,
                old_values=before,
                new_values=snapshot(journal, VOID_FIELDS),
            )
    except LedgerError as exc:
        return rejected(exc, "void_journal")

    return CommandResult.ok({"original": journal, "reversal": reversal})


# =============================================================================
# Period Commands
# =============================================================================

def _check_period(period: str) -> None:
    if not isinstance(period, str) or not _PERIOD_RE.match(period):
        raise ValidationError(f"Invalid period {period!r}; expected YYYY-MM.")


def period_balances(period: str) -> list[dict]:
    """Cumulative posted debit/credit per account up to and including ``period``."""
    return list(
        JournalLine.objects.filter(
            journal__status=Journal.Status.POSTED,
            journal__period__lte=period,
        )
        .values("account_id")
        .annotate(debit=Sum("debit"), credit=Sum("credit"))
        .order_by("account_id")
    )


def close_period(actor: ActorContext, period: str) -> CommandResult:
    """
    Close a calendar month.

    Refused while any open critical compliance issue exists. Snapshots the
    cumulative balance of every account with activity.
    """
    require(actor, "periods.close")
    require_admin(actor, "close periods")

    from compliance.models import ComplianceIssue

    try:
        _check_period(period)
        with transaction.atomic():
            if is_period_closed(period):
                raise ValidationError(f"Period {period} is already closed.")

            critical = ComplianceIssue.objects.filter(
                status=ComplianceIssue.Status.OPEN,
                severity=ComplianceIssue.Severity.CRITICAL,
            ).count()
            if critical:
                raise ValidationError(
                    f"Cannot close {period}: {critical} critical compliance issue(s) are still open."
                )

            status_row, _ = PeriodStatus.objects.select_for_update().get_or_create(period=period)
            before = snapshot(status_row, ["status", "closed_at"])

            accounts = {a.code: a for a in Account.objects.all()}
            PeriodSnapshot.objects.filter(period=period).delete()
            snapshots = []
            for row in period_balances(period):
                debit = row["debit"] or 0
                credit = row["credit"] or 0
                account = accounts[row["account_id"]]
                if account.normal_balance == Account.NormalBalance.DEBIT:
                    net = debit - credit
                else:
                    net = credit - debit
                snapshots.append(PeriodSnapshot(
                    period=period,
                    account_id=row["account_id"],
                    debit_balance=debit,
                    credit_balance=credit,
                    net_balance=net,
                ))
            PeriodSnapshot.objects.bulk_create(snapshots)

            status_row.status = PeriodStatus.Status.CLOSED
            status_row.closed_at = timezone.now()
            status_row.closed_by = actor.user
            status_row.save()

            record_action(
                action=AuditLog.Action.CLOSE_PERIOD,
                user=actor.user,
                instance=status_row,
                old_values=before,
                new_values={**snapshot(status_row, ["status", "closed_at"]), "accounts": len(snapshots)},
            )
    except LedgerError as exc:
        return rejected(exc, "close_period")

    logger.info("Period closed", extra={"period": period, "snapshot_accounts": len(snapshots)})
    return CommandResult.ok(status_row)


def reopen_period(actor: ActorContext, period: str, reason: str) -> CommandResult:
    require(actor, "periods.reopen")
    require_admin(actor, "reopen periods")

    try:
        _check_period(period)
        if not (reason or "").strip():
            raise ValidationError("A reason is required to reopen a period.")

        with transaction.atomic():
            status_row = PeriodStatus.objects.select_for_update().filter(period=period).first()
            if status_row is None or status_row.status != PeriodStatus.Status.CLOSED:
                raise ValidationError(f"Period {period} is not closed.")

            before = snapshot(status_row, ["status", "closed_at", "reopened_at"])
            PeriodSnapshot.objects.filter(period=period).delete()

            status_row.status = PeriodStatus.Status.OPEN
            status_row.reopened_at = timezone.now()
            status_row.reopened_by = actor.user
            status_row.save()

            record_action(
                action=AuditLog.Action.REOPEN_PERIOD,
                user=actor.user,
                instance=status_row,
                reason=reason,
                old_values=before,
                new_values=snapshot(status_row, ["status", "closed_at", "reopened_at"]),
            )
    except LedgerError as exc:
        return rejected(exc, "reopen_period")

    logger.info("Period reopened", extra={"period": period})
    return CommandResult.ok(status_row)
