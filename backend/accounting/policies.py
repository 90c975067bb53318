# accounting/policies.py
"""
Business policy functions for ledger operations.

Policies answer: "Is this action allowed given the current state?"
They do NOT perform the action; that's the command's job.

Workflow rules (status transitions, immutability after posting, closed
periods) are enforced HERE, not in model.save(). Models only enforce
true invariants (a posted journal has a number, amounts are non-negative).

Usage:
    allowed, reason = can_post_to_period(journal.date)
    if not allowed:
        return CommandResult.fail(reason)

    assert_can_void_journal(journal)  # raises the typed LedgerError

Policies return (bool, str) tuples; the assert_* helpers raise the
matching error from accounting.errors.
"""

from accounting.errors import (
    AlreadyVoidedError,
    PeriodClosedError,
    UnknownAccountError,
    ValidationError,
)
from accounting.models import Journal, PeriodStatus, period_of


# =============================================================================
# Account Policies
# =============================================================================

def can_post_to_account(account) -> tuple[bool, str]:
    """Inactive accounts accept no new lines."""
    if not account.is_active:
        return False, f"Account {account.code} is inactive."
    return True, ""


def can_change_account_type(account) -> tuple[bool, str]:
    """
    Account type is frozen once posted lines reference the account,
    otherwise historical reports would silently change meaning.
    """
    if account.has_posted_lines():
        return False, "Cannot change the type of an account that has posted transactions."
    return True, ""


def can_delete_account(account) -> tuple[bool, str]:
    if account.journal_lines.exists():
        return False, "Cannot delete an account that has transactions."
    if account.children.exists():
        return False, "Cannot delete an account that has child accounts."
    return True, ""


# =============================================================================
# Period Policies
# =============================================================================

def is_period_closed(period: str) -> bool:
    return PeriodStatus.objects.filter(
        period=period,
        status=PeriodStatus.Status.CLOSED,
    ).exists()


def can_post_to_period(target_date) -> tuple[bool, str]:
    """Posting is allowed into any month that has not been closed."""
    period = period_of(target_date)
    if is_period_closed(period):
        return False, f"Period {period} is closed."
    return True, ""


def assert_can_post_to_period(target_date) -> None:
    allowed, _ = can_post_to_period(target_date)
    if not allowed:
        raise PeriodClosedError(period_of(target_date))


# =============================================================================
# Journal Policies
# =============================================================================

def can_edit_journal(journal) -> tuple[bool, str]:
    if journal.status != Journal.Status.DRAFT:
        return False, "Only DRAFT journals can be changed."
    return True, ""


def can_delete_journal(journal) -> tuple[bool, str]:
    """Posted journals are never deleted; they are voided."""
    if journal.status != Journal.Status.DRAFT:
        return False, "Cannot delete a posted journal. Void it instead."
    return True, ""


def can_post_journal(journal) -> tuple[bool, str]:
    """Status only; the target period is checked by assert_can_post_to_period."""
    if journal.status != Journal.Status.DRAFT:
        return False, "Only DRAFT journals can be posted."
    return True, ""


def can_void_journal_directly(journal) -> tuple[bool, str]:
    """Document journals are voided through their document so its status follows."""
    if journal.source_doc_type not in (Journal.SourceDocType.MANUAL, Journal.SourceDocType.SUGGESTION):
        return False, (
            f"Journal {journal.number} was generated by a {journal.get_source_doc_type_display()}; "
            "void the document instead."
        )
    return True, ""


def assert_can_void_journal(journal) -> None:
    """
    Raise unless ``journal`` can be reversed.

    Rules:
    - Must be POSTED (drafts are deleted, not voided)
    - Must not be a reversal itself
    - Must not already be voided
    """
    if journal.status == Journal.Status.DRAFT:
        raise ValidationError("Cannot void a draft journal. Delete it instead.")
    if journal.kind == Journal.Kind.REVERSAL:
        raise ValidationError("A reversal journal cannot be voided.")
    if journal.voided_at is not None:
        raise AlreadyVoidedError(f"Journal {journal.number} is already voided.")


def assert_can_post_to_account(account) -> None:
    allowed, _ = can_post_to_account(account)
    if not allowed:
        raise UnknownAccountError(account.code, "is inactive")
