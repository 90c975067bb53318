# accounting/errors.py
"""
Typed errors for ledger operations.

Every error carries a stable machine-readable ``kind`` (returned to API
clients next to the human message) and the HTTP status views answer with.
All of them are raised before anything is written, or inside an atomic
block that rolls back, so a caller never observes partial work.
"""

from django.core.exceptions import PermissionDenied


class LedgerError(Exception):
    """Base class for all ledger errors."""

    kind = "ledger_error"
    http_status = 400

    def __init__(self, message: str = "", **details):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self):
        return self.message

    def to_dict(self) -> dict:
        payload = {"kind": self.kind, "detail": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(LedgerError):
    """Malformed input: bad account code, missing field, wrong state."""

    kind = "validation"


class ImbalanceError(LedgerError):
    """Debits do not equal credits."""

    kind = "imbalance"

    def __init__(self, total_debit: int, total_credit: int):
        super().__init__(
            f"Journal is not balanced. Debit={total_debit} Credit={total_credit}",
            total_debit=total_debit,
            total_credit=total_credit,
        )
        self.total_debit = total_debit
        self.total_credit = total_credit


class UnknownAccountError(LedgerError):
    """Account code not in the registry, or inactive."""

    kind = "unknown_account"

    def __init__(self, code: str, reason: str = "not found"):
        super().__init__(f"Account {code} {reason}.", account_code=code)
        self.code = code


class PeriodClosedError(ValidationError):
    kind = "period_closed"

    def __init__(self, period: str):
        super().__init__(f"Period {period} is closed.", period=period)
        self.period = period


class NotFoundError(LedgerError):
    kind = "not_found"
    http_status = 404


class AlreadyVoidedError(LedgerError):
    kind = "already_voided"
    http_status = 409


class AuthorizationError(LedgerError, PermissionDenied):
    """
    Caller lacks the role or permission.

    Also a Django PermissionDenied, so DRF answers 403 when it escapes a view.
    """

    kind = "authorization"
    http_status = 403


class UpstreamError(LedgerError):
    """The AI oracle is unavailable or rate-limited; safe for the user to retry."""

    kind = "upstream"
    http_status = 503
