# accounting/responses.py
"""
Turn failed command results into API responses.

Every error body is {"detail": <message>, "kind": <kind>} so clients can
branch on the machine-readable kind.
"""

from rest_framework import status
from rest_framework.response import Response

from accounting.errors import LedgerError

KIND_STATUS = {
    "validation": status.HTTP_400_BAD_REQUEST,
    "imbalance": status.HTTP_400_BAD_REQUEST,
    "unknown_account": status.HTTP_400_BAD_REQUEST,
    "period_closed": status.HTTP_400_BAD_REQUEST,
    "not_found": status.HTTP_404_NOT_FOUND,
    "already_voided": status.HTTP_409_CONFLICT,
    "authorization": status.HTTP_403_FORBIDDEN,
    "upstream": status.HTTP_503_SERVICE_UNAVAILABLE,
}


def error_response(result) -> Response:
    kind = result.error_kind or "validation"
    return Response(
        {"detail": result.error, "kind": kind},
        status=KIND_STATUS.get(kind, status.HTTP_400_BAD_REQUEST),
    )


def ledger_error_response(exc: LedgerError) -> Response:
    return Response(exc.to_dict(), status=exc.http_status)
