"""
Celery tasks for billing housekeeping.

Tasks:
- mark_overdue_invoices: flag issued invoices whose due date has passed

Usage:
    # Scheduled nightly via CELERY_BEAT_SCHEDULE
    from billing.tasks import mark_overdue_invoices
    mark_overdue_invoices.delay()
"""
import logging
from datetime import date

from celery import shared_task
from django.db import transaction
from django.utils import timezone

logger = logging.getLogger(__name__)


@shared_task(
    bind=True,
    max_retries=3,
    default_retry_delay=60,
    retry_backoff=True,
)
def mark_overdue_invoices(self, as_of: str = None) -> dict:
    """
    Move SENT invoices past their due date to OVERDUE.

    Partially paid invoices keep PARTIAL; the aging report shows them as late.

    Returns:
        Dict with the number of invoices updated
    """
    from accounting.write_barrier import command_writes_allowed
    from billing.models import SalesInvoice

    today = timezone.localdate() if as_of is None else date.fromisoformat(as_of)

    with transaction.atomic(), command_writes_allowed():
        updated = SalesInvoice.objects.filter(
            status=SalesInvoice.Status.SENT,
            due_date__lt=today,
            voided_at__isnull=True,
        ).update(status=SalesInvoice.Status.OVERDUE, updated_at=timezone.now())

    logger.info(f"Marked {updated} invoices overdue as of {today}")
    return {"updated": updated, "as_of": today.isoformat()}
