"""
Celery tasks for compliance.

Tasks:
- scan_compliance: nightly scanner run, persisting new findings

Usage:
    from compliance.tasks import scan_compliance
    scan_compliance.delay()
"""
import logging

from celery import shared_task
from django.db import transaction

logger = logging.getLogger(__name__)


@shared_task(
    bind=True,
    max_retries=3,
    default_retry_delay=60,
    retry_backoff=True,
)
def scan_compliance(self) -> dict:
    """
    Run the compliance scanner outside a request.

    Returns:
        Dict with findings, created and per-severity open counts
    """
    from compliance.commands import open_issue_summary, persist_findings
    from compliance.scanner import scan

    findings = scan()
    with transaction.atomic():
        created = persist_findings(findings)

    summary = open_issue_summary()
    logger.info(f"Compliance scan: {len(findings)} findings, {len(created)} new issues")
    return {"findings": len(findings), "created": len(created), "summary": summary}
