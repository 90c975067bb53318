# compliance/commands.py
"""
Command layer for compliance issues.

run_compliance_scan persists scanner findings; resolve_issue closes one
by hand. Issues are never auto-corrected.
"""

import logging
from collections import Counter

from django.db import transaction
from django.utils import timezone

from accounts.authz import ActorContext, require
from accounting.commands import CommandResult, rejected
from accounting.errors import LedgerError, NotFoundError, ValidationError
from audit.models import AuditLog
from audit.recorder import record_action, snapshot
from compliance.models import ComplianceIssue
from compliance.scanner import scan

logger = logging.getLogger(__name__)

RESOLVE_FIELDS = ["status", "resolved_at", "resolved_by", "resolution_note"]


def open_issue_summary() -> dict:
    """Count of OPEN issues per severity, every severity present."""
    counts = Counter(
        ComplianceIssue.objects.filter(status=ComplianceIssue.Status.OPEN)
        .values_list("severity", flat=True)
    )
    return {severity: counts.get(severity, 0) for severity in ComplianceIssue.Severity.values}


def persist_findings(findings) -> list[ComplianceIssue]:
    """Create an OPEN issue for each finding that has none yet."""
    existing = set(
        ComplianceIssue.objects.filter(status=ComplianceIssue.Status.OPEN)
        .values_list("issue_type", "related_entity_type", "related_entity_id")
    )
    created = []
    for finding in findings:
        if finding.key in existing:
            continue
        existing.add(finding.key)
        created.append(ComplianceIssue.objects.create(
            issue_type=finding.issue_type,
            rule=finding.rule,
            severity=finding.severity,
            message=finding.message,
            action_required=finding.action_required,
            related_entity_type=finding.related_entity_type,
            related_entity_id=finding.related_entity_id,
        ))
    return created


def run_compliance_scan(actor: ActorContext, today=None) -> CommandResult:
    """
    Scan posted documents and persist new findings.

    Returns:
        {"findings": n, "created": [issues], "summary": {severity: open count}}
    """
    require(actor, "compliance.scan")

    findings = scan(today)
    with transaction.atomic():
        created = persist_findings(findings)

    summary = open_issue_summary()
    logger.info(
        "Compliance scan completed",
        extra={"findings": len(findings), "issues_created": len(created), "summary": summary},
    )
    return CommandResult.ok({"findings": len(findings), "created": created, "summary": summary})


def resolve_issue(actor: ActorContext, issue_id: int, note: str) -> CommandResult:
    require(actor, "compliance.resolve")

    try:
        with transaction.atomic():
            issue = ComplianceIssue.objects.select_for_update().filter(pk=issue_id).first()
            if issue is None:
                raise NotFoundError(f"Compliance issue {issue_id} not found.")
            if issue.status == ComplianceIssue.Status.RESOLVED:
                raise ValidationError(f"Compliance issue {issue_id} is already resolved.")
            if not (note or "").strip():
                raise ValidationError("A resolution note is required.")

            before = snapshot(issue, RESOLVE_FIELDS)
            issue.status = ComplianceIssue.Status.RESOLVED
            issue.resolved_at = timezone.now()
            issue.resolved_by = actor.user
            issue.resolution_note = note.strip()
            issue.save(update_fields=RESOLVE_FIELDS)

            record_action(
                action=AuditLog.Action.RESOLVE_ISSUE,
                user=actor.user,
                instance=issue,
                reason=issue.resolution_note,
                old_values=before,
                new_values=snapshot(issue, RESOLVE_FIELDS),
            )
    except LedgerError as exc:
        return rejected(exc, "resolve_issue")

    return CommandResult.ok(issue)
