# compliance/models.py

from django.conf import settings
from django.db import models
from django.db.models import Q


class ComplianceIssue(models.Model):
    """
    A persisted scanner finding.

    An entity has at most one OPEN issue per issue type; re-running the
    scan does not duplicate it.
    """

    class IssueType(models.TextChoices):
        TAX_RISK = "tax_risk", "Tax Risk"
        ACCOUNTING_ERROR = "accounting_error", "Accounting Error"
        DOCUMENTATION = "documentation", "Documentation"
        DATA_QUALITY = "data_quality", "Data Quality"

    class Severity(models.TextChoices):
        LOW = "low", "Low"
        MEDIUM = "medium", "Medium"
        HIGH = "high", "High"
        CRITICAL = "critical", "Critical"

    class Status(models.TextChoices):
        OPEN = "open", "Open"
        RESOLVED = "resolved", "Resolved"

    issue_type = models.CharField(max_length=20, choices=IssueType.choices)
    rule = models.CharField(max_length=40, blank=True, default="")
    severity = models.CharField(max_length=10, choices=Severity.choices)
    message = models.TextField()
    action_required = models.CharField(max_length=255, blank=True, default="")

    related_entity_type = models.CharField(max_length=20)
    related_entity_id = models.PositiveBigIntegerField()

    status = models.CharField(max_length=10, choices=Status.choices, default=Status.OPEN)
    resolved_at = models.DateTimeField(null=True, blank=True)
    resolved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="+",
    )
    resolution_note = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["status", "severity"], name="issue_status_severity_idx"),
            models.Index(fields=["related_entity_type", "related_entity_id"], name="issue_entity_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["issue_type", "related_entity_type", "related_entity_id"],
                condition=Q(status="open"),
                name="uniq_open_compliance_issue",
            ),
        ]

    def __str__(self):
        return f"[{self.severity}] {self.issue_type} {self.related_entity_type}#{self.related_entity_id}"
