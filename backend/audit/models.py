# audit/models.py

from django.conf import settings
from django.db import models


class AuditLog(models.Model):
    """
    One audited action.

    Append-only: rows are created through audit.recorder.record_action and
    never updated or deleted.
    """

    class Action(models.TextChoices):
        VOID = "void", "Void"
        RESOLVE_ISSUE = "resolve_issue", "Resolve Compliance Issue"
        CLOSE_PERIOD = "close_period", "Close Period"
        REOPEN_PERIOD = "reopen_period", "Reopen Period"
        APPROVE_SUGGESTION = "approve_suggestion", "Approve AI Suggestion"
        REJECT_SUGGESTION = "reject_suggestion", "Reject AI Suggestion"
        CHANGE_ROLE = "change_role", "Change User Role"

    table_name = models.CharField(max_length=64)
    record_id = models.CharField(max_length=64)
    action = models.CharField(max_length=32, choices=Action.choices)
    changed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="audit_entries",
    )
    reason = models.TextField(blank=True, default="")
    old_values = models.JSONField(default=dict, blank=True)
    new_values = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["table_name", "record_id"], name="audit_table_record_idx"),
        ]

    def __str__(self):
        return f"{self.action} {self.table_name}#{self.record_id}"

    def save(self, *args, **kwargs):
        if self.pk is not None:
            raise RuntimeError("AuditLog is append-only; existing entries cannot be changed.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise RuntimeError("AuditLog is append-only; entries cannot be deleted.")
