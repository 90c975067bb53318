# compliance/admin.py

from django.contrib import admin

from accounting.admin import ReadOnlyModelAdmin
from compliance.models import ComplianceIssue


@admin.register(ComplianceIssue)
class ComplianceIssueAdmin(ReadOnlyModelAdmin):
    """Issues are created by the scanner and resolved through the API."""

    list_display = ["id", "severity", "issue_type", "related_entity_type", "related_entity_id", "status", "created_at"]
    list_filter = ["status", "severity", "issue_type"]
    search_fields = ["message"]
