# accounting/admin.py
"""
Django admin configuration for accounting models.

IMPORTANT: Journals are COMMAND-OWNED.
=====================================
Journals, lines and document counters are written only by the command
layer (accounting/commands.py, accounting/posting.py). The admin is for
viewing them; direct edits would bypass balance validation, numbering and
the audit log.
"""

from django.contrib import admin
from django.utils.html import format_html

from accounting.models import (
    Account,
    DocumentSequence,
    Journal,
    JournalLine,
    PeriodSnapshot,
    PeriodStatus,
)


class ReadOnlyModelAdmin(admin.ModelAdmin):
    """
    Base admin class for command-owned models.

    To modify these models, use the command layer.
    """

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


class ReadOnlyInline(admin.TabularInline):
    """Base inline class for command-owned models."""

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


class JournalLineInline(ReadOnlyInline):
    model = JournalLine
    extra = 0
    fields = ["line_no", "account", "description", "debit", "credit", "project_code"]
    readonly_fields = fields


# =============================================================================
# Account Admin
# =============================================================================

@admin.register(Account)
class AccountAdmin(admin.ModelAdmin):
    """
    Chart of Accounts.

    Accounts are master data, so the admin may edit names and the active
    flag; the code and type stay read-only here.
    """

    list_display = ["code", "name", "account_type", "normal_balance", "parent", "is_active"]
    list_filter = ["account_type", "is_active"]
    search_fields = ["code", "name", "description"]
    ordering = ["code"]
    readonly_fields = ["code", "account_type", "created_at", "updated_at"]

    def has_delete_permission(self, request, obj=None):
        return False


# =============================================================================
# Journal Admin
# =============================================================================

@admin.register(Journal)
class JournalAdmin(ReadOnlyModelAdmin):
    list_display = [
        "number", "date", "description", "kind",
        "status_colored", "source_doc_type", "voided_at",
    ]
    list_filter = ["status", "kind", "source_doc_type", "period"]
    search_fields = ["number", "description"]
    date_hierarchy = "date"
    ordering = ["-date", "-id"]
    inlines = [JournalLineInline]

    @admin.display(description="Status")
    def status_colored(self, obj):
        if obj.is_voided:
            return format_html('<span style="color: {};">{}</span>', "#999", "VOIDED")
        color = "#28a745" if obj.status == Journal.Status.POSTED else "#ffc107"
        return format_html('<span style="color: {};">{}</span>', color, obj.status)


@admin.register(DocumentSequence)
class DocumentSequenceAdmin(ReadOnlyModelAdmin):
    list_display = ["kind", "year", "next_value", "updated_at"]
    list_filter = ["kind", "year"]


# =============================================================================
# Period Admin
# =============================================================================

@admin.register(PeriodStatus)
class PeriodStatusAdmin(ReadOnlyModelAdmin):
    list_display = ["period", "status", "closed_at", "closed_by", "reopened_at"]
    list_filter = ["status"]


@admin.register(PeriodSnapshot)
class PeriodSnapshotAdmin(ReadOnlyModelAdmin):
    list_display = ["period", "account", "debit_balance", "credit_balance", "net_balance"]
    list_filter = ["period"]
