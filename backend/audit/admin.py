# audit/admin.py

from django.contrib import admin

from accounting.admin import ReadOnlyModelAdmin
from audit.models import AuditLog


@admin.register(AuditLog)
class AuditLogAdmin(ReadOnlyModelAdmin):
    list_display = ["created_at", "action", "table_name", "record_id", "changed_by", "reason"]
    list_filter = ["action", "table_name"]
    search_fields = ["record_id", "reason"]
