# audit/serializers.py

from rest_framework import serializers

from audit.models import AuditLog


class AuditLogSerializer(serializers.ModelSerializer):
    changed_by_email = serializers.EmailField(source="changed_by.email", read_only=True, default=None)

    class Meta:
        model = AuditLog
        fields = [
            "id", "table_name", "record_id", "action",
            "changed_by", "changed_by_email", "reason",
            "old_values", "new_values", "created_at",
        ]
        read_only_fields = fields
