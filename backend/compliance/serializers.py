# compliance/serializers.py

from rest_framework import serializers

from compliance.models import ComplianceIssue


class ComplianceIssueSerializer(serializers.ModelSerializer):
    class Meta:
        model = ComplianceIssue
        fields = [
            "id", "issue_type", "rule", "severity", "message", "action_required",
            "related_entity_type", "related_entity_id",
            "status", "resolved_at", "resolved_by", "resolution_note", "created_at",
        ]
        read_only_fields = fields


class ResolveIssueSerializer(serializers.Serializer):
    note = serializers.CharField(max_length=2000)
