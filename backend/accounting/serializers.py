# accounting/serializers.py
"""
Serializers for accounting API.

Note: These serializers are used for:
1. Input validation
2. Output formatting

The actual business logic happens in commands.py.
Amounts are whole rupiah; the API rejects fractional values.
"""

from rest_framework import serializers

from accounting.models import (
    ACCOUNT_CODE_PATTERN,
    Account,
    Journal,
    JournalLine,
    PeriodSnapshot,
    PeriodStatus,
)
from accounting.tax import PURCHASE, SALES


class AccountSerializer(serializers.ModelSerializer):
    """
    Serializer for Account model.
    Used for listing and retrieving. Creates and updates go through commands.
    """
    has_transactions = serializers.SerializerMethodField()
    parent_code = serializers.CharField(source="parent_id", read_only=True, default=None)

    class Meta:
        model = Account
        fields = [
            "id", "code", "name", "account_type", "normal_balance",
            "parent_code", "description", "is_active",
            "has_transactions",
            "created_at", "updated_at",
        ]
        read_only_fields = fields

    def get_has_transactions(self, obj):
        # Use annotated value if available (from list view), else query
        if hasattr(obj, "_has_transactions"):
            return obj._has_transactions
        return obj.journal_lines.exists()


class AccountCreateSerializer(serializers.Serializer):
    """Serializer for creating accounts via command."""
    code = serializers.RegexField(ACCOUNT_CODE_PATTERN, max_length=7)
    name = serializers.CharField(max_length=255)
    account_type = serializers.ChoiceField(choices=Account.AccountType.choices)
    parent_code = serializers.CharField(max_length=7, required=False, allow_null=True, allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    is_active = serializers.BooleanField(required=False, default=True)


class AccountUpdateSerializer(serializers.Serializer):
    """Serializer for updating accounts via command."""
    name = serializers.CharField(max_length=255, required=False)
    account_type = serializers.ChoiceField(choices=Account.AccountType.choices, required=False)
    parent_code = serializers.CharField(max_length=7, required=False, allow_null=True, allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True)
    is_active = serializers.BooleanField(required=False)


# =============================================================================
# Journal Serializers
# =============================================================================

class JournalLineSerializer(serializers.ModelSerializer):
    """Serializer for individual journal lines."""
    account_code = serializers.CharField(source="account_id", read_only=True)
    account_name = serializers.CharField(source="account.name", read_only=True)

    class Meta:
        model = JournalLine
        fields = [
            "line_no", "account_code", "account_name", "description",
            "debit", "credit", "project_code",
        ]
        read_only_fields = fields


class JournalLineInputSerializer(serializers.Serializer):
    """
    Serializer for journal line input.

    Lines reference accounts by code ("1-10200").
    """
    account_code = serializers.CharField(max_length=7)
    description = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    debit = serializers.IntegerField(min_value=0, required=False, default=0)
    credit = serializers.IntegerField(min_value=0, required=False, default=0)
    project_code = serializers.CharField(max_length=30, required=False, allow_blank=True, default="")


class JournalSerializer(serializers.ModelSerializer):
    """
    Full journal serializer with nested lines.
    Used for retrieval and display.
    """
    lines = JournalLineSerializer(many=True, read_only=True)
    total_debit = serializers.IntegerField(read_only=True)
    total_credit = serializers.IntegerField(read_only=True)
    is_voided = serializers.BooleanField(read_only=True)
    reversal_number = serializers.CharField(source="reversal_journal.number", read_only=True, default=None)

    class Meta:
        model = Journal
        fields = [
            "id", "number", "date", "period", "description",
            "status", "kind", "source_doc_type", "source_doc_id",
            "posted_at", "posted_by",
            "voided_at", "voided_by", "void_reason", "reversal_journal", "reversal_number",
            "is_voided", "created_at", "created_by",
            "lines", "total_debit", "total_credit",
        ]
        read_only_fields = fields


class JournalCreateSerializer(serializers.Serializer):
    date = serializers.DateField()
    description = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    lines = JournalLineInputSerializer(many=True)
    post = serializers.BooleanField(required=False, default=False)
    idempotency_key = serializers.CharField(max_length=128, required=False, allow_blank=True, default="")

    def validate_lines(self, value):
        if not value:
            raise serializers.ValidationError("At least one line is required.")
        return value


class JournalUpdateSerializer(serializers.Serializer):
    date = serializers.DateField(required=False)
    description = serializers.CharField(max_length=255, required=False, allow_blank=True)
    lines = JournalLineInputSerializer(many=True, required=False)


class VoidSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=255)


# =============================================================================
# Tax Serializers
# =============================================================================

class TaxComputeSerializer(serializers.Serializer):
    subtotal = serializers.IntegerField(min_value=0)
    kind = serializers.ChoiceField(choices=[SALES, PURCHASE])
    faktur_pajak_number = serializers.CharField(max_length=50, required=False, allow_blank=True, default="")
    vendor_id = serializers.IntegerField(required=False, allow_null=True)


# =============================================================================
# Period Serializers
# =============================================================================

class PeriodStatusSerializer(serializers.ModelSerializer):
    class Meta:
        model = PeriodStatus
        fields = [
            "period", "status",
            "closed_at", "closed_by", "reopened_at", "reopened_by",
        ]
        read_only_fields = fields


class PeriodSnapshotSerializer(serializers.ModelSerializer):
    account_code = serializers.CharField(source="account_id", read_only=True)

    class Meta:
        model = PeriodSnapshot
        fields = ["period", "account_code", "debit_balance", "credit_balance", "net_balance"]
        read_only_fields = fields


class PeriodReopenSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=500)
