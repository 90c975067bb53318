# assistant/serializers.py

from rest_framework import serializers

from assistant.models import TxInput, TxSuggestion
from assistant.oracle import SuggestedAccountSerializer


class TxInputSerializer(serializers.ModelSerializer):
    class Meta:
        model = TxInput
        fields = ["id", "raw_text", "amount", "date", "status", "created_at", "created_by"]
        read_only_fields = fields


class TxSuggestionSerializer(serializers.ModelSerializer):
    tx_input = TxInputSerializer(read_only=True)
    journal_number = serializers.CharField(source="journal.number", read_only=True, default=None)

    class Meta:
        model = TxSuggestion
        fields = [
            "id", "tx_input", "suggested_type",
            "suggested_vendor", "suggested_client", "suggested_project",
            "amount", "vat_amount", "suggested_accounts",
            "confidence", "reasoning", "requires_input", "edited",
            "status", "journal", "journal_number", "document_number",
            "reviewed_at", "reviewed_by", "review_note",
            "created_at", "updated_at",
        ]
        read_only_fields = fields


class ClassifySerializer(serializers.Serializer):
    text = serializers.CharField(max_length=2000)
    amount = serializers.IntegerField(min_value=1)
    date = serializers.DateField(required=False, allow_null=True, default=None)
    context = serializers.CharField(max_length=2000, required=False, allow_blank=True, default="")


class SuggestionEditSerializer(serializers.Serializer):
    suggested_type = serializers.ChoiceField(choices=TxSuggestion.SuggestedType.choices, required=False)
    suggested_vendor = serializers.CharField(max_length=255, required=False, allow_blank=True)
    suggested_client = serializers.CharField(max_length=255, required=False, allow_blank=True)
    suggested_project = serializers.CharField(max_length=30, required=False, allow_blank=True)
    amount = serializers.IntegerField(min_value=0, required=False)
    vat_amount = serializers.IntegerField(min_value=0, required=False)
    suggested_accounts = SuggestedAccountSerializer(many=True, required=False)


class ReviewSerializer(serializers.Serializer):
    note = serializers.CharField(max_length=2000, required=False, allow_blank=True, default="")
    # Posting options for typed suggestions
    reference = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")
    faktur_pajak_number = serializers.CharField(max_length=50, required=False, allow_blank=True, default="")
