# assistant/admin.py

from django.contrib import admin

from accounting.admin import ReadOnlyModelAdmin
from assistant.models import TxInput, TxSuggestion


@admin.register(TxInput)
class TxInputAdmin(ReadOnlyModelAdmin):
    list_display = ["id", "date", "raw_text", "amount", "status", "created_by"]
    list_filter = ["status"]
    search_fields = ["raw_text"]


@admin.register(TxSuggestion)
class TxSuggestionAdmin(ReadOnlyModelAdmin):
    list_display = ["id", "suggested_type", "amount", "confidence", "status", "edited", "journal"]
    list_filter = ["status", "suggested_type"]
