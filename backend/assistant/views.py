# assistant/views.py
"""
AI assistant API.

POST /api/assistant/classify/ -> propose a classification
GET /api/assistant/suggestions/ -> list suggestions (?status=)
GET|PATCH /api/assistant/suggestions/<pk>/ -> retrieve / edit a proposal
POST /api/assistant/suggestions/<pk>/approve|post|accept|reject/
"""

from django.http import Http404
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.authz import require, resolve_actor
from accounts.throttles import ClassifyThrottle
from accounting.responses import error_response
from assistant import commands
from assistant.models import TxSuggestion
from assistant.serializers import (
    ClassifySerializer,
    ReviewSerializer,
    SuggestionEditSerializer,
    TxSuggestionSerializer,
)


class ClassifyView(APIView):
    permission_classes = [IsAuthenticated]
    throttle_classes = [ClassifyThrottle]

    def post(self, request):
        actor = resolve_actor(request)

        serializer = ClassifySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = commands.classify_transaction(
            actor,
            text=data["text"],
            amount=data["amount"],
            date=data["date"],
            context=data["context"],
        )
        if not result.success:
            return error_response(result)
        return Response(TxSuggestionSerializer(result.data).data, status=status.HTTP_201_CREATED)


class SuggestionListView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "assistant.view")

        suggestions = TxSuggestion.objects.select_related("tx_input", "journal")
        if request.query_params.get("status"):
            suggestions = suggestions.filter(status=request.query_params["status"])
        return Response(TxSuggestionSerializer(suggestions, many=True).data)


class SuggestionDetailView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        actor = resolve_actor(request)
        require(actor, "assistant.view")

        suggestion = TxSuggestion.objects.select_related("tx_input").filter(pk=pk).first()
        if suggestion is None:
            raise Http404
        return Response(TxSuggestionSerializer(suggestion).data)

    def patch(self, request, pk):
        actor = resolve_actor(request)

        serializer = SuggestionEditSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        changes = dict(serializer.validated_data)
        if "suggested_accounts" in changes:
            changes["suggested_accounts"] = [dict(a) for a in changes["suggested_accounts"]]

        result = commands.edit_suggestion(actor, pk, **changes)
        if not result.success:
            return error_response(result)
        return Response(TxSuggestionSerializer(result.data).data)


class SuggestionActionView(APIView):
    """Runs one review command against a suggestion."""
    permission_classes = [IsAuthenticated]
    action = None

    def post(self, request, pk):
        actor = resolve_actor(request)

        serializer = ReviewSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        note = serializer.validated_data["note"]
        options = {
            "reference": serializer.validated_data["reference"],
            "faktur_pajak_number": serializer.validated_data["faktur_pajak_number"],
        }

        if self.action == "approve":
            result = commands.approve_suggestion(actor, pk, note)
        elif self.action == "post":
            result = commands.post_suggestion(actor, pk, **options)
        elif self.action == "accept":
            result = commands.accept_suggestion(actor, pk, note, **options)
        else:
            result = commands.reject_suggestion(actor, pk, note)

        if not result.success:
            return error_response(result)
        return Response(TxSuggestionSerializer(result.data).data)
