# assistant/oracle.py
"""
AI classification oracle.

Calls an OpenAI-compatible chat-completions gateway and turns its answer
into a validated proposal. The answer is untrusted: it is parsed, shape
checked here, and balance checked again by the Ledger Poster before
anything is posted.

Usage:
    oracle = ClassificationOracle()
    answer = oracle.classify("Bayar Meta Ads project BSI", 5_000_000)
"""

import json
import logging
import re

import openai
from django.conf import settings
from openai import OpenAI
from rest_framework import serializers

from accounting.errors import UpstreamError

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are an Indonesian accounting assistant for a small business.

Classify the transaction into the Chart of Accounts (PSAK).

RULES:
1. VAT (PPN) is always separate. Never include it in expense or revenue accounts.
2. COGS (5-xxxxx) is only for direct costs of a client project.
3. OPEX (6-xxxxx) is overhead: salaries, rent, software, utilities.
4. Loans and advances are balance sheet (1-17xxx), not expense.
5. Input VAT: DR 1-14000 (PPN Masukan) only if the vendor issues a Faktur Pajak.
   Output VAT: CR 2-22000 (PPN Keluaran). Standard rate 11%.
6. Debits must equal credits. Amounts are whole rupiah.

OUTPUT FORMAT (JSON):
{
  "type": "vendor_bill" | "sales_invoice" | "cash_receipt" | "vendor_payment" | "journal_entry",
  "vendor": "vendor name or null",
  "client": "client name or null",
  "project": "project code or null",
  "amount": number (base amount excluding VAT),
  "vatAmount": number,
  "accounts": [{"code": "x-xxxxx", "name": "Account Name", "debit": number, "credit": number}],
  "confidence": 0.0-1.0,
  "reasoning": "why you classified this way",
  "requiresInput": ["field", ...]
}"""

_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL)


class SuggestedAccountSerializer(serializers.Serializer):
    code = serializers.RegexField(r"^\d-\d{5}$")
    name = serializers.CharField(required=False, allow_blank=True, default="")
    debit = serializers.IntegerField(min_value=0, required=False, default=0)
    credit = serializers.IntegerField(min_value=0, required=False, default=0)


class OracleAnswerSerializer(serializers.Serializer):
    # Keys follow the JSON schema in SYSTEM_PROMPT
    type = serializers.ChoiceField(choices=["vendor_bill", "sales_invoice", "cash_receipt", "vendor_payment", "journal_entry"])
    vendor = serializers.CharField(required=False, allow_null=True, allow_blank=True, default=None)
    client = serializers.CharField(required=False, allow_null=True, allow_blank=True, default=None)
    project = serializers.CharField(required=False, allow_null=True, allow_blank=True, default=None, max_length=30)
    amount = serializers.IntegerField(min_value=0)
    vatAmount = serializers.IntegerField(min_value=0, required=False, default=0)
    accounts = SuggestedAccountSerializer(many=True, allow_empty=False)
    confidence = serializers.FloatField(min_value=0, max_value=1, required=False, default=0)
    reasoning = serializers.CharField(required=False, allow_blank=True, default="")
    requiresInput = serializers.ListField(child=serializers.CharField(), required=False, default=list)


def strip_code_fences(content: str) -> str:
    match = _FENCE_RE.search(content or "")
    return (match.group(1) if match else content or "").strip()


def parse_answer(content: str) -> dict:
    """
    Parse and validate the model's raw answer.

    Raises:
        UpstreamError: when the answer is not JSON or not the expected shape
    """
    try:
        payload = json.loads(strip_code_fences(content))
    except json.JSONDecodeError:
        logger.warning("AI returned unreadable answer", extra={"content": (content or "")[:500]})
        raise UpstreamError("AI returned invalid JSON response.")

    serializer = OracleAnswerSerializer(data=payload)
    if not serializer.is_valid():
        logger.warning("AI answer failed validation", extra={"errors": serializer.errors})
        raise UpstreamError("AI returned an incomplete classification.", errors=serializer.errors)

    data = serializer.validated_data
    return {
        "type": data["type"],
        "vendor": data["vendor"] or "",
        "client": data["client"] or "",
        "project": data["project"] or "",
        "amount": data["amount"],
        "vat_amount": data["vatAmount"],
        "accounts": [dict(account) for account in data["accounts"]],
        "confidence": data["confidence"],
        "reasoning": data["reasoning"],
        "requires_input": list(data["requiresInput"]),
    }


class ClassificationOracle:
    """Client for the AI gateway's chat-completions endpoint."""

    def __init__(self, client: OpenAI = None, *, model: str = None, temperature: float = None):
        self._client = client
        self.model = model or settings.AI_MODEL
        self.temperature = settings.AI_TEMPERATURE if temperature is None else temperature

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            if not settings.AI_GATEWAY_API_KEY:
                raise UpstreamError("AI gateway is not configured.")
            self._client = OpenAI(
                base_url=settings.AI_GATEWAY_URL,
                api_key=settings.AI_GATEWAY_API_KEY,
                timeout=settings.AI_TIMEOUT_SECONDS,
                max_retries=0,
            )
        return self._client

    def classify(self, text: str, amount: int, context: str = "") -> dict:
        prompt = (
            "Classify this transaction:\n\n"
            f'Description: "{text}"\n'
            f"Amount: IDR {amount:,}\n"
            + (f"Context: {context}\n" if context else "")
            + "\nRespond ONLY with valid JSON matching the schema. No markdown, no extra text."
        )

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                temperature=self.temperature,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
            )
        except openai.RateLimitError:
            raise UpstreamError("Rate limit exceeded. Please try again in a moment.", retryable=True)
        except openai.APIStatusError as exc:
            if exc.status_code == 402:
                raise UpstreamError("AI usage limit reached. Please add credits to your workspace.")
            logger.error("AI gateway error", extra={"status_code": exc.status_code})
            raise UpstreamError(f"AI gateway error (HTTP {exc.status_code}).", retryable=True)
        except openai.APIConnectionError:
            logger.error("AI gateway unreachable", extra={"base_url": settings.AI_GATEWAY_URL})
            raise UpstreamError("AI gateway is unreachable. Please try again.", retryable=True)

        content = response.choices[0].message.content if response.choices else ""
        return parse_answer(content)
