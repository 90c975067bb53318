# tests/conftest.py
"""
Pytest fixtures for pembukuan tests.

- Users carry a UserRole; actors are built with actor_for_user, the same
  way views build them.
- ``chart`` seeds the default chart of accounts.
- ``fake_oracle`` stands in for the AI gateway with a canned answer.
"""

import json
from datetime import date
from decimal import Decimal

import pytest
from django.conf import settings
from django.contrib.auth import get_user_model

from accounting.management.commands.seed_coa import seed_chart_of_accounts
from accounting.posting import LineSpec, post_journal
from accounts.authz import actor_for_user
from accounts.models import UserRole
from assistant.oracle import parse_answer
from billing.models import BankAccount, Client, Project, Vendor


User = get_user_model()

DOC_DATE = date(2025, 1, 15)


@pytest.fixture(autouse=True, scope="session")
def _testing_settings():
    """Test runs write models directly; the write barrier tests switch this off."""
    settings.TESTING = True


def make_user(email: str, role: str, name: str = "Test User"):
    user = User.objects.create_user(email=email, password="testpass123", name=name)
    UserRole.objects.create(user=user, role=role)
    return user


# =============================================================================
# Users & actors
# =============================================================================

@pytest.fixture
def admin_user(db):
    return make_user("admin@test.com", UserRole.Role.ADMIN, "Test Admin")


@pytest.fixture
def regular_user(db):
    return make_user("user@test.com", UserRole.Role.USER, "Test Bookkeeper")


@pytest.fixture
def viewer_user(db):
    return make_user("viewer@test.com", UserRole.Role.VIEWER, "Test Viewer")


@pytest.fixture
def admin_actor(admin_user):
    return actor_for_user(admin_user)


@pytest.fixture
def user_actor(regular_user):
    return actor_for_user(regular_user)


@pytest.fixture
def viewer_actor(viewer_user):
    return actor_for_user(viewer_user)


# =============================================================================
# Ledger & master data
# =============================================================================

@pytest.fixture
def chart(db):
    seed_chart_of_accounts()


@pytest.fixture
def vendor(db):
    """Service vendor: issues Faktur Pajak, subject to PPh 23 at 2%."""
    return Vendor.objects.create(
        code="V-001",
        name="PT Kreatif Digital",
        provides_faktur_pajak=True,
        subject_to_pph23=True,
        pph23_rate=Decimal("0.02"),
        payment_terms=30,
    )


@pytest.fixture
def supplier(db):
    """Goods supplier: no Faktur Pajak, no withholding."""
    return Vendor.objects.create(
        code="V-002",
        name="Toko Bangunan Jaya",
        provides_faktur_pajak=False,
        subject_to_pph23=False,
        payment_terms=14,
    )


@pytest.fixture
def client_party(db):
    return Client.objects.create(
        code="C-001",
        name="PT Bank Syariah Indonesia",
        payment_terms=30,
    )


@pytest.fixture
def withholding_client(db):
    return Client.objects.create(
        code="C-002",
        name="PT Telkom Indonesia",
        payment_terms=30,
        withholds_pph23=True,
    )


@pytest.fixture
def project(client_party):
    return Project.objects.create(code="BSI-001", name="BSI Campaign", client=client_party)


@pytest.fixture
def bank_account(chart):
    return BankAccount.objects.create(account_id="1-10200", bank_name="Bank BSI", account_number="7001234567")


@pytest.fixture
def post_manual():
    """Post a two-line manual journal: DR ``debit_code`` / CR ``credit_code``."""

    def _post(debit_code, credit_code, amount, on=DOC_DATE, project_code="", user=None):
        return post_journal(
            date=on,
            description=f"Manual {debit_code}/{credit_code}",
            lines=[
                LineSpec(account_code=debit_code, debit=amount, project_code=project_code),
                LineSpec(account_code=credit_code, credit=amount),
            ],
            user=user,
        )

    return _post


# =============================================================================
# AI oracle
# =============================================================================

class FakeOracle:
    """Returns a canned gateway answer, parsed like a real one."""

    def __init__(self, answer: dict):
        self.answer = answer
        self.calls = []

    def classify(self, text, amount, context=""):
        self.calls.append((text, amount, context))
        return parse_answer(json.dumps(self.answer))


def ads_answer(amount=5_000_000, balanced=True):
    credit = amount if balanced else amount - 1
    return {
        "type": "journal_entry",
        "vendor": "Meta Platforms",
        "client": None,
        "project": "BSI-001",
        "amount": amount,
        "vatAmount": 0,
        "accounts": [
            {"code": "5-50200", "name": "Beban Pokok Proyek - Subkontraktor", "debit": amount, "credit": 0},
            {"code": "1-10200", "name": "Bank BSI", "debit": 0, "credit": credit},
        ],
        "confidence": 0.92,
        "reasoning": "Ads spend for a client project is a direct project cost.",
        "requiresInput": [],
    }


@pytest.fixture
def fake_oracle():
    return FakeOracle(ads_answer())


# =============================================================================
# API Client
# =============================================================================

@pytest.fixture
def api_client():
    from rest_framework.test import APIClient
    return APIClient()


@pytest.fixture
def oracle_answer():
    """Factory for gateway answers; ``balanced=False`` leaves credits short by 1."""
    return ads_answer


@pytest.fixture
def oracle_factory():
    return FakeOracle
