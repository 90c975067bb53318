# tests/test_ops.py
"""
Tests for health endpoints and structured logging.
"""

import json
import logging

import pytest

from accounting.models import JournalLine
from ops.health import HealthCheck
from ops.logging_config import JsonFormatter, get_logging_config


@pytest.mark.django_db
class TestHealth:
    def test_liveness(self, client):
        response = client.get("/_health/live")

        assert response.status_code == 200
        assert response.json() == {"status": "alive"}

    def test_readiness(self, client):
        response = client.get("/_health/ready")

        assert response.status_code == 200
        assert response.json()["status"] == "ready"

    def test_ledger_integrity_healthy(self, chart, post_manual):
        post_manual("6-60110", "1-10200", 750_000)

        result = HealthCheck.check_ledger_integrity()

        assert result == {"status": "healthy", "total_debit": 750_000, "total_credit": 750_000}

    def test_ledger_integrity_detects_drift(self, chart, post_manual):
        journal = post_manual("6-60110", "1-10200", 750_000)
        JournalLine.objects.filter(journal=journal, line_no=2).update(credit=700_000)

        result = HealthCheck.check_ledger_integrity()

        assert result["status"] == "unhealthy"
        assert result["difference"] == 50_000
        assert result["unbalanced_journals"] == [journal.number]


class TestLogging:
    def test_json_formatter_includes_extra(self):
        record = logging.LogRecord("accounting.posting", logging.INFO, __file__, 10, "Journal posted", (), None)
        record.journal_number = "JV-2025-0001"

        entry = json.loads(JsonFormatter().format(record))

        assert entry["level"] == "INFO"
        assert entry["logger"] == "accounting.posting"
        assert entry["extra"] == {"journal_number": "JV-2025-0001"}

    def test_console_format_in_debug(self, monkeypatch):
        monkeypatch.delenv("LOG_FORMAT", raising=False)
        monkeypatch.delenv("LOG_LEVEL", raising=False)

        config = get_logging_config(debug=True)

        assert config["handlers"]["console"]["formatter"] == "verbose"
        assert config["loggers"]["billing"]["level"] == "DEBUG"
