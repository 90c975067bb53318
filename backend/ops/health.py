"""
Health endpoints.

- /_health/live    process is up
- /_health/ready   default database answers
- /_health/full    databases, Celery broker, and ledger integrity

The ledger check re-adds every posted line. Totals must match overall and
within each journal; a mismatch means something wrote journal lines
outside the Ledger Poster.
"""
import logging
import time

import redis
from django.conf import settings
from django.db import DatabaseError, connections
from django.db.models import F, Sum
from django.http import JsonResponse
from django.views import View

logger = logging.getLogger(__name__)

OK_STATUSES = ("healthy", "skipped")


def _elapsed_ms(start: float) -> float:
    return round((time.monotonic() - start) * 1000, 2)


class HealthCheck:

    @staticmethod
    def check_database(alias: str = "default") -> dict:
        start = time.monotonic()
        try:
            with connections[alias].cursor() as cursor:
                cursor.execute("SELECT 1")
                cursor.fetchone()
        except DatabaseError as e:
            logger.warning("Database check failed", extra={"alias": alias, "error": str(e)})
            return {"status": "unhealthy", "alias": alias, "error": str(e), "duration_ms": _elapsed_ms(start)}
        return {"status": "healthy", "alias": alias, "duration_ms": _elapsed_ms(start)}

    @staticmethod
    def check_databases() -> dict:
        results = {alias: HealthCheck.check_database(alias) for alias in settings.DATABASES}
        healthy = all(result["status"] == "healthy" for result in results.values())
        return {"status": "healthy" if healthy else "unhealthy", "databases": results}

    @staticmethod
    def check_broker() -> dict:
        """Ping the Celery broker when it is Redis."""
        url = getattr(settings, "CELERY_BROKER_URL", "") or ""
        if not url.startswith(("redis://", "rediss://")):
            return {"status": "skipped", "reason": "broker is not Redis"}

        start = time.monotonic()
        try:
            redis.from_url(url, socket_connect_timeout=2).ping()
        except redis.RedisError as e:
            return {"status": "unhealthy", "error": str(e), "duration_ms": _elapsed_ms(start)}
        return {"status": "healthy", "duration_ms": _elapsed_ms(start)}

    @staticmethod
    def check_ledger_integrity() -> dict:
        from accounting.models import Journal, JournalLine

        posted = JournalLine.objects.filter(journal__status=Journal.Status.POSTED)
        try:
            totals = posted.aggregate(debit=Sum("debit"), credit=Sum("credit"))
            unbalanced = [
                row["journal__number"]
                for row in posted.order_by()
                .values("journal__number")
                .annotate(line_debit=Sum("debit"), line_credit=Sum("credit"))
                .exclude(line_debit=F("line_credit"))
            ]
        except DatabaseError as e:
            return {"status": "error", "error": str(e)}

        debit = totals["debit"] or 0
        credit = totals["credit"] or 0
        result = {"status": "healthy", "total_debit": debit, "total_credit": credit}
        if debit == credit and not unbalanced:
            return result

        result.update(status="unhealthy", difference=debit - credit, unbalanced_journals=sorted(unbalanced))
        logger.error("Ledger out of balance", extra=result)
        return result

    @staticmethod
    def get_full_health() -> dict:
        checks = {
            "databases": HealthCheck.check_databases(),
            "broker": HealthCheck.check_broker(),
            "ledger": HealthCheck.check_ledger_integrity(),
        }
        statuses = [check["status"] for check in checks.values()]
        if all(status in OK_STATUSES for status in statuses):
            overall = "healthy"
        elif "unhealthy" in statuses:
            overall = "unhealthy"
        else:
            overall = "degraded"

        return {
            "status": overall,
            "checks": checks,
            "environment": "development" if settings.DEBUG else "production",
        }


class LivenessView(View):
    def get(self, request):
        return JsonResponse({"status": "alive"})


class ReadinessView(View):
    def get(self, request):
        db_check = HealthCheck.check_database()
        if db_check["status"] == "healthy":
            return JsonResponse({"status": "ready", "database": db_check})
        return JsonResponse({"status": "not_ready", "database": db_check}, status=503)


class FullHealthView(View):
    """Not authenticated; keep it off the public network."""

    def get(self, request):
        health = HealthCheck.get_full_health()
        return JsonResponse(health, status=200 if health["status"] == "healthy" else 503)
