# audit/recorder.py
"""
Writers for the audit log.

Usage:
    before = snapshot(bill, ["status", "voided_at"])
    ... change bill ...
    record_action(
        instance=bill,
        action=AuditLog.Action.VOID,
        user=actor.user,
        reason=reason,
        old_values=before,
        new_values=snapshot(bill, ["status", "voided_at"]),
    )
"""

import json
import logging

from django.core.serializers.json import DjangoJSONEncoder
from django.forms.models import model_to_dict

from audit.models import AuditLog

logger = logging.getLogger(__name__)


def snapshot(instance, fields=None) -> dict:
    """JSON-safe dict of ``fields`` (all editable fields when omitted)."""
    data = model_to_dict(instance, fields=fields)
    for name in fields or ():
        if name not in data and hasattr(instance, name):
            data[name] = getattr(instance, name)
    return json.loads(json.dumps(data, cls=DjangoJSONEncoder))


def record_action(
    *,
    action: str,
    user=None,
    instance=None,
    table_name: str = "",
    record_id=None,
    reason: str = "",
    old_values: dict | None = None,
    new_values: dict | None = None,
) -> AuditLog:
    if instance is not None:
        table_name = table_name or instance._meta.db_table
        record_id = record_id if record_id is not None else instance.pk

    entry = AuditLog.objects.create(
        table_name=table_name,
        record_id=str(record_id),
        action=action,
        changed_by=user,
        reason=reason or "",
        old_values=old_values or {},
        new_values=new_values or {},
    )
    logger.info(
        "Audit entry recorded",
        extra={"action": action, "table_name": table_name, "record_id": str(record_id)},
    )
    return entry
