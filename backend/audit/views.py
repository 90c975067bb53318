# audit/views.py

from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.authz import require, resolve_actor
from audit.models import AuditLog
from audit.serializers import AuditLogSerializer


class AuditLogListView(APIView):
    """
    GET /api/audit/ -> audit entries (?action=&table=&record=), newest first
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "audit.view")

        entries = AuditLog.objects.select_related("changed_by")
        params = request.query_params
        if params.get("action"):
            entries = entries.filter(action=params["action"])
        if params.get("table"):
            entries = entries.filter(table_name=params["table"])
        if params.get("record"):
            entries = entries.filter(record_id=params["record"])
        return Response(AuditLogSerializer(entries[:500], many=True).data)
