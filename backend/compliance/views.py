# compliance/views.py
"""
Compliance API.

POST /api/compliance/scan/ -> run the scanner
GET /api/compliance/issues/ -> list issues (?status=&severity=)
POST /api/compliance/issues/<pk>/resolve/ -> resolve an issue
"""

from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.authz import require, resolve_actor
from accounting.responses import error_response
from compliance.commands import resolve_issue, run_compliance_scan
from compliance.models import ComplianceIssue
from compliance.serializers import ComplianceIssueSerializer, ResolveIssueSerializer


class ComplianceScanView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        actor = resolve_actor(request)

        result = run_compliance_scan(actor)
        if not result.success:
            return error_response(result)
        return Response({
            "findings": result.data["findings"],
            "created": ComplianceIssueSerializer(result.data["created"], many=True).data,
            "summary": result.data["summary"],
        })


class ComplianceIssueListView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "compliance.view")

        issues = ComplianceIssue.objects.all()
        params = request.query_params
        if params.get("status"):
            issues = issues.filter(status=params["status"])
        if params.get("severity"):
            issues = issues.filter(severity=params["severity"])
        return Response(ComplianceIssueSerializer(issues, many=True).data)


class ComplianceIssueResolveView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        actor = resolve_actor(request)

        serializer = ResolveIssueSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = resolve_issue(actor, pk, serializer.validated_data["note"])
        if not result.success:
            return error_response(result)
        return Response(ComplianceIssueSerializer(result.data).data)
