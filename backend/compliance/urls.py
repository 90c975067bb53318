# compliance/urls.py

from django.urls import path

from compliance.views import (
    ComplianceIssueListView,
    ComplianceIssueResolveView,
    ComplianceScanView,
)

app_name = "compliance"

urlpatterns = [
    path("scan/", ComplianceScanView.as_view(), name="scan"),
    path("issues/", ComplianceIssueListView.as_view(), name="issue-list"),
    path("issues/<int:pk>/resolve/", ComplianceIssueResolveView.as_view(), name="issue-resolve"),
]
