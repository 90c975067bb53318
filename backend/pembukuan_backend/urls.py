from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    # Operations endpoints (no auth required)
    path("_health/", include("ops.urls")),

    # Admin and API
    path("admin/", admin.site.urls),
    path("api/", include("accounts.urls")),
    path("api/accounting/", include("accounting.urls")),
    path("api/billing/", include("billing.urls")),
    path("api/compliance/", include("compliance.urls")),
    path("api/assistant/", include("assistant.urls")),
    path("api/audit/", include("audit.urls")),
    path("api/reports/", include("reports.urls")),
]
