# billing/urls.py
"""
URL configuration for billing API.

Endpoints:
- /vendors/, /clients/, /projects/, /bank-accounts/ - master data
- /bills/ - vendor bills with post/void actions
- /invoices/ - sales invoices with issue/void actions
- /payments/, /receipts/ - settlements with void actions
- /attachments/ - supporting file metadata
"""

from django.urls import path

from billing.views import (
    # Master data views
    VendorListCreateView,
    VendorDetailView,
    ClientListCreateView,
    ClientDetailView,
    ProjectListCreateView,
    ProjectDetailView,
    BankAccountListCreateView,
    BankAccountDetailView,
    # Document views
    BillListCreateView,
    BillDetailView,
    BillPostView,
    BillVoidView,
    InvoiceListCreateView,
    InvoiceDetailView,
    InvoiceIssueView,
    InvoiceVoidView,
    PaymentListCreateView,
    PaymentVoidView,
    ReceiptListCreateView,
    ReceiptVoidView,
    AttachmentListCreateView,
)

app_name = "billing"

urlpatterns = [
    # ==========================================================================
    # Master data
    # ==========================================================================
    path("vendors/", VendorListCreateView.as_view(), name="vendor-list"),
    path("vendors/<int:pk>/", VendorDetailView.as_view(), name="vendor-detail"),
    path("clients/", ClientListCreateView.as_view(), name="client-list"),
    path("clients/<int:pk>/", ClientDetailView.as_view(), name="client-detail"),
    path("projects/", ProjectListCreateView.as_view(), name="project-list"),
    path("projects/<int:pk>/", ProjectDetailView.as_view(), name="project-detail"),
    path("bank-accounts/", BankAccountListCreateView.as_view(), name="bank-account-list"),
    path("bank-accounts/<int:pk>/", BankAccountDetailView.as_view(), name="bank-account-detail"),

    # ==========================================================================
    # Vendor bills
    # ==========================================================================
    path("bills/", BillListCreateView.as_view(), name="bill-list"),
    path("bills/<int:pk>/", BillDetailView.as_view(), name="bill-detail"),
    path("bills/<int:pk>/post/", BillPostView.as_view(), name="bill-post"),
    path("bills/<int:pk>/void/", BillVoidView.as_view(), name="bill-void"),

    # ==========================================================================
    # Sales invoices
    # ==========================================================================
    path("invoices/", InvoiceListCreateView.as_view(), name="invoice-list"),
    path("invoices/<int:pk>/", InvoiceDetailView.as_view(), name="invoice-detail"),
    path("invoices/<int:pk>/issue/", InvoiceIssueView.as_view(), name="invoice-issue"),
    path("invoices/<int:pk>/void/", InvoiceVoidView.as_view(), name="invoice-void"),

    # ==========================================================================
    # Settlements
    # ==========================================================================
    path("payments/", PaymentListCreateView.as_view(), name="payment-list"),
    path("payments/<int:pk>/void/", PaymentVoidView.as_view(), name="payment-void"),
    path("receipts/", ReceiptListCreateView.as_view(), name="receipt-list"),
    path("receipts/<int:pk>/void/", ReceiptVoidView.as_view(), name="receipt-void"),

    # ==========================================================================
    # Attachments
    # ==========================================================================
    path("attachments/", AttachmentListCreateView.as_view(), name="attachment-list"),
]
