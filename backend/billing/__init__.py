# billing/__init__.py
"""
Billing app - source documents that post to the ledger.

This app provides:
- Vendor, Client, Project, BankAccount master data
- VendorBill / SalesInvoice and their line items
- VendorPayment / CashReceipt settling them, with PPh 23 withholding
- TransactionAttachment metadata

Commands handle all mutations; each posted document owns one journal.
"""
