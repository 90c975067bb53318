from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


def document_fields():
    return [
        ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
        ("number", models.CharField(max_length=30, unique=True)),
        ("date", models.DateField()),
        ("description", models.CharField(blank=True, default="", max_length=255)),
        ("voided_at", models.DateTimeField(blank=True, null=True)),
        ("void_reason", models.CharField(blank=True, default="", max_length=255)),
        ("created_at", models.DateTimeField(auto_now_add=True)),
        ("updated_at", models.DateTimeField(auto_now=True)),
        ("created_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
        ("journal", models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="+", to="accounting.journal")),
        ("reversal_journal", models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="+", to="accounting.journal")),
        ("voided_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
    ]


def line_fields():
    return [
        ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
        ("line_no", models.PositiveIntegerField()),
        ("description", models.CharField(blank=True, default="", max_length=255)),
        ("quantity", models.DecimalField(decimal_places=2, default=Decimal("1"), max_digits=12)),
        ("unit_price", models.BigIntegerField(default=0)),
        ("amount", models.BigIntegerField(default=0)),
        ("project_code", models.CharField(blank=True, default="", max_length=30)),
    ]


def party_fields():
    return [
        ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
        ("code", models.CharField(max_length=30, unique=True)),
        ("name", models.CharField(max_length=255)),
        ("tax_id", models.CharField(blank=True, default="", max_length=30, verbose_name="NPWP")),
        ("address", models.TextField(blank=True, default="")),
        ("email", models.EmailField(blank=True, default="", max_length=254)),
        ("phone", models.CharField(blank=True, default="", max_length=30)),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("accounting", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Vendor",
            fields=party_fields() + [
                ("payment_terms", models.PositiveSmallIntegerField(default=30, help_text="Days until a bill is due")),
                ("provides_faktur_pajak", models.BooleanField(default=True)),
                ("subject_to_pph23", models.BooleanField(default=False)),
                ("pph23_rate", models.DecimalField(decimal_places=4, default=Decimal("0.02"), max_digits=5, validators=[django.core.validators.MinValueValidator(Decimal("0")), django.core.validators.MaxValueValidator(Decimal("1"))])),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={"ordering": ["name"]},
        ),
        migrations.CreateModel(
            name="Client",
            fields=party_fields() + [
                ("payment_terms", models.PositiveSmallIntegerField(default=30)),
                ("withholds_pph23", models.BooleanField(default=False, help_text="Client withholds PPh 23 on payments to us")),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={"ordering": ["name"]},
        ),
        migrations.CreateModel(
            name="Project",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code", models.CharField(max_length=30, unique=True)),
                ("name", models.CharField(max_length=255)),
                ("status", models.CharField(choices=[("ACTIVE", "Active"), ("COMPLETED", "Completed"), ("ON_HOLD", "On Hold")], default="ACTIVE", max_length=10)),
                ("start_date", models.DateField(blank=True, null=True)),
                ("end_date", models.DateField(blank=True, null=True)),
                ("budget", models.BigIntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("client", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="projects", to="billing.client")),
            ],
            options={"ordering": ["code"]},
        ),
        migrations.CreateModel(
            name="BankAccount",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("bank_name", models.CharField(max_length=100)),
                ("account_number", models.CharField(blank=True, default="", max_length=50)),
                ("account_holder", models.CharField(blank=True, default="", max_length=255)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("account", models.OneToOneField(db_column="account_code", on_delete=django.db.models.deletion.PROTECT, related_name="bank_account", to="accounting.account", to_field="code")),
            ],
            options={"ordering": ["account"]},
        ),
        migrations.CreateModel(
            name="VendorBill",
            fields=document_fields() + [
                ("vendor_invoice_number", models.CharField(blank=True, default="", max_length=100)),
                ("faktur_pajak_number", models.CharField(blank=True, default="", max_length=50)),
                ("due_date", models.DateField()),
                ("category", models.CharField(choices=[("COGS", "Cost of Goods Sold"), ("OPEX", "Operating Expense")], default="OPEX", max_length=10)),
                ("subtotal", models.BigIntegerField(default=0)),
                ("vat_amount", models.BigIntegerField(default=0)),
                ("total", models.BigIntegerField(default=0)),
                ("status", models.CharField(choices=[("DRAFT", "Draft"), ("APPROVED", "Approved"), ("PARTIAL", "Partially Paid"), ("PAID", "Paid"), ("CANCELLED", "Cancelled")], default="DRAFT", max_length=10)),
                ("project", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="bills", to="billing.project")),
                ("vendor", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="bills", to="billing.vendor")),
            ],
            options={
                "ordering": ["-date", "-id"],
                "indexes": [
                    models.Index(fields=["status", "due_date"], name="bill_status_due_idx"),
                    models.Index(fields=["vendor", "date", "total"], name="bill_vendor_date_total_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(check=models.Q(("total", models.F("subtotal") + models.F("vat_amount"))), name="chk_bill_total"),
                ],
            },
        ),
        migrations.CreateModel(
            name="BillLine",
            fields=line_fields() + [
                ("bill", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="lines", to="billing.vendorbill")),
                ("expense_account", models.ForeignKey(db_column="expense_account_code", on_delete=django.db.models.deletion.PROTECT, related_name="+", to="accounting.account", to_field="code")),
            ],
            options={
                "ordering": ["bill", "line_no"],
                "constraints": [
                    models.UniqueConstraint(fields=("bill", "line_no"), name="uniq_bill_line_no"),
                ],
            },
        ),
        migrations.CreateModel(
            name="SalesInvoice",
            fields=document_fields() + [
                ("due_date", models.DateField()),
                ("faktur_pajak_number", models.CharField(blank=True, default="", max_length=50)),
                ("apply_vat", models.BooleanField(default=True)),
                ("subtotal", models.BigIntegerField(default=0)),
                ("vat_amount", models.BigIntegerField(default=0)),
                ("total", models.BigIntegerField(default=0)),
                ("status", models.CharField(choices=[("DRAFT", "Draft"), ("SENT", "Sent"), ("PARTIAL", "Partially Paid"), ("PAID", "Paid"), ("OVERDUE", "Overdue"), ("CANCELLED", "Cancelled")], default="DRAFT", max_length=10)),
                ("client", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="invoices", to="billing.client")),
                ("project", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="invoices", to="billing.project")),
            ],
            options={
                "ordering": ["-date", "-id"],
                "indexes": [
                    models.Index(fields=["status", "due_date"], name="invoice_status_due_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(check=models.Q(("total", models.F("subtotal") + models.F("vat_amount"))), name="chk_invoice_total"),
                ],
            },
        ),
        migrations.CreateModel(
            name="InvoiceLine",
            fields=line_fields() + [
                ("invoice", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="lines", to="billing.salesinvoice")),
                ("revenue_account", models.ForeignKey(db_column="revenue_account_code", on_delete=django.db.models.deletion.PROTECT, related_name="+", to="accounting.account", to_field="code")),
            ],
            options={
                "ordering": ["invoice", "line_no"],
                "constraints": [
                    models.UniqueConstraint(fields=("invoice", "line_no"), name="uniq_invoice_line_no"),
                ],
            },
        ),
        migrations.CreateModel(
            name="VendorPayment",
            fields=document_fields() + [
                ("amount", models.BigIntegerField()),
                ("pph23_withheld", models.BigIntegerField(default=0)),
                ("reference", models.CharField(blank=True, default="", max_length=100)),
                ("bank_account", models.ForeignKey(db_column="bank_account_code", on_delete=django.db.models.deletion.PROTECT, related_name="+", to="accounting.account", to_field="code")),
                ("bill", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="payments", to="billing.vendorbill")),
                ("vendor", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="payments", to="billing.vendor")),
            ],
            options={
                "ordering": ["-date", "-id"],
                "constraints": [
                    models.CheckConstraint(check=models.Q(("amount__gt", 0), ("pph23_withheld__gte", 0)), name="chk_payment_amounts"),
                ],
            },
        ),
        migrations.CreateModel(
            name="CashReceipt",
            fields=document_fields() + [
                ("amount", models.BigIntegerField()),
                ("pph23_withheld", models.BigIntegerField(default=0)),
                ("reference", models.CharField(blank=True, default="", max_length=100)),
                ("bank_account", models.ForeignKey(db_column="bank_account_code", on_delete=django.db.models.deletion.PROTECT, related_name="+", to="accounting.account", to_field="code")),
                ("client", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="receipts", to="billing.client")),
                ("invoice", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="receipts", to="billing.salesinvoice")),
            ],
            options={
                "ordering": ["-date", "-id"],
                "constraints": [
                    models.CheckConstraint(check=models.Q(("amount__gt", 0), ("pph23_withheld__gte", 0), ("pph23_withheld__lte", models.F("amount"))), name="chk_receipt_amounts"),
                ],
            },
        ),
        migrations.CreateModel(
            name="TransactionAttachment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("transaction_type", models.CharField(choices=[("bill", "Vendor Bill"), ("invoice", "Sales Invoice"), ("payment", "Vendor Payment"), ("receipt", "Cash Receipt"), ("journal", "Journal")], max_length=10)),
                ("transaction_id", models.PositiveBigIntegerField()),
                ("file_name", models.CharField(max_length=255)),
                ("file_path", models.CharField(max_length=500)),
                ("file_size", models.PositiveBigIntegerField(default=0)),
                ("mime_type", models.CharField(blank=True, default="", max_length=100)),
                ("uploaded_at", models.DateTimeField(auto_now_add=True)),
                ("uploaded_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["-uploaded_at"],
                "indexes": [
                    models.Index(fields=["transaction_type", "transaction_id"], name="attachment_target_idx"),
                ],
            },
        ),
    ]
