import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


ACCOUNT_TYPES = [
    ("ASSET", "Asset"),
    ("LIABILITY", "Liability"),
    ("EQUITY", "Equity"),
    ("REVENUE", "Revenue"),
    ("COGS", "Cost of Goods Sold"),
    ("OPEX", "Operating Expense"),
    ("OTHER_INCOME", "Other Income"),
    ("OTHER_EXPENSE", "Other Expense"),
    ("TAX_EXPENSE", "Tax Expense"),
]

DOCUMENT_KINDS = [
    ("journal", "Journal"),
    ("invoice", "Sales Invoice"),
    ("bill", "Vendor Bill"),
    ("payment", "Vendor Payment"),
    ("receipt", "Cash Receipt"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="DocumentSequence",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("kind", models.CharField(choices=DOCUMENT_KINDS, max_length=20)),
                ("year", models.PositiveSmallIntegerField()),
                ("next_value", models.BigIntegerField(default=1)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "constraints": [
                    models.UniqueConstraint(fields=("kind", "year"), name="uniq_document_sequence_kind_year"),
                ],
            },
        ),
        migrations.CreateModel(
            name="NumberReservation",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("idempotency_key", models.CharField(max_length=128, unique=True)),
                ("kind", models.CharField(choices=DOCUMENT_KINDS, max_length=20)),
                ("year", models.PositiveSmallIntegerField()),
                ("number", models.CharField(max_length=30)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
        ),
        migrations.CreateModel(
            name="Account",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code", models.CharField(max_length=7, unique=True, validators=[django.core.validators.RegexValidator("^\\d-\\d{5}$", "Account code must look like 1-10100.")])),
                ("name", models.CharField(max_length=255)),
                ("account_type", models.CharField(choices=ACCOUNT_TYPES, max_length=20)),
                ("description", models.CharField(blank=True, default="", max_length=255)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("parent", models.ForeignKey(blank=True, db_column="parent_code", null=True, on_delete=django.db.models.deletion.PROTECT, related_name="children", to="accounting.account", to_field="code")),
            ],
            options={
                "ordering": ["code"],
                "indexes": [
                    models.Index(fields=["account_type"], name="acct_account_type_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Journal",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("number", models.CharField(blank=True, max_length=30, null=True, unique=True)),
                ("date", models.DateField()),
                ("period", models.CharField(db_index=True, editable=False, max_length=7)),
                ("description", models.CharField(blank=True, default="", max_length=255)),
                ("status", models.CharField(choices=[("DRAFT", "Draft"), ("POSTED", "Posted")], default="DRAFT", max_length=10)),
                ("kind", models.CharField(choices=[("NORMAL", "Normal"), ("REVERSAL", "Reversal")], default="NORMAL", max_length=10)),
                ("source_doc_type", models.CharField(choices=[("manual", "Manual Entry"), ("bill", "Vendor Bill"), ("invoice", "Sales Invoice"), ("payment", "Vendor Payment"), ("receipt", "Cash Receipt"), ("suggestion", "AI Suggestion")], default="manual", max_length=20)),
                ("source_doc_id", models.PositiveBigIntegerField(blank=True, null=True)),
                ("voided_at", models.DateTimeField(blank=True, null=True)),
                ("void_reason", models.CharField(blank=True, default="", max_length=255)),
                ("posted_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("created_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="created_journals", to=settings.AUTH_USER_MODEL)),
                ("posted_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="posted_journals", to=settings.AUTH_USER_MODEL)),
                ("reversal_journal", models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="reversed_journal", to="accounting.journal")),
                ("voided_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="voided_journals", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["-date", "-id"],
                "indexes": [
                    models.Index(fields=["status", "date"], name="acct_journal_status_date_idx"),
                    models.Index(fields=["source_doc_type", "source_doc_id"], name="acct_journal_source_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(check=models.Q(("status", "DRAFT"), ("number__isnull", False), _connector="OR"), name="chk_posted_journal_has_number"),
                ],
            },
        ),
        migrations.CreateModel(
            name="JournalLine",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("line_no", models.PositiveIntegerField()),
                ("description", models.CharField(blank=True, default="", max_length=255)),
                ("debit", models.BigIntegerField(default=0)),
                ("credit", models.BigIntegerField(default=0)),
                ("project_code", models.CharField(blank=True, default="", max_length=30)),
                ("account", models.ForeignKey(db_column="account_code", on_delete=django.db.models.deletion.PROTECT, related_name="journal_lines", to="accounting.account", to_field="code")),
                ("journal", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="lines", to="accounting.journal")),
            ],
            options={
                "ordering": ["journal", "line_no"],
                "constraints": [
                    models.UniqueConstraint(fields=("journal", "line_no"), name="uniq_journal_line_no"),
                    models.CheckConstraint(check=models.Q(("debit__gte", 0), ("credit__gte", 0)), name="chk_line_non_negative"),
                    models.CheckConstraint(check=models.Q(models.Q(("debit__gt", 0), ("credit__gt", 0)), _negated=True), name="chk_line_not_both_debit_credit"),
                ],
            },
        ),
        migrations.CreateModel(
            name="PeriodStatus",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("period", models.CharField(max_length=7, unique=True, validators=[django.core.validators.RegexValidator("^\\d{4}-(0[1-9]|1[0-2])$", "Period must look like 2025-01.")])),
                ("status", models.CharField(choices=[("OPEN", "Open"), ("CLOSED", "Closed")], default="OPEN", max_length=10)),
                ("closed_at", models.DateTimeField(blank=True, null=True)),
                ("reopened_at", models.DateTimeField(blank=True, null=True)),
                ("closed_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="closed_periods", to=settings.AUTH_USER_MODEL)),
                ("reopened_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="reopened_periods", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["-period"],
                "verbose_name_plural": "Period statuses",
            },
        ),
        migrations.CreateModel(
            name="PeriodSnapshot",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("period", models.CharField(db_index=True, max_length=7)),
                ("debit_balance", models.BigIntegerField(default=0)),
                ("credit_balance", models.BigIntegerField(default=0)),
                ("net_balance", models.BigIntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("account", models.ForeignKey(db_column="account_code", on_delete=django.db.models.deletion.PROTECT, related_name="snapshots", to="accounting.account", to_field="code")),
            ],
            options={
                "ordering": ["period", "account"],
                "constraints": [
                    models.UniqueConstraint(fields=("period", "account"), name="uniq_period_snapshot_account"),
                ],
            },
        ),
    ]
