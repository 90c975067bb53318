import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("accounting", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="TxInput",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("raw_text", models.TextField()),
                ("amount", models.BigIntegerField()),
                ("date", models.DateField()),
                ("status", models.CharField(choices=[("PENDING", "Pending"), ("CLASSIFIED", "Classified"), ("APPROVED", "Approved"), ("REJECTED", "Rejected")], default="PENDING", max_length=12)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("created_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
            ],
            options={"ordering": ["-created_at", "-id"]},
        ),
        migrations.CreateModel(
            name="TxSuggestion",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("suggested_type", models.CharField(choices=[("vendor_bill", "Vendor Bill"), ("sales_invoice", "Sales Invoice"), ("cash_receipt", "Cash Receipt"), ("vendor_payment", "Vendor Payment"), ("journal_entry", "Journal Entry")], max_length=20)),
                ("suggested_vendor", models.CharField(blank=True, default="", max_length=255)),
                ("suggested_client", models.CharField(blank=True, default="", max_length=255)),
                ("suggested_project", models.CharField(blank=True, default="", max_length=30)),
                ("amount", models.BigIntegerField(default=0)),
                ("vat_amount", models.BigIntegerField(default=0)),
                ("suggested_accounts", models.JSONField(default=list)),
                ("confidence", models.FloatField(default=0)),
                ("reasoning", models.TextField(blank=True, default="")),
                ("requires_input", models.JSONField(blank=True, default=list)),
                ("edited", models.BooleanField(default=False)),
                ("status", models.CharField(choices=[("PROPOSED", "Proposed"), ("APPROVED", "Approved"), ("POSTED", "Posted"), ("REJECTED", "Rejected")], default="PROPOSED", max_length=10)),
                ("document_number", models.CharField(blank=True, default="", max_length=30)),
                ("reviewed_at", models.DateTimeField(blank=True, null=True)),
                ("review_note", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("journal", models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="+", to="accounting.journal")),
                ("reviewed_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
                ("tx_input", models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name="suggestion", to="assistant.txinput")),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(fields=["status"], name="suggestion_status_idx"),
                ],
            },
        ),
    ]
