import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="ComplianceIssue",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("issue_type", models.CharField(choices=[("tax_risk", "Tax Risk"), ("accounting_error", "Accounting Error"), ("documentation", "Documentation"), ("data_quality", "Data Quality")], max_length=20)),
                ("rule", models.CharField(blank=True, default="", max_length=40)),
                ("severity", models.CharField(choices=[("low", "Low"), ("medium", "Medium"), ("high", "High"), ("critical", "Critical")], max_length=10)),
                ("message", models.TextField()),
                ("action_required", models.CharField(blank=True, default="", max_length=255)),
                ("related_entity_type", models.CharField(max_length=20)),
                ("related_entity_id", models.PositiveBigIntegerField()),
                ("status", models.CharField(choices=[("open", "Open"), ("resolved", "Resolved")], default="open", max_length=10)),
                ("resolved_at", models.DateTimeField(blank=True, null=True)),
                ("resolution_note", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("resolved_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(fields=["status", "severity"], name="issue_status_severity_idx"),
                    models.Index(fields=["related_entity_type", "related_entity_id"], name="issue_entity_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(condition=models.Q(("status", "open")), fields=("issue_type", "related_entity_type", "related_entity_id"), name="uniq_open_compliance_issue"),
                ],
            },
        ),
    ]
