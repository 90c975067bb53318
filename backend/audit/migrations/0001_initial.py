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
            name="AuditLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("table_name", models.CharField(max_length=64)),
                ("record_id", models.CharField(max_length=64)),
                ("action", models.CharField(choices=[("void", "Void"), ("resolve_issue", "Resolve Compliance Issue"), ("close_period", "Close Period"), ("reopen_period", "Reopen Period"), ("approve_suggestion", "Approve AI Suggestion"), ("reject_suggestion", "Reject AI Suggestion"), ("change_role", "Change User Role")], max_length=32)),
                ("reason", models.TextField(blank=True, default="")),
                ("old_values", models.JSONField(blank=True, default=dict)),
                ("new_values", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("changed_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="audit_entries", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(fields=["table_name", "record_id"], name="audit_table_record_idx"),
                ],
            },
        ),
    ]
