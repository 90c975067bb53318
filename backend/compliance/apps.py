# compliance/apps.py
"""Compliance app configuration."""

from django.apps import AppConfig


class ComplianceConfig(AppConfig):
    """Configuration for the compliance app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "compliance"
    verbose_name = "Compliance"
