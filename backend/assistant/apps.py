# assistant/apps.py
"""Assistant app configuration."""

from django.apps import AppConfig


class AssistantConfig(AppConfig):
    """Configuration for the AI transaction assistant."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "assistant"
    verbose_name = "AI Assistant"
