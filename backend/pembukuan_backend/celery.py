"""
Celery application configuration.

Runs the background jobs of the ledger: the nightly compliance scan and
the overdue-invoice sweep.

Usage:
    # Start worker
    celery -A pembukuan_backend worker -l INFO

    # Start beat scheduler (for periodic tasks)
    celery -A pembukuan_backend beat -l INFO
"""
import os

from celery import Celery

# Set default Django settings
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "pembukuan_backend.settings")

app = Celery("pembukuan_backend")

# Load config from Django settings
app.config_from_object("django.conf:settings", namespace="CELERY")

# Auto-discover tasks from all installed apps
app.autodiscover_tasks()
