# accounting/management/commands/seed_coa.py

from django.core.management.base import BaseCommand
from django.db import transaction

from accounting.chart import DEFAULT_CHART
from accounting.models import Account
from accounting.write_barrier import bootstrap_writes_allowed


def seed_chart_of_accounts() -> tuple[int, int]:
    """Create missing default accounts. Existing accounts are left alone."""
    created = 0
    existing = 0

    with transaction.atomic(), bootstrap_writes_allowed():
        for code, name, account_type, parent_code in DEFAULT_CHART:
            _, was_created = Account.objects.get_or_create(
                code=code,
                defaults={
                    "name": name,
                    "account_type": account_type,
                    "parent_id": parent_code,
                },
            )
            if was_created:
                created += 1
            else:
                existing += 1

    return created, existing


class Command(BaseCommand):
    help = "Seed the default Indonesian SME chart of accounts"

    def handle(self, *args, **options):
        created, existing = seed_chart_of_accounts()
        self.stdout.write(self.style.SUCCESS(f"Done! Created {created}, already present {existing}."))
