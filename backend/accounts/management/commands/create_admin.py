# accounts/management/commands/create_admin.py

import os

from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from accounts.models import User, UserRole


class Command(BaseCommand):
    help = "Create the first administrator (or promote an existing user to ADMIN)"

    def add_arguments(self, parser):
        parser.add_argument("--email", default=os.getenv("ADMIN_EMAIL"))
        parser.add_argument("--name", default=os.getenv("ADMIN_NAME", "Administrator"))
        parser.add_argument("--password", default=os.getenv("ADMIN_PASSWORD"))

    def handle(self, *args, **options):
        email = options["email"]
        if not email:
            raise CommandError("--email (or ADMIN_EMAIL) is required.")

        with transaction.atomic():
            user = User.objects.filter(email__iexact=email).first()
            if user is None:
                if not options["password"]:
                    raise CommandError("--password (or ADMIN_PASSWORD) is required for a new user.")
                user = User.objects.create_user(
                    email=email,
                    name=options["name"],
                    password=options["password"],
                    is_staff=True,
                )
                self.stdout.write(f"Created user {email}")

            UserRole.objects.update_or_create(
                user=user,
                defaults={"role": UserRole.Role.ADMIN, "is_active": True},
            )

        self.stdout.write(self.style.SUCCESS(f"{email} is now an ADMIN."))
