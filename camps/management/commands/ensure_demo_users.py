from django.core.management.base import BaseCommand
from django.contrib.auth.hashers import make_password

from camps.models import Role, User

DEMO_SET = [
    ("organizer1", "organizer1@medicamp.local", Role.ORGANIZER),
    ("participant1", "participant1@medicamp.local", Role.PARTICIPANT),
    ("participant2", "participant2@medicamp.local", Role.PARTICIPANT),
]


class Command(BaseCommand):
    help = "Ensure demo accounts exist with a known password (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument("--password", default="Medicamp#2024", help="password set on every demo account")

    def handle(self, *args, **opts):
        password = make_password(opts["password"])
        for username, email, role in DEMO_SET:
            u, created = User.objects.get_or_create(
                username=username,
                defaults={"email": email, "role": role, "password": password, "is_active": True},
            )
            if not created:
                u.password = password
                u.email = email
                u.role = role
                u.is_active = True
                u.save(update_fields=["password", "email", "role", "is_active"])
            self.stdout.write(self.style.SUCCESS(f"ok: {username} ({role})"))
        self.stdout.write(self.style.SUCCESS("All demo users ensured."))
