"""
Management command to populate the database with demo camps.
"""
import random
from datetime import timedelta
from decimal import Decimal

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from camps.models import Camp, Role, User

CAMPS = [
    ("Free Eye Screening", "Community Hall, Dhaka", "Dr. Rahman", Decimal("0.00")),
    ("Diabetes Awareness Camp", "City Clinic, Chattogram", "Dr. Akter", Decimal("15.00")),
    ("Child Vaccination Drive", "Primary School, Sylhet", "Dr. Hossain", Decimal("5.00")),
    ("Dental Check-up Day", "Town Square, Khulna", "Dr. Karim", Decimal("10.00")),
    ("Cardiac Health Camp", "General Hospital, Rajshahi", "Dr. Sultana", Decimal("25.00")),
    ("Women's Wellness Camp", "Health Centre, Barishal", "Dr. Nahar", Decimal("12.50")),
]


class Command(BaseCommand):
    help = 'Create demo camps owned by an organizer (counters start at zero)'

    def add_arguments(self, parser):
        parser.add_argument('--organizer', default='organizer1', help='username of the owning organizer')

    def handle(self, *args, **options):
        organizer = User.objects.filter(username=options['organizer'], role=Role.ORGANIZER).first()
        if organizer is None:
            raise CommandError(f"organizer {options['organizer']!r} not found; run ensure_demo_users first")

        now = timezone.now()
        created = 0
        for name, location, professional, fee in CAMPS:
            _, was_created = Camp.objects.get_or_create(
                name=name,
                organizer=organizer,
                defaults={
                    'location': location,
                    'healthcare_professional': professional,
                    'fee': fee,
                    'scheduled_at': now + timedelta(days=random.randint(-10, 60)),
                    'description': f'{name} run by {professional}.',
                },
            )
            created += int(was_created)
        self.stdout.write(self.style.SUCCESS(f'{created} camp(s) created for {organizer.username}'))
