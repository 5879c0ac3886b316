"""
Compare every camp's ``participants`` counter with its live registrations.

Without ``--fix`` the command only reports drift and exits non-zero when
any is found.  With ``--fix`` each drifting camp is corrected under a row
lock, one camp per transaction.
"""
import logging

from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from camps.models import Camp, ConfirmationStatus, Registration
from camps.services.events import invalidate_camp_caches

logger = logging.getLogger(__name__)


def live_count(camp_id: int) -> int:
    return (
        Registration.objects.filter(camp_id=camp_id)
        .exclude(confirmation_status=ConfirmationStatus.CANCELLED)
        .count()
    )


class Command(BaseCommand):
    help = "Report (and optionally repair) camps whose participant counter drifted."

    def add_arguments(self, parser):
        parser.add_argument('--fix', action='store_true', help='rewrite drifting counters')

    def handle(self, *args, **options):
        drift = []
        for camp_id in Camp.objects.order_by('id').values_list('id', flat=True):
            with transaction.atomic():
                camp = Camp.objects.select_for_update().filter(pk=camp_id).first()
                if camp is None:
                    continue
                expected = live_count(camp_id)
                if camp.participants == expected:
                    continue
                drift.append((camp_id, camp.participants, expected))
                self.stdout.write(f'camp {camp_id}: counter={camp.participants} live={expected}')
                if options['fix']:
                    Camp.objects.filter(pk=camp_id).update(participants=expected)
                    logger.warning('camp %s counter corrected %s -> %s', camp_id, camp.participants, expected)

        if not drift:
            self.stdout.write(self.style.SUCCESS('All counters consistent.'))
            return
        if options['fix']:
            invalidate_camp_caches()
            self.stdout.write(self.style.SUCCESS(f'Fixed {len(drift)} camp(s).'))
            return
        raise CommandError(f'{len(drift)} camp(s) with drifting counters; rerun with --fix')
