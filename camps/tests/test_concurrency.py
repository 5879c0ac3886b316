"""
Concurrent registrations against a real (file-backed) database.

Each worker thread gets its own connection; the counter must end up equal
to the number of live registrations with no lost updates.
"""
import threading

import pytest
from django.db import connection

from camps.authentication import Identity
from camps.exceptions import DuplicateRegistration
from camps.models import ConfirmationStatus, Registration
from camps.services.registrations import RegistrationCoordinator

pytestmark = pytest.mark.django_db(transaction=True)


def run_concurrently(jobs):
    barrier = threading.Barrier(len(jobs))
    results = [None] * len(jobs)

    def worker(i, job):
        try:
            barrier.wait()
            results[i] = ('ok', job())
        except Exception as exc:  # collected and asserted on by the caller
            results[i] = ('error', exc)
        finally:
            connection.close()

    threads = [threading.Thread(target=worker, args=(i, job)) for i, job in enumerate(jobs)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)
    return results


def test_two_participants_register_at_once(make_user, camp):
    p1, p2 = make_user(), make_user()
    coordinator = RegistrationCoordinator()

    results = run_concurrently([
        lambda: coordinator.register(Identity.from_user(p1), camp.id),
        lambda: coordinator.register(Identity.from_user(p2), camp.id),
    ])

    assert [r[0] for r in results] == ['ok', 'ok']
    camp.refresh_from_db()
    assert camp.participants == 2
    assert Registration.objects.filter(camp_id=camp.id).count() == 2


def test_many_participants_no_lost_update(make_user, camp):
    users = [make_user() for _ in range(8)]
    coordinator = RegistrationCoordinator()

    results = run_concurrently([
        (lambda u=u: coordinator.register(Identity.from_user(u), camp.id)) for u in users
    ])

    assert all(kind == 'ok' for kind, _ in results), results
    camp.refresh_from_db()
    assert camp.participants == 8


def test_same_participant_racing_gets_one_registration(participant, camp):
    ident = Identity.from_user(participant)
    coordinator = RegistrationCoordinator()

    results = run_concurrently([lambda: coordinator.register(ident, camp.id) for _ in range(5)])

    ok = [value for kind, value in results if kind == 'ok']
    errors = [value for kind, value in results if kind == 'error']
    assert len(ok) == 1
    assert all(isinstance(e, DuplicateRegistration) for e in errors)
    camp.refresh_from_db()
    assert camp.participants == 1


def test_register_and_cancel_interleaved(make_user, camp):
    coordinator = RegistrationCoordinator()
    leaving = [make_user() for _ in range(3)]
    joining = [make_user() for _ in range(3)]
    reg_ids = [coordinator.register(Identity.from_user(u), camp.id) for u in leaving]

    jobs = [
        (lambda rid=rid, u=u: coordinator.cancel_registration(rid, Identity.from_user(u)))
        for rid, u in zip(reg_ids, leaving)
    ] + [
        (lambda u=u: coordinator.register(Identity.from_user(u), camp.id)) for u in joining
    ]
    results = run_concurrently(jobs)

    assert all(kind == 'ok' for kind, _ in results), results
    camp.refresh_from_db()
    live = Registration.objects.filter(camp_id=camp.id).exclude(
        confirmation_status=ConfirmationStatus.CANCELLED
    ).count()
    assert camp.participants == live == 3
