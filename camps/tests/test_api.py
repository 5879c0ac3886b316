"""
Integration tests for the MediCamp HTTP API.

Exercises camp browsing, organizer camp management, the registration
flow and the error envelope through DRF's APIClient.
"""
from datetime import timedelta
from decimal import Decimal

import pytest
from django.contrib import admin
from django.urls import reverse
from django.utils import timezone
from rest_framework import status

from camps.admin import RegistrationAdmin
from camps.models import AuditEvent, Camp, ConfirmationStatus, PaymentStatus, Registration, Role

pytestmark = pytest.mark.django_db


def join(client, camp_id, **body):
    return client.post(reverse('join_camp', args=[camp_id]), body, format='json')


# ---------------------------------------------------------------------
# Camps
# ---------------------------------------------------------------------
def test_anonymous_can_list_camps(client_for, make_camp):
    make_camp(name='Dental Day', fee=Decimal('5.00'))
    make_camp(name='Eye Camp', fee=Decimal('20.00'))
    r = client_for().get(reverse('camps_list'), {'sort': 'fee'})
    assert r.status_code == status.HTTP_200_OK
    assert r.data['ok'] is True
    assert [c['name'] for c in r.data['data']] == ['Dental Day', 'Eye Camp']
    assert r.data['pagination']['total'] == 2


def test_camp_search_and_pagination(client_for, make_camp):
    for i in range(5):
        make_camp(name=f'Camp {i}', location='Sylhet' if i % 2 else 'Dhaka')
    r = client_for().get(reverse('camps_list'), {'q': 'sylhet', 'page': 1, 'pageSize': 1})
    assert r.status_code == 200
    assert r.data['pagination'] == {'total': 2, 'page': 1, 'pageSize': 1}
    assert len(r.data['data']) == 1


def test_unknown_sort_is_rejected(client_for):
    r = client_for().get(reverse('camps_list'), {'sort': 'participants; drop table'})
    assert r.status_code == 400
    assert r.data['ok'] is False
    assert r.data['error']['retryable'] is False


def test_camp_detail_and_not_found_envelope(client_for, camp):
    r = client_for().get(reverse('camp_detail', args=[camp.id]))
    assert r.status_code == 200
    assert r.data['data']['participants'] == 0
    assert r.data['data']['fee'] == '15.00'

    r = client_for().get(reverse('camp_detail', args=[999999]))
    assert r.status_code == 404
    assert r.data == {
        'ok': False,
        'error': {'code': 'camp_not_found', 'message': 'camp not found', 'retryable': False},
    }


def test_upcoming_excludes_past_camps(client_for, make_camp):
    make_camp(name='Past', scheduled_at=timezone.now() - timedelta(days=1))
    make_camp(name='Soon', scheduled_at=timezone.now() + timedelta(days=1))
    make_camp(name='Later', scheduled_at=timezone.now() + timedelta(days=30))
    r = client_for().get(reverse('upcoming_camps'))
    assert [c['name'] for c in r.data['data']] == ['Soon', 'Later']


def test_popular_camps_ordered_by_participants(client_for, make_camp, make_user):
    quiet = make_camp(name='Quiet')
    busy = make_camp(name='Busy')
    for _ in range(2):
        assert join(client_for(make_user()), busy.id).status_code == 201
    assert join(client_for(make_user()), quiet.id).status_code == 201

    r = client_for().get(reverse('popular_camps'))
    names = [c['name'] for c in r.data['data']]
    assert names[:2] == ['Busy', 'Quiet']
    assert r.data['data'][0]['participants'] == 2


def test_organizer_creates_camp_participants_not_writable(client_for, organizer):
    body = {
        'name': 'Cardiac Check',
        'fee': '25.00',
        'location': 'General Hospital',
        'scheduledAt': (timezone.now() + timedelta(days=3)).isoformat(),
        'healthcareProfessional': 'Dr. Sultana',
        'participants': 500,
    }
    r = client_for(organizer).post(reverse('camps_list'), body, format='json')
    assert r.status_code == 201, r.data
    camp = Camp.objects.get(pk=r.data['data']['id'])
    assert camp.participants == 0
    assert camp.organizer_id == organizer.id
    assert AuditEvent.objects.filter(action='camp_create', object_id=camp.id).exists()


def test_participant_cannot_create_camp(client_for, participant):
    r = client_for(participant).post(
        reverse('camps_list'), {'name': 'Nope', 'fee': '1.00', 'location': 'X'}, format='json'
    )
    assert r.status_code == status.HTTP_403_FORBIDDEN


def test_negative_fee_rejected(client_for, organizer):
    r = client_for(organizer).post(
        reverse('camps_list'), {'name': 'Cheap', 'fee': '-1.00', 'location': 'X'}, format='json'
    )
    assert r.status_code == 400
    assert Camp.objects.count() == 0


def test_organizer_updates_own_camp_only(client_for, make_user, camp, organizer):
    r = client_for(organizer).put(reverse('camp_detail', args=[camp.id]), {'location': 'New Hall'}, format='json')
    assert r.status_code == 200
    camp.refresh_from_db()
    assert camp.location == 'New Hall'

    other = make_user(Role.ORGANIZER)
    r = client_for(other).put(reverse('camp_detail', args=[camp.id]), {'location': 'Hijack'}, format='json')
    assert r.status_code == 404


def test_delete_camp_blocked_while_registrations_live(client_for, camp, organizer, participant):
    r = join(client_for(participant), camp.id)
    reg_id = r.data['registrationId']

    r = client_for(organizer).delete(reverse('camp_detail', args=[camp.id]))
    assert r.status_code == 409
    assert r.data['error']['code'] == 'camp_has_registrations'

    assert client_for(participant).post(reverse('cancel_registration', args=[reg_id])).status_code == 200
    r = client_for(organizer).delete(reverse('camp_detail', args=[camp.id]))
    assert r.status_code == 204
    assert not Camp.objects.filter(pk=camp.id).exists()


# ---------------------------------------------------------------------
# Registrations
# ---------------------------------------------------------------------
def test_join_camp_flow(client_for, camp, participant):
    client = client_for(participant)
    r = join(client, camp.id, participantName='Karim', age=41, phone='0171', gender='Male',
             emergencyContact='0181')
    assert r.status_code == 201, r.data
    reg = Registration.objects.get(pk=r.data['registrationId'])
    assert reg.gender == 'male'
    camp.refresh_from_db()
    assert camp.participants == 1

    r = join(client, camp.id)
    assert r.status_code == 409
    assert r.data['error']['code'] == 'duplicate_registration'
    camp.refresh_from_db()
    assert camp.participants == 1


def test_join_requires_participant_role(client_for, camp, organizer):
    assert join(client_for(), camp.id).status_code in (401, 403)
    assert join(client_for(organizer), camp.id).status_code == 403


def test_join_missing_camp(client_for, participant):
    r = join(client_for(participant), 123456)
    assert r.status_code == 404
    assert r.data['error']['code'] == 'camp_not_found'


def test_paid_registration_cannot_be_cancelled_over_http(client_for, camp, participant):
    client = client_for(participant)
    reg_id = join(client, camp.id).data['registrationId']

    r = client.post(reverse('update_payment', args=[reg_id]), {'status': 'paid'}, format='json')
    assert r.status_code == 400  # transaction id required

    r = client.post(reverse('update_payment', args=[reg_id]),
                    {'status': 'Paid', 'transactionId': 'pi_abc'}, format='json')
    assert r.status_code == 200

    r = client.post(reverse('cancel_registration', args=[reg_id]))
    assert r.status_code == 409
    assert r.data['error']['code'] == 'paid_registration_immutable'
    camp.refresh_from_db()
    assert camp.participants == 1
    assert Registration.objects.get(pk=reg_id).payment_status == PaymentStatus.PAID


def test_cannot_cancel_someone_elses_registration(client_for, camp, participant, make_user):
    reg_id = join(client_for(participant), camp.id).data['registrationId']
    r = client_for(make_user()).post(reverse('cancel_registration', args=[reg_id]))
    assert r.status_code == 403
    assert Registration.objects.filter(pk=reg_id).exists()


def test_organizer_confirms_and_cancels(client_for, camp, participant, organizer):
    reg_id = join(client_for(participant), camp.id).data['registrationId']
    client = client_for(organizer)

    r = client.post(reverse('update_confirmation', args=[reg_id]), {'status': 'CONFIRMED'}, format='json')
    assert r.status_code == 200
    assert Registration.objects.get(pk=reg_id).confirmation_status == ConfirmationStatus.CONFIRMED

    r = client.post(reverse('update_confirmation', args=[reg_id]), {'status': 'cancelled'}, format='json')
    assert r.status_code == 200
    camp.refresh_from_db()
    assert camp.participants == 0

    r = client.post(reverse('update_confirmation', args=[reg_id]), {'status': 'maybe'}, format='json')
    assert r.status_code == 400


def test_dashboards(client_for, make_camp, participant, organizer):
    first = make_camp(name='Alpha Camp')
    second = make_camp(name='Beta Camp', fee=Decimal('10.00'))
    p = client_for(participant)
    r1 = join(p, first.id).data['registrationId']
    join(p, second.id)
    p.post(reverse('update_payment', args=[r1]), {'status': 'paid', 'transactionId': 'pi_1'}, format='json')

    mine = p.get(reverse('my_registrations'))
    assert mine.data['pagination']['total'] == 2

    history = p.get(reverse('payment_history'))
    assert [row['campName'] for row in history.data['data']] == ['Alpha Camp']

    summary = p.get(reverse('participant_summary'))
    assert summary.data['data'] == {'registered': 2, 'paid': 1, 'confirmed': 0, 'totalSpent': '15.00'}

    org = client_for(organizer).get(reverse('organizer_registrations'), {'campId': second.id})
    assert org.status_code == 200
    assert [row['campId'] for row in org.data['data']] == [second.id]
    assert org.data['data'][0]['participantEmail'] == participant.email


def test_healthz(client_for):
    r = client_for().get(reverse('healthz'))
    assert r.status_code == 200
    assert r.json() == {'ok': True, 'db': True}


def test_paid_registration_cannot_be_downgraded_then_cancelled(client_for, camp, participant):
    client = client_for(participant)
    reg_id = join(client, camp.id).data['registrationId']
    r = client.post(reverse('update_payment', args=[reg_id]),
                    {'status': 'paid', 'transactionId': 'pi_1'}, format='json')
    assert r.status_code == 200

    r = client.post(reverse('update_payment', args=[reg_id]), {'status': 'unpaid'}, format='json')
    assert r.status_code == 409
    assert r.data['error']['code'] == 'already_paid'

    r = client.post(reverse('cancel_registration', args=[reg_id]))
    assert r.status_code == 409
    reg = Registration.objects.get(pk=reg_id)
    assert reg.payment_status == PaymentStatus.PAID
    camp.refresh_from_db()
    assert camp.participants == 1


def test_admin_cannot_add_or_delete_registrations(rf, camp, participant):
    model_admin = RegistrationAdmin(Registration, admin.site)
    request = rf.get('/admin/camps/registration/')
    assert model_admin.has_add_permission(request) is False
    assert model_admin.has_delete_permission(request) is False
    assert 'payment_status' in model_admin.readonly_fields
    assert 'confirmation_status' in model_admin.readonly_fields
