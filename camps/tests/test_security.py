import pytest
from django.urls import reverse
from rest_framework.test import APIClient

from camps.models import AuditEvent, Role, User

pytestmark = pytest.mark.django_db


def login(client, username, password):
    r = client.post(reverse('login_view'), {'username': username, 'password': password}, format='json')
    assert r.status_code in (200, 400, 401)
    return r


def test_no_role_bypass_in_login():
    client = APIClient()
    u = User.objects.create_user(username='u1', email='u1@example.com', password='P@ssw0rd1', role=Role.PARTICIPANT)
    r = client.post(reverse('login_view'), {'username': 'u1', 'password': 'P@ssw0rd1', 'role': 'organizer'}, format='json')
    assert r.status_code == 200
    assert r.data['role'] == 'participant'
    u.refresh_from_db()
    assert u.role == Role.PARTICIPANT


def test_login_by_email_returns_jwt_and_legacy_token():
    client = APIClient()
    User.objects.create_user(username='u_jwt', email='jwt@example.com', password='P@ssw0rd1')
    r = login(client, 'JWT@example.com', 'P@ssw0rd1')
    assert r.status_code == 200
    assert r.data['jwt_access'] and r.data['jwt_refresh'] and r.data['token']
    assert r.data['user']['email'] == 'jwt@example.com'


def test_bad_password_is_audited():
    client = APIClient()
    User.objects.create_user(username='u2', email='u2@example.com', password='P@ssw0rd1')
    r = login(client, 'u2', 'wrong')
    assert r.status_code == 400
    assert r.data['ok'] is False
    assert AuditEvent.objects.filter(action='login', detail__result='fail').exists()


def test_legacy_token_authenticates_profile():
    client = APIClient()
    User.objects.create_user(username='u3', email='u3@example.com', password='P@ssw0rd1')
    token = login(client, 'u3', 'P@ssw0rd1').data['token']
    client.credentials(HTTP_AUTHORIZATION=f'Token {token}')
    r = client.get(reverse('me_view'))
    assert r.status_code == 200
    assert r.data['data']['username'] == 'u3'


def test_jwt_authenticates_profile():
    client = APIClient()
    User.objects.create_user(username='u4', email='u4@example.com', password='P@ssw0rd1')
    access = login(client, 'u4', 'P@ssw0rd1').data['jwt_access']
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {access}')
    assert client.get(reverse('me_view')).status_code == 200


def test_profile_requires_authentication():
    r = APIClient().get(reverse('me_view'))
    assert r.status_code in (401, 403)
    assert r.data['ok'] is False


def test_signup_defaults_to_participant():
    client = APIClient()
    r = client.post(reverse('signup_view'), {
        'username': 'newbie', 'email': 'Newbie@Example.com', 'password': 'Str0ng-Passw0rd!', 'name': 'New Bie',
    }, format='json')
    assert r.status_code == 201, r.data
    user = User.objects.get(username='newbie')
    assert user.role == Role.PARTICIPANT
    assert user.email == 'newbie@example.com'
    assert r.data['token']


def test_signup_rejects_duplicate_email_and_weak_password():
    User.objects.create_user(username='taken', email='taken@example.com', password='P@ssw0rd1')
    client = APIClient()
    r = client.post(reverse('signup_view'), {
        'username': 'other', 'email': 'TAKEN@example.com', 'password': 'Str0ng-Passw0rd!',
    }, format='json')
    assert r.status_code == 400
    r = client.post(reverse('signup_view'), {
        'username': 'weak', 'email': 'weak@example.com', 'password': '123',
    }, format='json')
    assert r.status_code == 400
    assert not User.objects.filter(username='weak').exists()


def test_profile_update_strips_markup():
    u = User.objects.create_user(username='u5', email='u5@example.com', password='P@ssw0rd1')
    client = APIClient()
    client.force_authenticate(user=u)
    r = client.post(reverse('me_update_view'), {'name': '<script>x</script>Ann', 'phone': '0171'}, format='json')
    assert r.status_code == 200
    u.refresh_from_db()
    assert '<' not in u.first_name
    assert u.phone == '0171'


def test_refresh_and_logout():
    client = APIClient()
    User.objects.create_user(username='u6', email='u6@example.com', password='P@ssw0rd1')
    tokens = login(client, 'u6', 'P@ssw0rd1').data

    r = client.post(reverse('jwt_refresh_view'), {'refresh': tokens['jwt_refresh']}, format='json')
    assert r.status_code == 200
    assert r.data['jwt_access']

    client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['jwt_access']}")
    r = client.post(reverse('jwt_logout_view'), {'refresh': tokens['jwt_refresh']}, format='json')
    assert r.status_code == 200
    assert r.data['blacklisted'] == 1

    r = APIClient().post(reverse('jwt_refresh_view'), {'refresh': tokens['jwt_refresh']}, format='json')
    assert r.status_code == 401


def test_organizer_signup_is_opt_in(settings):
    client = APIClient()
    body = {'username': 'boss', 'email': 'boss@example.com', 'password': 'Str0ng-Passw0rd!', 'role': 'organizer'}

    settings.ALLOW_ORGANIZER_SIGNUP = False
    r = client.post(reverse('signup_view'), body, format='json')
    assert r.status_code == 400
    assert not User.objects.filter(username='boss').exists()

    settings.ALLOW_ORGANIZER_SIGNUP = True
    r = client.post(reverse('signup_view'), body, format='json')
    assert r.status_code == 201
    assert User.objects.get(username='boss').role == Role.ORGANIZER
