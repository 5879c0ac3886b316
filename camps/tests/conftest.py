from datetime import timedelta
from decimal import Decimal

import pytest
from django.core.cache import cache
from django.utils import timezone
from rest_framework.test import APIClient

from camps.models import Camp, Role, User


@pytest.fixture(autouse=True)
def _clear_cache():
    # throttle counters and the popular-camps list live in the cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def make_user(db):
    counter = {'n': 0}

    def _make(role=Role.PARTICIPANT, username=None, password='P@ssw0rd-123'):
        counter['n'] += 1
        username = username or f'{Role(role).value}{counter["n"]}'
        return User.objects.create_user(
            username=username, email=f'{username}@example.com', password=password, role=role
        )
    return _make


@pytest.fixture
def organizer(make_user):
    return make_user(Role.ORGANIZER)


@pytest.fixture
def participant(make_user):
    return make_user(Role.PARTICIPANT)


@pytest.fixture
def make_camp(organizer):
    def _make(owner=None, **fields):
        defaults = {
            'name': 'Free Eye Screening',
            'location': 'Community Hall',
            'fee': Decimal('15.00'),
            'scheduled_at': timezone.now() + timedelta(days=7),
        }
        defaults.update(fields)
        return Camp.objects.create(organizer=owner or organizer, **defaults)
    return _make


@pytest.fixture
def camp(make_camp):
    return make_camp()


@pytest.fixture
def client_for():
    def _client(user=None) -> APIClient:
        client = APIClient()
        if user is not None:
            client.force_authenticate(user=user)
        return client
    return _client
