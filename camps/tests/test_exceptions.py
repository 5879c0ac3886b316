import logging

import pytest
from django.urls import reverse

from camps.exceptions import TransactionAborted
from camps.services import camps as camp_service
from camps.services.registrations import RegistrationCoordinator
from medicamp.logging_config import ISO8601Formatter

pytestmark = pytest.mark.django_db


def test_retryable_error_sets_retry_after(client_for, participant, camp, monkeypatch):
    def aborted(self, identity, camp_id, payload=None):
        raise TransactionAborted()

    monkeypatch.setattr(RegistrationCoordinator, 'register', aborted)
    r = client_for(participant).post(reverse('join_camp', args=[camp.id]), {}, format='json')
    assert r.status_code == 503
    assert r['Retry-After'] == '1'
    assert r.data['error']['code'] == 'transaction_aborted'
    assert r.data['error']['retryable'] is True


def test_unhandled_error_becomes_server_error_envelope(client_for, monkeypatch):
    def broken(*args, **kwargs):
        raise RuntimeError('boom')

    monkeypatch.setattr(camp_service, 'popular_camps', broken)
    r = client_for().get(reverse('popular_camps'))
    assert r.status_code == 500
    assert r.data['ok'] is False
    assert r.data['error']['code'] == 'server_error'


def test_iso8601_formatter():
    formatter = ISO8601Formatter(source='medicamp')
    record = logging.LogRecord('camps.test', logging.INFO, __file__, 1, 'hello %s', ('world',), None)
    line = formatter.format(record)
    assert '[medicamp] INFO camps.test: hello world' in line
    assert line[:4].isdigit() and 'T' in line.split(' ')[0]
