from typing import Optional

from django.conf import settings
from django.core.cache import cache
from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from camps.authentication import Identity
from camps.exceptions import CampHasRegistrations, CampNotFound
from camps.models import Camp, ConfirmationStatus
from camps.services.audit import log_action
from camps.services.events import POPULAR_CAMPS_CACHE_KEY, invalidate_camp_caches

SORT_FIELDS = {
    'participants': '-participants',
    'fee': 'fee',
    '-fee': '-fee',
    'name': 'name',
    'scheduled_at': 'scheduled_at',
    'newest': '-created_at',
}

EDITABLE_FIELDS = ('name', 'image_url', 'fee', 'scheduled_at', 'location', 'healthcare_professional', 'description')


def format_camp(camp: Camp) -> dict:
    return {
        'id': camp.id,
        'name': camp.name,
        'imageUrl': camp.image_url,
        'fee': str(camp.fee),
        'scheduledAt': camp.scheduled_at.isoformat() if camp.scheduled_at else None,
        'location': camp.location,
        'healthcareProfessional': camp.healthcare_professional,
        'description': camp.description,
        'organizerId': camp.organizer_id,
        'participants': camp.participants,
        'createdAt': camp.created_at.isoformat() if camp.created_at else None,
    }


def list_camps(*, q: Optional[str]=None, sort: Optional[str]=None, organizer_id: Optional[int]=None,
               page: int=1, page_size: int=20):
    qs = Camp.objects.all()
    if organizer_id:
        qs = qs.filter(organizer_id=organizer_id)
    if q:
        qs = qs.filter(
            Q(name__icontains=q) | Q(location__icontains=q) | Q(healthcare_professional__icontains=q)
        )
    total = qs.count()
    page = max(1, int(page or 1))
    page_size = min(100, max(1, int(page_size or 20)))
    start = (page-1)*page_size
    order = SORT_FIELDS.get(sort or 'newest', '-created_at')
    items = qs.order_by(order, '-id')[start:start+page_size]
    return [format_camp(c) for c in items], total


def popular_camps(limit: int=6) -> list[dict]:
    cached = cache.get(POPULAR_CAMPS_CACHE_KEY)
    if cached is not None:
        return cached
    data = [format_camp(c) for c in Camp.objects.order_by('-participants', '-id')[:limit]]
    cache.set(POPULAR_CAMPS_CACHE_KEY, data, settings.POPULAR_CAMPS_CACHE_SECONDS)
    return data


def upcoming_camps(now=None) -> list[dict]:
    now = now or timezone.now()
    qs = Camp.objects.filter(scheduled_at__gte=now).order_by('scheduled_at', 'id')
    return [format_camp(c) for c in qs]


def get_camp(camp_id: int) -> Camp:
    camp = Camp.objects.filter(pk=camp_id).first()
    if camp is None:
        raise CampNotFound()
    return camp


def _owned_camp_for_update(identity: Identity, camp_id: int) -> Camp:
    camp = Camp.objects.select_for_update().filter(pk=camp_id, organizer_id=identity.user_id).first()
    if camp is None:
        raise CampNotFound()
    return camp


def create_camp(identity: Identity, **fields) -> Camp:
    with transaction.atomic():
        camp = Camp.objects.create(organizer_id=identity.user_id, **{k: v for k, v in fields.items() if k in EDITABLE_FIELDS})
        log_action(user_id=identity.user_id, action='camp_create', object_type='camp', object_id=camp.id)
        transaction.on_commit(invalidate_camp_caches)
    return camp


def update_camp(identity: Identity, camp_id: int, **fields) -> Camp:
    with transaction.atomic():
        camp = _owned_camp_for_update(identity, camp_id)
        changed = [k for k in EDITABLE_FIELDS if k in fields]
        for k in changed:
            setattr(camp, k, fields[k])
        if changed:
            camp.save(update_fields=changed + ['updated_at'])
        log_action(user_id=identity.user_id, action='camp_update', object_type='camp', object_id=camp.id,
                   detail={'fields': changed})
        transaction.on_commit(invalidate_camp_caches)
    return camp


def delete_camp(identity: Identity, camp_id: int) -> None:
    """Delete a camp that nobody is registered for.

    The row lock makes a concurrent registration either finish first (and
    block the delete) or find the camp gone and roll back.
    """
    with transaction.atomic():
        camp = _owned_camp_for_update(identity, camp_id)
        live = camp.registrations.exclude(confirmation_status=ConfirmationStatus.CANCELLED).exists()
        if camp.participants or live:
            raise CampHasRegistrations()
        camp.delete()
        log_action(user_id=identity.user_id, action='camp_delete', object_type='camp', object_id=camp_id)
        transaction.on_commit(invalidate_camp_caches)
