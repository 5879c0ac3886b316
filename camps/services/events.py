"""
Post-commit side effects of counter changes.

These run from ``transaction.on_commit`` so that nothing here executes
while an atomic unit is open: the popular-camps cache is dropped and
WebSocket listeners on ``ws/camps/`` receive the new participant count.
"""
import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.core.cache import cache

logger = logging.getLogger(__name__)

CAMPS_GROUP = 'camps'
POPULAR_CAMPS_CACHE_KEY = 'camps:popular'


def invalidate_camp_caches() -> None:
    cache.delete(POPULAR_CAMPS_CACHE_KEY)


def participants_changed(camp_id: int, participants: int) -> None:
    invalidate_camp_caches()
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return
    payload = {
        'type': 'camp.participants',
        'campId': camp_id,
        'participants': participants,
    }
    try:
        async_to_sync(channel_layer.group_send)(CAMPS_GROUP, payload)
    except Exception:
        # the counter change is already committed
        logger.warning('failed to broadcast participants for camp %s', camp_id, exc_info=True)
