"""Read-only queries behind the participant and organizer dashboards."""
from decimal import Decimal
from typing import Optional

from django.db.models import Count, Q, Sum

from camps.authentication import Identity
from camps.models import ConfirmationStatus, PaymentStatus, Registration


def format_registration(reg: Registration) -> dict:
    camp = getattr(reg, 'camp', None)
    return {
        'id': reg.id,
        'campId': reg.camp_id,
        'campName': camp.name if camp else None,
        'participantId': reg.participant_id,
        'participantEmail': reg.participant.email if reg.participant_id else None,
        'participantName': reg.participant_name,
        'age': reg.age,
        'phone': reg.phone,
        'gender': reg.gender,
        'emergencyContact': reg.emergency_contact,
        'fee': str(reg.fee),
        'paymentStatus': reg.payment_status,
        'confirmationStatus': reg.confirmation_status,
        'transactionId': reg.transaction_id,
        'registeredAt': reg.registered_at.isoformat(),
        'paidAt': reg.paid_at.isoformat() if reg.paid_at else None,
    }


def _page(qs, page: int, page_size: int):
    total = qs.count()
    page = max(1, int(page or 1))
    page_size = min(100, max(1, int(page_size or 20)))
    start = (page-1)*page_size
    return [format_registration(r) for r in qs[start:start+page_size]], total


def _with_camp(qs):
    # camp has no DB constraint, so a deleted camp must not drop the row
    return qs.select_related('participant').prefetch_related('camp')


def participant_registrations(identity: Identity, *, q: Optional[str]=None, page: int=1, page_size: int=20):
    qs = Registration.objects.filter(participant_id=identity.user_id)
    if q:
        qs = qs.filter(Q(camp__name__icontains=q) | Q(participant_name__icontains=q))
    return _page(_with_camp(qs).order_by('-registered_at', '-id'), page, page_size)


def organizer_registrations(identity: Identity, *, camp_id: Optional[int]=None, q: Optional[str]=None,
                            page: int=1, page_size: int=20):
    qs = Registration.objects.filter(camp__organizer_id=identity.user_id)
    if camp_id:
        qs = qs.filter(camp_id=camp_id)
    if q:
        qs = qs.filter(
            Q(camp__name__icontains=q) | Q(participant_name__icontains=q) | Q(participant__email__icontains=q)
        )
    return _page(_with_camp(qs).order_by('-registered_at', '-id'), page, page_size)


def payment_history(identity: Identity, *, page: int=1, page_size: int=20):
    qs = Registration.objects.filter(participant_id=identity.user_id, payment_status=PaymentStatus.PAID)
    return _page(_with_camp(qs).order_by('-paid_at', '-id'), page, page_size)


def participant_summary(identity: Identity) -> dict:
    agg = Registration.objects.filter(participant_id=identity.user_id).aggregate(
        registered=Count('id', filter=~Q(confirmation_status=ConfirmationStatus.CANCELLED)),
        paid=Count('id', filter=Q(payment_status=PaymentStatus.PAID)),
        confirmed=Count('id', filter=Q(confirmation_status=ConfirmationStatus.CONFIRMED)),
        spent=Sum('fee', filter=Q(payment_status=PaymentStatus.PAID)),
    )
    return {
        'registered': agg['registered'],
        'paid': agg['paid'],
        'confirmed': agg['confirmed'],
        'totalSpent': str(Decimal(agg['spent'] or 0).quantize(Decimal('0.01'))),
    }
