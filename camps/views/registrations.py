"""
Registration endpoints.

Thin HTTP wrappers around :class:`RegistrationCoordinator`.  Each request
builds its own coordinator; the typed :class:`Identity` is the only thing
the coordinator learns about the caller.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from camps.authentication import identity_for_request
from camps.permissions import IsOrganizer, IsParticipant
from camps.serializers.registration import (
    ConfirmationStatusSerializer,
    JoinCampSerializer,
    PaymentStatusSerializer,
    RegistrationListQuerySerializer,
)
from camps.services import dashboards
from camps.services.registrations import RegistrationCoordinator


def _paged(request, fetch):
    q = RegistrationListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    page = q.validated_data.get('page', 1)
    page_size = q.validated_data.get('pageSize', 20)
    data, total = fetch(q.validated_data, page, page_size)
    return Response({'ok': True, 'data': data, 'pagination': {'total': total, 'page': page, 'pageSize': page_size}})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsParticipant])
def join_camp(request, pk: int):
    s = JoinCampSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    registration_id = RegistrationCoordinator().register(identity_for_request(request), pk, s.to_payload())
    return Response({'ok': True, 'registrationId': registration_id}, status=status.HTTP_201_CREATED)

join_camp.cls.throttle_scope = 'registration_write'


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def cancel_registration(request, pk: int):
    RegistrationCoordinator().cancel_registration(pk, identity_for_request(request))
    return Response({'ok': True})

cancel_registration.cls.throttle_scope = 'registration_write'


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsParticipant])
def update_payment(request, pk: int):
    """Record the outcome of a client-confirmed payment for the caller's registration."""
    s = PaymentStatusSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    RegistrationCoordinator().update_payment_status(
        pk,
        s.validated_data['status'],
        s.validated_data.get('transactionId'),
        identity=identity_for_request(request),
    )
    return Response({'ok': True})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsOrganizer])
def update_confirmation(request, pk: int):
    s = ConfirmationStatusSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    RegistrationCoordinator().update_confirmation_status(
        pk, s.validated_data['status'], identity=identity_for_request(request)
    )
    return Response({'ok': True, 'confirmationStatus': s.validated_data['status']})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsParticipant])
def my_registrations(request):
    identity = identity_for_request(request)
    return _paged(request, lambda vd, page, size: dashboards.participant_registrations(
        identity, q=vd.get('q'), page=page, page_size=size))


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsOrganizer])
def organizer_registrations(request):
    identity = identity_for_request(request)
    return _paged(request, lambda vd, page, size: dashboards.organizer_registrations(
        identity, camp_id=vd.get('campId'), q=vd.get('q'), page=page, page_size=size))


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsParticipant])
def payment_history(request):
    identity = identity_for_request(request)
    return _paged(request, lambda vd, page, size: dashboards.payment_history(identity, page=page, page_size=size))


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsParticipant])
def participant_summary(request):
    return Response({'ok': True, 'data': dashboards.participant_summary(identity_for_request(request))})
