"""
Camp catalogue endpoints.

Anyone may browse camps; only organizers create them and only the owning
organizer may edit or delete one.  ``participants`` is read-only here:
it is moved exclusively by the registration coordinator.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from camps.authentication import identity_for_request
from camps.permissions import IsOrganizer, ReadOnly
from camps.serializers.camp import CampListQuerySerializer, CampWriteSerializer
from camps.services import camps as camp_service


@api_view(['GET', 'POST'])
@permission_classes([ReadOnly | IsOrganizer])
def camps_list(request):
    if request.method == 'POST':
        s = CampWriteSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        camp = camp_service.create_camp(identity_for_request(request), **s.validated_data)
        return Response({'ok': True, 'data': camp_service.format_camp(camp)}, status=status.HTTP_201_CREATED)
    q = CampListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    page = q.validated_data.get('page', 1)
    page_size = q.validated_data.get('pageSize', 20)
    data, total = camp_service.list_camps(
        q=q.validated_data.get('q'),
        sort=q.validated_data.get('sort'),
        page=page,
        page_size=page_size,
    )
    return Response({'ok': True, 'data': data, 'pagination': {'total': total, 'page': page, 'pageSize': page_size}})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsOrganizer])
def my_camps(request):
    """Camps organized by the current user (organizer dashboard)."""
    q = CampListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    page = q.validated_data.get('page', 1)
    page_size = q.validated_data.get('pageSize', 20)
    data, total = camp_service.list_camps(
        q=q.validated_data.get('q'),
        sort=q.validated_data.get('sort'),
        organizer_id=request.user.id,
        page=page,
        page_size=page_size,
    )
    return Response({'ok': True, 'data': data, 'pagination': {'total': total, 'page': page, 'pageSize': page_size}})


@api_view(['GET'])
@permission_classes([AllowAny])
def popular_camps(request):
    return Response({'ok': True, 'data': camp_service.popular_camps()})


@api_view(['GET'])
@permission_classes([AllowAny])
def upcoming_camps(request):
    return Response({'ok': True, 'data': camp_service.upcoming_camps()})


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([ReadOnly | IsOrganizer])
def camp_detail(request, pk: int):
    if request.method == 'GET':
        return Response({'ok': True, 'data': camp_service.format_camp(camp_service.get_camp(pk))})
    identity = identity_for_request(request)
    if request.method == 'PUT':
        s = CampWriteSerializer(data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        camp = camp_service.update_camp(identity, pk, **s.validated_data)
        return Response({'ok': True, 'data': camp_service.format_camp(camp)})
    camp_service.delete_camp(identity, pk)
    return Response(status=status.HTTP_204_NO_CONTENT)
