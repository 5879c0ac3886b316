"""
Authentication views.

Login accepts a username or an email plus password and returns both the
legacy DRF token and a JWT pair.  Roles are never taken from the request
body on login; signup creates participants unless organizer signup is
enabled with ``ALLOW_ORGANIZER_SIGNUP``.
"""
from __future__ import annotations

import logging

from django.contrib.auth import authenticate
from django.db import transaction
from rest_framework.authtoken.models import Token
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken, OutstandingToken
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.views import TokenRefreshView

from camps.serializers.auth import LoginSerializer, ProfileUpdateSerializer, SignupSerializer
from camps.services.audit import log_action

from .models import Role, User

logger = logging.getLogger(__name__)


def _user_payload(user: User) -> dict:
    return {
        'id': user.id,
        'username': user.username,
        'email': user.email,
        'name': user.get_full_name() or user.username,
        'role': user.role,
        'phone': user.phone,
        'photoUrl': user.photo_url,
    }


def _token_payload(user: User) -> dict:
    token_obj, _ = Token.objects.get_or_create(user=user)
    refresh = RefreshToken.for_user(user)
    return {
        'ok': True,
        'token': token_obj.key,
        'jwt_access': str(refresh.access_token),
        'jwt_refresh': str(refresh),
        'role': user.role,
        'user': _user_payload(user),
    }


# ---------------------------------------------------------------------
# Username/email + password login
# ---------------------------------------------------------------------
@api_view(['POST'])
@permission_classes([AllowAny])
def login_view(request):
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    login = s.validated_data['username']
    password = s.validated_data['password']

    username = login
    if '@' in login:
        match = User.objects.filter(email__iexact=login).values_list('username', flat=True).first()
        username = match or login

    user = authenticate(request, username=username, password=password)
    if not user:
        log_action(user_id=None, action='login', object_type='user',
                   detail={'result': 'fail', 'login': login, 'ip': request.META.get('REMOTE_ADDR')})
        return Response({'ok': False, 'detail': 'invalid credentials'}, status=400)

    log_action(user_id=user.id, action='login', object_type='user', object_id=user.id,
               detail={'result': 'ok', 'ip': request.META.get('REMOTE_ADDR')})
    return Response(_token_payload(user), status=200)

# ScopedRateThrottle reads throttle_scope from the wrapped APIView class
login_view.cls.throttle_scope = 'login'


@api_view(['POST'])
@permission_classes([AllowAny])
def signup_view(request):
    s = SignupSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    with transaction.atomic():
        user = User.objects.create_user(
            username=vd['username'],
            email=vd['email'],
            password=vd['password'],
            first_name=vd.get('name', ''),
            role=vd.get('role') or Role.PARTICIPANT,
            photo_url=vd.get('photoUrl', ''),
        )
        log_action(user_id=user.id, action='signup', object_type='user', object_id=user.id,
                   detail={'role': user.role})
    logger.info('new %s account %s', user.role, user.id)
    return Response(_token_payload(user), status=201)

signup_view.cls.throttle_scope = 'login'


# ---------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def me_view(request):
    return Response({'ok': True, 'data': _user_payload(request.user)})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def me_update_view(request):
    s = ProfileUpdateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    user = request.user
    fields = []
    if 'name' in vd:
        user.first_name = vd['name']
        fields.append('first_name')
    if 'phone' in vd:
        user.phone = vd['phone']
        fields.append('phone')
    if 'photoUrl' in vd:
        user.photo_url = vd['photoUrl']
        fields.append('photo_url')
    if fields:
        user.save(update_fields=fields)
    return Response({'ok': True, 'data': _user_payload(user)})


# ---------------------------------------------------------------------
# JWT: refresh & logout
# ---------------------------------------------------------------------
@api_view(['POST'])
@permission_classes([AllowAny])
def jwt_refresh_view(request):
    """Return a new access token from refresh token."""
    view = TokenRefreshView.as_view()
    resp = view(request._request)
    if isinstance(resp, Response):
        data = dict(resp.data)
        if 'access' in data and 'jwt_access' not in data:
            data['jwt_access'] = data.pop('access')
        return Response(data, status=resp.status_code)
    return resp


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def jwt_logout_view(request):
    """Blacklist current user's refresh tokens (all or a given one)."""
    refresh = request.data.get('refresh')
    count = 0
    if refresh:
        try:
            RefreshToken(refresh).blacklist()
            count = 1
        except TokenError as e:
            return Response({'ok': False, 'detail': str(e)}, status=400)
    else:
        for token in OutstandingToken.objects.filter(user=request.user):
            _, created = BlacklistedToken.objects.get_or_create(token=token)
            count += int(created)
    return Response({'ok': True, 'blacklisted': count})
