"""
Authentication views.

Email/password login issuing simplejwt access and refresh tokens, token
refresh, logout through the refresh-token blacklist, and the current-user
endpoint.  The access token carries the user's ``role``, ``email`` and
``organization_id`` so clients can render role-specific screens without
an extra round trip; the server still re-checks the role on every request
(see ``records.authentication``).
"""
from __future__ import annotations

import logging

from django.contrib.auth import authenticate
from django.contrib.auth.models import update_last_login
from rest_framework import status
from rest_framework.decorators import api_view, authentication_classes, permission_classes, throttle_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.throttling import AnonRateThrottle
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken, OutstandingToken
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.views import TokenRefreshView

from records.responses import error_response, success_response
from records.serializers.auth import LoginSerializer, LogoutSerializer, UserSerializer

logger = logging.getLogger(__name__)


class LoginRateThrottle(AnonRateThrottle):
    scope = 'login'


def issue_tokens(user) -> RefreshToken:
    refresh = RefreshToken.for_user(user)
    refresh['role'] = user.role
    refresh['email'] = user.email
    refresh['organization_id'] = user.organization_id
    return refresh


@api_view(['POST'])
@permission_classes([AllowAny])
@authentication_classes([])
@throttle_classes([LoginRateThrottle])
def login_view(request):
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data

    # ModelBackend refuses inactive users, so they fail the same way as a bad password.
    user = authenticate(request, username=vd['email'], password=vd['password'])
    if not user:
        logger.warning('Failed login for %s from %s', vd['email'], request.META.get('REMOTE_ADDR'))
        return error_response('Invalid credentials', status.HTTP_401_UNAUTHORIZED)

    update_last_login(None, user)
    refresh = issue_tokens(user)
    logger.info('User %s logged in', user.pk)
    return success_response({
        'user': UserSerializer(user).data,
        'token': str(refresh.access_token),
        'refresh': str(refresh),
    }, message='Login successful')


@api_view(['POST'])
@permission_classes([AllowAny])
@authentication_classes([])
def refresh_view(request):
    """Return a new access token from a refresh token."""
    resp = TokenRefreshView.as_view()(request._request)
    if resp.status_code != 200:
        return resp
    return success_response({'token': resp.data['access'], 'refresh': resp.data.get('refresh')})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def me_view(request):
    return success_response(UserSerializer(request.user).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def logout_view(request):
    """Blacklist the given refresh token, or every outstanding token of the user."""
    s = LogoutSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    refresh = s.validated_data.get('refresh')
    count = 0
    if refresh:
        try:
            RefreshToken(refresh).blacklist()
            count = 1
        except TokenError as exc:
            logger.info('Logout with unusable refresh token for user %s: %s', request.user.pk, exc)
    else:
        for token in OutstandingToken.objects.filter(user=request.user):
            _, created = BlacklistedToken.objects.get_or_create(token=token)
            count += int(created)
    logger.info('User %s logged out (%d tokens revoked)', request.user.pk, count)
    return success_response({'revoked': count}, message='Logout successful')
