"""
User account views.

Admins list accounts and toggle activation; every user may read and edit
their own profile.  Editing someone else's profile additionally needs the
``users:write`` capability.  Deactivated users can no longer sign in, and
tokens already issued to them stop authenticating on the next request.
"""
from __future__ import annotations

import logging

from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import NotFound, PermissionDenied
from rest_framework.permissions import IsAuthenticated

from records.models import User
from records.permissions import IsAdminRole, IsSelfOrAdmin, capability_permission
from records.responses import error_response, success_response
from records.serializers.auth import UserListQuerySerializer, UserSerializer, UserUpdateSerializer
from records.serializers.resources import ListQuerySerializer
from records.services.resources import Page

logger = logging.getLogger(__name__)

CanWriteUsers = capability_permission('users:write')


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def user_list(request):
    q = ListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    f = UserListQuerySerializer(data=request.query_params)
    f.is_valid(raise_exception=True)

    qs = User.objects.all()
    if 'role' in f.validated_data:
        qs = qs.filter(role=f.validated_data['role'])
    if 'organization_id' in f.validated_data:
        qs = qs.filter(organization_id=f.validated_data['organization_id'])

    page, limit = q.validated_data['page'], q.validated_data['limit']
    total = qs.count()
    offset = (page - 1) * limit
    rows = qs.order_by('-date_joined', '-id')[offset:offset + limit]
    result = Page(rows=UserSerializer(rows, many=True).data, total=total, page=page, limit=limit)
    return success_response(result.rows, pagination=result.pagination())


@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated, IsSelfOrAdmin])
def user_detail(request, pk: int):
    try:
        user = User.objects.get(pk=pk)
    except User.DoesNotExist:
        raise NotFound('User not found')

    if request.method == 'GET':
        return success_response(UserSerializer(user).data)

    if user.pk != request.user.pk and not CanWriteUsers().has_permission(request, None):
        raise PermissionDenied()

    body = request.data if isinstance(request.data, dict) else {}
    fields = [name for name in UserUpdateSerializer.Meta.fields if name in body]
    if not fields:
        return error_response('No valid fields to update', status.HTTP_400_BAD_REQUEST)

    s = UserUpdateSerializer(user, data={name: body[name] for name in fields}, partial=True)
    s.is_valid(raise_exception=True)
    s.save()
    logger.info('User %s updated by user %s (%s)', pk, request.user.pk, ', '.join(fields))
    return success_response(UserSerializer(user).data, message='User updated successfully')


def _set_active(pk: int, active: bool) -> None:
    if not User.objects.filter(pk=pk).update(is_active=active, updated_at=timezone.now()):
        raise NotFound('User not found')


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsAdminRole, CanWriteUsers])
def deactivate_user(request, pk: int):
    _set_active(pk, False)
    logger.info('User %s deactivated by user %s', pk, request.user.pk)
    return success_response(message='User deactivated successfully')


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsAdminRole, CanWriteUsers])
def activate_user(request, pk: int):
    _set_active(pk, True)
    logger.info('User %s reactivated by user %s', pk, request.user.pk)
    return success_response(message='User reactivated successfully')
