"""
Tests for the platform pieces around the resource routes: user activation,
health and root endpoints, the JSON error envelope and the management
commands.
"""
from io import StringIO

import pytest
from django.core.management import call_command
from django.db import DataError, IntegrityError, OperationalError
from rest_framework.exceptions import NotFound, PermissionDenied

from records.exceptions import describe_store_error
from records.models import Organization, User

pytestmark = pytest.mark.django_db


# ---------------------------------------------------------------------
# User activation
# ---------------------------------------------------------------------
def test_admin_with_capability_toggles_activation(client_for, make_user):
    admin = client_for(User.ROLE_ADMIN, permissions=['users:write'])
    target = make_user(User.ROLE_NURSE)

    r = admin.patch(f'/api/users/{target.pk}/deactivate')
    assert r.status_code == 200
    assert r.data['message'] == 'User deactivated successfully'
    target.refresh_from_db()
    assert target.is_active is False

    r = admin.patch(f'/api/users/{target.pk}/activate')
    assert r.status_code == 200
    target.refresh_from_db()
    assert target.is_active is True


def test_wildcard_capability(client_for, make_user):
    superadmin = client_for(User.ROLE_SUPER_ADMIN, permissions=['*'])
    assert superadmin.patch(f'/api/users/{make_user().pk}/deactivate').status_code == 200


@pytest.mark.parametrize('role,perms', [
    (User.ROLE_ADMIN, []),
    (User.ROLE_ADMIN, ['patients:read']),
    (User.ROLE_NURSE, ['*']),
])
def test_activation_needs_role_and_capability(client_for, make_user, role, perms):
    target = make_user(User.ROLE_NURSE)
    r = client_for(role, permissions=perms).patch(f'/api/users/{target.pk}/deactivate')
    assert r.status_code == 403
    target.refresh_from_db()
    assert target.is_active is True


def test_activation_of_missing_user_is_404(client_for):
    r = client_for(User.ROLE_ADMIN, permissions=['users:write']).patch('/api/users/99999/activate')
    assert r.status_code == 404
    assert r.data['message'] == 'User not found'


# ---------------------------------------------------------------------
# User accounts
# ---------------------------------------------------------------------
def test_admin_lists_users_with_filters(client_for, make_user):
    org = Organization.objects.create(name='West Clinic', email='west@clinic.test')
    make_user(User.ROLE_NURSE, organization=org)
    make_user(User.ROLE_NURSE)
    make_user(User.ROLE_DOCTOR, organization=org)
    admin = client_for(User.ROLE_ADMIN)

    r = admin.get('/api/users', {'role': User.ROLE_NURSE})
    assert r.status_code == 200
    assert {row['role'] for row in r.data['data']} == {User.ROLE_NURSE}
    assert r.data['pagination']['total'] == 2

    r = admin.get('/api/users', {'organization_id': org.pk, 'limit': 1})
    assert r.data['pagination'] == {'page': 1, 'limit': 1, 'total': 2, 'pages': 2}
    assert len(r.data['data']) == 1
    assert 'password' not in r.data['data'][0]


def test_user_list_is_admin_only(client_for):
    assert client_for(User.ROLE_DOCTOR, permissions=['*']).get('/api/users').status_code == 403


def test_user_list_rejects_unknown_role(client_for):
    assert client_for(User.ROLE_ADMIN).get('/api/users', {'role': 'Janitor'}).status_code == 400


def test_user_reads_own_profile_only(client_for, make_user):
    client = client_for(User.ROLE_NURSE)
    r = client.get(f'/api/users/{client.user.pk}')
    assert r.status_code == 200
    assert r.data['data']['email'] == client.user.email

    other = make_user(User.ROLE_DOCTOR)
    r = client.get(f'/api/users/{other.pk}')
    assert r.status_code == 403
    assert r.data['message'] == 'Insufficient permissions'
    assert client_for(User.ROLE_ADMIN).get(f'/api/users/{other.pk}').status_code == 200


def test_user_detail_missing_is_404(client_for):
    r = client_for(User.ROLE_ADMIN).get('/api/users/99999')
    assert r.status_code == 404
    assert r.data['message'] == 'User not found'


def test_user_updates_own_profile_fields_only(client_for):
    client = client_for(User.ROLE_NURSE)
    r = client.put(f'/api/users/{client.user.pk}', {
        'phone': '0300', 'department': 'Cardiology', 'role': User.ROLE_SUPER_ADMIN, 'is_active': False,
    }, format='json')
    assert r.status_code == 200
    assert r.data['message'] == 'User updated successfully'
    assert r.data['data']['phone'] == '0300'
    assert r.data['data']['department'] == 'Cardiology'

    client.user.refresh_from_db()
    assert client.user.role == User.ROLE_NURSE
    assert client.user.is_active is True


def test_user_update_without_allowed_fields_is_400(client_for):
    client = client_for(User.ROLE_NURSE)
    for body in ({}, {'role': User.ROLE_ADMIN, 'email': 'x@y.test'}):
        r = client.put(f'/api/users/{client.user.pk}', body, format='json')
        assert r.status_code == 400
        assert r.data['message'] == 'No valid fields to update'


def test_admin_needs_capability_to_edit_others(client_for, make_user):
    target = make_user(User.ROLE_DOCTOR)
    r = client_for(User.ROLE_ADMIN).put(f'/api/users/{target.pk}', {'phone': '1'}, format='json')
    assert r.status_code == 403

    r = client_for(User.ROLE_ADMIN, permissions=['users:write']).put(
        f'/api/users/{target.pk}', {'phone': '1'}, format='json')
    assert r.status_code == 200
    target.refresh_from_db()
    assert target.phone == '1'


def test_non_admin_cannot_edit_others(client_for, make_user):
    target = make_user(User.ROLE_DOCTOR)
    r = client_for(User.ROLE_NURSE, permissions=['*']).put(f'/api/users/{target.pk}', {'phone': '1'}, format='json')
    assert r.status_code == 403


# ---------------------------------------------------------------------
# Health, root and unknown routes
# ---------------------------------------------------------------------
def test_health_reports_database(client):
    r = client.get('/health')
    assert r.status_code == 200
    body = r.json()
    assert body['status'] == 'OK'
    assert body['database'] == 'connected'
    assert body['uptime'] >= 0
    assert 'environment' in body


def test_root_describes_service(client):
    body = client.get('/').json()
    assert body['message'] == 'MediFlow Backend API'
    assert body['status'] == 'running'
    assert body['version']


def test_unknown_route_is_json_404(client):
    r = client.get('/api/does-not-exist')
    assert r.status_code == 404
    assert r.json()['success'] is False


# ---------------------------------------------------------------------
# Error classification
# ---------------------------------------------------------------------
class _PgError(Exception):
    def __init__(self, sqlstate):
        super().__init__('pg error')
        self.sqlstate = sqlstate


def _wrapped(exc_cls, cause):
    exc = exc_cls(str(cause))
    exc.__cause__ = cause
    return exc


@pytest.mark.parametrize('exc,expected', [
    (_wrapped(IntegrityError, _PgError('23505')), (409, 'Duplicate entry')),
    (_wrapped(IntegrityError, _PgError('23503')), (400, 'Referenced record not found')),
    (_wrapped(IntegrityError, _PgError('23502')), (400, 'Required field missing')),
    (_wrapped(IntegrityError, _PgError('23514')), (400, 'Invalid data')),
    (IntegrityError('UNIQUE constraint failed: patients.email'), (409, 'Duplicate entry')),
    (IntegrityError('FOREIGN KEY constraint failed'), (400, 'Referenced record not found')),
    (DataError('value too long'), (400, 'Invalid data')),
    (OperationalError('could not connect'), (503, 'Database unavailable')),
    (NotFound('patients not found'), (404, 'patients not found')),
    (PermissionDenied(), (403, 'Insufficient permissions')),
    (RuntimeError('boom'), (500, 'Internal Server Error')),
])
def test_describe_store_error(exc, expected):
    assert describe_store_error(exc) == expected


# ---------------------------------------------------------------------
# Management commands
# ---------------------------------------------------------------------
def test_seed_records_is_idempotent():
    call_command('seed_records', stdout=StringIO())
    call_command('seed_records', '--password', 'Other123!', stdout=StringIO())
    assert Organization.objects.count() == 1
    roles = set(User.objects.values_list('role', flat=True))
    assert roles == {role for role, _ in User.ROLE_CHOICES}
    assert User.objects.get(role=User.ROLE_ADMIN).check_password('Other123!')


def test_check_store_command():
    out = StringIO()
    call_command('check_store', '--retries', '1', '--delay', '0', stdout=out)
    assert 'ok' in out.getvalue()
