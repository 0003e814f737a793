import pytest
from django.urls import reverse
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from records.models import Organization, User

pytestmark = pytest.mark.django_db

PASSWORD = 'P@ssw0rd1'


def login(client, email, password=PASSWORD):
    return client.post(reverse('auth-login'), {'email': email, 'password': password}, format='json')


def test_login_returns_tokens_with_role_claims(make_user):
    org = Organization.objects.create(name='North Clinic', email='north@clinic.test')
    user = make_user(User.ROLE_NURSE, organization=org)
    r = login(APIClient(), user.email)
    assert r.status_code == 200
    assert r.data['success'] is True
    data = r.data['data']
    assert data['user']['email'] == user.email
    assert data['user']['role'] == User.ROLE_NURSE
    assert 'password' not in data['user']
    claims = AccessToken(data['token'])
    assert claims['role'] == User.ROLE_NURSE
    assert claims['email'] == user.email
    assert claims['organization_id'] == org.pk
    assert data['refresh']

    user.refresh_from_db()
    assert user.last_login is not None


def test_login_ignores_role_in_body(make_user):
    user = make_user(User.ROLE_PATIENT)
    r = APIClient().post(reverse('auth-login'),
                         {'email': user.email, 'password': PASSWORD, 'role': User.ROLE_SUPER_ADMIN}, format='json')
    assert r.status_code == 200
    assert AccessToken(r.data['data']['token'])['role'] == User.ROLE_PATIENT


def test_bad_password_and_inactive_user_are_401(make_user):
    user = make_user(User.ROLE_DOCTOR)
    assert login(APIClient(), user.email, 'wrong').status_code == 401
    user.is_active = False
    user.save()
    r = login(APIClient(), user.email)
    assert r.status_code == 401
    assert r.data['message'] == 'Invalid credentials'


def test_login_validates_body():
    r = APIClient().post(reverse('auth-login'), {'email': 'not-an-email'}, format='json')
    assert r.status_code == 400
    assert set(r.data['details']) == {'email', 'password'}


def test_me_requires_token(make_user):
    client = APIClient()
    assert client.get(reverse('auth-me')).status_code == 401
    user = make_user(User.ROLE_BILLING)
    token = login(client, user.email).data['data']['token']
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')
    r = client.get(reverse('auth-me'))
    assert r.status_code == 200
    assert r.data['data']['id'] == user.pk


def test_token_stops_working_after_role_change(client_for):
    client = client_for(User.ROLE_ADMIN)
    assert client.get(reverse('auth-me')).status_code == 200
    User.objects.filter(pk=client.user.pk).update(role=User.ROLE_PATIENT)
    assert client.get(reverse('auth-me')).status_code == 401


def test_refresh_and_logout(make_user):
    user = make_user(User.ROLE_DOCTOR)
    client = APIClient()
    tokens = login(client, user.email).data['data']

    r = client.post(reverse('auth-refresh'), {'refresh': tokens['refresh']}, format='json')
    assert r.status_code == 200
    assert AccessToken(r.data['data']['token'])['role'] == User.ROLE_DOCTOR

    client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['token']}")
    r = client.post(reverse('auth-logout'), {'refresh': tokens['refresh']}, format='json')
    assert r.status_code == 200
    assert r.data['data'] == {'revoked': 1}

    client.credentials()
    r = client.post(reverse('auth-refresh'), {'refresh': tokens['refresh']}, format='json')
    assert r.status_code == 401
