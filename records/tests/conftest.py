import itertools
from contextlib import contextmanager

import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from records.auth_views import issue_tokens
from records.models import User
from records.services.store import QueryResult

PASSWORD = 'P@ssw0rd1'
_seq = itertools.count(1)


@pytest.fixture(autouse=True)
def _reset_throttles():
    # DRF throttle history lives in the cache and would leak between tests.
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def make_user(db):
    def _make(role=User.ROLE_DOCTOR, *, email=None, permissions=(), **extra):
        n = next(_seq)
        email = email or f'{role.lower()}{n}@mediflow.test'
        return User.objects.create_user(
            username=f'{role.lower()}{n}',
            email=email,
            password=PASSWORD,
            role=role,
            permissions=list(permissions),
            **extra,
        )
    return _make


def bearer_client(user) -> APIClient:
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {issue_tokens(user).access_token}')
    client.user = user
    return client


@pytest.fixture
def client_for(make_user):
    """``client_for('Nurse')`` returns an APIClient signed in as a new user of that role."""
    def _client(role=User.ROLE_DOCTOR, **kwargs):
        return bearer_client(make_user(role, **kwargs))
    return _client


class CountingStore:
    """Store double recording every statement it is asked to run."""
    vendor = 'sqlite'

    def __init__(self, rows=None):
        self.calls = []
        self.rows = rows if rows is not None else [{'total': 0}]

    def query(self, sql, params=()):
        self.calls.append((sql, tuple(params)))
        return QueryResult(rows=list(self.rows), rowcount=len(self.rows))

    def now(self):
        return '2024-01-01 00:00:00'

    @contextmanager
    def transaction(self):
        yield self


@pytest.fixture
def counting_store():
    return CountingStore()
