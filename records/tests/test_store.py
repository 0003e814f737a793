from types import SimpleNamespace

import pytest
from django.db import IntegrityError, OperationalError

from records.services.store import QueryResult, Store, adapt_param, is_connection_reset

pytestmark = pytest.mark.django_db


class FlakyStore(Store):
    """Store whose driver fails ``failures`` times before answering."""

    def __init__(self, failures, *, in_atomic=False, retries=2):
        super().__init__(retries=retries, retry_delay=0)
        self.failures = list(failures)
        self.calls = 0
        self.closed = 0
        self.fake = SimpleNamespace(in_atomic_block=in_atomic, vendor='sqlite', close=self._close)

    def _close(self):
        self.closed += 1

    @property
    def connection(self):
        return self.fake

    def _execute(self, sql, params):
        self.calls += 1
        if self.failures:
            raise self.failures.pop(0)
        return QueryResult(rows=[{'ok': 1}], rowcount=1)


def test_connection_reset_is_retried_once():
    store = FlakyStore([OperationalError('server closed the connection unexpectedly')])
    assert store.query('SELECT 1 AS ok').first() == {'ok': 1}
    assert store.calls == 2
    assert store.closed == 1


def test_retries_are_bounded():
    resets = [OperationalError('connection reset by peer') for _ in range(3)]
    store = FlakyStore(resets)
    with pytest.raises(OperationalError):
        store.query('SELECT 1')
    assert store.calls == 2


def test_other_errors_are_not_retried():
    store = FlakyStore([OperationalError('database is locked')])
    with pytest.raises(OperationalError):
        store.query('SELECT 1')
    assert store.calls == 1

    store = FlakyStore([IntegrityError('UNIQUE constraint failed: patients.email')])
    with pytest.raises(IntegrityError):
        store.query('INSERT ...')
    assert store.calls == 1


def test_no_retry_inside_transaction():
    store = FlakyStore([OperationalError('connection reset by peer')], in_atomic=True)
    with pytest.raises(OperationalError):
        store.query('SELECT 1')
    assert store.calls == 1


def test_reset_detection_uses_driver_cause():
    exc = OperationalError('boom')
    exc.__cause__ = ConnectionResetError(104, 'Connection reset by peer')
    assert is_connection_reset(exc)
    assert not is_connection_reset(ValueError('connection reset'))


def test_json_values_are_serialized():
    assert adapt_param({'a': 1}) == '{"a": 1}'
    assert adapt_param(['x']) == '["x"]'
    assert adapt_param('plain') == 'plain'


def test_real_store_roundtrip_and_ping():
    store = Store(retry_delay=0)
    assert store.ping()
    assert store.query('SELECT 2 AS n, 3 AS m').rows == [{'n': 2, 'm': 3}]
    with store.transaction() as s:
        assert s.query('SELECT 1 AS ok').first() == {'ok': 1}


def test_check_connection_succeeds_against_test_database():
    assert Store(retry_delay=0).check_connection(retries=1)
