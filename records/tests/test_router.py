"""
Router factory tests run against a store double, so they can show that the
authentication and role gates reject a request before the store is touched.
"""
import pytest
from rest_framework.test import APIRequestFactory, force_authenticate

from records.models import User
from records.resources import PATIENTS
from records.responses import success_response
from records.views.crud import create_crud_handlers, create_router

factory = APIRequestFactory()


def callbacks(patterns):
    return {p.name: p.callback for p in patterns}


def test_generated_routes():
    handlers = create_crud_handlers(PATIENTS)
    routes = [str(p.pattern) for p in create_router(handlers, bulk=True)]
    assert routes == ['/bulk', '', '/<int:pk>']
    assert [str(p.pattern) for p in create_router(handlers)] == ['', '/<int:pk>']


@pytest.mark.parametrize('method,name,kwargs', [
    ('get', 'patients-list', {}),
    ('post', 'patients-list', {}),
    ('get', 'patients-detail', {'pk': 1}),
    ('put', 'patients-detail', {'pk': 1}),
    ('delete', 'patients-detail', {'pk': 1}),
    ('put', 'patients-bulk', {}),
])
def test_role_gate_runs_before_any_store_call(counting_store, method, name, kwargs):
    handlers = create_crud_handlers(PATIENTS, store=counting_store)
    views = callbacks(create_router(handlers, allowed_roles=[User.ROLE_DOCTOR], bulk=True))
    request = getattr(factory, method)('/api/patients', {'updates': []}, format='json')
    force_authenticate(request, user=User(email='n@x.test', role=User.ROLE_NURSE))
    resp = views[name](request, **kwargs)
    assert resp.status_code == 403
    assert counting_store.calls == []


def test_auth_gate_runs_before_any_store_call(counting_store):
    handlers = create_crud_handlers(PATIENTS, store=counting_store)
    views = callbacks(create_router(handlers, allowed_roles=[User.ROLE_DOCTOR]))
    resp = views['patients-list'](factory.get('/api/patients'))
    assert resp.status_code == 401
    assert counting_store.calls == []


def test_allowed_role_reaches_the_store(counting_store):
    handlers = create_crud_handlers(PATIENTS, store=counting_store)
    views = callbacks(create_router(handlers, allowed_roles=[User.ROLE_DOCTOR]))
    request = factory.get('/api/patients', {'last_name': 'smith%', 'page': 2, 'limit': 5})
    force_authenticate(request, user=User(email='d@x.test', role=User.ROLE_DOCTOR))
    resp = views['patients-list'](request)
    assert resp.status_code == 200
    (count_sql, count_params), (page_sql, page_params) = counting_store.calls
    assert count_sql.startswith('SELECT COUNT(*)')
    assert count_params == ('smith%',)
    assert page_params == ('smith%', 5, 5)
    assert resp.data['pagination'] == {'page': 2, 'limit': 5, 'total': 0, 'pages': 0}


def test_public_router_skips_authentication(counting_store):
    handlers = create_crud_handlers(PATIENTS, store=counting_store)
    views = callbacks(create_router(handlers, require_auth=False))
    resp = views['patients-list'](factory.get('/api/patients'))
    assert resp.status_code == 200
    assert len(counting_store.calls) == 2


def test_custom_routes_share_the_gates(counting_store):
    seen = []

    def ping(request, handlers, pk):
        seen.append((handlers.descriptor.name, pk))
        return success_response({'pk': pk})

    handlers = create_crud_handlers(PATIENTS, store=counting_store)
    patterns = create_router(handlers, allowed_roles=[User.ROLE_ADMIN], custom_routes={'post': [('/<int:pk>/ping', ping)]})
    custom = patterns[-1]
    assert str(custom.pattern) == '/<int:pk>/ping'

    denied = factory.post('/api/patients/3/ping')
    force_authenticate(denied, user=User(email='d@x.test', role=User.ROLE_DOCTOR))
    assert custom.callback(denied, pk=3).status_code == 403
    assert seen == []

    allowed = factory.post('/api/patients/3/ping')
    force_authenticate(allowed, user=User(email='a@x.test', role=User.ROLE_ADMIN))
    resp = custom.callback(allowed, pk=3)
    assert resp.status_code == 200
    assert seen == [('patients', 3)]
