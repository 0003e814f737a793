import pytest

from records import resources
from records.services.query import QueryBuilder
from records.services.resources import ResourceDescriptor

ORGS = ResourceDescriptor(
    name='organizations',
    table='organizations',
    allowed_fields=('name', 'email', 'city'),
    search_fields=('name', 'email'),
)


def test_exact_and_pattern_filters():
    b = QueryBuilder(ORGS, 'postgresql')
    w = b.where({'name': 'acme%', 'city': 'Leeds'})
    assert w.sql == 'WHERE CAST("name" AS TEXT) ILIKE %s AND "city" = %s'
    assert w.params == ('acme%', 'Leeds')


def test_pattern_filter_is_portable_off_postgres():
    w = QueryBuilder(ORGS, 'sqlite').where({'name': 'acme%'})
    assert w.sql == 'WHERE UPPER(CAST("name" AS TEXT)) LIKE UPPER(%s)'


def test_blank_and_unknown_filters_are_ignored():
    w = QueryBuilder(ORGS).where({'name': '', 'city': None, 'name; DROP TABLE users': '1', 'password': 'x'})
    assert w.sql == ''
    assert w.params == ()


def test_search_ors_over_search_fields():
    w = QueryBuilder(ORGS).where({'city': 'York'}, search='acme')
    assert w.sql == (
        'WHERE "city" = %s AND (CAST("name" AS TEXT) ILIKE %s OR CAST("email" AS TEXT) ILIKE %s)'
    )
    assert w.params == ('York', '%acme%', '%acme%')


def test_search_keeps_explicit_pattern():
    w = QueryBuilder(ORGS).where({}, search='acme%')
    assert w.params == ('acme%', 'acme%')


def test_page_uses_the_same_predicate_as_count():
    b = QueryBuilder(ORGS)
    w = b.where({'city': 'York'})
    count = b.count(w)
    page = b.select_page(w, 10, 20)
    assert count.sql == 'SELECT COUNT(*) AS total FROM "organizations" WHERE "city" = %s'
    assert page.sql.startswith('SELECT * FROM "organizations" WHERE "city" = %s ORDER BY "created_at" DESC')
    assert page.params == ('York', 10, 20)


def test_insert_update_delete_statements():
    b = QueryBuilder(ORGS)
    ins = b.insert({'name': 'Acme', 'created_at': 'now'})
    assert ins.sql == 'INSERT INTO "organizations" ("name", "created_at") VALUES (%s, %s) RETURNING *'
    assert ins.params == ('Acme', 'now')

    upd = b.update(7, {'city': 'Hull', 'updated_at': 'now'})
    assert upd.sql == 'UPDATE "organizations" SET "city" = %s, "updated_at" = %s WHERE "id" = %s RETURNING *'
    assert upd.params == ('Hull', 'now', 7)

    assert b.delete(7).sql == 'DELETE FROM "organizations" WHERE "id" = %s RETURNING "id"'


def test_descriptor_defaults_and_pick():
    assert ORGS.filter_fields == ('id', 'name', 'email', 'city')
    assert ORGS.pick({'city': 'Hull', 'name': 'Acme', 'id': 3, 'created_at': 'x'}) == {'name': 'Acme', 'city': 'Hull'}


def test_descriptor_is_immutable():
    with pytest.raises(AttributeError):
        ORGS.table = 'users'


@pytest.mark.parametrize('kwargs', [
    {'table': 'users; drop', 'allowed_fields': ('name',)},
    {'table': 'orgs', 'allowed_fields': ('Name',)},
    {'table': 'orgs', 'allowed_fields': ('name',), 'search_fields': ('name or 1=1',)},
    {'table': 'orgs', 'allowed_fields': ('name', 'updated_at')},
])
def test_descriptor_rejects_bad_identifiers(kwargs):
    with pytest.raises(ValueError):
        ResourceDescriptor(name='x', **kwargs)


def test_registered_descriptors_cover_every_table():
    assert {d.table for d in resources.ALL} == {
        'patients', 'appointments', 'encounters', 'prescriptions', 'lab_orders', 'billing', 'organizations',
    }
