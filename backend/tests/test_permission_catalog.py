import pytest
from sqlalchemy import func, select
from mint.errors import NotFoundError
from mint.models.authz import Permission


def _count(core, name):
    with core.db.session_scope() as session:
        return session.execute(select(func.count()).select_from(Permission).where(Permission.name == name)).scalar_one()


def test_upsert_twice_leaves_one_record(core):
    first = core.catalog.upsert_permission('invoice:read', 'invoice', 'read', 'View invoices')
    second = core.catalog.upsert_permission('invoice:read', 'invoice', 'read', 'Something else')
    assert first.id == second.id
    assert _count(core, 'invoice:read') == 1
    # existing record untouched on conflict
    assert second.description == 'View invoices'


def test_list_permissions_filters(core):
    for name in ['user:read', 'user:delete', 'invoice:read', 'invoice:delete', 'payment:read']:
        resource, action = name.split(':')
        core.catalog.upsert_permission(name, resource, action)
    names = lambda rows: [p.name for p in rows]  # noqa: E731
    assert names(core.catalog.list_permissions(resource='invoice')) == ['invoice:read', 'invoice:delete']
    assert names(core.catalog.list_permissions(resource=['invoice', 'payment'], action='read')) == ['invoice:read', 'payment:read']
    assert 'user:delete' not in names(core.catalog.list_permissions(exclude_name='user:delete'))
    assert len(core.catalog.list_permissions(exclude_name='user:delete')) == 4
    assert names(core.catalog.list_permissions(exclude_action='delete')) == ['user:read', 'invoice:read', 'payment:read']
    # stable order within a snapshot
    assert names(core.catalog.list_permissions()) == names(core.catalog.list_permissions())


def test_listeners_only_see_new_permissions(core):
    seen = []
    core.catalog.subscribe(lambda p: seen.append(p.name))
    core.catalog.upsert_permission('fee:read', 'fee', 'read')
    core.catalog.upsert_permission('fee:read', 'fee', 'read')
    assert seen == ['fee:read']


def test_find_permission_by_name_not_found(core):
    with pytest.raises(NotFoundError):
        core.catalog.find_permission_by_name('nope:none')
    perm = core.catalog.upsert_permission('fee:update', 'fee', 'update')
    assert core.catalog.find_permission_by_name('fee:update').id == perm.id
    assert core.catalog.get_permission(perm.id).name == 'fee:update'
