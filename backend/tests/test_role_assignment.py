import pytest
from sqlalchemy import func, select
from mint.errors import InvalidArgumentError, NotFoundError
from mint.models.authz import UserRole, UserType
from mint.services.assignment import RoleAssignmentEngine
from mint.services.bootstrap import bootstrap_authz
from tests.test_utils_seed import ensure_permissions, ensure_role, make_user


def test_assign_role_is_idempotent(core):
    user = make_user(core, 'a@x.com')
    role = ensure_role(core, 'Cashier', ['invoice:read'])
    assert core.assignment.assign_role(user.id, role.id) is True
    assert core.assignment.assign_role(user.id, role.id) is False
    with core.db.session_scope() as session:
        count = session.execute(select(func.count()).select_from(UserRole).where(UserRole.user_id == user.id)).scalar_one()
    assert count == 1


def test_assign_unknown_role_or_user_fails(core):
    user = make_user(core, 'a@x.com')
    role = ensure_role(core, 'Cashier')
    with pytest.raises(NotFoundError):
        core.assignment.assign_role(user.id, 9999)
    with pytest.raises(NotFoundError):
        core.assignment.assign_role(9999, role.id)


def test_default_role_missing_is_a_silent_no_op(core):
    bootstrap_authz(core.catalog, core.registry)  # seeds "Merchant Admin", not "merchant"
    user = make_user(core, 'a@x.com', user_type=UserType.MERCHANT)
    assert core.assignment.assign_default_role(user.id, UserType.MERCHANT) is None
    assert core.assignment.roles_for_user(user.id) == []


def test_default_role_bound_when_present(core):
    ensure_role(core, 'individual', ['payment:read'])
    user = make_user(core, 'i@x.com', user_type=UserType.INDIVIDUAL)
    role = core.assignment.assign_default_role(user.id, 'INDIVIDUAL')
    assert role.name == 'individual'
    grants = core.assignment.roles_for_user(user.id)
    assert [g.role.name for g in grants] == ['individual']
    assert [p.name for p in grants[0].permissions] == ['payment:read']


def test_default_role_table_is_configurable(core):
    bootstrap_authz(core.catalog, core.registry)
    engine = RoleAssignmentEngine(core.db, core.registry, {
        UserType.ADMIN: 'Super Admin', UserType.MERCHANT: 'Merchant Admin', UserType.INDIVIDUAL: 'Analyst',
    })
    user = make_user(core, 'm@x.com', user_type=UserType.MERCHANT)
    assert engine.assign_default_role(user.id, UserType.MERCHANT).name == 'Merchant Admin'


def test_default_role_rejects_unknown_user_type(core):
    user = make_user(core, 'a@x.com')
    with pytest.raises(InvalidArgumentError):
        core.assignment.assign_default_role(user.id, 'ROBOT')


def test_revoke_role(core):
    user = make_user(core, 'a@x.com')
    role = ensure_role(core, 'Cashier', ['invoice:read'])
    core.assignment.assign_role(user.id, role.id)
    core.assignment.revoke_role(user.id, role.id)
    assert core.assignment.roles_for_user(user.id) == []
    with pytest.raises(NotFoundError):
        core.assignment.revoke_role(user.id, role.id)


def test_permissions_for_user_unions_roles_and_direct_grants(core):
    user = make_user(core, 'a@x.com')
    ensure_role(core, 'Cashier', ['invoice:read', 'payment:read'])
    ensure_role(core, 'Reader', ['invoice:read'])
    for name in ['Cashier', 'Reader']:
        core.assignment.assign_role(user.id, core.registry.find_role_by_name(name).id)
    extra = ensure_permissions(core, ['fee:read'])['fee:read']
    assert core.assignment.grant_user_permission(user.id, extra.id) is True
    assert core.assignment.grant_user_permission(user.id, extra.id) is False
    names = [p.name for p in core.assignment.permissions_for_user(user.id)]
    assert names == ['fee:read', 'invoice:read', 'payment:read']
    core.assignment.revoke_user_permission(user.id, extra.id)
    assert 'fee:read' not in [p.name for p in core.assignment.permissions_for_user(user.id)]
    with pytest.raises(NotFoundError):
        core.assignment.revoke_user_permission(user.id, extra.id)
