"""Idempotent bootstrap of the permission catalog, preset roles and the first admin."""
from __future__ import annotations
import logging
from typing import Dict, List, Optional

from mint.constants.permissions import PERMISSION_CATALOG, SUPER_ADMIN
from mint.errors import NotFoundError
from mint.models.authz import User, UserType
from mint.services.assignment import RoleAssignmentEngine
from mint.services.catalog import PermissionCatalog
from mint.services.credentials import CredentialStore, Registration
from mint.services.passwords import PasswordHasher
from mint.services.roles import RoleRegistry

log = logging.getLogger(__name__)


def bootstrap_authz(catalog: PermissionCatalog, registry: RoleRegistry) -> Dict[str, int]:
    existing_perms = {p.name for p in catalog.list_permissions()}
    for name, resource, action, description in PERMISSION_CATALOG:
        catalog.upsert_permission(name, resource, action, description)
    existing_roles = {r.name for r in registry.list_roles()}
    for name, rule in registry.rules.items():
        registry.upsert_role(name, rule.description, is_system=True)
    grants = registry.sync_role_grants()
    counts = {
        'permissions_created': len({n for n, *_ in PERMISSION_CATALOG} - existing_perms),
        'roles_created': len(set(registry.rules) - existing_roles),
        'grants_created': sum(grants.values()),
    }
    log.info('authz bootstrap: %s', counts)
    return counts


def ensure_initial_admin(
    credentials: CredentialStore,
    assignment: RoleAssignmentEngine,
    hasher: PasswordHasher,
    email: str,
    password: str,
) -> Optional[User]:
    """Create an ACTIVE, verified ADMIN bound to Super Admin unless the email exists."""
    try:
        super_admin = assignment.registry.find_role_by_name(SUPER_ADMIN)
    except NotFoundError:
        log.warning('%s role missing; skipping admin user creation', SUPER_ADMIN)
        return None
    user = credentials.find_by_email(email)
    if user is None:
        user = credentials.create_user(
            email, hasher.hash(password), Registration(first_name='System', last_name='Admin', user_type=UserType.ADMIN)
        )
        user = credentials.verify_email(user.id)
        log.info('created initial admin user %s', user.email)
    assignment.assign_role(user.id, super_admin.id)
    return user


def build_role_permission_map(registry: RoleRegistry) -> Dict[str, List[str]]:
    return {
        role.name: sorted(p.name for p in registry.resolve_permissions(role.id))
        for role in registry.list_roles()
    }


__all__ = ['bootstrap_authz', 'ensure_initial_admin', 'build_role_permission_map']
