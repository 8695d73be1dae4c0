from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from sqlalchemy import delete, select

from mint.constants.permissions import DEFAULT_ROLE_NAMES
from mint.db import Database, insert_ignore
from mint.errors import NotFoundError
from mint.models.authz import Permission, Role, User, UserPermission, UserRole, UserType
from mint.services.audit import add_audit
from mint.services.credentials import coerce_user_type
from mint.services.roles import RoleRegistry

log = logging.getLogger(__name__)


@dataclass
class RoleGrant:
    """A role bound to a user together with the permissions it resolves to."""
    role: Role
    permissions: List[Permission] = field(default_factory=list)


class RoleAssignmentEngine:
    def __init__(self, db: Database, registry: RoleRegistry, default_role_names: Optional[Dict[UserType, str]] = None):
        self.db = db
        self.registry = registry
        if default_role_names is None:
            default_role_names = {UserType(k): v for k, v in DEFAULT_ROLE_NAMES.items()}
        self.default_role_names = default_role_names

    def _require_user(self, session, user_id: int) -> User:
        user = session.get(User, user_id)
        if user is None:
            raise NotFoundError(f'User {user_id} not found')
        return user

    def _require_role(self, session, role_id: int) -> Role:
        role = session.get(Role, role_id)
        if role is None:
            raise NotFoundError(f'Role {role_id} not found')
        return role

    def assign_role(self, user_id: int, role_id: int, actor_user_id: Optional[int] = None) -> bool:
        """Idempotent; returns True when the binding was created by this call."""
        with self.db.session_scope() as session:
            self._require_user(session, user_id)
            role = self._require_role(session, role_id)
            created = insert_ignore(session, UserRole, user_id=user_id, role_id=role_id)
            if created and actor_user_id is not None:
                add_audit(session, actor_user_id, 'USER.ROLE.ASSIGN', 'User', user_id,
                          None, {'role_id': role.id, 'role_name': role.name})
        return created

    def revoke_role(self, user_id: int, role_id: int, actor_user_id: Optional[int] = None):
        with self.db.session_scope() as session:
            role = self._require_role(session, role_id)
            result = session.execute(delete(UserRole).where(UserRole.user_id == user_id, UserRole.role_id == role_id))
            if not result.rowcount:
                raise NotFoundError(f'User {user_id} does not hold role {role_id}')
            if actor_user_id is not None:
                add_audit(session, actor_user_id, 'USER.ROLE.REVOKE', 'User', user_id,
                          {'role_id': role.id, 'role_name': role.name}, None)

    def assign_default_role(self, user_id: int, user_type) -> Optional[Role]:
        """Bind the role configured for ``user_type``.

        A missing role record is not an error: registration must survive an
        unseeded registry. Returns the bound role, or None when skipped.
        """
        user_type = coerce_user_type(user_type)
        role_name = self.default_role_names[user_type]
        try:
            role = self.registry.find_role_by_name(role_name)
        except NotFoundError:
            log.warning('default role %r for %s not found; user %s left without roles',
                        role_name, user_type.value, user_id)
            return None
        self.assign_role(user_id, role.id)
        return role

    def roles_for_user(self, user_id: int) -> List[RoleGrant]:
        stmt = (
            select(Role)
            .join(UserRole, UserRole.role_id == Role.id)
            .where(UserRole.user_id == user_id)
            .order_by(Role.id.asc())
        )
        with self.db.session_scope() as session:
            roles = list(session.execute(stmt).scalars())
        return [RoleGrant(role, self.registry.resolve_permissions(role.id)) for role in roles]

    def grant_user_permission(self, user_id: int, permission_id: int, actor_user_id: Optional[int] = None) -> bool:
        with self.db.session_scope() as session:
            self._require_user(session, user_id)
            perm = session.get(Permission, permission_id)
            if perm is None:
                raise NotFoundError(f'Permission {permission_id} not found')
            created = insert_ignore(session, UserPermission, user_id=user_id, permission_id=permission_id)
            if created and actor_user_id is not None:
                add_audit(session, actor_user_id, 'USER.PERMISSION.ASSIGN', 'User', user_id,
                          None, {'permission_id': perm.id, 'permission_name': perm.name})
        return created

    def revoke_user_permission(self, user_id: int, permission_id: int, actor_user_id: Optional[int] = None):
        with self.db.session_scope() as session:
            result = session.execute(
                delete(UserPermission).where(
                    UserPermission.user_id == user_id, UserPermission.permission_id == permission_id
                )
            )
            if not result.rowcount:
                raise NotFoundError(f'User {user_id} does not hold permission {permission_id}')
            if actor_user_id is not None:
                add_audit(session, actor_user_id, 'USER.PERMISSION.REVOKE', 'User', user_id,
                          {'permission_id': permission_id}, None)

    def direct_permissions(self, user_id: int) -> List[Permission]:
        stmt = (
            select(Permission)
            .join(UserPermission, UserPermission.permission_id == Permission.id)
            .where(UserPermission.user_id == user_id)
            .order_by(Permission.id.asc())
        )
        with self.db.session_scope() as session:
            return list(session.execute(stmt).scalars())

    def permissions_for_user(self, user_id: int) -> List[Permission]:
        """Union of role-derived and direct permissions, de-duplicated by name."""
        seen: Dict[str, Permission] = {}
        for grant in self.roles_for_user(user_id):
            for perm in grant.permissions:
                seen.setdefault(perm.name, perm)
        for perm in self.direct_permissions(user_id):
            seen.setdefault(perm.name, perm)
        return sorted(seen.values(), key=lambda p: p.name)


__all__ = ['RoleAssignmentEngine', 'RoleGrant']
