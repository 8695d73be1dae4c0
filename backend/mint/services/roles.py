from __future__ import annotations
import logging
from typing import Dict, List, Optional

from sqlalchemy import delete, select

from mint.constants.permissions import ROLE_PRESETS, RoleRule
from mint.db import Database, insert_ignore
from mint.errors import NotFoundError
from mint.models.authz import Permission, Role, RolePermission
from mint.services.catalog import PermissionCatalog

log = logging.getLogger(__name__)


class RoleRegistry:
    """Named roles owning sets of permissions.

    Roles named in ``rules`` are preset roles: their grants follow a predicate over
    the live catalog. ``sync_role_grants`` runs a full pass, and every permission
    the catalog creates afterwards is granted to the matching preset roles at once.
    """

    def __init__(self, db: Database, catalog: PermissionCatalog, rules: Optional[Dict[str, RoleRule]] = None):
        self.db = db
        self.catalog = catalog
        self.rules = dict(ROLE_PRESETS if rules is None else rules)
        catalog.subscribe(self._on_permission_created)

    def upsert_role(self, name: str, description: str = '', is_system: bool = False) -> Role:
        with self.db.session_scope() as session:
            insert_ignore(session, Role, name=name, description=description or '', is_system=is_system)
            return session.execute(select(Role).where(Role.name == name)).scalar_one()

    def find_role_by_name(self, name: str) -> Role:
        with self.db.session_scope() as session:
            role = session.execute(select(Role).where(Role.name == name)).scalar_one_or_none()
        if role is None:
            raise NotFoundError(f'Role {name!r} not found')
        return role

    def get_role(self, role_id: int) -> Role:
        with self.db.session_scope() as session:
            role = session.get(Role, role_id)
        if role is None:
            raise NotFoundError(f'Role {role_id} not found')
        return role

    def list_roles(self) -> List[Role]:
        with self.db.session_scope() as session:
            return list(session.execute(select(Role).order_by(Role.id.asc())).scalars())

    def grant_permission(self, role_id: int, permission_id: int) -> bool:
        """Idempotent; returns True when the edge was created by this call."""
        with self.db.session_scope() as session:
            if session.get(Role, role_id) is None:
                raise NotFoundError(f'Role {role_id} not found')
            if session.get(Permission, permission_id) is None:
                raise NotFoundError(f'Permission {permission_id} not found')
            return insert_ignore(session, RolePermission, role_id=role_id, permission_id=permission_id)

    def revoke_permission(self, role_id: int, permission_id: int):
        with self.db.session_scope() as session:
            result = session.execute(
                delete(RolePermission).where(
                    RolePermission.role_id == role_id, RolePermission.permission_id == permission_id
                )
            )
            if not result.rowcount:
                raise NotFoundError(f'Role {role_id} does not hold permission {permission_id}')

    def resolve_permissions(self, role_id: int) -> List[Permission]:
        stmt = (
            select(Permission)
            .join(RolePermission, RolePermission.permission_id == Permission.id)
            .where(RolePermission.role_id == role_id)
            .order_by(Permission.id.asc())
        )
        with self.db.session_scope() as session:
            return list(session.execute(stmt).scalars())

    def sync_role_grants(self) -> Dict[str, int]:
        """Grant every preset role whatever its rule selects from the catalog now.

        Preset roles absent from the registry are skipped. Returns new edges per role.
        """
        created: Dict[str, int] = {}
        for name, rule in self.rules.items():
            try:
                role = self.find_role_by_name(name)
            except NotFoundError:
                log.debug('preset role %s not seeded; skipping sync', name)
                continue
            selected = self.catalog.list_permissions(
                resource=rule.resources,
                exclude_name=rule.exclude_names or None,
                exclude_action=rule.exclude_actions or None,
            )
            created[name] = sum(1 for p in selected if self.grant_permission(role.id, p.id))
        return created

    def _on_permission_created(self, permission: Permission):
        for name, rule in self.rules.items():
            if not rule.matches(permission):
                continue
            with self.db.session_scope() as session:
                role = session.execute(select(Role).where(Role.name == name)).scalar_one_or_none()
                if role is None:
                    continue
                if insert_ignore(session, RolePermission, role_id=role.id, permission_id=permission.id):
                    log.debug('granted %s to %s', permission.name, name)


__all__ = ['RoleRegistry']
