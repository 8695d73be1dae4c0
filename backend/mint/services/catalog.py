from __future__ import annotations
import logging
from typing import Callable, Iterable, List, Optional, Union

from sqlalchemy import select

from mint.db import Database, insert_ignore
from mint.errors import NotFoundError
from mint.models.authz import Permission

log = logging.getLogger(__name__)

PermissionListener = Callable[[Permission], None]


class PermissionCatalog:
    """Immutable (resource, action) permissions keyed by unique name.

    Listeners registered with ``subscribe`` are called once for every permission
    that ``upsert_permission`` actually creates.
    """

    def __init__(self, db: Database):
        self.db = db
        self._listeners: List[PermissionListener] = []

    def subscribe(self, listener: PermissionListener):
        self._listeners.append(listener)

    def upsert_permission(self, name: str, resource: str, action: str, description: str = '') -> Permission:
        with self.db.session_scope() as session:
            created = insert_ignore(
                session, Permission, name=name, resource=resource, action=action, description=description or ''
            )
            perm = session.execute(select(Permission).where(Permission.name == name)).scalar_one()
        if created:
            log.debug('permission %s created', name)
            for listener in self._listeners:
                listener(perm)
        return perm

    def get_permission(self, permission_id: int) -> Permission:
        with self.db.session_scope() as session:
            perm = session.get(Permission, permission_id)
        if perm is None:
            raise NotFoundError(f'Permission {permission_id} not found')
        return perm

    def find_permission_by_name(self, name: str) -> Permission:
        with self.db.session_scope() as session:
            perm = session.execute(select(Permission).where(Permission.name == name)).scalar_one_or_none()
        if perm is None:
            raise NotFoundError(f'Permission {name!r} not found')
        return perm

    def list_permissions(
        self,
        resource: Union[str, Iterable[str], None] = None,
        action: Optional[str] = None,
        exclude_name: Union[str, Iterable[str], None] = None,
        exclude_action: Union[str, Iterable[str], None] = None,
    ) -> List[Permission]:
        """Permissions matching every given filter, ordered by id."""
        stmt = select(Permission)
        if resource is not None:
            stmt = stmt.where(Permission.resource.in_(_as_list(resource)))
        if action is not None:
            stmt = stmt.where(Permission.action == action)
        if exclude_name is not None:
            stmt = stmt.where(Permission.name.not_in(_as_list(exclude_name)))
        if exclude_action is not None:
            stmt = stmt.where(Permission.action.not_in(_as_list(exclude_action)))
        with self.db.session_scope() as session:
            return list(session.execute(stmt.order_by(Permission.id.asc())).scalars())


def _as_list(value) -> List[str]:
    if isinstance(value, str):
        return [value]
    return list(value)


__all__ = ['PermissionCatalog']
