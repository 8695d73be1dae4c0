from __future__ import annotations
import logging
from typing import List

from mint.errors import PermissionDeniedError
from mint.services.assignment import RoleAssignmentEngine
from mint.services.tokens import Identity

log = logging.getLogger(__name__)


class Authorizer:
    """Allow/deny decisions for (resource, action) pairs.

    Resolution reads the caller's current role bindings on every call; nothing is
    cached across requests, so a revoked role or grant takes effect immediately.
    """

    def __init__(self, assignment: RoleAssignmentEngine):
        self.assignment = assignment

    def authorize(self, identity: Identity, resource: str, action: str) -> bool:
        return any(
            p.resource == resource and p.action == action
            for p in self.assignment.permissions_for_user(identity.user_id)
        )

    def require(self, identity: Identity, resource: str, action: str):
        if not self.authorize(identity, resource, action):
            log.info('user %s denied %s:%s', identity.user_id, resource, action)
            raise PermissionDeniedError(resource, action, identity.user_id)

    def effective_permissions(self, identity: Identity) -> List[str]:
        """Sorted permission names the caller currently holds."""
        return [p.name for p in self.assignment.permissions_for_user(identity.user_id)]


__all__ = ['Authorizer']
