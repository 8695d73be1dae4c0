"""Error taxonomy raised by the authorization/authentication core.

Every error carries the HTTP status and title the transport layer renders in the
standard ``{"error": {"status", "title", "detail"}}`` shape (see ``create_app``).
"""
from __future__ import annotations


class MintError(Exception):
    status = 500
    title = 'Internal Server Error'

    def __init__(self, detail: str = ''):
        super().__init__(detail or self.title)
        self.detail = detail or self.title


class ConflictError(MintError):
    """Duplicate unique key (email, permission name, role name)."""
    status = 409
    title = 'Conflict'


class UnauthorizedError(MintError):
    """Bad credentials, inactive account, invalid or expired token."""
    status = 401
    title = 'Unauthorized'


class InvalidArgumentError(MintError):
    """Unsupported user type or malformed input reaching the core."""
    status = 400
    title = 'Bad Request'


class NotFoundError(MintError):
    status = 404
    title = 'Not Found'


class PermissionDeniedError(MintError):
    """Authenticated identity lacks the required (resource, action)."""
    status = 403
    title = 'Forbidden'

    def __init__(self, resource: str, action: str, user_id=None):
        self.resource = resource
        self.action = action
        self.user_id = user_id
        super().__init__(f'Missing permission {resource}:{action}')


__all__ = [
    'MintError', 'ConflictError', 'UnauthorizedError', 'InvalidArgumentError',
    'NotFoundError', 'PermissionDeniedError',
]
