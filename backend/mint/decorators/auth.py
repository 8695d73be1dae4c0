from functools import wraps
from flask import abort
from flask_jwt_extended import verify_jwt_in_request, get_jwt
from mint import get_core
from mint.services.tokens import Identity


def current_identity() -> Identity:
    """Identity of the verified token in the current request."""
    return Identity.from_claims(get_jwt())


def require_permission(resource: str, action: str):
    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            if not get_core().authorizer.authorize(current_identity(), resource, action):
                abort(403, description='Insufficient permissions to perform this action')
            return fn(*args, **kwargs)
        return wrapper
    return outer
