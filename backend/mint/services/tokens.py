from __future__ import annotations
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Dict, Mapping, Optional

from flask_jwt_extended import create_access_token, decode_token
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError

from mint.errors import UnauthorizedError
from mint.models.authz import User, UserType


@dataclass(frozen=True)
class Identity:
    """Authenticated caller, rebuilt from token claims without a store lookup."""
    user_id: int
    email: str
    user_type: UserType

    @classmethod
    def from_claims(cls, claims: Mapping[str, Any]) -> 'Identity':
        try:
            return cls(
                user_id=int(claims['sub']),
                email=claims['email'],
                user_type=UserType(claims['user_type']),
            )
        except (KeyError, TypeError, ValueError):
            raise UnauthorizedError('Invalid token')


class TokenService:
    """Signed, stateless session tokens.

    Signing key and expiry come from the Flask app config (``JWT_SECRET_KEY``,
    ``JWT_ACCESS_TOKEN_EXPIRES``); both calls need an application context.
    """

    def issue(self, user: User, expires_delta: Optional[timedelta] = None) -> str:
        # JWT identity must be a string (flask-jwt-extended v4 requirement)
        claims = {'email': user.email, 'user_type': user.user_type.value}
        kwargs = {}
        if expires_delta is not None:
            kwargs['expires_delta'] = expires_delta
        return create_access_token(identity=str(user.id), additional_claims=claims, **kwargs)

    def validate(self, token: str) -> Dict[str, Any]:
        if not token or not isinstance(token, str):
            raise UnauthorizedError('Invalid token')
        try:
            claims = decode_token(token)
        except (PyJWTError, JWTExtendedException):
            raise UnauthorizedError('Invalid token')
        if claims.get('type') != 'access':
            raise UnauthorizedError('Invalid token')
        # reject tokens signed with our key but missing identity claims
        Identity.from_claims(claims)
        return claims


__all__ = ['TokenService', 'Identity']
