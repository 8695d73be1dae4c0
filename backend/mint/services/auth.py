"""Registration, login and token validation.

Login failures share one generic message whenever the failure could reveal
whether an account exists (unknown email and wrong password look identical).
"""
from __future__ import annotations
import logging
from typing import Any, Dict

from sqlalchemy.exc import SQLAlchemyError

from mint.errors import ConflictError, UnauthorizedError
from mint.models.authz import UserStatus
from mint.services.assignment import RoleAssignmentEngine
from mint.services.credentials import CredentialStore, Registration, coerce_user_type, normalize_email, public_user
from mint.services.passwords import PasswordHasher
from mint.services.tokens import Identity, TokenService

log = logging.getLogger(__name__)

INVALID_CREDENTIALS = 'Invalid credentials'
ACCOUNT_NOT_ACTIVE = 'Account is not active'


class AuthService:
    def __init__(
        self,
        credentials: CredentialStore,
        assignment: RoleAssignmentEngine,
        hasher: PasswordHasher,
        tokens: TokenService,
    ):
        self.credentials = credentials
        self.assignment = assignment
        self.hasher = hasher
        self.tokens = tokens

    def register(self, email: str, password: str, registration: Registration) -> Dict[str, Any]:
        email = normalize_email(email)
        registration.user_type = coerce_user_type(registration.user_type)
        if self.credentials.find_by_email(email) is not None:
            raise ConflictError('User with this email already exists')
        password_hash = self.hasher.hash(password)
        # a concurrent registration can still win between the check and the insert;
        # create_user turns the unique violation into ConflictError
        user = self.credentials.create_user(email, password_hash, registration)
        self.assignment.assign_default_role(user.id, registration.user_type)
        log.info('registered user %s (%s)', user.id, user.user_type.value)
        return public_user(user, roles=self.assignment.roles_for_user(user.id))

    def login(self, email: str, password: str) -> Dict[str, Any]:
        user = self.credentials.find_by_email(email)
        if user is None:
            log.info('login failed: unknown email')
            raise UnauthorizedError(INVALID_CREDENTIALS)
        if user.status is not UserStatus.ACTIVE:
            log.info('login refused for user %s: status %s', user.id, user.status.value)
            raise UnauthorizedError(ACCOUNT_NOT_ACTIVE)
        if not self.hasher.verify(password, user.password_hash):
            log.info('login failed for user %s: bad password', user.id)
            raise UnauthorizedError(INVALID_CREDENTIALS)

        try:
            user.last_login_at = self.credentials.record_login(user.id)
        except SQLAlchemyError:
            log.warning('could not record last login for user %s', user.id, exc_info=True)

        token = self.tokens.issue(user)
        return {'token': token, 'user': public_user(user, roles=self.assignment.roles_for_user(user.id))}

    def validate_token(self, token: str) -> Dict[str, Any]:
        return self.tokens.validate(token)

    def identity_from_token(self, token: str) -> Identity:
        return Identity.from_claims(self.validate_token(token))


__all__ = ['AuthService', 'INVALID_CREDENTIALS', 'ACCOUNT_NOT_ACTIVE']
