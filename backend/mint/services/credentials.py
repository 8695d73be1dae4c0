"""Credential store: user identity records, password hashes and account status.

``password_hash`` never leaves this module and ``AuthService``; everything handed
to the transport layer goes through ``public_user``.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from mint.db import Database
from mint.errors import ConflictError, InvalidArgumentError, NotFoundError
from mint.models.authz import User, UserStatus, UserType
from mint.models.profile import IndividualProfile, MerchantProfile
from mint.services.audit import add_audit
from mint.utils.fsm import TransitionValidator

log = logging.getLogger(__name__)

ACCOUNT_FSM = TransitionValidator({
    UserStatus.PENDING_VERIFICATION: {UserStatus.ACTIVE, UserStatus.SUSPENDED, UserStatus.INACTIVE},
    UserStatus.ACTIVE: {UserStatus.SUSPENDED, UserStatus.INACTIVE},
    UserStatus.SUSPENDED: {UserStatus.ACTIVE, UserStatus.INACTIVE},
    UserStatus.INACTIVE: {UserStatus.ACTIVE},
})


@dataclass
class Registration:
    first_name: str
    last_name: str
    user_type: UserType
    phone: Optional[str] = None
    # merchant profile
    business_name: Optional[str] = None
    business_type: Optional[str] = None
    # merchant & individual profile
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None


def normalize_email(email: str) -> str:
    return (email or '').strip().lower()


def coerce_user_type(value) -> UserType:
    if isinstance(value, UserType):
        return value
    try:
        return UserType(str(value).upper())
    except ValueError:
        raise InvalidArgumentError(f'Invalid user type {value!r}')


def coerce_status(value) -> UserStatus:
    if isinstance(value, UserStatus):
        return value
    try:
        return UserStatus(str(value).upper())
    except ValueError:
        raise InvalidArgumentError(f'Invalid status {value!r}')


def _profile_for(user_id: int, reg: Registration):
    if reg.user_type is UserType.MERCHANT:
        return MerchantProfile(
            user_id=user_id,
            business_name=reg.business_name or '',
            business_type=reg.business_type or '',
            address=reg.address or '',
            city=reg.city or '',
            state=reg.state or '',
        )
    if reg.user_type is UserType.INDIVIDUAL:
        return IndividualProfile(user_id=user_id, address=reg.address, city=reg.city, state=reg.state)
    if reg.user_type is UserType.ADMIN:
        return None
    raise InvalidArgumentError(f'Invalid user type {reg.user_type!r}')


def public_user(user: User, roles: Optional[Iterable] = None) -> Dict[str, Any]:
    """Projection safe to hand outside the core (no password hash)."""
    payload = {
        'id': user.id,
        'email': user.email,
        'first_name': user.first_name,
        'last_name': user.last_name,
        'phone': user.phone,
        'user_type': user.user_type.value,
        'status': user.status.value,
        'email_verified': user.email_verified,
        'last_login_at': user.last_login_at.isoformat() if user.last_login_at else None,
    }
    if roles is not None:
        payload['roles'] = [
            {'id': g.role.id, 'name': g.role.name, 'permissions': [p.name for p in g.permissions]}
            for g in roles
        ]
    return payload


class CredentialStore:
    def __init__(self, db: Database):
        self.db = db

    def create_user(self, email: str, password_hash: str, registration: Registration) -> User:
        """Write the user row (PENDING_VERIFICATION) and its type-specific profile.

        The unique email constraint is authoritative: a concurrent duplicate
        surfaces as ConflictError, never as a raw store error.
        """
        email = normalize_email(email)
        user_type = coerce_user_type(registration.user_type)
        registration.user_type = user_type
        try:
            with self.db.session_scope() as session:
                user = User(
                    email=email,
                    password_hash=password_hash,
                    first_name=registration.first_name,
                    last_name=registration.last_name,
                    phone=registration.phone,
                    user_type=user_type,
                    status=UserStatus.PENDING_VERIFICATION,
                    email_verified=False,
                )
                session.add(user)
                session.flush()
                profile = _profile_for(user.id, registration)
                if profile is not None:
                    session.add(profile)
        except IntegrityError:
            raise ConflictError('User with this email already exists')
        return user

    def find_by_email(self, email: str) -> Optional[User]:
        with self.db.session_scope() as session:
            return session.execute(select(User).where(User.email == normalize_email(email))).scalar_one_or_none()

    def get_user(self, user_id: int) -> User:
        with self.db.session_scope() as session:
            user = session.get(User, user_id)
        if user is None:
            raise NotFoundError(f'User {user_id} not found')
        return user

    def get_profile(self, user: User):
        model = {UserType.MERCHANT: MerchantProfile, UserType.INDIVIDUAL: IndividualProfile}.get(user.user_type)
        if model is None:
            return None
        with self.db.session_scope() as session:
            return session.execute(select(model).where(model.user_id == user.id)).scalar_one_or_none()

    def record_login(self, user_id: int, when: Optional[datetime] = None):
        with self.db.session_scope() as session:
            user = session.get(User, user_id)
            if user is None:
                raise NotFoundError(f'User {user_id} not found')
            user.last_login_at = when or datetime.now(timezone.utc)
        return user.last_login_at

    def set_status(self, user_id: int, status, actor_user_id: Optional[int] = None) -> User:
        target = coerce_status(status)
        with self.db.session_scope() as session:
            user = session.get(User, user_id)
            if user is None:
                raise NotFoundError(f'User {user_id} not found')
            current = user.status
            ACCOUNT_FSM.assert_can_transition(current, target)
            user.status = target
            if actor_user_id is not None:
                add_audit(session, actor_user_id, 'USER.STATUS.SET', 'User', user_id,
                          {'status': current.value}, {'status': target.value})
        log.info('user %s status %s -> %s', user_id, current.value, target.value)
        return user

    def verify_email(self, user_id: int) -> User:
        """Mark the address verified; a pending account becomes ACTIVE."""
        with self.db.session_scope() as session:
            user = session.get(User, user_id)
            if user is None:
                raise NotFoundError(f'User {user_id} not found')
            user.email_verified = True
            if user.status is UserStatus.PENDING_VERIFICATION:
                user.status = UserStatus.ACTIVE
        return user


__all__ = [
    'CredentialStore', 'Registration', 'public_user', 'normalize_email',
    'coerce_user_type', 'coerce_status', 'ACCOUNT_FSM',
]
