from __future__ import annotations
"""Request payload validation run by the routes before any core call.

Each helper returns plain values (or a core dataclass) or aborts with 400.
"""
import re
from typing import Any, Iterable, Mapping, Optional, Tuple
from flask import abort

from mint.models.authz import UserStatus, UserType
from mint.services.credentials import Registration
from mint.services.passwords import MAX_PASSWORD_BYTES

EMAIL_RE = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
MIN_PASSWORD_LENGTH = 8


def require_fields(data: Mapping[str, Any], fields: Iterable[str]):
    missing = [f for f in fields if not isinstance(data.get(f), str) or not data.get(f).strip()]
    if missing:
        abort(400, description=f"missing required fields: {', '.join(missing)}")


def optional_str(data: Mapping[str, Any], field: str) -> Optional[str]:
    value = data.get(field)
    if value is None:
        return None
    if not isinstance(value, str):
        abort(400, description=f'{field} must be a string')
    return value.strip() or None


def validate_email(email: str) -> str:
    if not EMAIL_RE.match(email.strip()):
        abort(400, description='email invalid')
    return email.strip()


def validate_enum(value: Any, enum_cls, field_name: str):
    try:
        return enum_cls(str(value).upper())
    except ValueError:
        allowed = ', '.join(m.value for m in enum_cls)
        abort(400, description=f'{field_name} must be one of: {allowed}')


def parse_registration(data: Mapping[str, Any]) -> Tuple[str, str, Registration]:
    require_fields(data, ('email', 'password', 'first_name', 'last_name', 'user_type'))
    email = validate_email(data['email'])
    password = data['password']
    if len(password) < MIN_PASSWORD_LENGTH:
        abort(400, description=f'password must be at least {MIN_PASSWORD_LENGTH} characters')
    if len(password.encode('utf-8')) > MAX_PASSWORD_BYTES:
        abort(400, description=f'password must be at most {MAX_PASSWORD_BYTES} bytes')
    registration = Registration(
        first_name=data['first_name'].strip(),
        last_name=data['last_name'].strip(),
        user_type=validate_enum(data['user_type'], UserType, 'user_type'),
        phone=optional_str(data, 'phone'),
        business_name=optional_str(data, 'business_name'),
        business_type=optional_str(data, 'business_type'),
        address=optional_str(data, 'address'),
        city=optional_str(data, 'city'),
        state=optional_str(data, 'state'),
    )
    return email, password, registration


def parse_login(data: Mapping[str, Any]) -> Tuple[str, str]:
    email = data.get('email')
    password = data.get('password')
    if not email or not password or not isinstance(email, str) or not isinstance(password, str):
        abort(400, description='email & password required')
    return email, password


def parse_status(data: Mapping[str, Any]) -> UserStatus:
    if 'status' not in data:
        abort(400, description='status required')
    return validate_enum(data['status'], UserStatus, 'status')


__all__ = ['parse_registration', 'parse_login', 'parse_status', 'validate_enum', 'require_fields']
