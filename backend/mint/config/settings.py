"""Environment-driven settings for the application factory and the seed script.

Values come from the process environment (``.env`` is loaded by ``create_app``);
explicit overrides passed by callers (tests, scripts) take precedence.
"""
from __future__ import annotations
import os
from datetime import timedelta
from typing import Any, Dict, Mapping, Optional

from mint.constants.permissions import DEFAULT_ROLE_NAMES
from mint.errors import InvalidArgumentError
from mint.models.authz import UserType

MIN_RECOMMENDED_BCRYPT_ROUNDS = 12


def parse_role_names(raw) -> Dict[UserType, str]:
    """Parse ``ADMIN=admin,MERCHANT=Merchant Admin`` (or a mapping) onto the default table."""
    table = {UserType(k): v for k, v in DEFAULT_ROLE_NAMES.items()}
    if not raw:
        return table
    if isinstance(raw, Mapping):
        pairs = list(raw.items())
    else:
        pairs = []
        for chunk in str(raw).split(','):
            if not chunk.strip():
                continue
            if '=' not in chunk:
                raise InvalidArgumentError(f'DEFAULT_ROLE_NAMES entry {chunk!r} must be TYPE=role')
            key, _, value = chunk.partition('=')
            pairs.append((key.strip(), value.strip()))
    for key, value in pairs:
        try:
            user_type = UserType(key.value if isinstance(key, UserType) else str(key).upper())
        except ValueError:
            raise InvalidArgumentError(f'DEFAULT_ROLE_NAMES has unknown user type {key!r}')
        if not value:
            raise InvalidArgumentError(f'DEFAULT_ROLE_NAMES has empty role for {user_type.value}')
        table[user_type] = value
    return table


def load_settings(overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    settings: Dict[str, Any] = {
        'DATABASE_URL': os.getenv('DATABASE_URL', 'sqlite:///dev.db'),
        'JWT_SECRET_KEY': os.getenv('JWT_SECRET_KEY', 'dev-secret-change-me-in-every-deployment'),
        'JWT_ACCESS_TOKEN_EXPIRES': int(os.getenv('JWT_ACCESS_TOKEN_EXPIRES', '86400')),
        'BCRYPT_ROUNDS': int(os.getenv('BCRYPT_ROUNDS', str(MIN_RECOMMENDED_BCRYPT_ROUNDS))),
        'DEFAULT_ROLE_NAMES': os.getenv('DEFAULT_ROLE_NAMES', ''),
        'LOG_LEVEL': os.getenv('LOG_LEVEL', 'INFO'),
    }
    if overrides:
        settings.update(overrides)
    expires = settings['JWT_ACCESS_TOKEN_EXPIRES']
    if not isinstance(expires, timedelta):
        settings['JWT_ACCESS_TOKEN_EXPIRES'] = timedelta(seconds=int(expires))
    settings['DEFAULT_ROLE_NAMES'] = parse_role_names(settings['DEFAULT_ROLE_NAMES'])
    return settings


__all__ = ['load_settings', 'parse_role_names', 'MIN_RECOMMENDED_BCRYPT_ROUNDS']
