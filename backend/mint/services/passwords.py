from __future__ import annotations
import logging

import bcrypt

from mint.config.settings import MIN_RECOMMENDED_BCRYPT_ROUNDS
from mint.errors import InvalidArgumentError

log = logging.getLogger(__name__)

# bcrypt only reads the first 72 bytes of its input; newer releases refuse longer ones
MAX_PASSWORD_BYTES = 72


class PasswordHasher:
    """Salted bcrypt hashes at a fixed work factor."""

    def __init__(self, rounds: int = MIN_RECOMMENDED_BCRYPT_ROUNDS):
        if rounds < MIN_RECOMMENDED_BCRYPT_ROUNDS:
            log.warning('bcrypt work factor %s is below %s; use only for tests', rounds, MIN_RECOMMENDED_BCRYPT_ROUNDS)
        self.rounds = rounds

    def hash(self, raw: str) -> str:
        encoded = raw.encode('utf-8')
        if len(encoded) > MAX_PASSWORD_BYTES:
            raise InvalidArgumentError(f'Password must be at most {MAX_PASSWORD_BYTES} bytes')
        return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=self.rounds)).decode('utf-8')

    def verify(self, raw: str, password_hash: str) -> bool:
        encoded = raw.encode('utf-8')
        if len(encoded) > MAX_PASSWORD_BYTES:
            # no stored hash can match an input hash() would have refused
            return False
        try:
            return bcrypt.checkpw(encoded, password_hash.encode('utf-8'))
        except ValueError:
            log.warning('stored password hash is not a bcrypt hash')
            return False


__all__ = ['PasswordHasher', 'MAX_PASSWORD_BYTES']
