"""Salted password hashes that carry their own parameters."""

import hmac
import secrets
import hashlib
import logging
from base64 import b64encode, b64decode
from binascii import Error as Base64Error
from typing import Tuple

from .exceptions import HashingFailed

logger = logging.getLogger(__name__)

ALGORITHM = 'pbkdf2_sha256_prehashed'
SALT_BYTES = 16
DEFAULT_ITERATIONS = 600_000


class PasswordHasher(object):
    """
    Hashes and verifies passwords with PBKDF2-HMAC-SHA256.

    A stored hash looks like ``<algorithm>$<iterations>$<payload>``, where
    the payload is the base64 of the salt followed by the digest. Because the
    salt and the work factor travel with the hash, hashes made with an older
    iteration count keep verifying after the setting is raised.

    The password is digested once before it becomes the PBKDF2 key. HMAC pads
    short keys with zero bytes, so a raw key would make a password and the
    same password followed by NUL characters indistinguishable.
    """

    def __init__(self, iterations: int = DEFAULT_ITERATIONS,
                 digest: str = 'sha256') -> None:
        if iterations < 1:
            raise ValueError('iterations must be positive')
        self._iterations = iterations
        self._digest = digest
        self._dummy = self.hash(secrets.token_urlsafe(16))

    @property
    def iterations(self) -> int:
        return self._iterations

    def _derive(self, salt: bytes, password: str, iterations: int) -> bytes:
        try:
            key = hashlib.new(self._digest, password.encode('utf-8')).digest()
            return hashlib.pbkdf2_hmac(self._digest, key, salt, iterations)
        except (ValueError, TypeError) as e:
            raise HashingFailed(f'Could not hash password: {e}') from e

    def hash(self, password: str) -> str:
        """Generate a secure hash of a password."""
        salt = secrets.token_bytes(SALT_BYTES)
        hashed = self._derive(salt, password, self._iterations)
        payload = b64encode(salt + hashed).decode('ascii')
        return f'{ALGORITHM}${self._iterations}${payload}'

    def verify(self, password: str, encrypted: str) -> bool:
        """
        Check a password against an encrypted hash.

        The digests are compared with :func:`hmac.compare_digest`, so the time
        taken does not depend on how many leading bytes happen to match.
        """
        try:
            salt, expected, iterations = _unpack(encrypted)
        except ValueError:
            logger.error('Stored password hash is malformed')
            return False
        candidate = self._derive(salt, password, iterations)
        return hmac.compare_digest(candidate, expected)

    def dummy_verify(self, password: str) -> bool:
        """
        Spend the same effort as :meth:`verify` without a real hash.

        Used when a login identifier does not resolve to an account, so that
        the response time does not reveal whether the account exists.
        """
        self.verify(password, self._dummy)
        return False


def _unpack(encrypted: str) -> Tuple[bytes, bytes, int]:
    """Split a stored hash into salt, digest and iteration count."""
    try:
        algorithm, iterations, payload = encrypted.split('$')
    except (ValueError, AttributeError) as e:
        raise ValueError('Not a password hash') from e
    if algorithm != ALGORITHM:
        raise ValueError(f'Unsupported algorithm {algorithm}')
    try:
        decoded = b64decode(payload.encode('ascii'), validate=True)
    except (Base64Error, UnicodeEncodeError) as e:
        raise ValueError('Hash payload is not base64') from e
    if len(decoded) <= SALT_BYTES or not iterations.isdigit() \
            or int(iterations) < 1:
        raise ValueError('Hash payload is truncated')
    return decoded[:SALT_BYTES], decoded[SALT_BYTES:], int(iterations)
