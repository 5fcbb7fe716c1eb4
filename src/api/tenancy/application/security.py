"""Password hashing and fingerprinting for credential resolution.

Passwords are stored as bcrypt hashes inside tenant databases. The
credential cache is keyed by an HMAC fingerprint instead, so neither the
password nor a reversible form of it ever reaches Redis or the logs.
"""

import hashlib
import hmac
from functools import lru_cache

import bcrypt

# bcrypt ignores input beyond this many bytes
BCRYPT_MAX_BYTES = 72


def hash_password(password: str) -> str:
    """Hash a password using bcrypt.

    Args:
        password: The plaintext password (at most 72 UTF-8 bytes)

    Returns:
        The bcrypt hash as a string

    Raises:
        ValueError: If the password is longer than bcrypt accepts
    """
    encoded = password.encode()
    if len(encoded) > BCRYPT_MAX_BYTES:
        raise ValueError(f"Password exceeds {BCRYPT_MAX_BYTES} bytes")
    return bcrypt.hashpw(encoded, bcrypt.gensalt()).decode()


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash using constant-time comparison.

    Returns:
        True if the password matches the hash, False otherwise
    """
    try:
        return bcrypt.checkpw(password.encode(), password_hash.encode())
    except ValueError:
        # Malformed hash or oversized password
        return False


@lru_cache(maxsize=1)
def _dummy_hash() -> bytes:
    return bcrypt.hashpw(b"tessera-timing-equalizer", bcrypt.gensalt())


def dummy_verify(password: str) -> None:
    """Spend the same time as a real check when the user does not exist.

    Keeps "unknown email" and "wrong password" indistinguishable by timing.
    """
    bcrypt.checkpw(password.encode()[:BCRYPT_MAX_BYTES], _dummy_hash())


def fingerprint_password(password: str, email: str, salt: str) -> str:
    """Derive a non-reversible cache key component from a password.

    Args:
        password: The plaintext password
        email: Normalized email, so equal passwords differ across users
        salt: Deployment secret

    Returns:
        Hex HMAC-SHA256 digest
    """
    message = f"{email}\x00{password}".encode()
    return hmac.new(salt.encode(), message, hashlib.sha256).hexdigest()
