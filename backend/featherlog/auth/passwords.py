"""
Admin password hashing.

Passwords get a slow, salted hash (argon2id via argon2-cffi). Only the
encoded hash is ever stored.
"""

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

_HASHER = PasswordHasher()


def hash_password(raw_password: str) -> str:
    """Return the encoded argon2 hash for storage."""
    return _HASHER.hash(raw_password)


def verify_password(password_hash: str, raw_password: str) -> bool:
    """True if `raw_password` matches the stored hash. Never raises on mismatch."""
    try:
        return _HASHER.verify(password_hash, raw_password)
    except (VerificationError, InvalidHashError):
        return False
