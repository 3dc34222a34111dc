"""Password hashing with the ``bcrypt`` library (no passlib).

bcrypt only looks at the first 72 bytes of its input and bcrypt>=5 raises
ValueError on longer input, so passwords are truncated to that length on both
the hash and the verify path.
"""

import bcrypt

_BCRYPT_MAX_BYTES = 72


def _encode(plain: str) -> bytes:
    return plain.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(plain: str, rounds: int = 12) -> str:
    """Hash a plain-text password. Returns the utf-8 hash string stored on the user row."""
    return bcrypt.hashpw(_encode(plain), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Check a plain-text password against a stored hash; malformed hashes never match."""
    try:
        return bcrypt.checkpw(_encode(plain), hashed.encode("utf-8"))
    except ValueError:
        return False
