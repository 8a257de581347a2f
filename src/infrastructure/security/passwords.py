"""
Password hashing with bcrypt.

bcrypt only looks at the first 72 bytes of its input. Rather than
silently truncating, longer passwords are refused so two different
passwords can never share a hash.
"""

import logging

import bcrypt

logger = logging.getLogger(__name__)

MAX_PASSWORD_BYTES = 72


class PasswordTooLongError(ValueError):
    """Raised when a password exceeds bcrypt's input limit."""
    pass


def _encode(password: str) -> bytes:
    encoded = password.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        raise PasswordTooLongError(
            f"Password must be at most {MAX_PASSWORD_BYTES} bytes"
        )
    return encoded


def hash_password(password: str, rounds: int = 10) -> str:
    """Hash a password with a fresh salt. Returns the modular-crypt string."""
    hashed = bcrypt.hashpw(_encode(password), bcrypt.gensalt(rounds=rounds))
    return hashed.decode("ascii")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a password against a stored hash. Malformed hashes never match."""
    try:
        return bcrypt.checkpw(_encode(password), password_hash.encode("ascii"))
    except PasswordTooLongError:
        return False
    except ValueError:
        logger.warning("Stored password hash is malformed")
        return False
