"""
Credential handling.

Password hashing with bcrypt.
"""

from .passwords import PasswordTooLongError, hash_password, verify_password

__all__ = ["PasswordTooLongError", "hash_password", "verify_password"]
