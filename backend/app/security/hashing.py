# backend/app/security/hashing.py
"""
Password hashing with bcrypt.

Each hash carries its own random salt, so the same password hashed twice
never yields the same string. The work factor defaults to 12 rounds.
"""
from functools import lru_cache

import bcrypt

DEFAULT_ROUNDS = 12


def get_password_hash(password: str, rounds: int = DEFAULT_ROUNDS) -> str:
    """Hash a password with a fresh bcrypt salt."""
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a plaintext password against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8"), hashed_password.encode("utf-8")
        )
    except ValueError:
        # Malformed stored hash, or a password bcrypt refuses (over 72 bytes)
        return False


@lru_cache()
def _dummy_hash(rounds: int) -> str:
    return get_password_hash("dummy-password", rounds)


def burn_verification(plain_password: str, rounds: int = DEFAULT_ROUNDS) -> None:
    """
    Spend the same time as a real verification for an unknown account,
    so login timing does not reveal whether an email is registered.
    """
    verify_password(plain_password, _dummy_hash(rounds))
