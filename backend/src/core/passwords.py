"""
Password hashing with bcrypt.

bcrypt is used directly rather than through passlib. Inputs are capped well
below bcrypt's 72-byte truncation threshold by the signup/login schemas.
"""
from functools import lru_cache

import bcrypt


def hash_password(plain: str, rounds: int = 12) -> str:
    """Return a bcrypt hash of the given plaintext password."""
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


@lru_cache
def dummy_hash(rounds: int = 12) -> str:
    """
    Return a hash to check against when the account does not exist.

    Computed once per cost factor so a login for an unknown email pays the same
    bcrypt cost as a real one and response time does not reveal which emails
    are registered.
    """
    return hash_password("timing-equalization-dummy", rounds=rounds)
