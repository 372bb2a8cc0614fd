from __future__ import annotations

from functools import lru_cache

import bcrypt

DEFAULT_ROUNDS = 12


def _normalize_password(password: str) -> bytes:
    """
    bcrypt only reads the first 72 bytes; newer releases refuse longer input.
    """
    return password.encode("utf-8")[:72]


def hash_password(password: str, rounds: int = DEFAULT_ROUNDS) -> str:
    return bcrypt.hashpw(_normalize_password(password), bcrypt.gensalt(rounds=rounds)).decode("ascii")


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(_normalize_password(password), hashed.encode("ascii"))
    except (ValueError, UnicodeEncodeError):
        # malformed stored hash
        return False


@lru_cache(maxsize=8)
def dummy_hash(rounds: int = DEFAULT_ROUNDS) -> str:
    """Hash compared against when the email is unknown, so both paths cost the same."""
    return hash_password("not-a-real-password", rounds)
