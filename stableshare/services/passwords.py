"""Share-link password hashing (argon2id)."""

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError
from stableshare.core.config import get_settings

settings = get_settings()

_PASSWORD_HASHER = PasswordHasher(
    time_cost=settings.password_time_cost,
    memory_cost=settings.password_memory_cost,
    parallelism=settings.password_parallelism,
)


def hash_password(password: str) -> str:
    return _PASSWORD_HASHER.hash(password)


def verify_password(password_hash: str, password: str) -> bool:
    try:
        _PASSWORD_HASHER.verify(password_hash, password)
        return True
    except (VerificationError, InvalidHashError):
        return False
