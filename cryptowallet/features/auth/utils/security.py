from passlib.hash import argon2

from cryptowallet.core.settings import ARGON2_ROUNDS, ARGON2_MEMORY_COST, ARGON2_PARALLELISM

_hasher = argon2.using(
    rounds=ARGON2_ROUNDS,
    memory_cost=ARGON2_MEMORY_COST,
    parallelism=ARGON2_PARALLELISM,
)


def hash_secret(secret: str) -> str:
    return _hasher.hash(secret)


def verify_secret(secret: str, hashed: str | None) -> bool:
    if not secret or not hashed:
        return False
    return argon2.verify(secret, hashed)
