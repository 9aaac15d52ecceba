"""
Password hashing with bcrypt (cost factor 10).

bcrypt is CPU-bound by design, so both operations run in the threadpool and
never block the event loop.
"""

import bcrypt
from starlette.concurrency import run_in_threadpool

BCRYPT_COST = 10


def _hash(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_COST)).decode("utf-8")


def _verify(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Not a bcrypt hash at all
        return False


async def hash_password(password: str) -> str:
    return await run_in_threadpool(_hash, password)


async def verify_password(password: str, hashed: str) -> bool:
    return await run_in_threadpool(_verify, password, hashed)
