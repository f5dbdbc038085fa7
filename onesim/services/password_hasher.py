"""
OneSim Backend: Password Hasher
===============================

What:  One-way bcrypt hashing and verification of account passwords.
How:   bcrypt with a fixed work factor (BCRYPT_ROUNDS, default 10). Hashes
       are `$2b$` strings, compatible with the ones already in `users`.
       Hashing is CPU-bound, so the async wrappers run it in the threadpool.
Who:   Built once in the lifespan; used by UserService at signup and login.
"""

import logging

import bcrypt
from starlette.concurrency import run_in_threadpool

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of a secret
MAX_PASSWORD_BYTES = 72


class PasswordHasher:
    """bcrypt hash + verify with a fixed cost."""

    def __init__(self, rounds: int = 10):
        self.rounds = rounds

    def hash(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    def verify(self, password: str, hashed: str) -> bool:
        """
        Check a plain password against a stored hash.

        A malformed stored hash counts as a mismatch rather than an error.
        """
        try:
            return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
        except ValueError:
            logger.warning("Stored password hash is not a valid bcrypt hash")
            return False

    async def hash_async(self, password: str) -> str:
        return await run_in_threadpool(self.hash, password)

    async def verify_async(self, password: str, hashed: str) -> bool:
        return await run_in_threadpool(self.verify, password, hashed)
