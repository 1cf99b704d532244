"""
freemodule/security/passwords.py
bcrypt hashing off the event loop
"""
import asyncio
from concurrent.futures import ThreadPoolExecutor

from passlib.context import CryptContext


def normalize_password(password: str) -> str:
    """
    bcrypt only supports 72 bytes.
    We safely truncate AFTER UTF-8 encoding to preserve compatibility.
    """
    encoded = password.encode("utf-8")
    if len(encoded) > 72:
        encoded = encoded[:72]
    return encoded.decode("utf-8", errors="ignore")


class PasswordHasher:
    """
    Async-friendly wrapper around a passlib CryptContext.

    bcrypt can block the event loop for hundreds of milliseconds at cost 12,
    so hashing and verification run in a small thread pool.
    """

    def __init__(self, rounds: int = 12, max_workers: int = 4):
        self.context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds,
        )
        self._executor = ThreadPoolExecutor(max_workers=max_workers)
        self._dummy_hash = None

    async def hash(self, password: str) -> str:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, self.context.hash, normalize_password(password))

    async def verify(self, password: str, hashed: str) -> bool:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            self._executor, self.context.verify, normalize_password(password), hashed
        )

    async def verify_dummy(self, password: str) -> bool:
        """Spend the same time as a real check when the account does not exist."""
        if self._dummy_hash is None:
            self._dummy_hash = await self.hash("freemodule-timing-equalizer")
        await self.verify(password, self._dummy_hash)
        return False

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False)
