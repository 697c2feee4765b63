from asyncio import Lock
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict


class ClaimLockManager:
    """Serializes claims of the same account inside one process."""

    def __init__(self):
        self.locks: Dict[str, Lock] = {}  # accountごとのLockを管理
        self.waiters: Dict[str, int] = {}  # accountごとの待機中のclaim数
        self.lock = Lock()  # locks/waitersへのアクセスを保護

    @asynccontextmanager
    async def hold(self, account: str) -> AsyncIterator[None]:
        """Hold the lock of the account for the duration of the block

        Args:
            account (str): Account whose claims are serialized
        """
        async with self.lock:
            if account not in self.locks:
                self.locks[account] = Lock()
                self.waiters[account] = 0
            self.waiters[account] += 1
            account_lock = self.locks[account]

        try:
            async with account_lock:
                yield
        finally:
            await self.cleanup(account)

    async def cleanup(self, account: str) -> None:
        """Delete the Lock of the account once nobody waits for it

        Args:
            account (str): Account to clean up
        """
        async with self.lock:
            self.waiters[account] -= 1
            if self.waiters[account] == 0:
                del self.locks[account]
                del self.waiters[account]

    def active_accounts(self) -> int:
        return len(self.locks)
