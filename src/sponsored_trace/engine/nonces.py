"""
Per-account nonce cache.

The contract owns each account's permit nonce; the client keeps a
read-through copy so building a permit does not always need a node round
trip. The tracker is the only writer of that copy. Refreshes for the same
account are serialized with an ``asyncio.Lock`` so a slow query can never
overwrite the result of a newer one.

Polling mirrors the tracking UI, which re-reads the nonce every two
seconds while a wallet is connected.
"""

import asyncio
import logging
from typing import Dict, Optional

from ..adapters.bases import ChainClient
from ..config import DEFAULT_NONCE_REFRESH_INTERVAL, ClientConfig
from .exceptions import WalletNotConnectedError

logger = logging.getLogger(__name__)


class NonceTracker:
    """
    Read-through cache of account nonces.

    Args:
        chain: Node client used to query nonces.
        refresh_interval: Default polling interval in seconds.

    Usage:
        tracker = NonceTracker(chain)
        nonce = await tracker.current_nonce(account)
        ...
        await tracker.refresh(account)
    """

    def __init__(self, chain: ChainClient, refresh_interval: float = DEFAULT_NONCE_REFRESH_INTERVAL):
        self._chain = chain
        self._refresh_interval = refresh_interval
        self._cache: Dict[str, int] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._pollers: Dict[str, asyncio.Task] = {}

    @classmethod
    def from_config(cls, chain: ChainClient, config: ClientConfig) -> "NonceTracker":
        return cls(chain, refresh_interval=config.nonce_refresh_interval)

    @property
    def refresh_interval(self) -> float:
        return self._refresh_interval

    def _lock_for(self, account: str) -> asyncio.Lock:
        lock = self._locks.get(account)
        if lock is None:
            lock = self._locks[account] = asyncio.Lock()
        return lock

    @staticmethod
    def _require_account(account: str) -> None:
        if not account:
            raise WalletNotConnectedError("no account connected")

    async def current_nonce(self, account: str) -> int:
        """Cached nonce for ``account``, querying the node on a miss."""
        self._require_account(account)
        cached = self._cache.get(account)
        if cached is not None:
            return cached
        return await self.refresh(account)

    async def refresh(self, account: str) -> int:
        """
        Re-query the nonce and replace the cached value.

        Query failures propagate and leave the cache as it was.
        """
        self._require_account(account)
        async with self._lock_for(account):
            nonce = await self._chain.get_account_nonce(account)
            previous = self._cache.get(account)
            self._cache[account] = nonce
        if previous != nonce:
            logger.debug("Nonce for %s: %s -> %d", account, previous, nonce)
        return nonce

    def cached_nonce(self, account: str) -> Optional[int]:
        return self._cache.get(account)

    def invalidate(self, account: str) -> None:
        self._cache.pop(account, None)

    # =========================================================================
    # Background polling
    # =========================================================================

    def start_polling(self, account: str, interval: Optional[float] = None) -> asyncio.Task:
        """
        Start re-querying the nonce of ``account`` every ``interval`` seconds.

        Must be called from a running event loop. Starting twice for the same
        account returns the existing task.
        """
        self._require_account(account)
        task = self._pollers.get(account)
        if task is not None and not task.done():
            return task
        period = interval if interval is not None else self._refresh_interval
        task = asyncio.get_running_loop().create_task(self._poll(account, period))
        self._pollers[account] = task
        return task

    async def _poll(self, account: str, interval: float) -> None:
        while True:
            try:
                await self.refresh(account)
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                logger.warning("Nonce poll for %s failed: %s", account, exc)
            await asyncio.sleep(interval)

    async def stop_polling(self, account: str) -> None:
        task = self._pollers.pop(account, None)
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    def is_polling(self, account: str) -> bool:
        task = self._pollers.get(account)
        return task is not None and not task.done()

    async def aclose(self) -> None:
        for account in list(self._pollers):
            await self.stop_polling(account)
