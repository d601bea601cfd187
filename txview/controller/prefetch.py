"""Best-effort cache warming for the transactions a user is likely to open next.

After a transaction loads, recent transactions of its first few accounts
are fetched in the background, sequentially and rate limited. Nothing here
ever surfaces an error.
"""

import asyncio
from typing import TYPE_CHECKING

from loguru import logger

from txview.controller.cache import TransactionCache
from txview.models.transaction import TransactionRecord
from txview.rate_limiter import RateLimiter

if TYPE_CHECKING:
    from txview.controller.coordinator import TransactionSource


class Prefetcher:
    def __init__(
        self,
        source: "TransactionSource",
        *,
        delay_sec: float = 1.0,
        max_accounts: int = 3,
        per_account: int = 2,
        max_rps: float = 2.0,
    ) -> None:
        self._source = source
        self._delay_sec = delay_sec
        self._max_accounts = max_accounts
        self._per_account = per_account
        self._rate_limiter = RateLimiter(max_rps)
        self._task: asyncio.Task | None = None
        self._inflight: tuple[str, asyncio.Task] | None = None

    @property
    def task(self) -> asyncio.Task | None:
        return self._task

    def schedule(self, record: TransactionRecord, cache: TransactionCache) -> None:
        """Replace any running prefetch with one seeded from `record`."""
        self.cancel()
        accounts = record.account_pubkeys()[: self._max_accounts]
        if not accounts or self._per_account <= 0:
            return
        self._task = asyncio.create_task(
            self._run(record.signature, accounts, cache),
            name=f"prefetch:{record.signature[:8]}",
        )

    def claim(self, signature: str) -> asyncio.Task | None:
        """Hand over the in-flight fetch of `signature`, if there is one.

        A claimed fetch survives `cancel()`; the caller owns it from here.
        """
        if self._inflight is None or self._inflight[0] != signature:
            return None
        _, fetch = self._inflight
        self._inflight = None
        logger.debug(f"[PREFETCH] Handing over in-flight fetch of {signature[:8]}...")
        return fetch

    def cancel(self) -> None:
        if self._inflight is not None:
            self._inflight[1].cancel()
            self._inflight = None
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def _run(self, origin: str, accounts: list[str], cache: TransactionCache) -> int:
        await asyncio.sleep(self._delay_sec)
        warmed = 0

        for address in accounts:
            try:
                await self._rate_limiter.acquire()
                signatures = await self._source.list_account_signatures(
                    address, limit=self._per_account
                )
            except Exception as e:
                logger.debug(f"[PREFETCH] {address[:8]}... listing failed: {e}")
                continue

            for signature in signatures:
                if signature == origin or signature in cache:
                    continue
                await self._rate_limiter.acquire()
                fetch = asyncio.create_task(self._source.fetch(signature))
                self._inflight = (signature, fetch)
                try:
                    record = await asyncio.shield(fetch)
                except Exception as e:
                    logger.debug(f"[PREFETCH] {signature[:8]}... failed: {e}")
                    continue
                finally:
                    if self._inflight is not None and self._inflight[1] is fetch:
                        self._inflight = None
                cache.put(signature, record)
                warmed += 1

        if warmed:
            logger.debug(f"[PREFETCH] Warmed {warmed} transactions around {origin[:8]}...")
        return warmed
