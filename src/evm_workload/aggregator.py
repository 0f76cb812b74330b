"""Fan-out over wallets and merge of their batches."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable

from evm_workload.builder import SignedTx, TxBatch
from evm_workload.wallets import Wallet

log = logging.getLogger("evm_workload.aggregator")


class Aggregator:
    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._batches: list[TxBatch] = []
        self._txs: list[SignedTx] = []

    async def add(self, batch: TxBatch) -> None:
        # A batch is appended whole so one wallet's nonces stay contiguous and ascending
        async with self._lock:
            self._batches.append(batch)
            self._txs.extend(batch.txs)

    @property
    def batches(self) -> tuple[TxBatch, ...]:
        return tuple(self._batches)

    @property
    def transactions(self) -> tuple[SignedTx, ...]:
        return tuple(self._txs)

    @property
    def built(self) -> int:
        return len(self._txs)

    async def collect(
        self,
        wallets: Iterable[Wallet],
        build: Callable[[Wallet], Awaitable[TxBatch]],
        *,
        max_concurrency: int = 0,
    ) -> tuple[SignedTx, ...]:
        """Run `build` once per wallet concurrently and wait for all of them.

        Returns only after every builder has reported, so the caller can treat
        the result as the complete transaction set.
        """
        limit = asyncio.Semaphore(max_concurrency) if max_concurrency > 0 else None

        async def _one(wallet: Wallet) -> None:
            try:
                if limit is None:
                    batch = await build(wallet)
                else:
                    async with limit:
                        batch = await build(wallet)
            except Exception as e:
                log.error("%s: batch construction failed: %s", wallet, e)
                return
            await self.add(batch)

        async with asyncio.TaskGroup() as tg:
            for w in wallets:
                tg.create_task(_one(w), name=f"build-{w.index}")

        log.info("Aggregated %d transactions from %d wallets", self.built, len(self._batches))
        return self.transactions
