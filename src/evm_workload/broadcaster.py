"""Paced concurrent submission of signed transactions."""

import asyncio
import logging
from collections.abc import Sequence

from evm_workload.builder import SignedTx
from evm_workload.rpc import ChainClient
from evm_workload.stats import RunStats, StatsCounter

log = logging.getLogger("evm_workload.broadcaster")


class Broadcaster:
    """Start one submission task per transaction, `pacing` seconds apart.

    Pacing applies to when submissions start, not when they finish, so several
    can be in flight at once and complete out of order. `max_in_flight` caps how
    many submissions talk to the node at the same time (0 = no cap); the cap is
    taken inside each task so the start schedule is never held up by it.
    Nothing is retried.
    """

    def __init__(self, client: ChainClient, stats: StatsCounter, *, pacing: float = 0.0, max_in_flight: int = 0):
        self.client = client
        self.stats = stats
        self.pacing = pacing
        self._limit = asyncio.Semaphore(max_in_flight) if max_in_flight > 0 else None

    async def submit(self, tx: SignedTx) -> bool:
        try:
            if self._limit is None:
                await self.client.send_raw_transaction(tx.raw)
            else:
                async with self._limit:
                    await self.client.send_raw_transaction(tx.raw)
        except Exception as e:
            s = await self.stats.increment_failure()
            log.error("%d/%d failed to send transaction %s: %s", s.failure, s.total, tx, e)
            return False
        s = await self.stats.increment_success()
        log.debug("%d/%d Transaction sent successfully: %s", s.success, s.total, tx.tx_hash)
        return True

    async def broadcast(self, txs: Sequence[SignedTx]) -> RunStats:
        log.info("Broadcasting %d transactions (pacing %.3fs)", len(txs), self.pacing)
        async with asyncio.TaskGroup() as tg:
            for i, tx in enumerate(txs):
                if i and self.pacing > 0:
                    await asyncio.sleep(self.pacing)
                tg.create_task(self.submit(tx), name=f"submit-{tx.sender[:10]}-{tx.nonce}")
        return await self.stats.tally()
