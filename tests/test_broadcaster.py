import asyncio
from unittest import IsolatedAsyncioTestCase

from evm_workload.broadcaster import Broadcaster
from evm_workload.builder import build_batch
from evm_workload.fees import FeeParameters
from evm_workload.stats import RunStats, StatsCounter
from evm_workload.wallets import derive_wallets

from fakes import MNEMONIC, FakeChainClient

FEES = FeeParameters.from_chain_state(base_fee=1_000, tip_cap=10, estimated_gas=21_000)


def signed_txs(n):
    wallet = derive_wallets(MNEMONIC, 1)[0]
    return build_batch(wallet, 0, n, FEES, 1337).txs


class BroadcasterTest(IsolatedAsyncioTestCase):
    @classmethod
    def setUpClass(cls):
        cls.txs = signed_txs(10)

    async def test_all_succeed(self):
        client = FakeChainClient()
        stats = await Broadcaster(client, StatsCounter()).broadcast(self.txs)
        self.assertEqual(stats, RunStats(success=10, failure=0))
        self.assertEqual(client.submitted, [tx.raw for tx in self.txs])

    async def test_every_submission_fails(self):
        client = FakeChainClient(fail_submit=True)
        with self.assertLogs("evm_workload.broadcaster", level="ERROR") as logs:
            stats = await Broadcaster(client, StatsCounter()).broadcast(self.txs)
        self.assertEqual(stats, RunStats(success=0, failure=10))
        self.assertEqual(len([r for r in logs.records if r.levelname == "ERROR"]), 10)

    async def test_partial_failure_accounts_for_every_transaction(self):
        failing = {tx.raw for tx in self.txs[::3]}

        class Picky(FakeChainClient):
            async def send_raw_transaction(self, raw_tx):
                if raw_tx in failing:
                    raise ConnectionResetError("peer went away")
                return await super().send_raw_transaction(raw_tx)

        stats = await Broadcaster(Picky(submit_delay=0.01), StatsCounter(), max_in_flight=3).broadcast(self.txs)
        self.assertEqual(stats.failure, len(failing))
        self.assertEqual(stats.total, len(self.txs))

    async def test_pacing_gates_initiation(self):
        client = FakeChainClient()
        pacing = 0.05
        loop = asyncio.get_running_loop()
        start = loop.time()
        await Broadcaster(client, StatsCounter(), pacing=pacing).broadcast(self.txs[:5])
        elapsed = loop.time() - start
        self.assertGreaterEqual(elapsed, pacing * 4 * 0.9)
        gaps = [b - a for a, b in zip(client.submit_started, client.submit_started[1:])]
        self.assertTrue(all(g >= pacing * 0.9 for g in gaps), gaps)

    async def test_submissions_overlap_in_flight(self):
        # Pacing far shorter than submission latency: later sends start before earlier ones finish
        client = FakeChainClient(submit_delay=0.2)
        stats = await Broadcaster(client, StatsCounter(), pacing=0.01).broadcast(self.txs[:4])
        self.assertEqual(stats.success, 4)
        self.assertGreater(client.max_in_flight, 1)

    async def test_in_flight_cap(self):
        client = FakeChainClient(submit_delay=0.05)
        stats = await Broadcaster(client, StatsCounter(), max_in_flight=2).broadcast(self.txs)
        self.assertEqual(stats.success, 10)
        self.assertEqual(client.max_in_flight, 2)

    async def test_empty_input(self):
        stats = await Broadcaster(FakeChainClient(), StatsCounter(), pacing=1.0).broadcast(())
        self.assertEqual(stats, RunStats())


class StatsCounterTest(IsolatedAsyncioTestCase):
    async def test_concurrent_increments(self):
        counter = StatsCounter()

        async def bump(i):
            await asyncio.sleep(0)
            if i % 4:
                await counter.increment_success()
            else:
                await counter.increment_failure()

        await asyncio.gather(*(bump(i) for i in range(200)))
        tally = await counter.tally()
        self.assertEqual(tally, RunStats(success=150, failure=50))
        self.assertEqual(tally.to_dict(), {"success": 150, "failure": 50, "total": 200})
