"""One workload run: derive wallets, price, build, aggregate, broadcast."""

import asyncio
import functools
import logging
import time
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

import httpx

import evm_workload.constants as C
from evm_workload import rpc
from evm_workload.aggregator import Aggregator
from evm_workload.broadcaster import Broadcaster
from evm_workload.builder import build_wallet_batch
from evm_workload.config import RunConfig
from evm_workload.errors import InvalidSeedError, RpcError, WorkloadError
from evm_workload.fees import FeeParameters, compute_fee_parameters
from evm_workload.rpc import ChainClient
from evm_workload.stats import RunStats, StatsCounter
from evm_workload.wallets import Wallet, derive_wallets, is_valid_mnemonic

log = logging.getLogger("evm_workload.core")

Dialer = Callable[..., Awaitable[ChainClient]]


@dataclass
class RunReport:
    run_id: str
    state: C.RunState = C.RunState.IDLE
    stats: RunStats = field(default_factory=RunStats)
    wallets: int = 0
    batch_size: int = 0
    built: int = 0
    aggregated: int = 0
    chain_id: int | None = None
    fees: FeeParameters | None = None
    error: WorkloadError | None = None
    started_at: float = field(default_factory=time.time)
    finished_at: float | None = None

    @property
    def elapsed(self) -> float:
        return (self.finished_at or time.time()) - self.started_at

    @property
    def finished(self) -> bool:
        return self.state in C.TERMINAL_STATES

    def to_dict(self) -> dict:
        return {
            "run_id": self.run_id,
            "state": str(self.state),
            "wallets": self.wallets,
            "batch_size": self.batch_size,
            "built": self.built,
            "aggregated": self.aggregated,
            "chain_id": self.chain_id,
            "stats": self.stats.to_dict() if self.finished else None,
            "error": f"{type(self.error).__name__}: {self.error}" if self.error else None,
            "elapsed": round(self.elapsed, 3),
        }


class Workload:
    def __init__(self, conf: RunConfig, *, dial: Dialer = rpc.dial, run_id: str | None = None):
        self.conf = conf
        self._dial = dial
        self.stats = StatsCounter()
        self.report = RunReport(run_id=run_id or uuid.uuid4().hex[:12])
        self.wallets: tuple[Wallet, ...] = ()

    @property
    def state(self) -> C.RunState:
        return self.report.state

    def _advance(self, state: C.RunState) -> None:
        log.info("Run %s: %s -> %s", self.report.run_id, self.report.state, state)
        self.report.state = state

    def _abort(self, error: WorkloadError) -> None:
        log.error("Run %s aborted in %s: %s", self.report.run_id, self.report.state, error)
        self.report.error = error
        self.report.state = C.RunState.ABORTED
        self.report.finished_at = time.time()

    async def run(self) -> RunReport:
        """Execute the run. Fatal conditions come back as an ABORTED report."""
        log.info("Starting run %s: %r", self.report.run_id, self.conf)
        try:
            await self._run()
        except WorkloadError as e:
            self._abort(e)
        except BaseException:
            self.report.state = C.RunState.ABORTED
            self.report.finished_at = time.time()
            raise
        return self.report

    def _check_config(self) -> None:
        conf = self.conf
        conf.validate()
        if not is_valid_mnemonic(conf.mnemonic):
            raise InvalidSeedError("invalid mnemonic")
        self.report.wallets = conf.wallets
        self.report.batch_size = conf.batch_size
        if conf.batch_size * conf.wallets < conf.txns:
            log.warning(
                "%d transactions do not split evenly over %d wallets; %d will not be built",
                conf.txns, conf.wallets, conf.txns - conf.batch_size * conf.wallets,
            )

    async def _chain_id(self, client: ChainClient) -> int | None:
        try:
            async with asyncio.timeout(self.conf.dial_timeout):
                return await client.chain_id()
        except (RpcError, httpx.HTTPError, TimeoutError, ValueError) as e:
            log.error("failed to get chain ID: %s (falling back to %s)", e, self.conf.chain_id)
            return self.conf.chain_id

    async def _run(self) -> None:
        conf = self.conf
        self._check_config()

        client = await self._dial(conf.rpc_url, conf.dial_timeout, rpc_timeout=conf.rpc_timeout)
        try:
            chain_id = await self._chain_id(client)
            self.report.chain_id = chain_id

            self.wallets = derive_wallets(conf.mnemonic, conf.wallets)
            self._advance(C.RunState.WALLETS_DERIVED)

            fees = await compute_fee_parameters(client, self.wallets[0].address, gas_buffer=conf.gas_buffer)
            self.report.fees = fees
            self._advance(C.RunState.FEES_COMPUTED)

            self._advance(C.RunState.BATCHES_BUILDING)
            build = functools.partial(
                self._build_one, client, fees=fees, chain_id=chain_id,
            )
            aggregator = Aggregator()
            txs = await aggregator.collect(self.wallets, build, max_concurrency=conf.max_concurrency)
            self.report.built = aggregator.built
            self.report.aggregated = len(txs)
            self._advance(C.RunState.BATCHES_AGGREGATED)

            self._advance(C.RunState.BROADCASTING)
            broadcaster = Broadcaster(client, self.stats, pacing=conf.wait, max_in_flight=conf.max_concurrency)
            self.report.stats = await broadcaster.broadcast(txs)
        finally:
            await client.aclose()

        self.report.finished_at = time.time()
        self._advance(C.RunState.COMPLETE)
        s = self.report.stats
        log.info("Total Success Count: %d/%d", s.success, s.total)
        log.info("Total Failed Count: %d/%d", s.failure, s.total)

    async def _build_one(self, client: ChainClient, wallet: Wallet, *, fees: FeeParameters, chain_id: int | None):
        return await build_wallet_batch(client, wallet, fees, chain_id, self.conf.batch_size, self.conf.value_wei)


async def run_workload(conf: RunConfig, **kwargs) -> RunReport:
    return await Workload(conf, **kwargs).run()
