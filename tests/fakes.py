"""In-memory chain client and dialers for exercising a run without a node."""

import asyncio

from evm_workload.errors import ChainConnectionError, RpcError
from evm_workload.rpc import BlockHeader

# Well-known development mnemonic; index 0 and 1 addresses are public knowledge.
MNEMONIC = "test test test test test test test test test test test junk"
ADDRESS_0 = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
ADDRESS_1 = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"


class FakeChainClient:
    def __init__(
        self,
        *,
        chain_id=1337,
        base_fee=1_000_000_000,
        tip=1_500_000,
        gas=21_000,
        nonces=None,
        balance=10**18,
        fail_submit=False,
        fail_balance=False,
        fail_chain_id=False,
        fail_gas=False,
        fail_nonce_for=(),
        submit_delay=0.0,
    ):
        self._chain_id = chain_id
        self._base_fee = base_fee
        self._tip = tip
        self._gas = gas
        self._nonces = dict(nonces or {})
        self._balance = balance
        self.fail_submit = fail_submit
        self.fail_balance = fail_balance
        self.fail_chain_id = fail_chain_id
        self.fail_gas = fail_gas
        self.fail_nonce_for = set(fail_nonce_for)
        self.submit_delay = submit_delay

        self.submitted: list[str] = []
        self.submit_started: list[float] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.balance_calls = 0
        self.closed = False

    async def chain_id(self):
        if self.fail_chain_id:
            raise RpcError("eth_chainId", -32601, "method not found")
        return self._chain_id

    async def pending_nonce(self, address):
        if address in self.fail_nonce_for:
            raise RpcError("eth_getTransactionCount", -32000, "nonce unavailable")
        return self._nonces.get(address, 0)

    async def estimate_gas(self, call):
        if self.fail_gas:
            raise RpcError("eth_estimateGas", -32000, "execution reverted")
        return self._gas

    async def suggested_tip(self):
        return self._tip

    async def latest_header(self):
        return BlockHeader(number=42, base_fee=self._base_fee)

    async def balance_at(self, address):
        self.balance_calls += 1
        if self.fail_balance:
            raise RpcError("eth_getBalance", -32000, "balance unavailable")
        return self._balance

    async def send_raw_transaction(self, raw_tx):
        self.submit_started.append(asyncio.get_running_loop().time())
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.submit_delay:
                await asyncio.sleep(self.submit_delay)
            if self.fail_submit:
                raise RpcError("eth_sendRawTransaction", -32000, "insufficient funds for gas * price + value")
            self.submitted.append(raw_tx)
            return "0x" + "ab" * 32
        finally:
            self.in_flight -= 1

    async def aclose(self):
        self.closed = True


def dialer(client):
    async def dial(url, timeout, *, rpc_timeout=None):
        dial.calls += 1
        return client

    dial.calls = 0
    return dial


def failing_dialer():
    async def dial(url, timeout, *, rpc_timeout=None):
        dial.calls += 1
        raise ChainConnectionError(f"failed to connect to RPC at {url}")

    dial.calls = 0
    return dial
