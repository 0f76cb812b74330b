"""JSON-RPC client for EVM nodes.

Thin async wrapper over httpx: each method is one JSON-RPC call, hex
quantities are decoded to int, and error objects are raised as RpcError.
The client is safe to share between tasks; httpx pools the connections.
"""
import asyncio
import itertools
import logging
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

import evm_workload.constants as C
from evm_workload.errors import ChainConnectionError, RpcError

log = logging.getLogger("evm_workload.rpc")


@dataclass(frozen=True)
class BlockHeader:
    number: int
    base_fee: int | None  # None on pre-London chains


class ChainClient(Protocol):
    async def chain_id(self) -> int: ...
    async def pending_nonce(self, address: str) -> int: ...
    async def estimate_gas(self, call: dict) -> int: ...
    async def suggested_tip(self) -> int: ...
    async def latest_header(self) -> BlockHeader: ...
    async def balance_at(self, address: str) -> int: ...
    async def send_raw_transaction(self, raw_tx: str) -> str: ...
    async def aclose(self) -> None: ...


def _to_int(value: Any) -> int:
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        return int(value, 16) if value.startswith(("0x", "0X")) else int(value)
    raise ValueError(f"not a quantity: {value!r}")


class AsyncEthClient:
    def __init__(self, url: str, *, timeout: float = C.RPC_TIMEOUT, http: httpx.AsyncClient | None = None):
        self.url = url
        self._http = http or httpx.AsyncClient(timeout=timeout)
        self._ids = itertools.count(1)

    async def __aenter__(self) -> "AsyncEthClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def request(self, method: str, params: list | None = None, *, timeout: float | None = None) -> Any:
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params or []}
        kwargs = {"timeout": timeout} if timeout is not None else {}
        resp = await self._http.post(self.url, json=payload, **kwargs)
        resp.raise_for_status()
        body = resp.json()
        if not isinstance(body, dict):
            raise RpcError(method, None, f"malformed response: {body!r}")
        if body.get("error"):
            err = body["error"]
            if not isinstance(err, dict):
                raise RpcError(method, None, str(err))
            raise RpcError(method, err.get("code"), err.get("message", str(err)))
        if "result" not in body:
            raise RpcError(method, None, f"malformed response: {body}")
        return body["result"]

    async def block_number(self, *, timeout: float | None = None) -> int:
        return _to_int(await self.request("eth_blockNumber", timeout=timeout))

    async def chain_id(self, *, timeout: float | None = None) -> int:
        return _to_int(await self.request("eth_chainId", timeout=timeout))

    async def pending_nonce(self, address: str) -> int:
        return _to_int(await self.request("eth_getTransactionCount", [address, "pending"]))

    async def estimate_gas(self, call: dict) -> int:
        params = {k: hex(v) if isinstance(v, int) else v for k, v in call.items()}
        return _to_int(await self.request("eth_estimateGas", [params]))

    async def suggested_tip(self) -> int:
        return _to_int(await self.request("eth_maxPriorityFeePerGas"))

    async def latest_header(self) -> BlockHeader:
        block = await self.request("eth_getBlockByNumber", ["latest", False])
        if not block:
            raise RpcError("eth_getBlockByNumber", None, "latest block not found")
        if not isinstance(block, dict) or "number" not in block:
            raise RpcError("eth_getBlockByNumber", None, f"malformed block: {block!r}")
        base_fee = block.get("baseFeePerGas")
        return BlockHeader(
            number=_to_int(block["number"]),
            base_fee=_to_int(base_fee) if base_fee is not None else None,
        )

    async def balance_at(self, address: str) -> int:
        return _to_int(await self.request("eth_getBalance", [address, "latest"]))

    async def send_raw_transaction(self, raw_tx: str) -> str:
        return await self.request("eth_sendRawTransaction", [raw_tx])


async def dial(
    url: str,
    timeout: float = C.DIAL_TIMEOUT,
    *,
    rpc_timeout: float = C.RPC_TIMEOUT,
    http: httpx.AsyncClient | None = None,
) -> AsyncEthClient:
    """Connect to the endpoint and make sure it answers a cheap call within timeout."""
    client = AsyncEthClient(url, timeout=rpc_timeout, http=http)
    try:
        async with asyncio.timeout(timeout):
            head = await client.block_number(timeout=timeout)
    except (httpx.HTTPError, httpx.InvalidURL, RpcError, TimeoutError, ValueError) as e:
        await client.aclose()
        log.error("failed to connect to RPC at %s: %s", url, e)
        raise ChainConnectionError(f"failed to connect to RPC at {url}: {e}") from e
    log.info("Connected to %s at block %s", url, head)
    return client
