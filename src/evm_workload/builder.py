"""Per-wallet construction of signed self-transfers."""

import asyncio
import logging
from dataclasses import dataclass

import evm_workload.constants as C
from evm_workload.fees import FeeParameters
from evm_workload.rpc import ChainClient
from evm_workload.wallets import Wallet, format_ether

log = logging.getLogger("evm_workload.builder")


@dataclass(frozen=True, slots=True)
class SignedTx:
    wallet_index: int
    sender: str
    nonce: int
    fees: FeeParameters
    value: int
    raw: str
    tx_hash: str

    @property
    def recipient(self) -> str:
        return self.sender

    def __str__(self):
        return f"{self.tx_hash} -- {self.sender} -- nonce {self.nonce}"


@dataclass(frozen=True)
class TxBatch:
    """One wallet's transactions, ascending by nonce."""

    wallet: Wallet
    start_nonce: int | None
    requested: int
    txs: tuple[SignedTx, ...] = ()

    @property
    def skipped(self) -> int:
        return self.requested - len(self.txs)

    def __len__(self) -> int:
        return len(self.txs)


def batch_size(tx_number: int, wallets_number: int) -> int:
    """Transactions per wallet. The remainder of the division is never built."""
    if wallets_number <= 0:
        raise ValueError(f"wallets_number must be > 0, got {wallets_number}")
    return max(tx_number, 0) // wallets_number


def transfer_template(wallet: Wallet, nonce: int, fees: FeeParameters, chain_id: int | None, value: int) -> dict:
    return {
        "type": 2,
        "chainId": chain_id,
        "nonce": nonce,
        "to": wallet.address,
        "value": value,
        "data": b"",
        **fees.as_tx_fields(),
    }


def build_transfer(wallet: Wallet, nonce: int, fees: FeeParameters, chain_id: int | None, value: int = C.TRANSFER_VALUE_WEI) -> SignedTx:
    signed = wallet.sign(transfer_template(wallet, nonce, fees, chain_id, value))
    return SignedTx(
        wallet_index=wallet.index,
        sender=wallet.address,
        nonce=nonce,
        fees=fees,
        value=value,
        raw=signed.raw,
        tx_hash=signed.tx_hash,
    )


def build_batch(
    wallet: Wallet,
    start_nonce: int,
    size: int,
    fees: FeeParameters,
    chain_id: int | None,
    value: int = C.TRANSFER_VALUE_WEI,
) -> TxBatch:
    """Sign `size` transfers at nonces start_nonce .. start_nonce+size-1.

    A transaction that fails to sign is logged and left out; the rest of the
    batch is still built.
    """
    txs = []
    for i in range(size):
        nonce = start_nonce + i
        try:
            tx = build_transfer(wallet, nonce, fees, chain_id, value)
        except Exception as e:
            log.error("%s: failed to create transaction at nonce %s: %s", wallet, nonce, e)
            continue
        log.debug("Transaction created successfully: %d/%d", i + 1, size)
        txs.append(tx)
    return TxBatch(wallet=wallet, start_nonce=start_nonce, requested=size, txs=tuple(txs))


async def log_balance(client: ChainClient, wallet: Wallet) -> int | None:
    """Log the wallet balance. Purely diagnostic, failures never gate a batch."""
    try:
        balance = await client.balance_at(wallet.address)
    except Exception as e:
        log.error("failed to get balance for address %s: %s", wallet.address, e)
        return None
    log.info("%s balance %s ETH", wallet, format_ether(balance))
    return balance


async def build_wallet_batch(
    client: ChainClient,
    wallet: Wallet,
    fees: FeeParameters,
    chain_id: int | None,
    size: int,
    value: int = C.TRANSFER_VALUE_WEI,
) -> TxBatch:
    await log_balance(client, wallet)

    try:
        nonce = await client.pending_nonce(wallet.address)
    except Exception as e:
        log.error("%s: failed to get nonce: %s", wallet, e)
        return TxBatch(wallet=wallet, start_nonce=None, requested=size)

    # signing is CPU-bound, run it in a worker thread
    batch = await asyncio.to_thread(build_batch, wallet, nonce, size, fees, chain_id, value)
    log.info("%s: built %d/%d transactions from nonce %s", wallet, len(batch), size, nonce)
    return batch
