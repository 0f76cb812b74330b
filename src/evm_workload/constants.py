from typing import Final
from enum import StrEnum

# Standard Ethereum BIP-44 path, one address per index
DERIVATION_PATH: Final = "m/44'/60'/0'/0/{index}"

WEI_PER_ETHER: Final = 10**18


class RunState(StrEnum):
    IDLE               = "IDLE"
    WALLETS_DERIVED    = "WALLETS_DERIVED"
    FEES_COMPUTED      = "FEES_COMPUTED"
    BATCHES_BUILDING   = "BATCHES_BUILDING"
    BATCHES_AGGREGATED = "BATCHES_AGGREGATED"
    BROADCASTING       = "BROADCASTING"
    COMPLETE           = "COMPLETE"
    ABORTED            = "ABORTED"


TERMINAL_STATES: Final = frozenset({RunState.COMPLETE, RunState.ABORTED})

DEFAULT_WALLETS = 10
DEFAULT_TXNS = 100
DEFAULT_WAIT = 0.01  # seconds between submission initiations
DEFAULT_MAX_CONCURRENCY = 256  # 0 disables the cap

DIAL_TIMEOUT = 10.0
RPC_TIMEOUT = 15.0

TRANSFER_VALUE_WEI = 10_000
GAS_ESTIMATE_VALUE_WEI = 100_000_000_000
GAS_LIMIT_BUFFER = 1_000

__all__ = [
    "DEFAULT_MAX_CONCURRENCY",
    "DEFAULT_TXNS",
    "DEFAULT_WAIT",
    "DEFAULT_WALLETS",
    "DERIVATION_PATH",
    "DIAL_TIMEOUT",
    "GAS_ESTIMATE_VALUE_WEI",
    "GAS_LIMIT_BUFFER",
    "RPC_TIMEOUT",
    "TERMINAL_STATES",
    "TRANSFER_VALUE_WEI",
    "WEI_PER_ETHER",

    ######
    "RunState",
]
