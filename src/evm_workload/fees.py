"""EIP-1559 fee parameters shared by every transaction in a run."""

import logging
from dataclasses import dataclass

import httpx

import evm_workload.constants as C
from evm_workload.errors import FeeUnavailableError, RpcError
from evm_workload.rpc import ChainClient

log = logging.getLogger("evm_workload.fees")


@dataclass(frozen=True)
class FeeParameters:
    """Fee triple computed once per run.

    All values are in wei except gas_limit (gas units). base_fee is the value
    observed when the parameters were computed and is kept for reporting.
    """

    tip_cap: int
    fee_cap: int
    gas_limit: int
    base_fee: int

    @classmethod
    def from_chain_state(cls, base_fee: int, tip_cap: int, estimated_gas: int, gas_buffer: int = C.GAS_LIMIT_BUFFER) -> "FeeParameters":
        """Derive the triple from raw chain readings.

        fee_cap leaves room for the base fee to double before inclusion.
        """
        if base_fee < 0 or tip_cap < 0:
            raise FeeUnavailableError(f"negative fee reading: base_fee={base_fee} tip={tip_cap}")
        return cls(
            tip_cap=tip_cap,
            fee_cap=2 * base_fee + tip_cap,
            gas_limit=estimated_gas + gas_buffer,
            base_fee=base_fee,
        )

    def as_tx_fields(self) -> dict:
        return {
            "maxPriorityFeePerGas": self.tip_cap,
            "maxFeePerGas": self.fee_cap,
            "gas": self.gas_limit,
        }


async def compute_fee_parameters(
    client: ChainClient,
    sender: str,
    *,
    gas_buffer: int = C.GAS_LIMIT_BUFFER,
    estimate_value: int = C.GAS_ESTIMATE_VALUE_WEI,
) -> FeeParameters:
    """Read base fee, suggested tip and a self-transfer gas estimate from the node."""
    call = {"from": sender, "to": sender, "value": estimate_value}
    try:
        estimated = await client.estimate_gas(call)
        tip = await client.suggested_tip()
        header = await client.latest_header()
    except (RpcError, httpx.HTTPError, KeyError, TypeError, ValueError) as e:
        log.error("failed to read fee state: %s", e)
        raise FeeUnavailableError(f"failed to read fee state: {e}") from e

    if header.base_fee is None:
        log.error("node does not return base fee (non-EIP-1559?)")
        raise FeeUnavailableError(f"block {header.number} has no base fee; EIP-1559 is required")

    fees = FeeParameters.from_chain_state(header.base_fee, tip, estimated, gas_buffer)
    log.debug(
        "Fees at block %s: base=%s tip=%s cap=%s gas=%s",
        header.number, fees.base_fee, fees.tip_cap, fees.fee_cap, fees.gas_limit,
    )
    return fees
