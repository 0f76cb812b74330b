from evm_workload.config import RunConfig
from evm_workload.constants import RunState
from evm_workload.errors import (
    ChainConnectionError,
    ConfigError,
    DerivationError,
    FeeUnavailableError,
    InvalidSeedError,
    RpcError,
    WorkloadError,
)
from evm_workload.workload import RunReport, Workload, run_workload

__all__ = [
    "ChainConnectionError",
    "ConfigError",
    "DerivationError",
    "FeeUnavailableError",
    "InvalidSeedError",
    "RpcError",
    "RunConfig",
    "RunReport",
    "RunState",
    "Workload",
    "WorkloadError",
    "run_workload",
]
