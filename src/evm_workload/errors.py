"""Exception types raised by the workload.

Everything the run can abort on derives from WorkloadError so callers can catch
one type and still tell a bad mnemonic from an unreachable node.
"""


class WorkloadError(Exception):
    """Base class for workload failures."""


class ConfigError(WorkloadError):
    """Run configuration is unusable (counts, endpoint, seed)."""


class InvalidSeedError(ConfigError):
    """The seed phrase is not a valid BIP-39 mnemonic."""


class DerivationError(WorkloadError):
    """A wallet could not be derived at a given index."""

    def __init__(self, index: int, reason: str) -> None:
        super().__init__(f"failed to derive wallet at index {index}: {reason}")
        self.index = index


class FeeUnavailableError(WorkloadError):
    """The chain cannot provide EIP-1559 fee parameters."""


class ChainConnectionError(WorkloadError):
    """The RPC endpoint could not be reached."""


class RpcError(Exception):
    """JSON-RPC error object returned by the node."""

    def __init__(self, method: str, code: int | None, message: str) -> None:
        super().__init__(f"{method} failed ({code}): {message}")
        self.method = method
        self.code = code
        self.message = message
