import os
import tomllib
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Mapping

import evm_workload.constants as C
from evm_workload.errors import ConfigError

pkg_root = Path(__file__).parent
config_file = pkg_root / "config.toml"

# env var -> (section, key, type)
ENV_OVERRIDES = {
    "RPC_URL": ("rpc", "url", str),
    "MNEMONIC": ("run", "mnemonic", str),
    "WALLETS": ("run", "wallets", int),
    "TXNS": ("run", "txns", int),
    "WAIT": ("run", "wait", float),
    "MAX_CONCURRENCY": ("run", "max_concurrency", int),
    "CHAIN_ID": ("run", "chain_id", int),
}


def load_config(path: Path | None = None, env: Mapping[str, str] | None = None) -> dict:
    """Read the TOML config and apply environment overrides on top."""
    env = os.environ if env is None else env
    cfg = tomllib.loads(Path(path or config_file).read_text())
    cfg.setdefault("rpc", {})
    cfg.setdefault("run", {})
    for var, (section, key, cast) in ENV_OVERRIDES.items():
        raw = env.get(var)
        if raw is None or raw == "":
            continue
        try:
            cfg.setdefault(section, {})[key] = cast(raw)
        except ValueError as e:
            raise ConfigError(f"{var}={raw!r} is not a valid {cast.__name__}") from e
    return cfg


@dataclass(frozen=True)
class RunConfig:
    rpc_url: str
    mnemonic: str
    wallets: int = C.DEFAULT_WALLETS
    txns: int = C.DEFAULT_TXNS
    wait: float = C.DEFAULT_WAIT
    max_concurrency: int = C.DEFAULT_MAX_CONCURRENCY
    dial_timeout: float = C.DIAL_TIMEOUT
    rpc_timeout: float = C.RPC_TIMEOUT
    value_wei: int = C.TRANSFER_VALUE_WEI
    gas_buffer: int = C.GAS_LIMIT_BUFFER
    chain_id: int | None = None

    @classmethod
    def from_config(cls, cfg: dict, **overrides) -> "RunConfig":
        rpc, run = cfg.get("rpc", {}), cfg.get("run", {})
        conf = cls(
            rpc_url=rpc.get("url", ""),
            mnemonic=run.get("mnemonic", ""),
            wallets=run.get("wallets", C.DEFAULT_WALLETS),
            txns=run.get("txns", C.DEFAULT_TXNS),
            wait=run.get("wait", C.DEFAULT_WAIT),
            max_concurrency=run.get("max_concurrency", C.DEFAULT_MAX_CONCURRENCY),
            dial_timeout=rpc.get("dial_timeout", C.DIAL_TIMEOUT),
            rpc_timeout=rpc.get("rpc_timeout", C.RPC_TIMEOUT),
            value_wei=run.get("value_wei", C.TRANSFER_VALUE_WEI),
            gas_buffer=run.get("gas_buffer", C.GAS_LIMIT_BUFFER),
            chain_id=run.get("chain_id"),
        )
        overrides = {k: v for k, v in overrides.items() if v is not None}
        return replace(conf, **overrides) if overrides else conf

    @property
    def batch_size(self) -> int:
        # Remainder transactions are dropped
        return self.txns // self.wallets

    def validate(self) -> None:
        if not self.rpc_url:
            raise ConfigError("RPC URL is required")
        if not self.mnemonic or not self.mnemonic.strip():
            raise ConfigError("mnemonic is required")
        if self.wallets <= 0:
            raise ConfigError(f"wallet count must be > 0, got {self.wallets}")
        if self.txns <= 0:
            raise ConfigError(f"transaction count must be > 0, got {self.txns}")
        if self.wait < 0:
            raise ConfigError(f"wait must be >= 0, got {self.wait}")
        if self.max_concurrency < 0:
            raise ConfigError(f"max_concurrency must be >= 0, got {self.max_concurrency}")

    def __repr__(self) -> str:
        # Never leak the mnemonic into logs
        return (
            f"RunConfig(rpc_url={self.rpc_url!r}, wallets={self.wallets}, txns={self.txns}, "
            f"wait={self.wait}, max_concurrency={self.max_concurrency})"
        )
