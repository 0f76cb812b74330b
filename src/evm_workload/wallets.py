"""Wallet set derived from a single BIP-39 mnemonic."""

import logging
from dataclasses import dataclass, field

from eth_account import Account
from eth_account.hdaccount.mnemonic import Mnemonic
from eth_account.signers.local import LocalAccount

import evm_workload.constants as C
from evm_workload.errors import ConfigError, DerivationError, InvalidSeedError

log = logging.getLogger("evm_workload.wallets")

Account.enable_unaudited_hdwallet_features()


@dataclass(frozen=True)
class SignedTransfer:
    """Raw signed bytes plus the hash the node will report for them."""

    raw: str
    tx_hash: str


@dataclass(frozen=True)
class Wallet:
    index: int
    address: str
    account: LocalAccount = field(repr=False, compare=False)

    @property
    def derivation_path(self) -> str:
        return C.DERIVATION_PATH.format(index=self.index)

    def sign(self, tx: dict) -> SignedTransfer:
        signed = self.account.sign_transaction(tx)
        return SignedTransfer(
            raw="0x" + bytes(signed.raw_transaction).hex(),
            tx_hash="0x" + bytes(signed.hash).hex(),
        )

    def __str__(self) -> str:
        return f"wallet[{self.index}] {self.address}"


def normalize_mnemonic(phrase: str) -> str:
    return " ".join(phrase.split())


def is_valid_mnemonic(phrase: str) -> bool:
    try:
        return Mnemonic().is_mnemonic_valid(normalize_mnemonic(phrase))
    except ValueError:
        return False


def derive_wallets(phrase: str, count: int) -> tuple[Wallet, ...]:
    """Derive `count` wallets on m/44'/60'/0'/0/i for i in 0..count-1.

    Either every index derives or the whole call fails; callers never see a
    partial wallet set.
    """
    if count <= 0:
        raise ConfigError(f"wallet count must be > 0, got {count}")
    phrase = normalize_mnemonic(phrase or "")
    if not is_valid_mnemonic(phrase):
        raise InvalidSeedError("invalid mnemonic")

    wallets = []
    for i in range(count):
        path = C.DERIVATION_PATH.format(index=i)
        try:
            acct = Account.from_mnemonic(phrase, account_path=path)
        except Exception as e:
            raise DerivationError(i, str(e)) from e
        wallets.append(Wallet(index=i, address=acct.address, account=acct))

    log.debug("Derived %s wallets", len(wallets))
    return tuple(wallets)


def format_ether(balance_wei: int) -> str:
    """Wei to a decimal ether string without trailing zeros ("1.23", "2")."""
    whole, frac = divmod(int(balance_wei), C.WEI_PER_ETHER)
    text = f"{whole}.{frac:018d}".rstrip("0").rstrip(".")
    return text
