"""
Account Registry - signing identities for the current run.

Keys come from configuration (PRIVATE_KEY first, then PRIVATE_KEY_USER1,
PRIVATE_KEY_USER2, ...).  Each becomes an eth-account LocalAccount; the
registry never persists or prints key material.
"""

from __future__ import annotations

import binascii
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Sequence

from eth_account import Account as EthAccount
from eth_account.signers.local import LocalAccount

from ..chain.rpc import READ_ERRORS
from ..errors import ChainReadFailed, ConfigurationError, NoAccountsConfigured

if TYPE_CHECKING:
    from ..chain.backend import ChainBackend
    from ..config import Settings


class Role(str, Enum):
    OWNER = "owner"
    SECONDARY = "secondary"


@dataclass(frozen=True)
class Account:
    """
    A usable signing identity.

    Attributes:
        address: 0x-prefixed checksummed address
        role: OWNER for the primary signer, SECONDARY otherwise
        index: 0 for the owner, n for the n-th secondary signer
        signer: eth-account LocalAccount used to sign transactions
    """
    address: str
    role: Role
    index: int
    signer: LocalAccount

    @property
    def label(self) -> str:
        return "Owner" if self.role is Role.OWNER else f"User{self.index}"

    def __repr__(self) -> str:
        return f"Account({self.label}, {self.address})"


def normalize_private_key(private_key: str) -> str:
    key = private_key.strip()
    if not key.startswith("0x"):
        key = "0x" + key
    return key


def account_from_key(private_key: str, role: Role, index: int, source: str = "key") -> Account:
    try:
        local = EthAccount.from_key(normalize_private_key(private_key))
    except (ValueError, binascii.Error) as exc:
        # Never echo the key itself.
        raise ConfigurationError(f"Invalid private key in {source}: {exc.__class__.__name__}") from exc
    return Account(address=local.address, role=role, index=index, signer=local)


class AccountRegistry:
    """
    Ordered accounts plus balance lookups.

    Args:
        accounts: Accounts in precedence order (owner first)
        backend: Chain used for balance reads
    """

    def __init__(self, accounts: Sequence[Account], backend: "ChainBackend") -> None:
        self._accounts = list(accounts)
        self.backend = backend

    @classmethod
    def from_keys(cls, keys: Sequence[tuple[str, int, str]], backend: "ChainBackend") -> "AccountRegistry":
        """Build from (env variable, account index, private key) triples, primary first."""
        accounts = []
        for position, (source, index, key) in enumerate(keys):
            role = Role.OWNER if position == 0 else Role.SECONDARY
            accounts.append(account_from_key(key, role, index, source=source))
        return cls(accounts, backend)

    @classmethod
    def from_settings(cls, settings: "Settings", backend: "ChainBackend") -> "AccountRegistry":
        return cls.from_keys(settings.signing_keys, backend)

    def list_accounts(self) -> list[Account]:
        """
        All configured accounts, owner first.

        Raises:
            NoAccountsConfigured: If no key was configured
        """
        if not self._accounts:
            raise NoAccountsConfigured()
        return list(self._accounts)

    @property
    def primary(self) -> Account:
        return self.list_accounts()[0]

    @property
    def secondaries(self) -> list[Account]:
        return self.list_accounts()[1:]

    def require(self, count: int, purpose: str) -> list[Account]:
        """First ``count`` accounts, or ConfigurationError naming what is missing."""
        accounts = self.list_accounts()
        if len(accounts) < count:
            raise ConfigurationError(
                f"{purpose} needs {count} accounts but only {len(accounts)} configured. "
                f"Add PRIVATE_KEY_USER1..PRIVATE_KEY_USER{count - 1} to .env."
            )
        return accounts[:count]

    def balance_of(self, account: Account) -> int:
        """
        Native balance in wei.

        Raises:
            ChainReadFailed: If the node cannot be queried
        """
        try:
            return self.backend.get_balance(account.address)
        except READ_ERRORS as exc:
            raise ChainReadFailed(f"the balance of {account.label} ({account.address})", exc) from exc
