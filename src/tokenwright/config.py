"""
Configuration for tokenwright.

Values come from the process environment, optionally seeded from a ``.env``
file (python-dotenv).  Exported variables win over the file, so a CI job can
override anything the checked-in ``.env`` says.

Everything is collected into one frozen :class:`Settings` object that the
CLI builds once and hands to each component.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .errors import ConfigurationError
from .utils import to_wei

DEFAULT_NETWORK = "localhost"
DEFAULT_ENV_FILE = Path(".env")

_SECONDARY_KEY_RE = re.compile(r"^PRIVATE_KEY_USER(\d+)$")


@dataclass(frozen=True)
class NetworkConfig:
    name: str
    chain_id: int
    rpc_url: str
    gas_price: Optional[int] = None  # wei; None = ask the node
    explorer_url: Optional[str] = None
    faucets: tuple[str, ...] = ()

    @property
    def is_local(self) -> bool:
        return self.name in ("localhost", "hardhat")


# ---- Built-in networks ----
NETWORKS: dict[str, NetworkConfig] = {
    "localhost": NetworkConfig(
        name="localhost",
        chain_id=31337,
        rpc_url="http://127.0.0.1:8545",
    ),
    "sepolia": NetworkConfig(
        name="sepolia",
        chain_id=11155111,
        rpc_url="https://eth-sepolia.g.alchemy.com/v2/demo",
        explorer_url="https://sepolia.etherscan.io",
        faucets=(
            "https://sepoliafaucet.com",
            "https://www.infura.io/faucet/sepolia",
            "https://faucets.chain.link/sepolia",
        ),
    ),
    "base_sepolia": NetworkConfig(
        name="base_sepolia",
        chain_id=84532,
        rpc_url="https://sepolia.base.org",
        gas_price=1_000_000_000,  # 1 gwei
        explorer_url="https://sepolia.basescan.org",
        faucets=(
            "https://www.coinbase.com/faucets/base-ethereum-sepolia-faucet",
            "https://bridge.base.org/",
        ),
    ),
}


@dataclass(frozen=True)
class Settings:
    network: NetworkConfig
    primary_key: Optional[str] = None
    secondary_keys: tuple[tuple[int, str], ...] = ()  # (n, key) from PRIVATE_KEY_USER<n>
    chunk_size: int = 10_000
    chunk_delay: float = 0.2
    log_concurrency: int = 1
    confirmations: int = 0
    fund_amount: int = to_wei("0.1")
    min_balance: int = to_wei("0.05")
    min_funder_balance: int = to_wei("0.5")
    low_balance_warning: int = to_wei("0.01")
    deployments_dir: Path = field(default_factory=lambda: Path("deployments"))
    artifacts_dir: Optional[Path] = None
    receipt_timeout: float = 120.0
    poll_interval: float = 2.0

    @property
    def signing_keys(self) -> list[tuple[str, int, str]]:
        """(env variable, account index, key) triples in precedence order."""
        keys: list[tuple[str, int, str]] = []
        if self.primary_key:
            keys.append(("PRIVATE_KEY", 0, self.primary_key))
        for n, key in self.secondary_keys:
            keys.append((f"PRIVATE_KEY_USER{n}", n, key))
        return keys


def resolve_network(name: str, env: Optional[dict[str, str]] = None) -> NetworkConfig:
    env = os.environ if env is None else env
    base = NETWORKS.get(name)
    if base is None:
        known = ", ".join(sorted(NETWORKS))
        raise ConfigurationError(f"Unknown network '{name}'. Known networks: {known}")
    rpc_url = env.get(f"{name.upper()}_RPC_URL") or base.rpc_url
    return NetworkConfig(
        name=base.name,
        chain_id=base.chain_id,
        rpc_url=rpc_url,
        gas_price=base.gas_price,
        explorer_url=base.explorer_url,
        faucets=base.faucets,
    )


def secondary_keys_from_env(env: dict[str, str]) -> tuple[tuple[int, str], ...]:
    """Collect PRIVATE_KEY_USER<n> values ordered by n."""
    numbered: list[tuple[int, str]] = []
    for key, value in env.items():
        match = _SECONDARY_KEY_RE.match(key)
        if match and value.strip():
            numbered.append((int(match.group(1)), value.strip()))
    return tuple(sorted(numbered))


def load_settings(
    network: str = DEFAULT_NETWORK,
    env_file: Optional[Path] = None,
) -> Settings:
    """
    Build Settings for a network from .env + environment.

    Args:
        network: Network name (localhost, sepolia, base_sepolia)
        env_file: .env path; must exist when given (default: ./.env if present)

    Returns:
        Frozen Settings

    Raises:
        ConfigurationError: On unknown network, unparseable values or a
            missing explicit env file
    """
    if env_file is not None:
        if not env_file.is_file():
            raise ConfigurationError(f"Env file not found: {env_file}")
        load_dotenv(env_file, override=False)
    elif DEFAULT_ENV_FILE.is_file():
        load_dotenv(DEFAULT_ENV_FILE, override=False)

    env = dict(os.environ)
    primary = (env.get("PRIVATE_KEY") or "").strip() or None
    artifacts = env.get("ARTIFACTS_DIR")

    return Settings(
        network=resolve_network(network, env),
        primary_key=primary,
        secondary_keys=secondary_keys_from_env(env),
        chunk_size=_int_env(env, "LOG_CHUNK_SIZE", 10_000, minimum=1),
        chunk_delay=_float_env(env, "LOG_CHUNK_DELAY", 0.2),
        log_concurrency=_int_env(env, "LOG_CONCURRENCY", 1, minimum=1),
        confirmations=_int_env(env, "CONFIRMATIONS", 0, minimum=0),
        fund_amount=_ether_env(env, "FUND_AMOUNT", "0.1"),
        min_balance=_ether_env(env, "MIN_BALANCE", "0.05"),
        min_funder_balance=_ether_env(env, "MIN_FUNDER_BALANCE", "0.5"),
        low_balance_warning=_ether_env(env, "LOW_BALANCE_WARNING", "0.01"),
        deployments_dir=Path(env.get("DEPLOYMENTS_DIR", "deployments")),
        artifacts_dir=Path(artifacts) if artifacts else None,
        receipt_timeout=_float_env(env, "RECEIPT_TIMEOUT", 120.0),
        poll_interval=_float_env(env, "RECEIPT_POLL_INTERVAL", 2.0),
    )


def _int_env(env: dict[str, str], name: str, default: int, minimum: int = 0) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc
    if value < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}, got {value}")
    return value


def _float_env(env: dict[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from exc
    if value < 0:
        raise ConfigurationError(f"{name} must not be negative, got {value}")
    return value


def _ether_env(env: dict[str, str], name: str, default: str) -> int:
    raw = env.get(name)
    try:
        return to_wei(raw.strip() if raw and raw.strip() else default)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an ether amount, got {raw!r}") from exc
