"""
Wiring: Settings in, ready-to-use components out.

Commands never build clients themselves; they ask the click context for a
:class:`Runtime`.  A backend already placed in ``ctx.obj["backend"]`` is
used as-is instead of a JSON-RPC one.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import NoReturn, Optional

import click

from .chain.backend import ChainBackend, RpcChainBackend
from .chain.rpc import JsonRpcClient
from .chain.tx import TransactionExecutor
from .config import NetworkConfig, Settings
from .engine.scanner import LogScanner
from .errors import TokenwrightError
from .records.deployment import DeploymentRecorder
from .wallet.registry import AccountRegistry


@dataclass
class Runtime:
    settings: Settings
    backend: ChainBackend
    registry: AccountRegistry
    executor: TransactionExecutor
    recorder: DeploymentRecorder
    scanner: LogScanner
    client: Optional[JsonRpcClient] = None

    @property
    def network(self) -> NetworkConfig:
        return self.settings.network

    def close(self) -> None:
        if self.client is not None:
            self.client.close()


def build_runtime(settings: Settings, backend: Optional[ChainBackend] = None) -> Runtime:
    """
    Build every component for one command invocation.

    Args:
        settings: Loaded settings
        backend: Chain backend to use; None builds one from the network's RPC URL

    Raises:
        ConfigurationError: If a configured private key is invalid
    """
    client = None
    if backend is None:
        network = settings.network
        client = JsonRpcClient(network.rpc_url)
        backend = RpcChainBackend(
            client,
            chain_id=network.chain_id,
            gas_price=network.gas_price,
            receipt_timeout=settings.receipt_timeout,
            poll_interval=settings.poll_interval,
        )

    return Runtime(
        settings=settings,
        backend=backend,
        registry=AccountRegistry.from_settings(settings, backend),
        executor=TransactionExecutor(backend),
        recorder=DeploymentRecorder(settings.deployments_dir),
        scanner=LogScanner(
            backend,
            delay=settings.chunk_delay,
            concurrency=settings.log_concurrency,
        ),
        client=client,
    )


def fail(exc: TokenwrightError) -> NoReturn:
    """Report a fatal error and exit with its code."""
    click.secho(f"ERROR: {exc}", fg="red", err=True)
    sys.exit(exc.exit_code)


def runtime_from_context(ctx: click.Context) -> Runtime:
    """The invocation's Runtime, built on first use and closed with the context."""
    obj = ctx.ensure_object(dict)
    runtime = obj.get("runtime")
    if runtime is None:
        try:
            runtime = build_runtime(obj["settings"], backend=obj.get("backend"))
        except TokenwrightError as exc:
            fail(exc)
        obj["runtime"] = runtime
        ctx.find_root().call_on_close(runtime.close)
    return runtime
