"""
MyToken contract handle.

Reads go straight through ``eth_call``; writes are returned as
:class:`CallDescriptor` objects for the executor to submit.
"""

from __future__ import annotations

from typing import Any, Optional

from .abi import MY_TOKEN_ABI, ContractArtifact, decode_result, deployment_data, encode_call
from .backend import ChainBackend
from .rpc import READ_ERRORS
from .types import CallDescriptor
from ..errors import ChainReadFailed
from ..utils import to_checksum_address

DEPLOY_GAS = 3_000_000
CALL_GAS = 200_000


class TokenContract:
    def __init__(
        self,
        backend: ChainBackend,
        address: str,
        abi: Optional[list[dict[str, Any]]] = None,
    ) -> None:
        self.backend = backend
        self.address = address
        self.abi = abi or MY_TOKEN_ABI

    def read(self, function_name: str, *args: Any) -> Any:
        calldata = encode_call(self.abi, function_name, list(args))
        try:
            result = self.backend.call(self.address, calldata)
        except READ_ERRORS as exc:
            raise ChainReadFailed(f"{function_name}() of {self.address}", exc) from exc
        if result is None or result == "0x":
            return None
        return decode_result(self.abi, function_name, result)

    def name(self) -> str:
        return str(self.read("name"))

    def symbol(self) -> str:
        return str(self.read("symbol"))

    def decimals(self) -> int:
        return int(self.read("decimals"))

    def owner(self) -> str:
        return to_checksum_address(str(self.read("owner")))

    def total_supply(self) -> int:
        return int(self.read("totalSupply") or 0)

    def balance_of(self, address: str) -> int:
        return int(self.read("balanceOf", address) or 0)

    def _write(self, function_name: str, args: list, label: str) -> CallDescriptor:
        return CallDescriptor(
            to=self.address,
            data=encode_call(self.abi, function_name, args),
            gas_limit=CALL_GAS,
            label=label,
        )

    def mint(self, to: str, amount: int, label: Optional[str] = None) -> CallDescriptor:
        return self._write("mint", [to, amount], label or f"mint {amount} to {to}")

    def transfer(self, to: str, amount: int, label: Optional[str] = None) -> CallDescriptor:
        return self._write("transfer", [to, amount], label or f"transfer {amount} to {to}")

    def burn(self, amount: int, label: Optional[str] = None) -> CallDescriptor:
        return self._write("burn", [amount], label or f"burn {amount}")


def deploy_descriptor(
    artifact: ContractArtifact,
    constructor_args: Optional[list] = None,
    gas_limit: int = DEPLOY_GAS,
) -> CallDescriptor:
    return CallDescriptor(
        to=None,
        data=deployment_data(artifact, constructor_args),
        gas_limit=gas_limit,
        label=f"deployment of {artifact.name}",
    )
