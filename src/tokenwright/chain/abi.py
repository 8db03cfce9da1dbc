"""
ABI helpers and contract artifact loading.

Artifacts come from the contracts build output: Hardhat
(``artifacts/contracts/<Name>.sol/<Name>.json``) or Foundry
(``out/<Name>.sol/<Name>.json``).  Only deployment needs the artifact; calls
and event decoding use the embedded :data:`MY_TOKEN_ABI`.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from eth_abi import decode, encode

from ..errors import ArtifactNotFound
from ..utils import keccak256

# MyToken: ERC-20 with owner-only mint, holder burn and explicit
# mint/burn events alongside the standard Transfer.
MY_TOKEN_ABI: list[dict[str, Any]] = [
    {"type": "constructor", "inputs": [], "stateMutability": "nonpayable"},
    {
        "type": "function",
        "name": "name",
        "inputs": [],
        "outputs": [{"name": "", "type": "string"}],
        "stateMutability": "view",
    },
    {
        "type": "function",
        "name": "symbol",
        "inputs": [],
        "outputs": [{"name": "", "type": "string"}],
        "stateMutability": "view",
    },
    {
        "type": "function",
        "name": "decimals",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint8"}],
        "stateMutability": "view",
    },
    {
        "type": "function",
        "name": "owner",
        "inputs": [],
        "outputs": [{"name": "", "type": "address"}],
        "stateMutability": "view",
    },
    {
        "type": "function",
        "name": "totalSupply",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
    },
    {
        "type": "function",
        "name": "balanceOf",
        "inputs": [{"name": "account", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
    },
    {
        "type": "function",
        "name": "mint",
        "inputs": [
            {"name": "to", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "outputs": [],
        "stateMutability": "nonpayable",
    },
    {
        "type": "function",
        "name": "transfer",
        "inputs": [
            {"name": "to", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
    },
    {
        "type": "function",
        "name": "burn",
        "inputs": [{"name": "amount", "type": "uint256"}],
        "outputs": [],
        "stateMutability": "nonpayable",
    },
    {
        "type": "event",
        "name": "Transfer",
        "anonymous": False,
        "inputs": [
            {"name": "from", "type": "address", "indexed": True},
            {"name": "to", "type": "address", "indexed": True},
            {"name": "value", "type": "uint256", "indexed": False},
        ],
    },
    {
        "type": "event",
        "name": "TokenMinted",
        "anonymous": False,
        "inputs": [
            {"name": "to", "type": "address", "indexed": True},
            {"name": "amount", "type": "uint256", "indexed": False},
            {"name": "timestamp", "type": "uint256", "indexed": False},
        ],
    },
    {
        "type": "event",
        "name": "TokenBurned",
        "anonymous": False,
        "inputs": [
            {"name": "from", "type": "address", "indexed": True},
            {"name": "amount", "type": "uint256", "indexed": False},
            {"name": "timestamp", "type": "uint256", "indexed": False},
        ],
    },
]


@dataclass(frozen=True)
class ContractArtifact:
    name: str
    abi: list[dict[str, Any]]
    bytecode: str  # 0x-prefixed init code
    path: Optional[Path] = None


def _find_entry(abi: list, entry_type: str, name: Optional[str] = None) -> dict[str, Any]:
    for entry in abi:
        if entry.get("type") == entry_type and (name is None or entry.get("name") == name):
            return entry
    label = f"{entry_type} {name}" if name else entry_type
    raise ValueError(f"{label} not found in ABI")


def signature_of(entry: dict[str, Any]) -> str:
    input_types = [inp["type"] for inp in entry.get("inputs", [])]
    return f"{entry['name']}({','.join(input_types)})"


def function_selector(signature: str) -> bytes:
    return keccak256(signature.encode("utf-8"))[:4]


def event_topic(signature: str) -> str:
    return "0x" + keccak256(signature.encode("utf-8")).hex()


def encode_call(abi: list, function_name: str, args: list) -> str:
    """
    ABI-encode a function call.

    Args:
        abi: Contract ABI
        function_name: Function name to call
        args: Function arguments

    Returns:
        0x-prefixed hex encoded calldata
    """
    func = _find_entry(abi, "function", function_name)
    input_types = [inp["type"] for inp in func.get("inputs", [])]
    selector = function_selector(signature_of(func))
    encoded_args = encode(input_types, args) if args else b""
    return "0x" + selector.hex() + encoded_args.hex()


def decode_result(abi: list, function_name: str, data: str) -> Any:
    """
    ABI-decode a function call result.

    Returns:
        Decoded result (single value or tuple), None for empty output
    """
    func = _find_entry(abi, "function", function_name)
    output_types = [out["type"] for out in func.get("outputs", [])]
    if not output_types:
        return None

    raw = bytes.fromhex(data[2:] if data.startswith("0x") else data)
    decoded = decode(output_types, raw)

    if len(decoded) == 1:
        return decoded[0]
    return decoded


def deployment_data(artifact: ContractArtifact, constructor_args: Optional[list] = None) -> str:
    """Init code with ABI-encoded constructor arguments appended."""
    bytecode = artifact.bytecode[2:] if artifact.bytecode.startswith("0x") else artifact.bytecode
    if constructor_args:
        try:
            constructor = _find_entry(artifact.abi, "constructor")
        except ValueError:
            raise ValueError(
                f"Constructor not found in ABI for {artifact.name}, "
                f"but constructor_args were provided."
            ) from None
        input_types = [inp["type"] for inp in constructor.get("inputs", [])]
        bytecode += encode(input_types, constructor_args).hex()
    return "0x" + bytecode


def _artifact_candidates(root: Path, contract_name: str) -> list[Path]:
    filename = Path(f"{contract_name}.sol") / f"{contract_name}.json"
    return [
        root / filename,
        root / "contracts" / filename,
        root / "artifacts" / "contracts" / filename,
        root / "contracts" / "artifacts" / "contracts" / filename,
        root / "out" / filename,
        root / "contracts" / "out" / filename,
    ]


def find_artifact(contract_name: str, artifacts_dir: Optional[Path] = None) -> Path:
    """
    Locate a contract artifact.

    With ``artifacts_dir`` only that directory is searched; otherwise the
    current directory and its parents are.
    """
    roots = [artifacts_dir] if artifacts_dir else [Path.cwd(), *Path.cwd().parents]
    for root in roots:
        for candidate in _artifact_candidates(root, contract_name):
            if candidate.is_file():
                return candidate
    where = artifacts_dir or Path.cwd()
    raise ArtifactNotFound(
        f"Artifact for {contract_name} not found under {where}. "
        f"Compile the contracts (npx hardhat compile / forge build) or set ARTIFACTS_DIR."
    )


def load_artifact(contract_name: str, artifacts_dir: Optional[Path] = None) -> ContractArtifact:
    """
    Load ABI and deployment bytecode for a contract.

    Args:
        contract_name: Contract name (e.g., "MyToken")
        artifacts_dir: Directory holding the build output

    Returns:
        ContractArtifact with 0x-prefixed bytecode

    Raises:
        ArtifactNotFound: If no artifact file exists
        ValueError: If the artifact carries no bytecode
    """
    path = find_artifact(contract_name, artifacts_dir)
    with path.open("r", encoding="utf-8") as f:
        artifact = json.load(f)

    bytecode = artifact.get("bytecode", "")
    if isinstance(bytecode, dict):  # Foundry
        bytecode = bytecode.get("object", "")
    if not bytecode or bytecode == "0x":
        raise ValueError(f"No bytecode in artifact for {contract_name} ({path})")
    if not bytecode.startswith("0x"):
        bytecode = "0x" + bytecode

    return ContractArtifact(
        name=contract_name,
        abi=artifact.get("abi", []),
        bytecode=bytecode,
        path=path,
    )
