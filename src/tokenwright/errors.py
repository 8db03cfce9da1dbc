"""
Error taxonomy for tokenwright.

Every error carries an ``exit_code`` so the CLI can map a failure to a
process status without inspecting the message.
"""

from __future__ import annotations

from typing import Optional


class TokenwrightError(RuntimeError):
    exit_code: int = 1


class ConfigurationError(TokenwrightError):
    exit_code = 2


class NoAccountsConfigured(ConfigurationError):
    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(
            message
            or "No signing accounts configured. Set PRIVATE_KEY in .env "
            "(and optionally PRIVATE_KEY_USER1, PRIVATE_KEY_USER2, ...)."
        )


class DeploymentNotFound(ConfigurationError):
    def __init__(self, network: str, path: object) -> None:
        super().__init__(
            f"No deployment record for network '{network}' ({path}). "
            f"Run 'tokenwright --network {network} deploy' first."
        )
        self.network = network


class DeploymentRecordInvalid(ConfigurationError):
    def __init__(self, network: str, errors: list[str]) -> None:
        detail = "; ".join(errors) if errors else "unreadable"
        super().__init__(f"Deployment record for network '{network}' is invalid: {detail}")
        self.network = network
        self.errors = errors


class ArtifactNotFound(ConfigurationError):
    pass


class SubmissionFailed(TokenwrightError):
    """The node rejected a state-changing call before executing it."""

    exit_code = 3

    def __init__(self, message: str, signer: Optional[str] = None) -> None:
        super().__init__(message)
        self.signer = signer


class ConfirmationTimeout(SubmissionFailed):
    """A transaction hash was assigned but its receipt could not be obtained."""

    def __init__(self, tx_hash: str, reason: str, signer: Optional[str] = None) -> None:
        super().__init__(
            f"Transaction {tx_hash} was sent but not confirmed: {reason}. "
            "It may still be mined; check it on the node before resubmitting.",
            signer=signer,
        )
        self.tx_hash = tx_hash


class TransactionReverted(TokenwrightError):
    exit_code = 4

    def __init__(self, label: str, tx_hash: str, block_number: int) -> None:
        super().__init__(f"{label} reverted (tx {tx_hash}, block {block_number})")
        self.tx_hash = tx_hash
        self.block_number = block_number


class InsufficientFunderBalance(TokenwrightError):
    exit_code = 5

    def __init__(self, address: str, balance: int, required: int) -> None:
        super().__init__(
            f"Funding account {address} holds {balance} wei, "
            f"below the required {required} wei. Top it up before funding."
        )
        self.address = address
        self.balance = balance
        self.required = required


class ChainReadFailed(TokenwrightError):
    """A read-only query (balance, block number, eth_call) failed."""

    exit_code = 6

    def __init__(self, what: str, cause: BaseException) -> None:
        super().__init__(
            f"Could not read {what}: {cause}. "
            "Check the network's RPC URL and that the node is reachable."
        )
        self.what = what


class RetrievalFailed(TokenwrightError):
    exit_code = 6

    def __init__(self, address: str, from_block: int, to_block: int, cause: BaseException) -> None:
        super().__init__(
            f"Log retrieval for {address} failed in blocks {from_block}-{to_block}: {cause}"
        )
        self.address = address
        self.from_block = from_block
        self.to_block = to_block


class MalformedEvent(TokenwrightError):
    exit_code = 7

    def __init__(self, event_name: str, tx_hash: str, log_index: int, reason: str) -> None:
        super().__init__(
            f"Malformed {event_name} log (tx {tx_hash}, index {log_index}): {reason}"
        )
        self.event_name = event_name
        self.tx_hash = tx_hash
        self.log_index = log_index
