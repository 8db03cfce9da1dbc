__all__ = [
    # Accounts
    "Account",
    "AccountRegistry",
    "Role",
    # Configuration
    "Settings",
    "load_settings",
    # Transactions
    "TransactionExecutor",
    "TransactionOutcome",
    "TxStatus",
    # Deployment records
    "DeploymentRecord",
    "DeploymentRecorder",
    # Funding
    "FundingAction",
    "FundingDecision",
    "FundingStateMachine",
    # Logs and events
    "LogScanner",
    "plan_chunks",
    "DecodedEvent",
    "Transfer",
    "Minted",
    "Burned",
    "Unknown",
    "EventDecoder",
    "EventDispatcher",
    # Reconciliation
    "BalanceTally",
    "reconcile",
    # Errors
    "TokenwrightError",
    "ChainReadFailed",
    "RetrievalFailed",
]

from .chain.tx import TransactionExecutor, TransactionOutcome, TxStatus
from .config import Settings, load_settings
from .engine.events import (
    Burned,
    DecodedEvent,
    EventDecoder,
    EventDispatcher,
    Minted,
    Transfer,
    Unknown,
)
from .engine.funding import FundingAction, FundingDecision, FundingStateMachine
from .engine.reconcile import BalanceTally, reconcile
from .engine.scanner import LogScanner, plan_chunks
from .errors import ChainReadFailed, RetrievalFailed, TokenwrightError
from .records.deployment import DeploymentRecord, DeploymentRecorder
from .wallet.registry import Account, AccountRegistry, Role
