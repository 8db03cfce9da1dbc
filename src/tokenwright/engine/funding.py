"""
Funding State Machine - keep test accounts above a gas floor.

Each cycle: check the funder can cover the cycle, then for every target
either skip it (balance >= min_balance) or send it ``fund_amount`` from the
primary account.  Re-running a cycle that already succeeded sends nothing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence

from ..chain.tx import TransactionExecutor, TransactionOutcome, native_transfer
from ..errors import InsufficientFunderBalance
from ..utils import format_units
from ..wallet.registry import Account, AccountRegistry

LOGGER = logging.getLogger("tokenwright.funding")


class FundingAction(str, Enum):
    SKIP = "skip"
    TOP_UP = "top_up"


@dataclass(frozen=True)
class FundingDecision:
    account: Account
    current_balance: int
    action: FundingAction
    amount: int = 0


@dataclass(frozen=True)
class FundingResult:
    decision: FundingDecision
    outcome: Optional[TransactionOutcome] = None

    @property
    def funded(self) -> bool:
        return self.outcome is not None and self.outcome.confirmed


@dataclass
class FundingReport:
    funder: Account
    funder_balance: int
    results: list[FundingResult] = field(default_factory=list)

    @property
    def transfers(self) -> int:
        return sum(1 for result in self.results if result.outcome is not None)

    @property
    def reverted(self) -> list[FundingResult]:
        return [r for r in self.results if r.outcome is not None and not r.outcome.confirmed]


def decide(account: Account, balance: int, min_balance: int, fund_amount: int) -> FundingDecision:
    """Skip at or above ``min_balance``; top up below it."""
    if balance >= min_balance:
        return FundingDecision(account, balance, FundingAction.SKIP)
    return FundingDecision(account, balance, FundingAction.TOP_UP, fund_amount)


class FundingStateMachine:
    """
    Args:
        registry: Accounts; the primary one pays
        executor: Submits the top-up transfers
        fund_amount: Wei sent to an account that is below the floor
        min_balance: Floor each target must reach
        min_funder_balance: Funder balance required to start a cycle
    """

    def __init__(
        self,
        registry: AccountRegistry,
        executor: TransactionExecutor,
        fund_amount: int,
        min_balance: int,
        min_funder_balance: int,
    ) -> None:
        self.registry = registry
        self.executor = executor
        self.fund_amount = fund_amount
        self.min_balance = min_balance
        self.min_funder_balance = min_funder_balance

    def decide(self, account: Account) -> FundingDecision:
        balance = self.registry.balance_of(account)
        return decide(account, balance, self.min_balance, self.fund_amount)

    def run(self, targets: Optional[Sequence[Account]] = None) -> FundingReport:
        """
        Run one funding cycle.

        Args:
            targets: Accounts to check (default: every secondary account)

        Returns:
            FundingReport with one result per target

        Raises:
            InsufficientFunderBalance: Funder below min_funder_balance;
                raised before any transfer
            SubmissionFailed: A top-up was rejected; later targets are not
                attempted
            ChainReadFailed: A balance could not be read
        """
        funder = self.registry.primary
        if targets is None:
            targets = self.registry.secondaries

        funder_balance = self.registry.balance_of(funder)
        if funder_balance < self.min_funder_balance:
            raise InsufficientFunderBalance(funder.address, funder_balance, self.min_funder_balance)

        report = FundingReport(funder=funder, funder_balance=funder_balance)
        for account in targets:
            decision = self.decide(account)
            if decision.action is FundingAction.SKIP:
                LOGGER.info(
                    "%s %s holds %s ETH, skipping",
                    account.label, account.address, format_units(decision.current_balance),
                )
                report.results.append(FundingResult(decision))
                continue

            LOGGER.info(
                "%s %s holds %s ETH, sending %s ETH",
                account.label, account.address,
                format_units(decision.current_balance), format_units(decision.amount),
            )
            descriptor = native_transfer(
                account.address,
                decision.amount,
                label=f"top-up of {format_units(decision.amount)} ETH to {account.label}",
            )
            outcome = self.executor.submit(descriptor, funder)
            report.results.append(FundingResult(decision, outcome))

        return report
