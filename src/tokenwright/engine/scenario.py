"""
The fixed interaction script run by ``tokenwright interact``.

Owner mints 100 to User1 and 200 to User2, User1 sends 30 to User2, User2
burns 50.  Amounts are whole tokens, scaled by the contract's decimals.
The script stops at the first failed step: later steps depend on the
balances earlier ones create.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence

from ..chain.contract import TokenContract
from ..chain.tx import TransactionExecutor, TransactionOutcome
from ..chain.types import CallDescriptor
from ..wallet.registry import Account

LOGGER = logging.getLogger("tokenwright.scenario")

MINT_FIRST = 100
MINT_SECOND = 200
TRANSFER_AMOUNT = 30
BURN_AMOUNT = 50


@dataclass(frozen=True)
class ScenarioStep:
    signer: Account
    descriptor: CallDescriptor
    watch: tuple[Account, ...]


@dataclass(frozen=True)
class StepResult:
    step: ScenarioStep
    outcome: TransactionOutcome
    balances: dict[str, int]


@dataclass
class ScenarioResult:
    steps: list[StepResult] = field(default_factory=list)
    balances: dict[str, int] = field(default_factory=dict)
    total_supply: int = 0


def interaction_plan(
    token: TokenContract,
    owner: Account,
    first: Account,
    second: Account,
    unit: int,
    symbol: str = "",
) -> list[ScenarioStep]:
    sym = f" {symbol}" if symbol else ""
    return [
        ScenarioStep(
            owner,
            token.mint(first.address, MINT_FIRST * unit, label=f"mint {MINT_FIRST}{sym} to {first.label}"),
            (first,),
        ),
        ScenarioStep(
            owner,
            token.mint(second.address, MINT_SECOND * unit, label=f"mint {MINT_SECOND}{sym} to {second.label}"),
            (second,),
        ),
        ScenarioStep(
            first,
            token.transfer(
                second.address,
                TRANSFER_AMOUNT * unit,
                label=f"{first.label} transfers {TRANSFER_AMOUNT}{sym} to {second.label}",
            ),
            (first, second),
        ),
        ScenarioStep(
            second,
            token.burn(BURN_AMOUNT * unit, label=f"{second.label} burns {BURN_AMOUNT}{sym}"),
            (second,),
        ),
    ]


def run_interaction(
    token: TokenContract,
    executor: TransactionExecutor,
    accounts: Sequence[Account],
    on_step: Optional[Callable[[StepResult], None]] = None,
) -> ScenarioResult:
    """
    Run the interaction script against ``token``.

    Args:
        token: Deployed MyToken
        executor: Transaction executor
        accounts: Owner, User1, User2 (at least three)
        on_step: Called after each confirmed step

    Raises:
        ValueError: Fewer than three accounts
        SubmissionFailed: A step was rejected; later steps are not sent
        TransactionReverted: A step reverted; later steps are not sent
    """
    if len(accounts) < 3:
        raise ValueError("the interaction script needs an owner and two users")
    owner, first, second = accounts[0], accounts[1], accounts[2]

    unit = 10 ** token.decimals()
    plan = interaction_plan(token, owner, first, second, unit, symbol=token.symbol())

    result = ScenarioResult()
    for step in plan:
        outcome = executor.submit(step.descriptor, step.signer).require_confirmed()
        balances = {acct.label: token.balance_of(acct.address) for acct in step.watch}
        step_result = StepResult(step, outcome, balances)
        result.steps.append(step_result)
        if on_step is not None:
            on_step(step_result)

    result.balances = {acct.label: token.balance_of(acct.address) for acct in (first, second)}
    result.total_supply = token.total_supply()
    LOGGER.info("interaction finished: balances=%s supply=%d", result.balances, result.total_supply)
    return result
