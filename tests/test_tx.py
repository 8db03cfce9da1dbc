"""Tests for the transaction executor."""

from __future__ import annotations

import threading

import httpx
import pytest

from tokenwright.chain.rpc import RpcError
from tokenwright.chain.tx import NATIVE_TRANSFER_GAS, TransactionExecutor, TxStatus, native_transfer
from tokenwright.errors import ConfirmationTimeout, SubmissionFailed, TransactionReverted
from tokenwright.utils import to_wei
from tokenwright.wallet.registry import AccountRegistry

from conftest import FakeChain


class TestSubmit:
    def test_confirmed_outcome(self, funded_chain: FakeChain, registry: AccountRegistry) -> None:
        user = registry.secondaries[0]
        outcome = TransactionExecutor(funded_chain).submit(
            native_transfer(user.address, 5, label="tip"), registry.primary
        )

        assert outcome.status is TxStatus.CONFIRMED
        assert outcome.confirmed
        assert outcome.label == "tip"
        assert outcome.block_number > outcome.submitted_block
        assert outcome.require_confirmed() is outcome

    def test_reverted_outcome_is_returned_not_raised(self, funded_chain: FakeChain, registry: AccountRegistry) -> None:
        funded_chain.revert_next = True
        outcome = TransactionExecutor(funded_chain).submit(
            native_transfer(registry.secondaries[0].address, 5), registry.primary
        )

        assert outcome.status is TxStatus.REVERTED
        with pytest.raises(TransactionReverted) as excinfo:
            outcome.require_confirmed()
        assert excinfo.value.tx_hash == outcome.transaction_hash

    @pytest.mark.parametrize(
        "error",
        [
            RpcError(-32000, "nonce too low"),
            httpx.ConnectError("connection refused"),
        ],
    )
    def test_rejection_becomes_submission_failed(
        self, funded_chain: FakeChain, registry: AccountRegistry, error: Exception
    ) -> None:
        funded_chain.reject_next = error
        owner = registry.primary

        with pytest.raises(SubmissionFailed) as excinfo:
            TransactionExecutor(funded_chain).submit(native_transfer(owner.address, 1), owner)

        assert excinfo.value.signer == owner.address
        assert owner.address in str(excinfo.value)
        assert excinfo.value.exit_code == 3

    def test_missing_receipt_becomes_confirmation_timeout(
        self, funded_chain: FakeChain, registry: AccountRegistry
    ) -> None:
        funded_chain.timeout_next = True
        with pytest.raises(ConfirmationTimeout) as excinfo:
            TransactionExecutor(funded_chain).submit(
                native_transfer(registry.secondaries[0].address, 1), registry.primary
            )
        assert excinfo.value.tx_hash.startswith("0x")
        assert isinstance(excinfo.value, SubmissionFailed)

    def test_native_transfer_descriptor(self) -> None:
        descriptor = native_transfer("0x" + "12" * 20, to_wei("0.1"))
        assert descriptor.gas_limit == NATIVE_TRANSFER_GAS
        assert descriptor.value == 10 ** 17
        assert not descriptor.is_deployment


class TestNonceSerialization:
    def test_sequential_submissions_use_consecutive_nonces(
        self, funded_chain: FakeChain, registry: AccountRegistry
    ) -> None:
        executor = TransactionExecutor(funded_chain)
        owner = registry.primary
        for _ in range(3):
            executor.submit(native_transfer(registry.secondaries[0].address, 1), owner)

        assert [nonce for _, nonce, _ in funded_chain.sent] == [0, 1, 2]

    def test_concurrent_submissions_from_one_signer_never_share_a_nonce(
        self, funded_chain: FakeChain, registry: AccountRegistry
    ) -> None:
        executor = TransactionExecutor(funded_chain)
        owner = registry.primary
        target = registry.secondaries[0].address
        outcomes = []

        def send() -> None:
            outcomes.append(executor.submit(native_transfer(target, 1), owner))

        threads = [threading.Thread(target=send) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        nonces = [nonce for sender, nonce, _ in funded_chain.sent if sender == owner.address]
        assert sorted(nonces) == list(range(8))
        assert all(outcome.confirmed for outcome in outcomes)
