"""
CLI integration tests using Click's test runner.

Every command runs against the in-memory FakeChain passed through
``obj={"backend": ...}``, so no node or network access is needed.
"""

from __future__ import annotations

import json
import os
from dataclasses import replace
from pathlib import Path
from unittest.mock import patch

import httpx
import pytest
from click.testing import CliRunner

from tokenwright.chain.rpc import RpcError
from tokenwright.cli import cli
from tokenwright.config import Settings
from tokenwright.utils import to_wei

from conftest import FakeChain


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


def invoke(runner: CliRunner, chain: FakeChain, settings: Settings, *args: str):
    return runner.invoke(cli, list(args), obj={"backend": chain, "settings": settings})


@pytest.fixture()
def deployed(runner: CliRunner, funded_chain: FakeChain, settings: Settings, artifacts_dir: Path) -> FakeChain:
    result = invoke(runner, funded_chain, settings, "deploy", "--artifacts-dir", str(artifacts_dir))
    assert result.exit_code == 0, result.output
    return funded_chain


class TestVersionAndHelp:
    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.3.0" in result.output

    def test_help_lists_commands(self, runner: CliRunner, tmp_path: Path) -> None:
        env_file = tmp_path / "empty.env"
        env_file.write_text("", encoding="utf-8")
        with patch.dict(os.environ, {"DEPLOYMENTS_DIR": str(tmp_path)}):
            result = runner.invoke(cli, ["--env-file", str(env_file)])
        assert result.exit_code == 0
        for command in ("accounts", "deploy", "fund", "interact", "scan"):
            assert command in result.output

    def test_missing_env_file_is_rejected(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(cli, ["--env-file", str(tmp_path / "missing.env"), "accounts"])
        assert result.exit_code == 2
        assert "missing.env" in result.output

    def test_unknown_network_is_rejected(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--network", "mainnet", "accounts"])
        assert result.exit_code == 2


class TestAccounts:
    def test_lists_accounts_with_warnings(
        self, runner: CliRunner, funded_chain: FakeChain, settings: Settings
    ) -> None:
        result = invoke(runner, funded_chain, settings, "accounts")

        assert result.exit_code == 0, result.output
        assert "[Owner]" in result.output
        assert "[User2]" in result.output
        assert "balance is 0" in result.output
        assert "Multi-account mode" in result.output
        assert "Faucets" not in result.output

    def test_low_balance_warning(self, runner: CliRunner, funded_chain: FakeChain, settings: Settings) -> None:
        result = invoke(runner, funded_chain, replace(settings, low_balance_warning=to_wei("100")), "accounts")
        assert "balance is low" in result.output

    def test_single_account_advice(self, runner: CliRunner, funded_chain: FakeChain, settings: Settings) -> None:
        result = invoke(runner, funded_chain, replace(settings, secondary_keys=()), "accounts")
        assert result.exit_code == 0
        assert "Single-account mode" in result.output

    def test_unreachable_node(self, runner: CliRunner, chain: FakeChain, settings: Settings) -> None:
        chain.fail_reads = httpx.ConnectError("connection refused")
        result = invoke(runner, chain, settings, "accounts")

        assert result.exit_code == 6
        assert isinstance(result.exception, SystemExit)
        assert "balance of Owner" in result.output
        assert "connection refused" in result.output

    def test_no_keys(self, runner: CliRunner, chain: FakeChain, settings: Settings) -> None:
        result = invoke(runner, chain, replace(settings, primary_key=None, secondary_keys=()), "accounts")
        assert result.exit_code == 2
        assert "PRIVATE_KEY" in result.output


class TestDeploy:
    def test_writes_record(self, deployed: FakeChain, settings: Settings) -> None:
        path = settings.deployments_dir / "localhost.json"
        payload = json.loads(path.read_text(encoding="utf-8"))

        assert payload["network"] == "localhost"
        assert payload["contractInfo"]["symbol"] == "MTK"
        assert payload["contractAddress"].lower() in deployed.tokens

    def test_reports_contract(
        self, runner: CliRunner, funded_chain: FakeChain, settings: Settings, artifacts_dir: Path
    ) -> None:
        result = invoke(runner, funded_chain, settings, "deploy", "--artifacts-dir", str(artifacts_dir))

        assert result.exit_code == 0, result.output
        assert "MyToken deployed to 0x" in result.output
        assert "hardhat verify" not in result.output

    def test_missing_artifact(self, runner: CliRunner, funded_chain: FakeChain, settings: Settings, tmp_path: Path) -> None:
        empty = tmp_path / "empty"
        empty.mkdir()
        result = invoke(runner, funded_chain, settings, "deploy", "--artifacts-dir", str(empty))
        assert result.exit_code == 2
        assert "not found" in result.output

    def test_unreachable_node(
        self, runner: CliRunner, funded_chain: FakeChain, settings: Settings, artifacts_dir: Path
    ) -> None:
        funded_chain.fail_reads = httpx.ReadTimeout("timed out")
        result = invoke(runner, funded_chain, settings, "deploy", "--artifacts-dir", str(artifacts_dir))
        assert result.exit_code == 6
        assert "balance of Owner" in result.output
        assert funded_chain.sent == []

    def test_rejected_deployment(
        self, runner: CliRunner, funded_chain: FakeChain, settings: Settings, artifacts_dir: Path
    ) -> None:
        funded_chain.reject_next = RpcError(-32000, "insufficient funds")
        result = invoke(runner, funded_chain, settings, "deploy", "--artifacts-dir", str(artifacts_dir))
        assert result.exit_code == 3
        assert not (settings.deployments_dir / "localhost.json").exists()


class TestFund:
    def test_funds_then_skips(self, runner: CliRunner, funded_chain: FakeChain, settings: Settings) -> None:
        first = invoke(runner, funded_chain, settings, "fund")
        assert first.exit_code == 0, first.output
        assert first.output.count("sent 0.1 ETH") == 2

        second = invoke(runner, funded_chain, settings, "fund")
        assert second.exit_code == 0
        assert second.output.count("skipped") == 2
        assert "0 transfer(s)" in second.output

    def test_unreachable_node(self, runner: CliRunner, funded_chain: FakeChain, settings: Settings) -> None:
        funded_chain.fail_reads = RpcError(-32603, "internal error")
        result = invoke(runner, funded_chain, settings, "fund")
        assert result.exit_code == 6
        assert "internal error" in result.output
        assert funded_chain.sent == []

    def test_poor_funder(self, runner: CliRunner, chain: FakeChain, settings: Settings) -> None:
        result = invoke(runner, chain, settings, "fund")
        assert result.exit_code == 5
        assert chain.sent == []

    def test_nothing_to_fund(self, runner: CliRunner, funded_chain: FakeChain, settings: Settings) -> None:
        result = invoke(runner, funded_chain, replace(settings, secondary_keys=()), "fund")
        assert result.exit_code == 0
        assert "nothing to fund" in result.output


class TestInteract:
    def test_requires_deployment(self, runner: CliRunner, funded_chain: FakeChain, settings: Settings) -> None:
        result = invoke(runner, funded_chain, settings, "interact")
        assert result.exit_code == 2
        assert "tokenwright --network localhost deploy" in result.output

    def test_requires_three_accounts(self, runner: CliRunner, deployed: FakeChain, settings: Settings) -> None:
        result = invoke(runner, deployed, replace(settings, secondary_keys=settings.secondary_keys[:1]), "interact")
        assert result.exit_code == 2
        assert "PRIVATE_KEY_USER2" in result.output

    def test_runs_script_and_reconciles(self, runner: CliRunner, deployed: FakeChain, settings: Settings) -> None:
        result = invoke(runner, deployed, settings, "interact")

        assert result.exit_code == 0, result.output
        assert "User1 transfers 30 MTK to User2" in result.output
        assert "70 MTK" in result.output
        assert "180 MTK" in result.output
        assert "250 MTK" in result.output
        assert "Net supply" in result.output

    def test_skip_scan(self, runner: CliRunner, deployed: FakeChain, settings: Settings) -> None:
        result = invoke(runner, deployed, settings, "interact", "--skip-scan")
        assert result.exit_code == 0
        assert "Net supply" not in result.output
        assert deployed.log_queries == []


class TestScan:
    def test_scan_after_interaction(self, runner: CliRunner, deployed: FakeChain, settings: Settings) -> None:
        invoke(runner, deployed, settings, "interact", "--skip-scan")

        result = invoke(runner, deployed, replace(settings, chunk_size=2), "scan")

        assert result.exit_code == 0, result.output
        assert "Minted" in result.output
        assert "User2" in result.output
        assert "+180 MTK" in result.output
        assert len(deployed.log_queries) > 1

    def test_scan_retrieval_failure(self, runner: CliRunner, deployed: FakeChain, settings: Settings) -> None:
        deployed.fail_log_query = 0
        result = invoke(runner, deployed, settings, "scan")
        assert result.exit_code == 6

    def test_scan_head_unreadable(self, runner: CliRunner, deployed: FakeChain, settings: Settings) -> None:
        deployed.fail_reads = httpx.ConnectError("connection refused")
        result = invoke(runner, deployed, settings, "scan")
        assert result.exit_code == 6
        assert "latest block number" in result.output
        assert deployed.log_queries == []

    def test_scan_without_record(self, runner: CliRunner, chain: FakeChain, settings: Settings) -> None:
        result = invoke(runner, chain, settings, "scan")
        assert result.exit_code == 2
