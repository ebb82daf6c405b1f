"""Tests for the command line entry point and signer loading."""

from unittest.mock import MagicMock

import pytest
from click.testing import CliRunner
from solders.keypair import Keypair

from snake_sniper import cli as cli_module
from snake_sniper.config import AgentConfig, DEFAULT_WINNING_POSITIONS, WalletConfig
from snake_sniper.errors import SignerLoadError
from snake_sniper.trading.wallet import load_signer


def _use_config(monkeypatch, config):
    monkeypatch.setattr(cli_module, "AgentConfig", lambda: config)


def _fake_api(monkeypatch, state, prediction):
    api = MagicMock()
    api.fetch_state.return_value = state
    api.fetch_prediction.return_value = prediction
    monkeypatch.setattr("snake_sniper.agent.SnakesAPIClient", lambda config: api)
    return api


class TestLoadSigner:
    def test_round_trip(self):
        keypair = Keypair()
        assert load_signer(str(keypair)).pubkey() == keypair.pubkey()

    def test_missing_key(self):
        with pytest.raises(SignerLoadError):
            load_signer("")

    def test_malformed_key_not_echoed(self):
        with pytest.raises(SignerLoadError) as exc:
            load_signer("notakey")
        assert "notakey" not in str(exc.value)


class TestConfig:
    def test_defaults(self):
        config = AgentConfig(wallet=WalletConfig(private_key="", wallet_address=""))
        assert config.winning_positions == DEFAULT_WINNING_POSITIONS
        assert not config.has_signer

    def test_winning_positions_frozen(self):
        config = AgentConfig(winning_positions={1, 2})
        assert isinstance(config.winning_positions, frozenset)


class TestCli:
    def test_config_command(self, monkeypatch):
        _use_config(monkeypatch, AgentConfig(wallet=WalletConfig(private_key="", wallet_address="")))
        result = CliRunner().invoke(cli_module.cli, ["config"])
        assert result.exit_code == 0
        assert "Not set" in result.output

    def test_run_without_account_exits(self, monkeypatch):
        _use_config(monkeypatch, AgentConfig(wallet=WalletConfig(private_key="", wallet_address="")))
        result = CliRunner().invoke(cli_module.cli, ["run"])
        assert result.exit_code == 1

    def test_run_live_without_key_exits(self, monkeypatch):
        _use_config(monkeypatch, AgentConfig(wallet=WalletConfig(private_key="", wallet_address="")))
        result = CliRunner().invoke(cli_module.cli, ["run-live", "--yes"])
        assert result.exit_code == 1

    def test_check_winning_cycle(self, monkeypatch):
        _use_config(monkeypatch, AgentConfig(wallet=WalletConfig(private_key="", wallet_address="acct")))
        api = _fake_api(
            monkeypatch,
            {"icon": "g_2-5-1-9", "description": "The dot is Green now"},
            {"transaction": "x", "message": "You rolled a 5"},
        )
        result = CliRunner().invoke(cli_module.cli, ["check"])
        assert result.exit_code == 0
        api.fetch_prediction.assert_called_once_with("acct")

    def test_check_uses_signer_pubkey(self, monkeypatch):
        keypair = Keypair()
        _use_config(monkeypatch, AgentConfig(wallet=WalletConfig(private_key=str(keypair), wallet_address="")))
        api = _fake_api(
            monkeypatch,
            {"icon": "g_2-5-1-9", "description": "The dot is Green now"},
            {"transaction": "x", "message": "You rolled a 2"},
        )
        result = CliRunner().invoke(cli_module.cli, ["check"])
        assert result.exit_code == 0
        api.fetch_prediction.assert_called_once_with(str(keypair.pubkey()))

    def test_check_failed_cycle_exits_nonzero(self, monkeypatch):
        _use_config(monkeypatch, AgentConfig(wallet=WalletConfig(private_key="", wallet_address="acct")))
        _fake_api(
            monkeypatch,
            {"icon": "g_2-5-1-9", "description": "The dot is Green now"},
            {"transaction": "x", "message": "no roll"},
        )
        result = CliRunner().invoke(cli_module.cli, ["check"])
        assert result.exit_code == 1
