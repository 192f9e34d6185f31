"""Tests for configuration loading."""

import os
import tempfile

import pytest
import yaml
from pydantic import ValidationError

from fwledger.config.defaults import CONTRACT_ADDRESS_ENV
from fwledger.config.loader import _interpolate_env, load_config
from fwledger.config.models import FwLedgerConfig, LedgerConfig


def test_default_config(monkeypatch):
    monkeypatch.delenv(CONTRACT_ADDRESS_ENV, raising=False)
    config = FwLedgerConfig()
    assert config.neo4j.uri == "bolt://localhost:7687"
    assert config.ledger.contract_address is None
    assert config.ledger.confirmation_timeout == 120.0
    assert config.retry.max_attempts == 3


def test_contract_address_from_env(monkeypatch):
    address = "0x" + "cd" * 20
    monkeypatch.setenv(CONTRACT_ADDRESS_ENV, address)
    assert LedgerConfig().contract_address == address


def test_env_interpolation():
    os.environ["TEST_VAR_FWL"] = "hello"
    assert _interpolate_env("${TEST_VAR_FWL}") == "hello"
    del os.environ["TEST_VAR_FWL"]


def test_env_interpolation_default():
    result = _interpolate_env("${NONEXISTENT_VAR_FWL:fallback}")
    assert result == "fallback"


def test_env_interpolation_missing():
    result = _interpolate_env("${NONEXISTENT_VAR_FWL}")
    assert result == ""


def test_load_config_from_file():
    config_data = {
        "chain": {"rpc_url": "http://node:8545"},
        "ledger": {"contract_address": "0x" + "ab" * 20, "confirmation_timeout": 30},
        "neo4j": {"uri": "bolt://custom:7687", "password": "secret"},
    }
    with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
        yaml.dump(config_data, f)
        f.flush()

        config = load_config(f.name)
        assert config.chain.rpc_url == "http://node:8545"
        assert config.ledger.contract_address == "0x" + "ab" * 20
        assert config.ledger.confirmation_timeout == 30
        assert config.neo4j.password == "secret"
        # Defaults preserved
        assert config.neo4j.username == "neo4j"
        assert config.ledger.existence_timeout == 10.0

    os.unlink(f.name)


def test_empty_interpolated_contract_is_absent(tmp_path, monkeypatch):
    monkeypatch.delenv(CONTRACT_ADDRESS_ENV, raising=False)
    path = tmp_path / "fwledger.yaml"
    path.write_text("ledger:\n  contract_address: ${FWLEDGER_CONTRACT_ADDRESS:}\n")
    assert load_config(path).ledger.contract_address is None


def test_load_config_missing_file(monkeypatch):
    monkeypatch.delenv(CONTRACT_ADDRESS_ENV, raising=False)
    config = load_config("/nonexistent/path.yaml")
    assert config == FwLedgerConfig()


@pytest.mark.parametrize("field", ["existence_timeout", "confirmation_timeout", "poll_interval"])
def test_timeouts_must_be_positive(field):
    with pytest.raises(ValidationError):
        LedgerConfig(**{field: 0})


def test_config_path_from_env(tmp_path, monkeypatch):
    path = tmp_path / "custom.yaml"
    path.write_text("chain:\n  rpc_url: http://env-node:8545\n")
    monkeypatch.setenv("FWLEDGER_CONFIG", str(path))
    assert load_config().chain.rpc_url == "http://env-node:8545"


def test_empty_interpolated_values_use_defaults(tmp_path, monkeypatch):
    monkeypatch.delenv("FWLEDGER_RPC_URL", raising=False)
    path = tmp_path / "fwledger.yaml"
    path.write_text("chain:\n  rpc_url: ${FWLEDGER_RPC_URL:}\n  account: ${FWLEDGER_ACCOUNT:}\n")
    config = load_config(path)
    assert config.chain.rpc_url == "http://127.0.0.1:8545"
    assert config.chain.account is None
