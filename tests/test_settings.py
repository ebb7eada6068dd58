"""Tests for settings configuration loading."""

from __future__ import annotations

from textwrap import dedent

import pytest
from pydantic import SecretStr, ValidationError

from swap_bundler.settings import BundlerSettings, DryRunFormat, Network


def test_defaults():
    settings = BundlerSettings()

    assert settings.dry_run is True
    assert settings.network is Network.BERACHAIN
    assert settings.chain_id == 80094
    assert settings.slippage_tolerance == 0.5
    assert settings.price_cache_ttl_seconds == 300
    assert [a.symbol for a in settings.assets] == ["BERA", "HONEY"]
    assert settings.assets[0].is_native is True
    assert settings.rpc_url_required == "https://rpc.berachain.com"


def test_loads_toml_config(tmp_path, monkeypatch):
    config_path = tmp_path / "config.toml"
    config_path.write_text(
        dedent(
            """
            [swap_bundler]
            network = "artio"
            slippage_tolerance = 1.5
            dry_run_format = "json"

            [[swap_bundler.assets]]
            symbol = "USDC"
            address = "0x1111111111111111111111111111111111111111"
            decimals = 6
            """
        ).strip()
    )
    monkeypatch.setenv("SWAP_BUNDLER_CONFIG", str(config_path))

    settings = BundlerSettings()

    assert settings.network is Network.ARTIO
    assert settings.chain_id == 80085
    assert settings.slippage_tolerance == 1.5
    assert settings.dry_run_format is DryRunFormat.JSON
    assert len(settings.assets) == 1
    assert settings.assets[0].decimals == 6
    assert settings.assets[0].is_native is False


def test_local_config_file_is_discovered(tmp_path):
    (tmp_path / "swap-bundler.toml").write_text("slippage_tolerance = 3.0\n")

    assert BundlerSettings().slippage_tolerance == 3.0


def test_env_overrides_config_file(tmp_path, monkeypatch):
    config_path = tmp_path / "config.toml"
    config_path.write_text("slippage_tolerance = 2.0\n")
    monkeypatch.setenv("SWAP_BUNDLER_CONFIG", str(config_path))
    monkeypatch.setenv("SWAP_BUNDLER_SLIPPAGE_TOLERANCE", "0.75")

    assert BundlerSettings().slippage_tolerance == 0.75


def test_cli_overrides_env(monkeypatch):
    monkeypatch.setenv("SWAP_BUNDLER_SLIPPAGE_TOLERANCE", "0.75")

    assert BundlerSettings(slippage_tolerance=4.0).slippage_tolerance == 4.0


@pytest.mark.parametrize("secret", ["api_key", "private_key", "safe_txn_srvc_api_key"])
def test_rejects_secrets_in_config_file(tmp_path, monkeypatch, secret):
    config_path = tmp_path / "config.toml"
    config_path.write_text(f'{secret} = "shh"\n')
    monkeypatch.setenv("SWAP_BUNDLER_CONFIG", str(config_path))

    with pytest.raises(ValueError, match="Security violation"):
        BundlerSettings()


def test_secrets_from_env_are_wrapped_and_redacted(monkeypatch):
    monkeypatch.setenv("SWAP_BUNDLER_API_KEY", "  key-123 ")

    settings = BundlerSettings(private_key="0x" + "a" * 64)

    assert isinstance(settings.api_key, SecretStr)
    assert settings.api_key_value == "key-123"
    dumped = settings.as_safe_dict()
    assert dumped["api_key"] == "***redacted***"
    assert dumped["private_key"] == "***redacted***"
    assert dumped["safe_txn_srvc_api_key"] is None


@pytest.mark.parametrize("slippage", [0, -1, 100.5])
def test_slippage_must_be_within_bounds(slippage):
    with pytest.raises(ValidationError):
        BundlerSettings(slippage_tolerance=slippage)


def test_slippage_of_one_hundred_is_allowed():
    assert BundlerSettings(slippage_tolerance=100).slippage_tolerance == 100


def test_is_broadcast():
    assert BundlerSettings().is_broadcast is False
    assert (
        BundlerSettings(
            dry_run=False, safe_address="0x2222222222222222222222222222222222222222"
        ).is_broadcast
        is True
    )
