"""
Unit tests for dex/config.py and the settings schema

Verifies layering of defaults, YAML and environment, and validation errors.
"""

import pytest

from arbitrage_monitor.config_schema import DEFAULT_RPC_URL, MonitorSettings
from dex.config import (
    ConfigError,
    apply_env_overrides,
    build_settings,
    load_config,
    read_yaml,
)

UNI_POOL = "0xb4e16d0168e52d35cacd2c6185b44281ec28c9dc"
UNI_POOL_CHECKSUM = "0xB4e16d0168e52d35CaCD2c6185b44281Ec28C9Dc"


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "monitor.yaml"
    path.write_text(
        f"""
rpc_url: https://rpc.example.org
min_profit_eth: 0.02
scan_interval_sec: 10
pools:
  - address: "{UNI_POOL}"
    exchange: Uniswap V2
"""
    )
    return path


class TestMonitorSettings:
    def test_defaults(self):
        settings = MonitorSettings()

        assert settings.rpc_url == DEFAULT_RPC_URL
        assert settings.chain_id == 1
        assert settings.min_profit_eth == 0.01
        assert settings.min_profit_pct == 1.0
        assert settings.max_gas_price_gwei == 50
        assert settings.slippage_tolerance_pct == 0.5
        assert settings.max_trade_size_eth == 1.0
        assert settings.daily_loss_limit_eth == 0.5
        assert settings.trade_size_eth == 0.1
        assert settings.gas_limit == 300000
        assert settings.scan_interval_sec == 5
        assert settings.max_opportunities_per_cycle == 3
        assert settings.log_level == "info"
        assert settings.pools == []
        assert settings.metrics_port is None

    def test_pool_address_checksummed(self):
        settings = MonitorSettings(pools=[{"address": UNI_POOL}])

        assert settings.pools[0].address == UNI_POOL_CHECKSUM
        assert settings.pools[0].exchange == "unknown"

    def test_invalid_pool_address(self):
        with pytest.raises(ValueError):
            MonitorSettings(pools=[{"address": "0x1234"}])

    def test_duplicate_pools(self):
        with pytest.raises(ValueError, match="Duplicate pool"):
            MonitorSettings(
                pools=[{"address": UNI_POOL}, {"address": UNI_POOL_CHECKSUM}]
            )

    def test_invalid_rpc_url(self):
        with pytest.raises(ValueError, match="Invalid RPC URL"):
            MonitorSettings(rpc_url="ws://localhost:8546")

    def test_invalid_log_level(self):
        with pytest.raises(ValueError):
            MonitorSettings(log_level="verbose")


class TestReadYaml:
    def test_reads_mapping(self, config_file):
        data = read_yaml(str(config_file))
        assert data["min_profit_eth"] == 0.02

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            read_yaml(str(tmp_path / "missing.yaml"))

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert read_yaml(str(path)) == {}

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="dictionary"):
            read_yaml(str(path))

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("pools: [unclosed\n")
        with pytest.raises(ConfigError, match="parse"):
            read_yaml(str(path))


class TestEnvOverrides:
    def test_overrides_applied(self):
        merged = apply_env_overrides(
            {"min_profit_eth": 0.02},
            {
                "ETHEREUM_RPC_URL": "https://rpc.example.org",
                "MIN_PROFIT_ETH": "0.05",
                "MAX_GAS_PRICE": "80",
                "SLIPPAGE_TOLERANCE": "1.5",
                "MAX_TRADE_SIZE_ETH": "2",
                "DAILY_LOSS_LIMIT_ETH": "0.25",
                "SCAN_INTERVAL_SEC": "2.5",
                "CHAIN_ID": "5",
                "LOG_LEVEL": "WARNING",
            },
        )

        assert merged == {
            "rpc_url": "https://rpc.example.org",
            "min_profit_eth": 0.05,
            "max_gas_price_gwei": 80.0,
            "slippage_tolerance_pct": 1.5,
            "max_trade_size_eth": 2.0,
            "daily_loss_limit_eth": 0.25,
            "scan_interval_sec": 2.5,
            "chain_id": 5,
            "log_level": "warn",
        }

    def test_empty_values_ignored(self):
        assert apply_env_overrides({"chain_id": 1}, {"CHAIN_ID": ""}) == {"chain_id": 1}

    def test_input_not_mutated(self):
        original = {"chain_id": 1}
        apply_env_overrides(original, {"CHAIN_ID": "5"})
        assert original == {"chain_id": 1}

    def test_unparsable_value(self):
        with pytest.raises(ConfigError, match="MIN_PROFIT_ETH"):
            apply_env_overrides({}, {"MIN_PROFIT_ETH": "lots"})


class TestLoadConfig:
    def test_yaml_then_env(self, config_file):
        settings = load_config(
            str(config_file), env={"MIN_PROFIT_ETH": "0.03"}, use_dotenv=False
        )

        assert settings.rpc_url == "https://rpc.example.org"
        assert settings.min_profit_eth == 0.03
        assert settings.scan_interval_sec == 10
        assert settings.pools[0].address == UNI_POOL_CHECKSUM
        assert settings.pools[0].exchange == "Uniswap V2"

    def test_env_only(self):
        settings = load_config(env={"MAX_GAS_PRICE": "75"}, use_dotenv=False)

        assert settings.max_gas_price_gwei == 75
        assert settings.pools == []

    def test_validation_error_wrapped(self):
        with pytest.raises(ConfigError, match="Invalid configuration"):
            build_settings({"scan_interval_sec": -1})

    def test_invalid_env_value_wrapped(self):
        with pytest.raises(ConfigError):
            load_config(env={"ETHEREUM_RPC_URL": "ftp://nope"}, use_dotenv=False)
