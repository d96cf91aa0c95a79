"""
Configuration loading and validation for the DEX arbitrage monitor.

Settings are layered: schema defaults, then an optional YAML file, then
environment variables (a local .env file is loaded first). The merged
dictionary is validated by MonitorSettings.
"""

import os
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from arbitrage_monitor.config_schema import MonitorSettings
from arbitrage_monitor.exceptions import ConfigurationError


class ConfigError(ConfigurationError):
    """Raised when config is invalid or missing required fields."""

    pass


def _log_level(value: str) -> str:
    value = value.strip().lower()
    return "warn" if value == "warning" else value


# env var -> (settings field, parser)
ENV_OVERRIDES: Dict[str, Tuple[str, Callable[[str], Any]]] = {
    "ETHEREUM_RPC_URL": ("rpc_url", str),
    "CHAIN_ID": ("chain_id", int),
    "MIN_PROFIT_ETH": ("min_profit_eth", float),
    "MAX_GAS_PRICE": ("max_gas_price_gwei", float),
    "SLIPPAGE_TOLERANCE": ("slippage_tolerance_pct", float),
    "MAX_TRADE_SIZE_ETH": ("max_trade_size_eth", float),
    "DAILY_LOSS_LIMIT_ETH": ("daily_loss_limit_eth", float),
    "SCAN_INTERVAL_SEC": ("scan_interval_sec", float),
    "LOG_LEVEL": ("log_level", _log_level),
}


def read_yaml(config_path: str) -> Dict[str, Any]:
    """
    Read a YAML config file into a dictionary.

    Raises:
        ConfigError: If the file is missing, unparsable, or not a mapping
    """
    if not os.path.exists(config_path):
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with open(config_path, "r") as f:
            config_dict = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML: {e}") from e

    if config_dict is None:
        return {}
    if not isinstance(config_dict, dict):
        raise ConfigError("Config file must contain a YAML dictionary")

    return config_dict


def apply_env_overrides(
    config_dict: Dict[str, Any], env: Mapping[str, str]
) -> Dict[str, Any]:
    """Return a copy of config_dict with recognized env vars applied."""
    merged = dict(config_dict)
    for env_key, (field_name, parse) in ENV_OVERRIDES.items():
        raw = env.get(env_key)
        if raw is None or raw == "":
            continue
        try:
            merged[field_name] = parse(raw)
        except ValueError as e:
            raise ConfigError(
                f"Environment variable {env_key} has invalid value {raw!r}",
                details={"field": field_name},
            ) from e
    return merged


def build_settings(config_dict: Dict[str, Any]) -> MonitorSettings:
    """Validate a raw config dictionary."""
    try:
        return MonitorSettings(**config_dict)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def load_config(
    config_path: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
    use_dotenv: bool = True,
) -> MonitorSettings:
    """
    Load and validate monitor settings.

    Args:
        config_path: Optional path to a YAML file
        env: Environment mapping (defaults to os.environ)
        use_dotenv: Load a .env file into os.environ first

    Returns:
        Validated MonitorSettings

    Raises:
        ConfigError: If the file or any value is invalid
    """
    if use_dotenv:
        load_dotenv()

    config_dict = read_yaml(config_path) if config_path else {}
    config_dict = apply_env_overrides(config_dict, os.environ if env is None else env)
    return build_settings(config_dict)
