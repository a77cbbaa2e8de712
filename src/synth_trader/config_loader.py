from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

import appdirs  # type: ignore[import-untyped]
import yaml  # type: ignore[import-untyped]

from synth_trader.config_models import (
    AppConfig,
    ExchangeConfig,
    GasConfig,
    LimitOrderConfig,
)

RUNTIME_OVERRIDES_FILENAME = "config.runtime.yaml"
ALLOWED_ENVS = {"local", "testnet", "mainnet"}
DEFAULT_CONFIG_ENV = "testnet"

logger = logging.getLogger(__name__)


def get_config_dir() -> Path:
    """
    Returns the OS-specific configuration directory for the engine using appdirs.
    """
    return Path(appdirs.user_config_dir("synth_trader"))


def _load_yaml_mapping(path: Path, event: str) -> Dict[str, Any]:
    if not path.exists():
        return {}
    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        logger.warning(
            "Config file is not a mapping; ignoring",
            extra={"event": event, "config_path": str(path)},
        )
        return {}
    return data


def _deep_merge_dicts(base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
    merged = base.copy()
    for key, value in overlay.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge_dicts(merged[key], value)
        else:
            merged[key] = value
    return merged


def dump_runtime_overrides(config: AppConfig, config_dir: Path | None = None) -> None:
    """Persist the user-adjustable gas settings next to the main config file.

    Called by ``OrderFormSession.save_gas_settings`` once the user confirms a
    gas price; ``load_config`` layers the file over the env overlay.
    """

    config_dir = config_dir or get_config_dir()
    path = config_dir / RUNTIME_OVERRIDES_FILENAME

    data = {
        "gas": {
            "gas_price_gwei": config.gas.gas_price_gwei,
            "default_gas_limit": config.gas.default_gas_limit,
        },
    }

    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            delete=False,
            dir=path.parent,
            prefix=path.name,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            yaml.safe_dump(data, f)
            f.flush()
            os.fsync(f.fileno())

        os.replace(tmp_path, path)
    finally:
        if tmp_path is not None and tmp_path.exists():
            try:
                tmp_path.unlink()
            except OSError:
                pass


def _section(raw_config: Dict[str, Any], name: str, config_path: Path) -> Dict[str, Any]:
    data = raw_config.get(name) or {}
    if not isinstance(data, dict):
        logger.warning(
            "%s config is not a mapping; using defaults",
            name.capitalize(),
            extra={"event": f"config_invalid_{name}", "config_path": str(config_path)},
        )
        return {}
    return data


def load_config(
    config_path: Optional[Path] = None, env: Optional[str] = None
) -> AppConfig:
    """
    Loads the engine configuration from the default location or a specified path.

    Layers are merged in order: ``config.yaml``, ``config.<env>.yaml`` and the
    runtime overrides file in the user config directory.
    """

    def _validated_int(
        value: Any, default: int, field_name: str, min_value: int = 1
    ) -> int:
        if isinstance(value, int) and not isinstance(value, bool) and value >= min_value:
            return value

        logger.warning(
            "%s is invalid; using default",
            field_name,
            extra={"event": field_name, "config_path": str(config_path)},
        )
        return default

    def _validated_positive_float(value: Any, default: float, field_name: str) -> float:
        if isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0:
            return float(value)

        logger.warning(
            "%s is invalid; using default",
            field_name,
            extra={"event": field_name, "config_path": str(config_path)},
        )
        return default

    if config_path is None:
        config_path = get_config_dir() / "config.yaml"

    config_path = config_path.expanduser()

    initial_env = env if env is not None else os.environ.get("SYNTH_TRADER_ENV")
    if initial_env not in ALLOWED_ENVS:
        logger.warning(
            "Invalid or missing environment '%s'; defaulting to '%s'",
            initial_env,
            DEFAULT_CONFIG_ENV,
            extra={"event": "config_invalid_env", "config_path": str(config_path)},
        )
        effective_env = DEFAULT_CONFIG_ENV
    else:
        effective_env = initial_env

    if not config_path.exists():
        logger.warning(
            "Configuration file not found; using defaults",
            extra={"event": "config_missing_file", "config_path": str(config_path)},
        )
        raw_config: Dict[str, Any] = {}
    else:
        raw_config = _load_yaml_mapping(config_path, "config_invalid_format")

    env_config_path = config_path.parent / f"config.{effective_env}.yaml"
    raw_config = _deep_merge_dicts(
        raw_config, _load_yaml_mapping(env_config_path, "config_invalid_env_file")
    )

    runtime_overrides = _load_yaml_mapping(
        get_config_dir() / RUNTIME_OVERRIDES_FILENAME, "config_invalid_runtime_overrides"
    )
    raw_config = _deep_merge_dicts(raw_config, runtime_overrides)

    exchange_data = _section(raw_config, "exchange", config_path)
    gas_data = _section(raw_config, "gas", config_path)
    limit_data = _section(raw_config, "limit_orders", config_path)

    exchange_defaults = ExchangeConfig()
    raw_fractions = exchange_data.get("balance_fractions", exchange_defaults.balance_fractions)
    fractions: List[int] = []
    if isinstance(raw_fractions, list):
        fractions = [f for f in raw_fractions if isinstance(f, int) and 0 < f <= 100]
    if not fractions:
        logger.warning(
            "balance_fractions is invalid; using default",
            extra={"event": "config_invalid_fractions", "config_path": str(config_path)},
        )
        fractions = list(exchange_defaults.balance_fractions)

    raw_categories = exchange_data.get(
        "restricted_categories", exchange_defaults.restricted_categories
    )
    if not isinstance(raw_categories, list):
        logger.warning(
            "restricted_categories should be a list; using default",
            extra={"event": "config_invalid_categories", "config_path": str(config_path)},
        )
        raw_categories = list(exchange_defaults.restricted_categories)

    exchange_config = ExchangeConfig(
        reference_asset=str(exchange_data.get("reference_asset", exchange_defaults.reference_asset)),
        eth_asset=str(exchange_data.get("eth_asset", exchange_defaults.eth_asset)),
        restricted_categories=[str(c) for c in raw_categories],
        balance_fractions=fractions,
        asset_decimals=_validated_int(
            exchange_data.get("asset_decimals", exchange_defaults.asset_decimals),
            exchange_defaults.asset_decimals,
            "exchange.asset_decimals",
            min_value=0,
        ),
    )

    gas_defaults = GasConfig()
    gas_config = GasConfig(
        default_gas_limit=_validated_int(
            gas_data.get("default_gas_limit", gas_defaults.default_gas_limit),
            gas_defaults.default_gas_limit,
            "gas.default_gas_limit",
        ),
        gas_price_gwei=_validated_positive_float(
            gas_data.get("gas_price_gwei", gas_defaults.gas_price_gwei),
            gas_defaults.gas_price_gwei,
            "gas.gas_price_gwei",
        ),
        gas_limit_buffer=_validated_int(
            gas_data.get("gas_limit_buffer", gas_defaults.gas_limit_buffer),
            gas_defaults.gas_limit_buffer,
            "gas.gas_limit_buffer",
            min_value=0,
        ),
        min_gas_limit=_validated_int(
            gas_data.get("min_gas_limit", gas_defaults.min_gas_limit),
            gas_defaults.min_gas_limit,
            "gas.min_gas_limit",
            min_value=0,
        ),
        gwei_unit=_validated_int(
            gas_data.get("gwei_unit", gas_defaults.gwei_unit),
            gas_defaults.gwei_unit,
            "gas.gwei_unit",
        ),
    )

    limit_defaults = LimitOrderConfig()
    limit_config = LimitOrderConfig(
        gas_limit=_validated_int(
            limit_data.get("gas_limit", limit_defaults.gas_limit),
            limit_defaults.gas_limit,
            "limit_orders.gas_limit",
        ),
        execution_fee=_validated_int(
            limit_data.get("execution_fee", limit_defaults.execution_fee),
            limit_defaults.execution_fee,
            "limit_orders.execution_fee",
            min_value=0,
        ),
    )

    log_level = raw_config.get("log_level", "INFO")
    if not isinstance(log_level, str) or log_level.upper() not in logging.getLevelNamesMapping():
        logger.warning(
            "log_level is invalid; using INFO",
            extra={"event": "config_invalid_log_level", "config_path": str(config_path)},
        )
        log_level = "INFO"

    return AppConfig(
        exchange=exchange_config,
        gas=gas_config,
        limit_orders=limit_config,
        log_level=log_level.upper(),
    )
