"""Tests for configuration loading, environment overlays and runtime overrides."""

from pathlib import Path

import pytest
import yaml  # type: ignore[import-untyped]

import appdirs  # type: ignore[import-untyped]
from synth_trader import config_loader as cl
from synth_trader.config import AppConfig, GasConfig, load_config


@pytest.fixture
def config_dir(monkeypatch, tmp_path: Path) -> Path:
    directory = tmp_path / "config"
    directory.mkdir(parents=True, exist_ok=True)
    monkeypatch.setattr(appdirs, "user_config_dir", lambda appname: directory)
    monkeypatch.delenv("SYNTH_TRADER_ENV", raising=False)
    return directory


def test_missing_file_uses_defaults(config_dir: Path):
    config = load_config()

    assert config == AppConfig()
    assert config.exchange.reference_asset == "sUSD"
    assert config.exchange.balance_fractions == [25, 50, 75, 100]
    assert config.gas.default_gas_limit == 500000
    assert config.gas.gas_limit_buffer == 5000
    assert config.gas.min_gas_limit == 21000
    assert config.limit_orders.gas_limit == 500000
    assert config.limit_orders.execution_fee == 1


def test_yaml_values_are_loaded(config_dir: Path):
    (config_dir / "config.yaml").write_text(
        """
exchange:
  reference_asset: "sUSD"
  restricted_categories: ["equities", "commodities"]
  balance_fractions: [10, 50, 100]
gas:
  gas_price_gwei: 35
  gas_limit_buffer: 10000
limit_orders:
  execution_fee: 2
log_level: debug
""".strip()
    )

    config = load_config()

    assert config.exchange.restricted_categories == ["equities", "commodities"]
    assert config.exchange.balance_fractions == [10, 50, 100]
    assert config.gas.gas_price_gwei == 35.0
    assert config.gas.gas_limit_buffer == 10000
    assert config.limit_orders.execution_fee == 2
    assert config.log_level == "DEBUG"


@pytest.mark.parametrize("env_value", [None, "staging"])
def test_invalid_or_missing_env_uses_testnet_overlay(monkeypatch, config_dir: Path, env_value):
    (config_dir / "config.yaml").write_text("gas:\n  gas_price_gwei: 50\n")
    (config_dir / "config.testnet.yaml").write_text("gas:\n  gas_price_gwei: 2\n")
    (config_dir / "config.mainnet.yaml").write_text("gas:\n  gas_price_gwei: 80\n")

    if env_value is not None:
        monkeypatch.setenv("SYNTH_TRADER_ENV", env_value)

    config = load_config()

    assert config.gas.gas_price_gwei == 2.0


def test_env_overlay_deep_merges(config_dir: Path):
    (config_dir / "config.yaml").write_text(
        "gas:\n  gas_price_gwei: 50\n  default_gas_limit: 400000\n"
    )
    (config_dir / "config.mainnet.yaml").write_text("gas:\n  gas_price_gwei: 80\n")

    config = load_config(env="mainnet")

    assert config.gas.gas_price_gwei == 80.0
    assert config.gas.default_gas_limit == 400000


def test_invalid_values_fall_back_to_defaults(config_dir: Path, caplog):
    (config_dir / "config.yaml").write_text(
        """
exchange:
  balance_fractions: [0, 150, "half"]
  restricted_categories: "equities"
gas:
  default_gas_limit: -1
  gas_price_gwei: "fast"
  min_gas_limit: true
log_level: loud
""".strip()
    )

    config = load_config()

    defaults = AppConfig()
    assert config.exchange.balance_fractions == defaults.exchange.balance_fractions
    assert config.exchange.restricted_categories == defaults.exchange.restricted_categories
    assert config.gas == GasConfig()
    assert config.log_level == "INFO"
    events = {getattr(r, "event", None) for r in caplog.records}
    assert "gas.default_gas_limit" in events
    assert "config_invalid_log_level" in events


def test_non_mapping_section_is_ignored(config_dir: Path):
    (config_dir / "config.yaml").write_text("gas: [1, 2, 3]\n")

    assert load_config().gas == GasConfig()


def test_runtime_overrides_round_trip(config_dir: Path):
    (config_dir / "config.yaml").write_text("gas:\n  gas_price_gwei: 50\n")
    config = AppConfig(gas=GasConfig(gas_price_gwei=12.5, default_gas_limit=350000))

    cl.dump_runtime_overrides(config)

    written = yaml.safe_load((config_dir / cl.RUNTIME_OVERRIDES_FILENAME).read_text())
    assert written == {"gas": {"gas_price_gwei": 12.5, "default_gas_limit": 350000}}

    loaded = load_config()
    assert loaded.gas.gas_price_gwei == 12.5
    assert loaded.gas.default_gas_limit == 350000


def test_dump_runtime_overrides_atomic_write(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    path = tmp_path / cl.RUNTIME_OVERRIDES_FILENAME
    path.write_text("gas: {gas_price_gwei: 3.0}\n", encoding="utf-8")
    original = path.read_text(encoding="utf-8")

    def failing_safe_dump(data, f):
        f.write("partial: true\n")
        raise RuntimeError("boom")

    monkeypatch.setattr(cl.yaml, "safe_dump", failing_safe_dump)

    with pytest.raises(RuntimeError):
        cl.dump_runtime_overrides(AppConfig(), config_dir=tmp_path)

    assert path.read_text(encoding="utf-8") == original
    assert not any(tmp_path.glob(f"{path.name}*.tmp"))
