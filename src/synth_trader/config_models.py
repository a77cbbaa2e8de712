from __future__ import annotations

from dataclasses import dataclass, field
from typing import List


@dataclass
class ExchangeConfig:
    reference_asset: str = "sUSD"
    eth_asset: str = "ETH"
    restricted_categories: List[str] = field(default_factory=lambda: ["equities"])
    balance_fractions: List[int] = field(default_factory=lambda: [25, 50, 75, 100])
    asset_decimals: int = 18


@dataclass
class GasConfig:
    default_gas_limit: int = 500000
    gas_price_gwei: float = 1.0
    gas_limit_buffer: int = 5000
    min_gas_limit: int = 21000
    gwei_unit: int = 1_000_000_000


@dataclass
class LimitOrderConfig:
    gas_limit: int = 500000
    execution_fee: int = 1


@dataclass
class AppConfig:
    exchange: ExchangeConfig = field(default_factory=ExchangeConfig)
    gas: GasConfig = field(default_factory=GasConfig)
    limit_orders: LimitOrderConfig = field(default_factory=LimitOrderConfig)
    log_level: str = "INFO"
