# src/synth_trader/market_data/__init__.py

from .balances import BalanceTable, WalletBalances
from .rates import ExchangeRates, RateTable, rate_or_zero

__all__ = [
    "BalanceTable",
    "ExchangeRates",
    "RateTable",
    "WalletBalances",
    "rate_or_zero",
]
