# src/synth_trader/market_data/balances.py

from decimal import Decimal
from threading import Lock
from typing import Dict, Iterable, Optional, Protocol

from synth_trader.execution.models import AssetId, Balance


class BalanceTable(Protocol):
    def balance_of(self, asset: AssetId) -> Optional[Balance]: ...


class WalletBalances:
    """In-memory balance table refreshed by whoever tracks the wallet."""

    def __init__(self, balances: Optional[Iterable[Balance]] = None):
        self._lock = Lock()
        self._balances: Dict[AssetId, Balance] = {}
        if balances:
            self.replace(balances)

    def replace(self, balances: Iterable[Balance]) -> None:
        with self._lock:
            self._balances = {balance.asset: balance for balance in balances}

    def set_balance(self, asset: AssetId, display: Decimal, decimals: int = 18) -> Balance:
        """Store a balance, deriving the raw integer amount from ``display``."""
        from synth_trader.formatters import to_raw_amount

        display = Decimal(display)
        balance = Balance(asset=asset, display=display, raw=to_raw_amount(display, decimals))
        with self._lock:
            self._balances[asset] = balance
        return balance

    def balance_of(self, asset: AssetId) -> Optional[Balance]:
        with self._lock:
            return self._balances.get(asset)
