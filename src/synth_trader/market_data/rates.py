# src/synth_trader/market_data/rates.py

from decimal import Decimal
from threading import Lock
from typing import Dict, Mapping, Optional, Protocol, Union

from synth_trader.execution.models import AssetId


class RateTable(Protocol):
    def rate(self, source: AssetId, destination: AssetId) -> Optional[Decimal]: ...


class ExchangeRates:
    """
    In-memory rate table keyed by each asset's price in the reference currency.

    The conversion rate between two assets is the ratio of their reference
    prices. Unknown or zero-priced assets have no rate.
    """

    def __init__(self, prices: Optional[Mapping[AssetId, Union[Decimal, int, str]]] = None):
        self._lock = Lock()
        self._prices: Dict[AssetId, Decimal] = {}
        if prices:
            self.update(prices)

    def update(self, prices: Mapping[AssetId, Union[Decimal, int, str]]) -> None:
        """Merge new reference prices into the table."""
        with self._lock:
            for asset, price in prices.items():
                self._prices[asset] = Decimal(str(price))

    def price_of(self, asset: AssetId) -> Optional[Decimal]:
        with self._lock:
            return self._prices.get(asset)

    def rate(self, source: AssetId, destination: AssetId) -> Optional[Decimal]:
        with self._lock:
            source_price = self._prices.get(source)
            destination_price = self._prices.get(destination)
        if not source_price or not destination_price:
            return None
        return source_price / destination_price


def rate_or_zero(rates: RateTable, source: AssetId, destination: AssetId) -> Decimal:
    """Resolve a rate, treating an absent pair as zero."""
    value = rates.rate(source, destination)
    return value if value is not None else Decimal(0)
