# src/synth_trader/execution/adapter.py

import asyncio
import itertools
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Optional, Protocol, Set, Tuple

from synth_trader.logging_config import structured_log_extra

from .models import AssetId, GasParams, OrderRequest, OrderType, TxHandle

logger = logging.getLogger(__name__)


class ExchangeClient(Protocol):
    async def fee_rate(self, source: AssetId, destination: AssetId) -> Decimal: ...

    async def is_suspended(self, asset: AssetId) -> bool: ...

    async def waiting_period_seconds(self, wallet: str, asset: AssetId) -> int: ...

    async def estimate_gas(self, source: AssetId, amount: int, destination: AssetId) -> int: ...

    async def submit_market_order(
        self, source: AssetId, amount: int, destination: AssetId, gas: GasParams
    ) -> TxHandle: ...


class LimitOrderClient(Protocol):
    async def submit_limit_order(
        self,
        source: AssetId,
        amount: int,
        destination: AssetId,
        limit_price: Decimal,
        execution_fee: int,
        gas: GasParams,
    ) -> TxHandle: ...


class WalletContext(Protocol):
    @property
    def current_address(self) -> Optional[str]: ...

    @property
    def current_wallet_kind(self) -> Optional[str]: ...


class UiSignal(Protocol):
    def request_gas_price_editor(self) -> None: ...


@dataclass
class StaticWallet:
    """A wallet context whose address and kind are set directly."""

    current_address: Optional[str] = None
    current_wallet_kind: Optional[str] = None


class PaperExchangeClient:
    """
    Exchange client backed by in-memory state, for local runs and tests.

    Market state (fee rates, suspended assets, waiting periods, gas estimates)
    is configured through attributes; submitted orders are recorded and
    receive deterministic ``paper-<n>`` transaction hashes.
    """

    def __init__(
        self,
        fee_rates: Optional[Dict[Tuple[AssetId, AssetId], Decimal]] = None,
        suspended: Optional[Set[AssetId]] = None,
        waiting_periods: Optional[Dict[Tuple[str, AssetId], int]] = None,
        gas_estimate: int = 200000,
        default_fee_rate: Decimal = Decimal("0.003"),
    ):
        self.fee_rates = dict(fee_rates or {})
        self.suspended = set(suspended or set())
        self.waiting_periods = dict(waiting_periods or {})
        self.gas_estimate = gas_estimate
        self.default_fee_rate = default_fee_rate
        self.submitted: List[OrderRequest] = []
        self._tx_counter = itertools.count(1)

    async def fee_rate(self, source: AssetId, destination: AssetId) -> Decimal:
        await asyncio.sleep(0)
        return self.fee_rates.get((source, destination), self.default_fee_rate)

    async def is_suspended(self, asset: AssetId) -> bool:
        await asyncio.sleep(0)
        return asset in self.suspended

    async def waiting_period_seconds(self, wallet: str, asset: AssetId) -> int:
        await asyncio.sleep(0)
        return self.waiting_periods.get((wallet, asset), 0)

    async def estimate_gas(self, source: AssetId, amount: int, destination: AssetId) -> int:
        await asyncio.sleep(0)
        return self.gas_estimate

    async def submit_market_order(
        self, source: AssetId, amount: int, destination: AssetId, gas: GasParams
    ) -> TxHandle:
        await asyncio.sleep(0)
        request = OrderRequest(
            type=OrderType.MARKET,
            source=source,
            source_amount=amount,
            destination=destination,
            gas=gas,
        )
        self.submitted.append(request)
        handle = TxHandle(hash=f"paper-{next(self._tx_counter)}", nonce=len(self.submitted) - 1)
        logger.info(
            "Paper market order accepted",
            extra=structured_log_extra(
                event="paper_market_order",
                base=destination,
                quote=source,
                tx_hash=handle.hash,
            ),
        )
        return handle


class PaperLimitOrderClient:
    """Order-book client that records limit orders in memory."""

    def __init__(self) -> None:
        self.submitted: List[OrderRequest] = []
        self._tx_counter = itertools.count(1)

    async def submit_limit_order(
        self,
        source: AssetId,
        amount: int,
        destination: AssetId,
        limit_price: Decimal,
        execution_fee: int,
        gas: GasParams,
    ) -> TxHandle:
        await asyncio.sleep(0)
        request = OrderRequest(
            type=OrderType.LIMIT,
            source=source,
            source_amount=amount,
            destination=destination,
            gas=gas,
            limit_price=limit_price,
            execution_fee=execution_fee,
        )
        self.submitted.append(request)
        handle = TxHandle(hash=f"paper-limit-{next(self._tx_counter)}")
        logger.info(
            "Paper limit order accepted",
            extra=structured_log_extra(
                event="paper_limit_order",
                base=destination,
                quote=source,
                tx_hash=handle.hash,
            ),
        )
        return handle
