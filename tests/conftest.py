"""Shared fixtures for the order form and submission tests."""
from __future__ import annotations

import asyncio
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional

import pytest

from synth_trader.config import AppConfig
from synth_trader.execution.adapter import PaperExchangeClient, PaperLimitOrderClient, StaticWallet
from synth_trader.execution.ledger import InMemoryTransactionLedger
from synth_trader.execution.models import Asset, CurrencyPair, GasParams, TxHandle
from synth_trader.market_data.balances import WalletBalances
from synth_trader.market_data.rates import ExchangeRates
from synth_trader.metrics import TradeMetrics
from synth_trader.order_form.session import OrderFormSession

SUSD = Asset("sUSD", category="forex")
SETH = Asset("sETH", category="crypto")
SBTC = Asset("sBTC", category="crypto")
STSLA = Asset("sTSLA", category="equities")
SFROZEN = Asset("iBNB", category="crypto", is_frozen=True)

WALLET_ADDRESS = "0xabc0000000000000000000000000000000000001"


class GatedExchangeClient(PaperExchangeClient):
    """Paper client whose calls can be held open or made to fail on demand.

    ``fail[method]`` holds an exception raised by the next calls to that
    method. ``hold(method)`` returns an event; calls to that method block until
    the event is set, letting tests finish requests out of order.
    """

    def __init__(self, **kwargs: Any):
        super().__init__(**kwargs)
        self.fail: Dict[str, Exception] = {}
        self.calls: List[tuple] = []
        self._gates: Dict[str, List[asyncio.Event]] = {}

    def hold(self, method: str) -> asyncio.Event:
        event = asyncio.Event()
        self._gates.setdefault(method, []).append(event)
        return event

    async def _enter(self, method: str, *args: Any) -> None:
        self.calls.append((method, *args))
        gates = self._gates.get(method)
        if gates:
            await gates.pop(0).wait()
        if method in self.fail:
            raise self.fail[method]

    async def fee_rate(self, source, destination):
        await self._enter("fee_rate", source, destination)
        return await super().fee_rate(source, destination)

    async def is_suspended(self, asset):
        await self._enter("is_suspended", asset)
        return await super().is_suspended(asset)

    async def waiting_period_seconds(self, wallet, asset):
        await self._enter("waiting_period_seconds", wallet, asset)
        return await super().waiting_period_seconds(wallet, asset)

    async def estimate_gas(self, source, amount, destination):
        await self._enter("estimate_gas", source, amount, destination)
        return await super().estimate_gas(source, amount, destination)

    async def submit_market_order(self, source, amount, destination, gas: GasParams) -> TxHandle:
        await self._enter("submit_market_order", source, amount, destination, gas)
        return await super().submit_market_order(source, amount, destination, gas)

    def count(self, method: str) -> int:
        return sum(1 for call in self.calls if call[0] == method)


class FailingLimitOrderClient(PaperLimitOrderClient):
    def __init__(self, exc: Exception):
        super().__init__()
        self.exc = exc

    async def submit_limit_order(self, *args: Any, **kwargs: Any) -> TxHandle:
        raise self.exc


@pytest.fixture
def rates() -> ExchangeRates:
    return ExchangeRates({"sUSD": 1, "sETH": 2000, "sBTC": 40000, "sTSLA": 800, "iBNB": 300, "ETH": 2000})


@pytest.fixture
def balances() -> WalletBalances:
    table = WalletBalances()
    table.set_balance("sUSD", Decimal("1000"))
    table.set_balance("sETH", Decimal("2"))
    return table


@pytest.fixture
def wallet() -> StaticWallet:
    return StaticWallet(current_address=WALLET_ADDRESS, current_wallet_kind="metamask")


@pytest.fixture
def exchange() -> GatedExchangeClient:
    return GatedExchangeClient(gas_estimate=200000)


@pytest.fixture
def limit_orders() -> PaperLimitOrderClient:
    return PaperLimitOrderClient()


@pytest.fixture
def ledger() -> InMemoryTransactionLedger:
    return InMemoryTransactionLedger()


@pytest.fixture
def make_session(
    exchange, limit_orders, ledger, rates, balances, wallet
) -> Callable[..., OrderFormSession]:
    """Build a session buying sETH with sUSD unless told otherwise."""

    def _make(
        pair: Optional[CurrencyPair] = None,
        reversed: bool = False,
        config: Optional[AppConfig] = None,
        **overrides: Any,
    ) -> OrderFormSession:
        params: Dict[str, Any] = dict(
            exchange=exchange,
            limit_orders=limit_orders,
            ledger=ledger,
            rates=rates,
            balances=balances,
            wallet=wallet,
            config=config,
            metrics=TradeMetrics(),
        )
        params.update(overrides)
        return OrderFormSession(
            pair or CurrencyPair(base=SETH, quote=SUSD),
            reversed=reversed,
            **params,
        )

    return _make

