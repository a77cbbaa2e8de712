# src/synth_trader/order_form/session.py

import logging
from dataclasses import replace
from decimal import Decimal
from pathlib import Path
from typing import Dict, Optional, Union

from synth_trader.config_loader import dump_runtime_overrides
from synth_trader.config_models import AppConfig
from synth_trader.execution.adapter import (
    ExchangeClient,
    LimitOrderClient,
    UiSignal,
    WalletContext,
)
from synth_trader.execution.handlers import OrderHandler
from synth_trader.execution.ledger import TransactionLedger
from synth_trader.execution.models import (
    Amounts,
    BlockingCondition,
    CurrencyPair,
    NetworkFee,
    OrderType,
    SubmissionOutcome,
)
from synth_trader.execution.submitter import OrderSubmitter
from synth_trader.formatters import AmountInput
from synth_trader.logging_config import structured_log_extra
from synth_trader.market_data.balances import BalanceTable
from synth_trader.market_data.rates import RateTable, rate_or_zero
from synth_trader.metrics import TradeMetrics

from .amounts import AmountEngine
from .gas import GasEstimator
from .pair import PairState
from .tasks import CheckScheduler
from .validation import ValidationPipeline

logger = logging.getLogger(__name__)


class OrderFormSession:
    """
    Composition root for one order form.

    Owns the pair and amounts, wires the validation pipeline, gas estimator
    and submitter to the injected collaborators, and re-runs the affected
    checks after every mutation. Mutating methods must be called from within
    a running event loop because they dispatch background checks; use
    :meth:`settle` to wait for those checks.
    """

    def __init__(
        self,
        pair: CurrencyPair,
        exchange: ExchangeClient,
        limit_orders: LimitOrderClient,
        ledger: TransactionLedger,
        rates: RateTable,
        balances: BalanceTable,
        wallet: WalletContext,
        config: Optional[AppConfig] = None,
        ui_signal: Optional[UiSignal] = None,
        metrics: Optional[TradeMetrics] = None,
        handlers: Optional[Dict[OrderType, OrderHandler]] = None,
        reversed: bool = False,
    ):
        self.config = config or AppConfig()
        self.metrics = metrics or TradeMetrics()
        self.rates = rates
        self.wallet = wallet
        self.ui_signal = ui_signal
        self.order_type = OrderType.MARKET

        self.scheduler = CheckScheduler(metrics=self.metrics)
        self.pair_state = PairState(pair, reversed=reversed)
        self.amount_engine = AmountEngine(
            self.pair_state,
            rates,
            balances,
            balance_fractions=self.config.exchange.balance_fractions,
            asset_decimals=self.config.exchange.asset_decimals,
        )
        self.pipeline = ValidationPipeline(
            self.pair_state,
            self.amount_engine,
            exchange,
            wallet,
            self.scheduler,
            restricted_categories=self.config.exchange.restricted_categories,
            metrics=self.metrics,
        )
        self.gas = GasEstimator(
            self.pair_state,
            self.amount_engine,
            exchange,
            self.scheduler,
            config=self.config.gas,
            metrics=self.metrics,
        )
        self.submitter = OrderSubmitter(
            self.pair_state,
            self.amount_engine,
            self.pipeline,
            self.gas,
            exchange,
            limit_orders,
            ledger,
            rates,
            wallet,
            config=self.config,
            metrics=self.metrics,
            handlers=handlers,
        )

    # Read-only views

    @property
    def pair(self) -> CurrencyPair:
        return self.pair_state.pair

    @property
    def amounts(self) -> Amounts:
        return self.amount_engine.snapshot()

    @property
    def is_submitting(self) -> bool:
        return self.submitter.is_submitting

    @property
    def error_message(self) -> Optional[str]:
        return self.submitter.error_message

    @property
    def input_error(self) -> Optional[str]:
        return self.pipeline.input_error

    @property
    def fee_reclamation_error(self) -> Optional[str]:
        return self.pipeline.fee_reclamation_error

    def blocking_condition(self) -> Optional[BlockingCondition]:
        return self.pipeline.blocking_condition()

    # Pair

    def set_pair(self, pair: CurrencyPair, reversed: bool = False) -> None:
        if not self.pair_state.set_pair(pair, reversed=reversed):
            return
        self.amount_engine.reset()
        self._state_changed()

    def swap(self) -> None:
        self.pair_state.swap()
        self.amount_engine.reset()
        self._state_changed()

    # Amounts

    def edit_quote(self, value: AmountInput) -> Amounts:
        self.amount_engine.edit_quote(value)
        self._state_changed()
        return self.amounts

    def edit_base(self, value: AmountInput) -> Amounts:
        self.amount_engine.edit_base(value)
        self._state_changed()
        return self.amounts

    def edit_limit_price(self, value: AmountInput) -> Amounts:
        self.amount_engine.edit_limit_price(value)
        return self.amounts

    def use_max_balance(self) -> Amounts:
        self.amount_engine.use_max_balance()
        self._state_changed()
        return self.amounts

    def use_fraction(self, pct: int) -> Amounts:
        self.amount_engine.use_fraction(pct)
        self._state_changed()
        return self.amounts

    def set_order_type(self, order_type: OrderType) -> None:
        self.order_type = OrderType(order_type)

    # Gas

    def set_gas_limit(self, limit: int) -> None:
        self.gas.override(limit)

    def set_gas_price(self, gwei: Union[Decimal, int, float, str]) -> None:
        self.gas.set_gas_price(gwei)

    def save_gas_settings(self, config_dir: Optional[Path] = None) -> None:
        """Keep the current gas price in the config and write it to the runtime overrides file."""

        self.config = replace(
            self.config,
            gas=replace(self.config.gas, gas_price_gwei=float(self.gas.gas_price_gwei)),
        )
        dump_runtime_overrides(self.config, config_dir=config_dir)
        logger.info(
            "Gas settings saved",
            extra=structured_log_extra(
                event="gas_settings_saved",
                gas_price_gwei=self.config.gas.gas_price_gwei,
            ),
        )

    def request_gas_price_editor(self) -> None:
        logger.debug(
            "Gas price editor requested",
            extra=structured_log_extra(event="gas_price_editor_requested"),
        )
        if self.ui_signal is not None:
            self.ui_signal.request_gas_price_editor()

    def network_fee(self) -> NetworkFee:
        """Estimated network cost of the current trade plus the exchange fee in USD."""

        reference = self.config.exchange.reference_asset
        gas_limit = self.gas.estimate.limit
        eth_cost = self.gas.gas_price_gwei * gas_limit / Decimal(self.config.gas.gwei_unit)
        usd_cost = eth_cost * rate_or_zero(self.rates, self.config.exchange.eth_asset, reference)

        base_amount = self.amount_engine.amounts.base_amount or Decimal(0)
        fee_percent = self.pipeline.fee_rate.percent
        base_usd = base_amount * rate_or_zero(self.rates, self.pair.base.name, reference)
        return NetworkFee(
            gas_limit=gas_limit,
            gas_price_gwei=self.gas.gas_price_gwei,
            eth_cost=eth_cost,
            usd_cost=usd_cost,
            exchange_fee_percent=fee_percent,
            exchange_fee_usd=base_usd * fee_percent / 100,
        )

    # Checks

    def refresh(self) -> None:
        """Re-evaluate after external changes (wallet, balances) or on start."""
        self._state_changed()

    def retry_waiting_period(self) -> None:
        self.pipeline.retry_waiting_period()

    def dismiss_fee_reclamation_error(self) -> None:
        self.pipeline.dismiss_fee_reclamation_error()

    async def settle(self) -> None:
        """Wait for every background check dispatched so far."""
        await self.scheduler.wait_idle()

    def _state_changed(self) -> None:
        self.pipeline.on_state_changed()
        self.gas.on_quote_amount_changed()

    # Submission

    def can_submit(self, order_type: Optional[OrderType] = None) -> bool:
        return self.submitter.can_submit(order_type or self.order_type)

    async def submit(self, order_type: Optional[OrderType] = None) -> SubmissionOutcome:
        return await self.submitter.submit(order_type or self.order_type)

    def dismiss_error(self) -> None:
        self.submitter.dismiss_error()
