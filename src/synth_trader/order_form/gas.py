# src/synth_trader/order_form/gas.py

import logging
from decimal import Decimal
from typing import Optional, Union

from synth_trader.config_models import GasConfig
from synth_trader.execution.adapter import ExchangeClient
from synth_trader.execution.exceptions import BackgroundQueryError
from synth_trader.execution.models import AssetId, GasEstimate
from synth_trader.logging_config import structured_log_extra
from synth_trader.metrics import TradeMetrics

from .amounts import AmountEngine
from .pair import PairState
from .tasks import CheckScheduler

logger = logging.getLogger(__name__)

GAS_CHECK = "gas_estimate"


def normalize_gas_limit(estimate: int, buffer: int = 5000, floor: int = 21000) -> int:
    """Add the safety buffer to a raw estimate and enforce the minimum limit."""
    return max(int(estimate) + buffer, floor)


class GasEstimator:
    """
    Keep a gas limit for the current trade and the user's gas price.

    Background estimates run when the quote amount changes and stop once a
    value is locked, either by the first successful estimate or by a user
    override. Submissions always call :meth:`estimate_fresh` instead of using
    the cached limit.
    """

    def __init__(
        self,
        pair_state: PairState,
        amounts: AmountEngine,
        exchange: ExchangeClient,
        scheduler: CheckScheduler,
        config: Optional[GasConfig] = None,
        metrics: Optional[TradeMetrics] = None,
    ):
        self.pair_state = pair_state
        self.amounts = amounts
        self.exchange = exchange
        self.scheduler = scheduler
        self.config = config or GasConfig()
        self.metrics = metrics
        self.estimate = GasEstimate(limit=self.config.default_gas_limit)
        self.gas_price_gwei = Decimal(str(self.config.gas_price_gwei))
        self._last_quote_amount: Optional[Decimal] = None

    @property
    def locked(self) -> bool:
        return self.estimate.locked

    def normalize(self, estimate: int) -> int:
        return normalize_gas_limit(
            estimate, buffer=self.config.gas_limit_buffer, floor=self.config.min_gas_limit
        )

    def set_gas_price(self, gwei: Union[Decimal, int, float, str]) -> None:
        price = Decimal(str(gwei))
        if price <= 0:
            raise ValueError(f"Gas price must be positive, got {gwei}")
        self.gas_price_gwei = price

    def gas_price_wei(self) -> int:
        return int(self.gas_price_gwei * self.config.gwei_unit)

    def override(self, limit: int) -> None:
        """Pin a user-entered gas limit; background estimates stop."""
        if limit <= 0:
            raise ValueError(f"Gas limit must be positive, got {limit}")
        self.scheduler.invalidate(GAS_CHECK)
        self.estimate = GasEstimate(limit=int(limit), locked=True)
        logger.info(
            "Gas limit pinned by user",
            extra=structured_log_extra(event="gas_limit_override", gas_limit=limit),
        )

    def on_quote_amount_changed(self) -> None:
        """Dispatch a background estimate when the quote amount moved."""

        amounts = self.amounts.amounts
        if amounts.quote_amount == self._last_quote_amount:
            return
        self._last_quote_amount = amounts.quote_amount

        if self.locked or amounts.quote_amount is None:
            return
        if self.amounts.quote_balance() is None:
            return

        pair = self.pair_state.pair
        base, quote = pair.base.name, pair.quote.name
        amount = self.amounts.amount_to_exchange()

        def _apply(raw_estimate: int) -> None:
            # A user override may have landed while the query was in flight.
            if self.locked:
                return
            self.estimate = GasEstimate(limit=self.normalize(raw_estimate), locked=True)
            logger.debug(
                "Gas estimate locked",
                extra=structured_log_extra(
                    event="gas_estimate_locked",
                    base=base,
                    quote=quote,
                    gas_limit=self.estimate.limit,
                ),
            )

        def _on_error(exc: Exception) -> None:
            error = BackgroundQueryError(GAS_CHECK, str(exc))
            if self.metrics:
                self.metrics.record_background_failure(GAS_CHECK, str(exc))
            logger.warning(
                str(error),
                extra=structured_log_extra(
                    event="gas_estimate_query_failed", base=base, quote=quote, error=str(exc)
                ),
            )

        self.scheduler.dispatch(
            GAS_CHECK,
            lambda: self.exchange.estimate_gas(quote, amount, base),
            _apply,
            _on_error,
        )

    async def estimate_fresh(self, source: AssetId, amount: int, destination: AssetId) -> int:
        """Estimate the gas limit for exactly this exchange, bypassing the cache.

        Client failures propagate to the caller.
        """

        raw_estimate = await self.exchange.estimate_gas(source, amount, destination)
        limit = self.normalize(raw_estimate)
        self.scheduler.invalidate(GAS_CHECK)
        self.estimate = GasEstimate(limit=limit, locked=self.estimate.locked)
        return limit
