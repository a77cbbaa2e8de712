# src/synth_trader/order_form/validation.py

import asyncio
import logging
from decimal import Decimal
from typing import Dict, Hashable, Iterable, Optional, Tuple

from synth_trader.execution.adapter import ExchangeClient, WalletContext
from synth_trader.execution.exceptions import BackgroundQueryError
from synth_trader.execution.models import (
    BlockingCondition,
    BlockingReason,
    FeeRateInfo,
    WaitingPeriod,
)
from synth_trader.formatters import seconds_to_time
from synth_trader.logging_config import structured_log_extra
from synth_trader.metrics import TradeMetrics

from .amounts import AmountEngine
from .pair import PairState
from .tasks import CheckScheduler

logger = logging.getLogger(__name__)

FEE_RATE_CHECK = "fee_rate"
SUSPENSION_CHECK = "suspension"
WAITING_PERIOD_CHECK = "waiting_period"

INSUFFICIENT_BALANCE_MESSAGE = "Amount exceeds balance"
MARKET_CLOSED_MESSAGE = "Market closed"
FROZEN_ASSET_MESSAGE = "{asset} is frozen"


def fee_reclamation_message(seconds: int, asset: str) -> str:
    return f"Fee reclamation pending: {seconds_to_time(seconds)} left before trading {asset} again"


def resolve_blocking_condition(
    suspended: bool,
    fee_reclamation_error: Optional[str],
    frozen_asset: Optional[str],
    input_error: Optional[str],
) -> Optional[BlockingCondition]:
    """Pick the single condition blocking submission, highest precedence first."""

    if suspended:
        return BlockingCondition(BlockingReason.MARKET_SUSPENDED, MARKET_CLOSED_MESSAGE)
    if fee_reclamation_error:
        return BlockingCondition(
            BlockingReason.FEE_RECLAMATION, fee_reclamation_error, retryable=True
        )
    if frozen_asset:
        return BlockingCondition(
            BlockingReason.FROZEN_ASSET, FROZEN_ASSET_MESSAGE.format(asset=frozen_asset)
        )
    if input_error:
        return BlockingCondition(BlockingReason.INPUT_ERROR, input_error)
    return None


class ValidationPipeline:
    """Pre-trade checks for the current pair and amounts.

    Three asynchronous checks (fee rate, suspension, waiting period) are
    dispatched through the :class:`CheckScheduler`, each only when its own
    dependency key changes, so a slow answer for an old pair or amount can
    never overwrite the current one. Failures are logged and counted; the
    fee rate and suspension keep their previous values while the waiting
    period clears. Balance sufficiency is checked synchronously.
    """

    def __init__(
        self,
        pair_state: PairState,
        amounts: AmountEngine,
        exchange: ExchangeClient,
        wallet: WalletContext,
        scheduler: CheckScheduler,
        restricted_categories: Iterable[str] = ("equities",),
        metrics: Optional[TradeMetrics] = None,
    ):
        self.pair_state = pair_state
        self.amounts = amounts
        self.exchange = exchange
        self.wallet = wallet
        self.scheduler = scheduler
        self.restricted_categories = set(restricted_categories)
        self.metrics = metrics

        self.fee_rate = FeeRateInfo()
        self.suspended = False
        self.waiting_period = WaitingPeriod()
        self.fee_reclamation_error: Optional[str] = None
        self.input_error: Optional[str] = None

        self._dispatched_keys: Dict[str, Hashable] = {}

    # Dependency keys

    def _pair_key(self) -> Tuple[str, str]:
        pair = self.pair_state.pair
        return (pair.base.name, pair.quote.name)

    def _waiting_period_key(self) -> Tuple[str, Optional[str], Optional[Decimal]]:
        return (
            self.pair_state.quote.name,
            self.wallet.current_address,
            self.amounts.amounts.quote_amount,
        )

    def _key_changed(self, check: str, key: Hashable) -> bool:
        if check in self._dispatched_keys and self._dispatched_keys[check] == key:
            return False
        self._dispatched_keys[check] = key
        return True

    # Entry points

    def on_state_changed(self) -> None:
        """Re-evaluate after any pair, amount, wallet or balance change."""

        self.check_balance()

        pair_key = self._pair_key()
        if self._key_changed(FEE_RATE_CHECK, pair_key):
            self._dispatch_fee_rate()
        if self._key_changed(SUSPENSION_CHECK, pair_key):
            self._dispatch_suspension()
        if self._key_changed(WAITING_PERIOD_CHECK, self._waiting_period_key()):
            self._dispatch_waiting_period()

    def retry_waiting_period(self) -> None:
        """Query the waiting period again even though nothing changed."""
        self._dispatched_keys[WAITING_PERIOD_CHECK] = self._waiting_period_key()
        self._dispatch_waiting_period()

    def dismiss_fee_reclamation_error(self) -> None:
        self.fee_reclamation_error = None

    def check_balance(self) -> Optional[str]:
        """Set or clear the insufficient-balance input error."""

        self.input_error = None
        amounts = self.amounts.amounts
        if amounts.quote_amount is None or amounts.base_amount is None:
            return None

        if self.wallet.current_address:
            balance = self.amounts.quote_balance()
            available = balance.display if balance is not None else Decimal(0)
            if amounts.quote_amount > available:
                self.input_error = INSUFFICIENT_BALANCE_MESSAGE
        return self.input_error

    def frozen_asset(self) -> Optional[str]:
        base = self.pair_state.base
        return base.name if base.is_frozen else None

    def blocking_condition(self) -> Optional[BlockingCondition]:
        return resolve_blocking_condition(
            suspended=self.suspended,
            fee_reclamation_error=self.fee_reclamation_error,
            frozen_asset=self.frozen_asset(),
            input_error=self.input_error,
        )

    # Fee rate

    def _dispatch_fee_rate(self) -> None:
        pair = self.pair_state.pair
        base, quote = pair.base.name, pair.quote.name

        def _apply(rate: Decimal) -> None:
            self.fee_rate = FeeRateInfo(percent=Decimal(100) * Decimal(rate))

        self.scheduler.dispatch(
            FEE_RATE_CHECK,
            lambda: self.exchange.fee_rate(quote, base),
            _apply,
            lambda exc: self._record_failure(FEE_RATE_CHECK, exc, base, quote),
        )

    # Suspension

    def _is_restricted(self) -> bool:
        pair = self.pair_state.pair
        return bool(
            {pair.base.category, pair.quote.category} & self.restricted_categories
        )

    def _dispatch_suspension(self) -> None:
        if not self._is_restricted():
            self.scheduler.invalidate(SUSPENSION_CHECK)
            self.suspended = False
            return

        pair = self.pair_state.pair
        base, quote = pair.base.name, pair.quote.name

        async def _query() -> bool:
            base_suspended, quote_suspended = await asyncio.gather(
                self.exchange.is_suspended(base),
                self.exchange.is_suspended(quote),
            )
            return bool(base_suspended or quote_suspended)

        def _apply(suspended: bool) -> None:
            self.suspended = suspended
            if suspended:
                logger.info(
                    "Market suspended for pair",
                    extra=structured_log_extra(event="market_suspended", base=base, quote=quote),
                )

        self.scheduler.dispatch(
            SUSPENSION_CHECK,
            _query,
            _apply,
            lambda exc: self._record_failure(SUSPENSION_CHECK, exc, base, quote),
        )

    # Waiting period

    def _dispatch_waiting_period(self) -> None:
        wallet = self.wallet.current_address
        quote = self.pair_state.quote.name

        if not wallet:
            self.scheduler.invalidate(WAITING_PERIOD_CHECK)
            self._apply_waiting_period(0, quote)
            return

        def _on_error(exc: Exception) -> None:
            self._record_failure(WAITING_PERIOD_CHECK, exc, quote=quote, wallet=wallet)
            self._apply_waiting_period(0, quote)

        self.scheduler.dispatch(
            WAITING_PERIOD_CHECK,
            lambda: self.exchange.waiting_period_seconds(wallet, quote),
            lambda seconds: self._apply_waiting_period(int(seconds), quote),
            _on_error,
        )

    def _apply_waiting_period(self, seconds: int, asset: str) -> None:
        self.waiting_period = WaitingPeriod(seconds_remaining=max(seconds, 0))
        if self.waiting_period.seconds_remaining:
            self.fee_reclamation_error = fee_reclamation_message(
                self.waiting_period.seconds_remaining, asset
            )
        else:
            self.fee_reclamation_error = None

    def _record_failure(
        self,
        check: str,
        exc: Exception,
        base: Optional[str] = None,
        quote: Optional[str] = None,
        wallet: Optional[str] = None,
    ) -> None:
        error = BackgroundQueryError(check, str(exc))
        if self.metrics:
            self.metrics.record_background_failure(check, str(exc))
        logger.warning(
            str(error),
            extra=structured_log_extra(
                event=f"{check}_query_failed",
                base=base,
                quote=quote,
                wallet=wallet,
                error=str(exc),
            ),
        )
