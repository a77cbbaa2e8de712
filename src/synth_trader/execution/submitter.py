# src/synth_trader/execution/submitter.py

import logging
from dataclasses import replace
from typing import TYPE_CHECKING, Dict, Optional, Type

from synth_trader.config_models import AppConfig
from synth_trader.logging_config import structured_log_extra
from synth_trader.market_data.rates import RateTable
from synth_trader.metrics import TradeMetrics

from .adapter import ExchangeClient, LimitOrderClient, WalletContext
from .exceptions import (
    EmptyAmountError,
    FeeReclamationPendingError,
    FrozenAssetError,
    InsufficientBalanceError,
    LimitPriceRequiredError,
    MarketSuspendedError,
    OrderValidationError,
    SubmissionInProgressError,
    WalletNotConnectedError,
    classify_submission_error,
)
from .handlers import OrderHandler, SubmitContext, default_handlers, failure_state
from .ledger import TransactionLedger
from .models import BlockingReason, OrderType, SubmissionOutcome, SubmitState

if TYPE_CHECKING:
    from synth_trader.order_form.amounts import AmountEngine
    from synth_trader.order_form.gas import GasEstimator
    from synth_trader.order_form.pair import PairState
    from synth_trader.order_form.validation import ValidationPipeline

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Transaction failed, please try again"

BLOCKING_ERRORS: Dict[BlockingReason, Type[OrderValidationError]] = {
    BlockingReason.MARKET_SUSPENDED: MarketSuspendedError,
    BlockingReason.FEE_RECLAMATION: FeeReclamationPendingError,
    BlockingReason.FROZEN_ASSET: FrozenAssetError,
    BlockingReason.INPUT_ERROR: InsufficientBalanceError,
}


class OrderSubmitter:
    """Turn validated form state into a submitted order and its ledger record.

    The submitter moves ``IDLE -> SUBMITTING -> {SUCCEEDED, FAILED,
    CANCELLED}`` and back to ``IDLE`` once an attempt finishes, keeping the
    terminal state in :attr:`last_state`. Only one submission can be in flight;
    the latch is released on every exit path, including unexpected errors.
    Order types are dispatched to per-type :class:`OrderHandler` objects.
    Failures leave a short dismissible :attr:`error_message`; raw client
    errors are kept in the ledger and logs only.
    """

    def __init__(
        self,
        pair_state: "PairState",
        amounts: "AmountEngine",
        pipeline: "ValidationPipeline",
        gas_estimator: "GasEstimator",
        exchange: ExchangeClient,
        limit_orders: LimitOrderClient,
        ledger: TransactionLedger,
        rates: RateTable,
        wallet: WalletContext,
        config: Optional[AppConfig] = None,
        metrics: Optional[TradeMetrics] = None,
        handlers: Optional[Dict[OrderType, OrderHandler]] = None,
    ):
        self.pair_state = pair_state
        self.amounts = amounts
        self.pipeline = pipeline
        self.gas_estimator = gas_estimator
        self.exchange = exchange
        self.limit_orders = limit_orders
        self.ledger = ledger
        self.rates = rates
        self.wallet = wallet
        self.config = config or AppConfig()
        self.metrics = metrics
        self.handlers = handlers or default_handlers()

        self.state = SubmitState.IDLE
        self.last_state: Optional[SubmitState] = None
        self.last_outcome: Optional[SubmissionOutcome] = None
        self.error_message: Optional[str] = None

    @property
    def is_submitting(self) -> bool:
        return self.state == SubmitState.SUBMITTING

    def check_submittable(self, order_type: OrderType) -> None:
        """Raise the :class:`OrderValidationError` that currently blocks submission."""

        if self.is_submitting:
            raise SubmissionInProgressError("A submission is already in progress")

        if not self.wallet.current_address:
            raise WalletNotConnectedError("No wallet connected")

        amounts = self.amounts.amounts
        if amounts.base_amount is None or (
            amounts.quote_amount is None and not amounts.trade_all_balance
        ):
            raise EmptyAmountError("Enter an amount to exchange")

        condition = self.pipeline.blocking_condition()
        if condition is not None:
            raise BLOCKING_ERRORS[condition.reason](condition.message)

        if order_type == OrderType.LIMIT and amounts.limit_price is None:
            raise LimitPriceRequiredError("Enter a limit price")

    def can_submit(self, order_type: OrderType = OrderType.MARKET) -> bool:
        try:
            self.check_submittable(order_type)
        except OrderValidationError:
            return False
        return True

    def _build_context(self) -> SubmitContext:
        return SubmitContext(
            pair=self.pair_state.pair,
            amounts=replace(self.amounts.amounts),
            amount_to_exchange=self.amounts.amount_to_exchange(),
            gas_price=self.gas_estimator.gas_price_wei(),
            wallet=self.wallet.current_address,
            wallet_kind=self.wallet.current_wallet_kind,
            exchange=self.exchange,
            limit_orders=self.limit_orders,
            ledger=self.ledger,
            rates=self.rates,
            gas=self.gas_estimator,
            config=self.config,
        )

    async def submit(self, order_type: OrderType = OrderType.MARKET) -> SubmissionOutcome:
        """Submit the current form as ``order_type``.

        Raises :class:`OrderValidationError` when the guard rejects the attempt;
        every other failure is reported through the returned outcome.
        """

        try:
            self.check_submittable(order_type)
        except OrderValidationError as exc:
            if self.metrics:
                self.metrics.record_blocked_submission()
            logger.warning(
                "Submission rejected",
                extra=structured_log_extra(
                    event="submission_rejected",
                    order_type=order_type.value,
                    reason=exc.__class__.__name__,
                ),
            )
            raise

        self.state = SubmitState.SUBMITTING
        self.error_message = None
        handler = self.handlers[order_type]
        pair = self.pair_state.pair

        try:
            try:
                outcome = await handler.submit(self._build_context())
            except Exception as exc:  # gas estimation or unexpected handler failure
                error = classify_submission_error(exc, self.wallet.current_wallet_kind)
                logger.error(
                    "Submission aborted",
                    extra=structured_log_extra(
                        event="submission_error",
                        order_type=order_type.value,
                        base=pair.base.name,
                        quote=pair.quote.name,
                        error=str(error),
                    ),
                )
                outcome = SubmissionOutcome(
                    order_type=order_type,
                    state=failure_state(error),
                    error=str(error),
                )
            self._finish(outcome)
        finally:
            self.state = SubmitState.IDLE

        return outcome

    def _finish(self, outcome: SubmissionOutcome) -> None:
        self.last_state = outcome.state
        self.last_outcome = outcome
        if not outcome.succeeded:
            self.error_message = GENERIC_ERROR_MESSAGE

        if self.metrics:
            self.metrics.record_submission(outcome.state.value, outcome.error)

        logger.info(
            "Submission finished",
            extra=structured_log_extra(
                event="submission_finished",
                order_type=outcome.order_type.value,
                tx_id=outcome.record_id,
                state=outcome.state.value,
            ),
        )

    def dismiss_error(self) -> None:
        """Clear the user-visible failure message; safe to call repeatedly."""
        self.error_message = None
