# src/synth_trader/execution/handlers.py

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Optional, Protocol

from synth_trader.config_models import AppConfig
from synth_trader.logging_config import structured_log_extra
from synth_trader.market_data.rates import RateTable, rate_or_zero

from .adapter import ExchangeClient, LimitOrderClient
from .exceptions import SubmissionError, UserCancelledSubmission, classify_submission_error
from .ledger import TransactionLedger
from .models import (
    AssetId,
    Amounts,
    CurrencyPair,
    GasParams,
    OrderRequest,
    OrderType,
    SubmissionOutcome,
    SubmitState,
    TransactionRecord,
    TxStatus,
)

logger = logging.getLogger(__name__)


class FreshGasSource(Protocol):
    async def estimate_fresh(self, source: AssetId, amount: int, destination: AssetId) -> int: ...


@dataclass
class SubmitContext:
    """Everything an order handler needs to send one order."""

    pair: CurrencyPair
    amounts: Amounts
    amount_to_exchange: int
    gas_price: int  # wei
    wallet: Optional[str]
    wallet_kind: Optional[str]
    exchange: ExchangeClient
    limit_orders: LimitOrderClient
    ledger: TransactionLedger
    rates: RateTable
    gas: FreshGasSource
    config: AppConfig


class OrderHandler(Protocol):
    order_type: OrderType

    async def submit(self, context: SubmitContext) -> SubmissionOutcome: ...


def failure_state(error: SubmissionError) -> SubmitState:
    if isinstance(error, UserCancelledSubmission):
        return SubmitState.CANCELLED
    return SubmitState.FAILED


def build_market_record(context: SubmitContext) -> TransactionRecord:
    """Create the WAITING record for a market exchange with its display prices."""

    reference = context.config.exchange.reference_asset
    base = context.pair.base.name
    quote = context.pair.quote.name
    rates = context.rates

    # Prices are always quoted against the non-reference side of the pair.
    if base == reference:
        price = rate_or_zero(rates, quote, base)
        price_usd = rate_or_zero(rates, quote, reference)
    else:
        price = rate_or_zero(rates, base, quote)
        price_usd = rate_or_zero(rates, base, reference)

    base_amount = context.amounts.base_amount or Decimal(0)
    return TransactionRecord(
        base=base,
        quote=quote,
        from_amount=context.amounts.quote_amount or Decimal(0),
        to_amount=base_amount,
        price=price,
        price_usd=price_usd,
        total_usd=base_amount * rate_or_zero(rates, base, reference),
        status=TxStatus.WAITING,
    )


class MarketOrderHandler:
    """Immediate exchange through the exchange client, tracked in the ledger."""

    order_type = OrderType.MARKET

    async def submit(self, context: SubmitContext) -> SubmissionOutcome:
        base = context.pair.base.name
        quote = context.pair.quote.name

        gas_limit = await context.gas.estimate_fresh(quote, context.amount_to_exchange, base)
        gas = GasParams(gas_price=context.gas_price, gas_limit=gas_limit)

        record_id = context.ledger.append(build_market_record(context))
        request = OrderRequest(
            type=OrderType.MARKET,
            source=quote,
            source_amount=context.amount_to_exchange,
            destination=base,
            gas=gas,
        )

        logger.info(
            "Submitting market order",
            extra=structured_log_extra(
                event="market_order_submit",
                base=base,
                quote=quote,
                wallet=context.wallet,
                tx_id=record_id,
                amount=context.amount_to_exchange,
                gas_limit=gas_limit,
                gas_price=context.gas_price,
            ),
        )

        try:
            handle = await context.exchange.submit_market_order(
                quote, context.amount_to_exchange, base, gas
            )
        except Exception as exc:  # client errors of any shape are classified below
            error = classify_submission_error(exc, context.wallet_kind)
            state = failure_state(error)
            status = TxStatus.CANCELLED if state == SubmitState.CANCELLED else TxStatus.FAILED
            context.ledger.update(record_id, {"status": status, "error": str(error)})
            logger.error(
                "Market order submission failed",
                extra=structured_log_extra(
                    event="market_order_failed",
                    base=base,
                    quote=quote,
                    tx_id=record_id,
                    status=status.value,
                    error=str(error),
                ),
            )
            return SubmissionOutcome(
                order_type=OrderType.MARKET,
                state=state,
                record_id=record_id,
                request=request,
                error=str(error),
            )

        context.ledger.update(
            record_id,
            {
                **handle.details,
                "status": TxStatus.PENDING,
                "tx_hash": handle.hash,
                "nonce": handle.nonce,
            },
        )
        logger.info(
            "Market order accepted",
            extra=structured_log_extra(
                event="market_order_pending",
                base=base,
                quote=quote,
                tx_id=record_id,
                tx_hash=handle.hash,
            ),
        )
        return SubmissionOutcome(
            order_type=OrderType.MARKET,
            state=SubmitState.SUCCEEDED,
            record_id=record_id,
            handle=handle,
            request=request,
        )


class LimitOrderHandler:
    """Order-book submission with a fixed gas limit and execution fee.

    No ledger record is written for limit orders.
    """

    order_type = OrderType.LIMIT

    async def submit(self, context: SubmitContext) -> SubmissionOutcome:
        base = context.pair.base.name
        quote = context.pair.quote.name
        limit_config = context.config.limit_orders
        limit_price = context.amounts.limit_price or Decimal(0)

        gas = GasParams(
            gas_price=context.gas_price,
            gas_limit=limit_config.gas_limit,
            value=limit_config.execution_fee,
        )
        request = OrderRequest(
            type=OrderType.LIMIT,
            source=quote,
            source_amount=context.amount_to_exchange,
            destination=base,
            gas=gas,
            limit_price=limit_price,
            execution_fee=limit_config.execution_fee,
        )

        logger.info(
            "Submitting limit order",
            extra=structured_log_extra(
                event="limit_order_submit",
                base=base,
                quote=quote,
                wallet=context.wallet,
                amount=context.amount_to_exchange,
                limit_price=limit_price,
            ),
        )

        try:
            handle = await context.limit_orders.submit_limit_order(
                quote,
                context.amount_to_exchange,
                base,
                limit_price,
                limit_config.execution_fee,
                gas,
            )
        except Exception as exc:  # client errors of any shape are classified below
            error = classify_submission_error(exc, context.wallet_kind)
            logger.error(
                "Limit order submission failed",
                extra=structured_log_extra(
                    event="limit_order_failed",
                    base=base,
                    quote=quote,
                    error=str(error),
                ),
            )
            return SubmissionOutcome(
                order_type=OrderType.LIMIT,
                state=failure_state(error),
                request=request,
                error=str(error),
            )

        logger.info(
            "Limit order accepted; no transaction record kept",
            extra=structured_log_extra(
                event="limit_order_untracked",
                base=base,
                quote=quote,
                tx_hash=handle.hash,
            ),
        )
        return SubmissionOutcome(
            order_type=OrderType.LIMIT,
            state=SubmitState.SUCCEEDED,
            handle=handle,
            request=request,
        )


def default_handlers() -> Dict[OrderType, OrderHandler]:
    return {
        OrderType.MARKET: MarketOrderHandler(),
        OrderType.LIMIT: LimitOrderHandler(),
    }
