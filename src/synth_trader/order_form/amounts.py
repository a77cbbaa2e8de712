# src/synth_trader/order_form/amounts.py

import logging
from dataclasses import replace
from decimal import Decimal
from typing import Iterable, Optional

from synth_trader.execution.exceptions import OrderValidationError
from synth_trader.execution.models import Amounts, Balance
from synth_trader.formatters import AmountInput, parse_amount, to_raw_amount
from synth_trader.logging_config import structured_log_extra
from synth_trader.market_data.balances import BalanceTable
from synth_trader.market_data.rates import RateTable, rate_or_zero

from .pair import PairState

logger = logging.getLogger(__name__)

DEFAULT_BALANCE_FRACTIONS = (25, 50, 75, 100)


class AmountEngine:
    """
    Derive base and quote amounts from user edits and balance shortcuts.

    Each edit converts through the rate known at edit time; amounts are not
    recomputed when rates move afterwards. Editing either side by hand
    clears ``trade_all_balance``.
    """

    def __init__(
        self,
        pair_state: PairState,
        rates: RateTable,
        balances: BalanceTable,
        balance_fractions: Iterable[int] = DEFAULT_BALANCE_FRACTIONS,
        asset_decimals: int = 18,
    ):
        self.pair_state = pair_state
        self.rates = rates
        self.balances = balances
        self.balance_fractions = tuple(balance_fractions)
        self.asset_decimals = asset_decimals
        self._amounts = Amounts()

    @property
    def amounts(self) -> Amounts:
        return self._amounts

    def snapshot(self) -> Amounts:
        return replace(self._amounts)

    def reset(self) -> None:
        self._amounts = Amounts()

    def quote_rate(self) -> Decimal:
        """Rate converting the quote asset into the base asset."""
        pair = self.pair_state.pair
        return rate_or_zero(self.rates, pair.quote.name, pair.base.name)

    def inverse_rate(self) -> Decimal:
        """Rate converting the base asset into the quote asset."""
        pair = self.pair_state.pair
        return rate_or_zero(self.rates, pair.base.name, pair.quote.name)

    def quote_balance(self) -> Optional[Balance]:
        return self.balances.balance_of(self.pair_state.quote.name)

    def base_balance(self) -> Optional[Balance]:
        return self.balances.balance_of(self.pair_state.base.name)

    def has_quote_balance(self) -> bool:
        balance = self.quote_balance()
        return balance is not None and balance.display > 0

    def edit_quote(self, value: AmountInput) -> Amounts:
        quote_amount = parse_amount(value)
        base_amount = None if quote_amount is None else quote_amount * self.quote_rate()
        self._amounts = replace(
            self._amounts,
            quote_amount=quote_amount,
            base_amount=base_amount,
            trade_all_balance=False,
        )
        return self._amounts

    def edit_base(self, value: AmountInput) -> Amounts:
        base_amount = parse_amount(value)
        quote_amount = None if base_amount is None else base_amount * self.inverse_rate()
        self._amounts = replace(
            self._amounts,
            base_amount=base_amount,
            quote_amount=quote_amount,
            trade_all_balance=False,
        )
        return self._amounts

    def edit_limit_price(self, value: AmountInput) -> Amounts:
        self._amounts = replace(self._amounts, limit_price=parse_amount(value))
        return self._amounts

    def use_max_balance(self) -> Amounts:
        balance = self.quote_balance()
        if balance is None or balance.display <= 0:
            return self._amounts
        return self._apply_balance_amount(balance.display, trade_all=True)

    def use_fraction(self, pct: int) -> Amounts:
        if pct not in self.balance_fractions:
            raise OrderValidationError(f"Unsupported balance fraction: {pct}%")

        balance = self.quote_balance()
        if balance is None or balance.display <= 0:
            return self._amounts

        is_whole_balance = pct == 100
        amount = balance.display if is_whole_balance else balance.display * pct / 100
        return self._apply_balance_amount(amount, trade_all=is_whole_balance)

    def _apply_balance_amount(self, amount: Decimal, trade_all: bool) -> Amounts:
        self._amounts = replace(
            self._amounts,
            quote_amount=amount,
            base_amount=amount * self.quote_rate(),
            trade_all_balance=trade_all,
        )
        logger.debug(
            "Amounts set from balance",
            extra=structured_log_extra(
                event="amounts_from_balance",
                base=self.pair_state.base.name,
                quote=self.pair_state.quote.name,
                trade_all_balance=trade_all,
            ),
        )
        return self._amounts

    def amount_to_exchange(self) -> int:
        """Integer amount of the quote asset that a submission would send."""

        if self._amounts.trade_all_balance:
            balance = self.quote_balance()
            if balance is not None:
                return balance.raw

        if self._amounts.quote_amount is None:
            return 0
        return to_raw_amount(self._amounts.quote_amount, self.asset_decimals)
