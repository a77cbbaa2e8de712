# src/synth_trader/order_form/pair.py

import logging
from typing import Tuple

from synth_trader.execution.models import Asset, CurrencyPair
from synth_trader.logging_config import structured_log_extra

logger = logging.getLogger(__name__)


class PairState:
    """Active base/quote selection of the order form.

    The external selection may arrive ``reversed``, in which case its quote
    becomes the form's base. Re-applying the selection that is already active
    is a no-op.
    """

    def __init__(self, pair: CurrencyPair, reversed: bool = False):
        self._selection: Tuple[CurrencyPair, bool] = (pair, reversed)
        self._pair = pair.swapped() if reversed else pair

    @property
    def pair(self) -> CurrencyPair:
        return self._pair

    @property
    def base(self) -> Asset:
        return self._pair.base

    @property
    def quote(self) -> Asset:
        return self._pair.quote

    def set_pair(self, pair: CurrencyPair, reversed: bool = False) -> bool:
        """Apply an external pair selection; returns False when nothing changed."""

        selection = (pair, reversed)
        if selection == self._selection:
            return False

        self._selection = selection
        self._apply(pair.swapped() if reversed else pair, event="pair_selected")
        return True

    def swap(self) -> CurrencyPair:
        self._apply(self._pair.swapped(), event="pair_swapped")
        return self._pair

    def _apply(self, pair: CurrencyPair, event: str) -> None:
        self._pair = pair
        logger.debug(
            "Active pair changed",
            extra=structured_log_extra(event=event, base=pair.base.name, quote=pair.quote.name),
        )
