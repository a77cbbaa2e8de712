# src/synth_trader/order_form/__init__.py

from .amounts import AmountEngine
from .gas import GasEstimator, normalize_gas_limit
from .pair import PairState
from .session import OrderFormSession
from .tasks import CheckScheduler
from .validation import ValidationPipeline, resolve_blocking_condition

__all__ = [
    "AmountEngine",
    "CheckScheduler",
    "GasEstimator",
    "OrderFormSession",
    "PairState",
    "ValidationPipeline",
    "normalize_gas_limit",
    "resolve_blocking_condition",
]
