# src/synth_trader/execution/models.py

from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional

AssetId = str


class OrderType(str, Enum):
    MARKET = "market"
    LIMIT = "limit"


class TxStatus(str, Enum):
    WAITING = "waiting"
    PENDING = "pending"
    CANCELLED = "cancelled"
    FAILED = "failed"


class SubmitState(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


class BlockingReason(str, Enum):
    # Declared in precedence order, highest first.
    MARKET_SUSPENDED = "market_suspended"
    FEE_RECLAMATION = "fee_reclamation"
    FROZEN_ASSET = "frozen_asset"
    INPUT_ERROR = "input_error"


@dataclass(frozen=True)
class Asset:
    name: AssetId
    category: str = "crypto"
    is_frozen: bool = False


@dataclass(frozen=True)
class CurrencyPair:
    base: Asset  # bought
    quote: Asset  # sold

    def __post_init__(self) -> None:
        if self.base.name == self.quote.name:
            raise ValueError(f"Base and quote must differ, got {self.base.name}")

    def swapped(self) -> "CurrencyPair":
        return CurrencyPair(base=self.quote, quote=self.base)


@dataclass
class Amounts:
    base_amount: Optional[Decimal] = None
    quote_amount: Optional[Decimal] = None
    limit_price: Optional[Decimal] = None
    trade_all_balance: bool = False


@dataclass(frozen=True)
class Balance:
    asset: AssetId
    display: Decimal
    raw: int  # integer token units


@dataclass
class FeeRateInfo:
    percent: Decimal = Decimal(0)


@dataclass
class WaitingPeriod:
    seconds_remaining: int = 0


@dataclass
class GasEstimate:
    limit: int
    locked: bool = False


@dataclass(frozen=True)
class GasParams:
    gas_price: int  # wei
    gas_limit: int
    value: Optional[int] = None


@dataclass(frozen=True)
class OrderRequest:
    type: OrderType
    source: AssetId
    source_amount: int
    destination: AssetId
    gas: GasParams
    limit_price: Optional[Decimal] = None
    execution_fee: Optional[int] = None


@dataclass(frozen=True)
class TxHandle:
    hash: str
    nonce: Optional[int] = None
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass
class TransactionRecord:
    base: AssetId
    quote: AssetId
    from_amount: Decimal
    to_amount: Decimal
    price: Decimal
    price_usd: Decimal
    total_usd: Decimal
    status: TxStatus = TxStatus.WAITING
    id: Optional[int] = None  # assigned by the ledger on append
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    error: Optional[str] = None
    tx_hash: Optional[str] = None
    nonce: Optional[int] = None
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class BlockingCondition:
    reason: BlockingReason
    message: str
    retryable: bool = False


@dataclass
class SubmissionOutcome:
    order_type: OrderType
    state: SubmitState
    record_id: Optional[int] = None
    handle: Optional[TxHandle] = None
    request: Optional[OrderRequest] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.state == SubmitState.SUCCEEDED


@dataclass(frozen=True)
class NetworkFee:
    gas_limit: int
    gas_price_gwei: Decimal
    eth_cost: Decimal
    usd_cost: Decimal
    exchange_fee_percent: Decimal
    exchange_fee_usd: Decimal
