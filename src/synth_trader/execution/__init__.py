# src/synth_trader/execution/__init__.py

from .models import (
    Amounts,
    Asset,
    Balance,
    BlockingCondition,
    BlockingReason,
    CurrencyPair,
    FeeRateInfo,
    GasEstimate,
    GasParams,
    NetworkFee,
    OrderRequest,
    OrderType,
    SubmissionOutcome,
    SubmitState,
    TransactionRecord,
    TxHandle,
    TxStatus,
    WaitingPeriod,
)
from .exceptions import (
    BackgroundQueryError,
    EmptyAmountError,
    ExecutionError,
    FeeReclamationPendingError,
    FrozenAssetError,
    InsufficientBalanceError,
    InvalidAmountError,
    InvalidTransitionError,
    LedgerError,
    LimitPriceRequiredError,
    MarketSuspendedError,
    OrderValidationError,
    RecordNotFoundError,
    SubmissionError,
    SubmissionInProgressError,
    UnknownSubmissionError,
    UserCancelledSubmission,
    WalletNotConnectedError,
    classify_submission_error,
)
from .adapter import (
    ExchangeClient,
    LimitOrderClient,
    PaperExchangeClient,
    PaperLimitOrderClient,
    StaticWallet,
    UiSignal,
    WalletContext,
)
from .ledger import InMemoryTransactionLedger, TransactionLedger
from .handlers import LimitOrderHandler, MarketOrderHandler, OrderHandler, SubmitContext
from .submitter import OrderSubmitter

__all__ = [
    "Amounts",
    "Asset",
    "BackgroundQueryError",
    "Balance",
    "BlockingCondition",
    "BlockingReason",
    "CurrencyPair",
    "EmptyAmountError",
    "ExchangeClient",
    "ExecutionError",
    "FeeRateInfo",
    "FeeReclamationPendingError",
    "FrozenAssetError",
    "GasEstimate",
    "GasParams",
    "InMemoryTransactionLedger",
    "InsufficientBalanceError",
    "InvalidAmountError",
    "InvalidTransitionError",
    "LedgerError",
    "LimitOrderClient",
    "LimitOrderHandler",
    "LimitPriceRequiredError",
    "MarketOrderHandler",
    "MarketSuspendedError",
    "NetworkFee",
    "OrderHandler",
    "OrderRequest",
    "OrderSubmitter",
    "OrderType",
    "OrderValidationError",
    "PaperExchangeClient",
    "PaperLimitOrderClient",
    "RecordNotFoundError",
    "StaticWallet",
    "SubmissionError",
    "SubmissionInProgressError",
    "SubmissionOutcome",
    "SubmitContext",
    "SubmitState",
    "TransactionLedger",
    "TransactionRecord",
    "TxHandle",
    "TxStatus",
    "UiSignal",
    "UnknownSubmissionError",
    "UserCancelledSubmission",
    "WaitingPeriod",
    "WalletContext",
    "WalletNotConnectedError",
    "classify_submission_error",
]
