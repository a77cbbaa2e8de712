# src/synth_trader/execution/exceptions.py

import re
from typing import Any, Optional


class ExecutionError(Exception):
    """Base exception for order form and submission related errors."""


class BackgroundQueryError(ExecutionError):
    """Raised when a background query (fee rate, suspension, waiting period, gas) fails."""

    def __init__(self, check: str, message: str):
        super().__init__(f"{check} query failed: {message}")
        self.check = check


class OrderValidationError(ExecutionError):
    """Raised when an order fails local validation before submission."""


class InvalidAmountError(OrderValidationError):
    """Raised when an amount input cannot be parsed as a non-negative number."""


class EmptyAmountError(OrderValidationError):
    """Raised when submitting without an amount."""


class WalletNotConnectedError(OrderValidationError):
    """Raised when submitting without a connected wallet."""


class SubmissionInProgressError(OrderValidationError):
    """Raised when a submission is attempted while another is in flight."""


class LimitPriceRequiredError(OrderValidationError):
    """Raised when a limit order is submitted without a limit price."""


class InsufficientBalanceError(OrderValidationError):
    """Raised when the quote amount exceeds the wallet balance."""


class MarketSuspendedError(OrderValidationError):
    """Raised when either asset of the pair is suspended."""


class FeeReclamationPendingError(OrderValidationError):
    """Raised while a fee reclamation waiting period is active on the quote asset."""


class FrozenAssetError(OrderValidationError):
    """Raised when the destination asset is frozen."""


class SubmissionError(ExecutionError):
    """Base for failures raised while sending an order."""


class UserCancelledSubmission(SubmissionError):
    """Raised when the user rejects the transaction in their wallet."""


class UnknownSubmissionError(SubmissionError):
    """Raised for any other submission failure."""


class LedgerError(ExecutionError):
    """Base exception for transaction ledger errors."""


class RecordNotFoundError(LedgerError):
    """Raised when updating a record id the ledger does not hold."""

    def __init__(self, record_id: int):
        super().__init__(f"Transaction record not found: {record_id}")
        self.record_id = record_id


class InvalidTransitionError(LedgerError):
    """Raised when a record status change is not allowed."""

    def __init__(self, record_id: int, current: str, requested: str):
        super().__init__(
            f"Transaction record {record_id} cannot move from {current} to {requested}"
        )
        self.record_id = record_id
        self.current = current
        self.requested = requested


# EIP-1193 "user rejected request"
USER_REJECTED_CODE = 4001

_CANCEL_PATTERNS = {
    "metamask": re.compile(r"user denied|user rejected", re.IGNORECASE),
    "ledger": re.compile(r"denied by the user|rejected|0x6985", re.IGNORECASE),
    "trezor": re.compile(r"cancelled|canceled|action cancelled by user", re.IGNORECASE),
    "walletconnect": re.compile(r"user rejected|rejected by user", re.IGNORECASE),
    "coinbase": re.compile(r"user denied|user rejected", re.IGNORECASE),
}
_GENERIC_CANCEL = re.compile(r"user (denied|rejected|cancel)", re.IGNORECASE)


def _error_code(exc: BaseException) -> Optional[Any]:
    code = getattr(exc, "code", None)
    if code is None:
        error = getattr(exc, "error", None)
        code = getattr(error, "code", None)
    return code


def classify_submission_error(
    exc: BaseException, wallet_kind: Optional[str] = None
) -> SubmissionError:
    """Map a raw client failure to a cancelled or unknown submission error."""

    if isinstance(exc, SubmissionError):
        return exc

    message = str(exc) or exc.__class__.__name__
    if _error_code(exc) == USER_REJECTED_CODE:
        return UserCancelledSubmission(message)

    pattern = _CANCEL_PATTERNS.get((wallet_kind or "").lower(), _GENERIC_CANCEL)
    if pattern.search(message):
        return UserCancelledSubmission(message)

    return UnknownSubmissionError(message)
