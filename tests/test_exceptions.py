import pytest

from synth_trader.execution.exceptions import (
    UnknownSubmissionError,
    UserCancelledSubmission,
    classify_submission_error,
)


class ProviderError(Exception):
    def __init__(self, message, code=None):
        super().__init__(message)
        self.code = code


class WrappedError(Exception):
    def __init__(self, message, error):
        super().__init__(message)
        self.error = error


def test_user_rejected_code_is_cancellation_for_any_wallet():
    error = classify_submission_error(ProviderError("request rejected", code=4001), "trezor")

    assert isinstance(error, UserCancelledSubmission)
    assert str(error) == "request rejected"


def test_nested_error_code_is_inspected():
    inner = ProviderError("inner", code=4001)

    error = classify_submission_error(WrappedError("outer", inner), None)

    assert isinstance(error, UserCancelledSubmission)


@pytest.mark.parametrize(
    "wallet_kind, message",
    [
        ("metamask", "MetaMask Tx Signature: User denied transaction signature."),
        ("ledger", "Ledger device: Condition of use not satisfied (denied by the user?) (0x6985)"),
        ("trezor", "Action cancelled by user"),
        ("walletconnect", "User rejected the request."),
        ("MetaMask", "user rejected transaction"),
        (None, "User denied account authorization"),
    ],
)
def test_wallet_specific_cancellation_messages(wallet_kind, message):
    assert isinstance(
        classify_submission_error(RuntimeError(message), wallet_kind), UserCancelledSubmission
    )


@pytest.mark.parametrize(
    "wallet_kind, message",
    [
        ("metamask", "insufficient funds for gas * price + value"),
        ("ledger", "Ledger device: Invalid data received (0x6a80)"),
        (None, "execution reverted"),
    ],
)
def test_other_failures_are_unknown(wallet_kind, message):
    error = classify_submission_error(RuntimeError(message), wallet_kind)

    assert isinstance(error, UnknownSubmissionError)
    assert str(error) == message


def test_empty_message_falls_back_to_class_name():
    assert str(classify_submission_error(TimeoutError(), "metamask")) == "TimeoutError"


def test_already_classified_errors_pass_through():
    original = UserCancelledSubmission("cancelled")

    assert classify_submission_error(original, "metamask") is original
