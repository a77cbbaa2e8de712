import threading
from decimal import Decimal

import pytest

from synth_trader.execution.exceptions import InvalidTransitionError, RecordNotFoundError
from synth_trader.execution.ledger import InMemoryTransactionLedger
from synth_trader.execution.models import TransactionRecord, TxStatus


def _record(**overrides) -> TransactionRecord:
    params = dict(
        base="sETH",
        quote="sUSD",
        from_amount=Decimal("100"),
        to_amount=Decimal("0.05"),
        price=Decimal("2000"),
        price_usd=Decimal("2000"),
        total_usd=Decimal("100"),
    )
    params.update(overrides)
    return TransactionRecord(**params)


def test_append_assigns_sequential_ids():
    ledger = InMemoryTransactionLedger()

    first = ledger.append(_record())
    second = ledger.append(_record())

    assert (first, second) == (0, 1)
    assert ledger.get(first).status == TxStatus.WAITING
    assert [r.id for r in ledger.records()] == [0, 1]


def test_start_id_is_respected():
    ledger = InMemoryTransactionLedger(start_id=40)

    assert ledger.append(_record()) == 40


def test_concurrent_appends_never_collide():
    ledger = InMemoryTransactionLedger()
    ids = []
    lock = threading.Lock()

    def worker():
        for _ in range(50):
            record_id = ledger.append(_record())
            with lock:
                ids.append(record_id)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sorted(ids) == list(range(200))
    assert len(ledger) == 200


def test_update_to_pending_merges_submission_details():
    ledger = InMemoryTransactionLedger()
    record_id = ledger.append(_record())

    updated = ledger.update(
        record_id,
        {"status": TxStatus.PENDING, "tx_hash": "0xfeed", "nonce": 4, "block_hint": 123},
    )

    assert updated.status == TxStatus.PENDING
    assert updated.tx_hash == "0xfeed"
    assert updated.nonce == 4
    assert updated.details == {"block_hint": 123}
    assert updated.id == record_id
    assert ledger.get(record_id) == updated


def test_update_accepts_status_values():
    ledger = InMemoryTransactionLedger()
    record_id = ledger.append(_record())

    updated = ledger.update(record_id, {"status": "cancelled", "error": "User denied"})

    assert updated.status == TxStatus.CANCELLED
    assert updated.error == "User denied"


@pytest.mark.parametrize("terminal", [TxStatus.PENDING, TxStatus.CANCELLED, TxStatus.FAILED])
def test_terminal_records_cannot_transition(terminal):
    ledger = InMemoryTransactionLedger()
    record_id = ledger.append(_record())
    ledger.update(record_id, {"status": terminal})

    with pytest.raises(InvalidTransitionError):
        ledger.update(record_id, {"status": TxStatus.WAITING})


def test_update_unknown_record_raises():
    ledger = InMemoryTransactionLedger()

    with pytest.raises(RecordNotFoundError):
        ledger.update(99, {"status": TxStatus.PENDING})
