# src/synth_trader/execution/ledger.py

import itertools
import logging
from dataclasses import fields, replace
from threading import Lock
from typing import Any, Dict, List, Mapping, Optional, Protocol

from synth_trader.logging_config import structured_log_extra

from .exceptions import InvalidTransitionError, RecordNotFoundError
from .models import TransactionRecord, TxStatus

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    TxStatus.WAITING: {TxStatus.PENDING, TxStatus.CANCELLED, TxStatus.FAILED},
}

_RECORD_FIELDS = {f.name for f in fields(TransactionRecord)} - {"id", "created_at"}


class TransactionLedger(Protocol):
    def append(self, record: TransactionRecord) -> int: ...

    def update(self, record_id: int, patch: Mapping[str, Any]) -> TransactionRecord: ...

    def get(self, record_id: int) -> Optional[TransactionRecord]: ...

    def records(self) -> List[TransactionRecord]: ...


class InMemoryTransactionLedger:
    """
    Append-only ledger of transaction records.

    Ids come from a lock-protected counter owned by the ledger, so concurrent
    appends never collide. Records are never removed. Patch keys that are not
    record attributes are merged into ``record.details``.
    """

    def __init__(self, start_id: int = 0):
        self._lock = Lock()
        self._ids = itertools.count(start_id)
        self._records: Dict[int, TransactionRecord] = {}

    def append(self, record: TransactionRecord) -> int:
        with self._lock:
            record_id = next(self._ids)
            record.id = record_id
            self._records[record_id] = record

        logger.debug(
            "Transaction record created",
            extra=structured_log_extra(
                event="ledger_append",
                tx_id=record_id,
                base=record.base,
                quote=record.quote,
                status=record.status.value,
            ),
        )
        return record_id

    def update(self, record_id: int, patch: Mapping[str, Any]) -> TransactionRecord:
        with self._lock:
            record = self._records.get(record_id)
            if record is None:
                raise RecordNotFoundError(record_id)

            changes: Dict[str, Any] = {}
            details = dict(record.details)
            for key, value in patch.items():
                if key in _RECORD_FIELDS and key != "details":
                    changes[key] = value
                elif key == "details" and isinstance(value, Mapping):
                    details.update(value)
                else:
                    details[key] = value

            if "status" in changes:
                requested = TxStatus(changes["status"])
                if requested != record.status and requested not in ALLOWED_TRANSITIONS.get(
                    record.status, set()
                ):
                    raise InvalidTransitionError(
                        record_id, record.status.value, requested.value
                    )
                changes["status"] = requested

            updated = replace(record, details=details, **changes)
            self._records[record_id] = updated

        logger.debug(
            "Transaction record updated",
            extra=structured_log_extra(
                event="ledger_update",
                tx_id=record_id,
                status=updated.status.value,
            ),
        )
        return updated

    def get(self, record_id: int) -> Optional[TransactionRecord]:
        with self._lock:
            return self._records.get(record_id)

    def records(self) -> List[TransactionRecord]:
        """Return a snapshot of all records in id order."""
        with self._lock:
            return [self._records[key] for key in sorted(self._records)]

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
