# src/synth_trader/order_form/tasks.py

import asyncio
import logging
from typing import Awaitable, Callable, Dict, Optional, Set, TypeVar

from synth_trader.logging_config import structured_log_extra
from synth_trader.metrics import TradeMetrics

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CheckScheduler:
    """
    Run keyed background checks as asyncio tasks, applying only the latest.

    Every dispatch for a key takes the next epoch for that key. When a task
    finishes, its result (or failure) is handed to the callbacks only if no
    newer dispatch or invalidation happened for the key meanwhile. Superseded
    tasks are not cancelled; their completions are dropped.
    """

    def __init__(self, metrics: Optional[TradeMetrics] = None):
        self._epochs: Dict[str, int] = {}
        self._pending: Set["asyncio.Task[None]"] = set()
        self.metrics = metrics

    def epoch(self, key: str) -> int:
        return self._epochs.get(key, 0)

    def invalidate(self, key: str) -> int:
        """Supersede every outstanding task for ``key``."""
        self._epochs[key] = self.epoch(key) + 1
        return self._epochs[key]

    def is_current(self, key: str, epoch: int) -> bool:
        return self.epoch(key) == epoch

    @property
    def pending(self) -> int:
        return len(self._pending)

    def dispatch(
        self,
        key: str,
        query: Callable[[], Awaitable[T]],
        on_result: Callable[[T], None],
        on_error: Callable[[Exception], None],
    ) -> "asyncio.Task[None]":
        """Start ``query`` for ``key``; requires a running event loop."""

        epoch = self.invalidate(key)

        async def _run() -> None:
            try:
                result = await query()
            except Exception as exc:  # reported through on_error below
                if self.is_current(key, epoch):
                    on_error(exc)
                else:
                    self._discard(key, epoch)
                return

            if self.is_current(key, epoch):
                on_result(result)
            else:
                self._discard(key, epoch)

        task = asyncio.get_running_loop().create_task(_run(), name=f"check:{key}:{epoch}")
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    def _discard(self, key: str, epoch: int) -> None:
        if self.metrics:
            self.metrics.record_stale_completion()
        logger.debug(
            "Discarding stale check completion",
            extra=structured_log_extra(
                event="check_stale_discarded",
                check=key,
                epoch=epoch,
                latest_epoch=self.epoch(key),
            ),
        )

    async def wait_idle(self) -> None:
        """Wait until every dispatched task, including ones started meanwhile, has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
