"""Lightweight in-memory counters for operational visibility."""

from __future__ import annotations

from collections import deque
from datetime import datetime, timezone
from threading import Lock
from typing import Deque, Dict


class TradeMetrics:
    """Thread-safe, low-overhead counters for order form activity."""

    def __init__(self, max_errors: int = 50) -> None:
        self._lock = Lock()
        self._recent_errors: Deque[Dict[str, str]] = deque(maxlen=max_errors)
        self.background_failures: Dict[str, int] = {}
        self.stale_completions = 0
        self.blocked_submissions = 0
        self.submissions_attempted = 0
        self.submissions_succeeded = 0
        self.submissions_cancelled = 0
        self.submissions_failed = 0

    def record_background_failure(self, check: str, message: str) -> None:
        """Count a failed background query for ``check``."""

        with self._lock:
            self.background_failures[check] = self.background_failures.get(check, 0) + 1
            self._recent_errors.appendleft(self._format_error(f"{check}: {message}"))

    def record_stale_completion(self) -> None:
        with self._lock:
            self.stale_completions += 1

    def record_blocked_submission(self) -> None:
        with self._lock:
            self.blocked_submissions += 1

    def record_submission(self, state: str, message: str | None = None) -> None:
        """Track a finished submission attempt by its terminal state."""

        with self._lock:
            self.submissions_attempted += 1
            if state == "succeeded":
                self.submissions_succeeded += 1
            elif state == "cancelled":
                self.submissions_cancelled += 1
            else:
                self.submissions_failed += 1
            if message:
                self._recent_errors.appendleft(self._format_error(message))

    def snapshot(self) -> Dict[str, object]:
        """Return a read-only snapshot of current counters."""

        with self._lock:
            return {
                "background_failures": dict(self.background_failures),
                "stale_completions": self.stale_completions,
                "blocked_submissions": self.blocked_submissions,
                "submissions_attempted": self.submissions_attempted,
                "submissions_succeeded": self.submissions_succeeded,
                "submissions_cancelled": self.submissions_cancelled,
                "submissions_failed": self.submissions_failed,
                "recent_errors": list(self._recent_errors),
            }

    @staticmethod
    def _format_error(message: str) -> Dict[str, str]:
        return {
            "at": datetime.now(timezone.utc).isoformat(),
            "message": message,
        }


__all__ = ["TradeMetrics"]
