"""Retrying callables, first immediately and then with exponential backoff."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, TypeVar

from xkit.errors import Op, e

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """How many immediate and backoff retries to make; delays in seconds."""

    immediate_retries: int = 0
    retries_with_backoff: int = 0
    delay: float = 0.0
    backoff_factor: float = 0.0

    @classmethod
    def no_retries(cls) -> RetryPolicy:
        """A policy that makes no retries in either stage."""
        return cls()


class Retrier:
    """Runs a callable under a retry policy."""

    def __init__(self, policy: RetryPolicy, sleep: Callable[[float], None] = time.sleep) -> None:
        self.policy = policy
        self._sleep = sleep

    def retry(self, f: Callable[[], T]) -> T:
        """Call f until it succeeds or the policy is exhausted.

        f fails by raising. After the immediate stage fails, the backoff stage
        always makes one more attempt before its own retries.
        """
        op = Op("xretry.Retrier.retry")
        try:
            return self._retry_immediately(f)
        except Exception:
            pass
        try:
            return self._retry_with_backoff(f)
        except Exception as exc:
            raise e(op, exc) from exc

    def _retry_immediately(self, f: Callable[[], T]) -> T:
        retries_left = self.policy.immediate_retries
        while True:
            try:
                return f()
            except Exception:
                if retries_left == 0:
                    raise
            retries_left -= 1

    def _retry_with_backoff(self, f: Callable[[], T]) -> T:
        retries_left = self.policy.retries_with_backoff
        delay = self.policy.delay
        while True:
            try:
                return f()
            except Exception:
                if retries_left == 0:
                    raise
            self._sleep(delay)
            delay *= self.policy.backoff_factor
            retries_left -= 1