"""
Exponential backoff between retries on the same credential.
"""
from __future__ import annotations

import time
from typing import Callable, Iterator

DEFAULT_MAX_RETRIES = 2


class BackoffScheduler:
    """
    Delay schedule ``base * 2^(attempt - 1)`` with a per-credential attempt cap.

    Attempt 0 is the first call on a credential and never waits. With
    ``max_retries=2`` and ``base_delay_ms=1000`` the waits are 0s, 1s, 2s.
    """

    def __init__(
        self,
        base_delay_ms: int,
        max_retries: int = DEFAULT_MAX_RETRIES,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if base_delay_ms < 0:
            raise ValueError("base_delay_ms must not be negative")
        if max_retries < 0:
            raise ValueError("max_retries must not be negative")
        self.base_delay_ms = base_delay_ms
        self.max_retries = max_retries
        self._sleep = sleep

    @property
    def attempts_per_credential(self) -> int:
        return self.max_retries + 1

    def next_delay(self, attempt_index: int) -> float:
        """
        Seconds to wait before ``attempt_index``.
        """
        if attempt_index < 1:
            return 0.0
        return self.base_delay_ms * (2 ** (attempt_index - 1)) / 1000.0

    def attempts(self) -> Iterator[int]:
        return iter(range(self.attempts_per_credential))

    def wait(self, attempt_index: int) -> float:
        delay = self.next_delay(attempt_index)
        if delay > 0:
            self._sleep(delay)
        return delay
