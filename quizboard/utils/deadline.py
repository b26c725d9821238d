"""Caller-supplied deadlines for store operations"""

import time
from typing import Callable, Optional

from quizboard.core.exceptions import DeadlineExceededException


class Deadline:
    """Point on a monotonic clock after which an operation must be abandoned"""

    def __init__(self, timeout: float, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._expires_at = clock() + timeout

    @classmethod
    def after(cls, timeout: Optional[float]) -> Optional["Deadline"]:
        """Deadline ``timeout`` seconds from now, or None for no deadline"""
        if timeout is None:
            return None
        return cls(timeout)

    def remaining(self) -> float:
        return max(self._expires_at - self._clock(), 0.0)

    def expired(self) -> bool:
        return self._clock() >= self._expires_at

    def check(self) -> None:
        if self.expired():
            raise DeadlineExceededException()
