"""Per-operation deadline propagated from the provider to Graph calls."""
from __future__ import annotations
import time
from typing import Optional

from approle.core.graph.exceptions import DeadlineExceededError


class Deadline:
    """Absolute point in time after which an operation must stop issuing calls.

    Usage:
        deadline = Deadline.after(300, "azuread_app_role_assignment create")
        resp = requests.get(url, timeout=deadline.request_timeout(30))
    """

    def __init__(self, expires_at: float, operation: str = "operation"):
        self.expires_at = expires_at
        self.operation = operation

    @classmethod
    def after(cls, seconds: float, operation: str = "operation") -> "Deadline":
        return cls(time.monotonic() + seconds, operation)

    def remaining(self) -> float:
        return max(0.0, self.expires_at - time.monotonic())

    def expired(self) -> bool:
        return self.remaining() <= 0

    def check(self) -> None:
        """Raise if the deadline has passed.

        Raises:
            DeadlineExceededError: If no time is left
        """
        if self.expired():
            raise DeadlineExceededError(f"{self.operation} timed out")

    def request_timeout(self, default: Optional[float]) -> float:
        """Bound a single HTTP timeout by the time left on the deadline."""
        self.check()
        remaining = self.remaining()
        if default is None:
            return remaining
        return min(default, remaining)
