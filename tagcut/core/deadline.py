"""Wall-clock deadline shared by every blocking call of one release attempt.

There is no separate cancellation channel: each git invocation and each HTTP
request takes its timeout from the remaining budget, and a step that starts
after expiry fails like any other step.
"""

from __future__ import annotations

import time
from dataclasses import dataclass

__all__ = ["Deadline", "DEFAULT_RELEASE_TIMEOUT_SECONDS", "REVERT_GRACE_SECONDS"]

DEFAULT_RELEASE_TIMEOUT_SECONDS = 10 * 60.0

# Fresh budget for compensation when the run budget is already spent.
REVERT_GRACE_SECONDS = 2 * 60.0


@dataclass(frozen=True, slots=True)
class Deadline:
    """Absolute expiry on the monotonic clock."""

    expires_at: float

    @classmethod
    def after(cls, seconds: float) -> Deadline:
        return cls(expires_at=time.monotonic() + seconds)

    def remaining(self) -> float:
        return max(0.0, self.expires_at - time.monotonic())

    @property
    def expired(self) -> bool:
        return self.remaining() <= 0.0

    def timeout(self, cap: float | None = None) -> float:
        """Per-call timeout: the remaining budget, optionally capped."""
        left = self.remaining()
        if cap is None:
            return left
        return min(left, cap)
