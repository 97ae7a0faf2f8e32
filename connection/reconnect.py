"""
Reconnect policy.

Pure computation, no timers and no I/O:
- Backoff delay for a given attempt count
- Whether the failure streak is exhausted
- Whether a close reason is permanent (logged out) or recoverable
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from transport.whatsapp.events import DisconnectReason


class CloseCategory(str, Enum):
    """How a close event affects the session."""

    LOGGED_OUT = "logged_out"
    RECOVERABLE = "recoverable"


def classify_close(status_code: Optional[int]) -> CloseCategory:
    """Only an explicit logout is permanent. Unknown or missing codes are recoverable."""
    if status_code == DisconnectReason.LOGGED_OUT:
        return CloseCategory.LOGGED_OUT
    return CloseCategory.RECOVERABLE


@dataclass(frozen=True)
class ReconnectPolicy:
    """
    Bounded exponential backoff.

    delay(n) = min(base_delay * 2**n, max_delay), where n is the number of
    consecutive failures before this one.
    """

    base_delay: float = 2.0
    max_delay: float = 60.0
    max_attempts: int = 10

    def __post_init__(self):
        if self.base_delay <= 0:
            raise ValueError("base_delay must be positive")
        if self.max_delay < self.base_delay:
            raise ValueError("max_delay must be >= base_delay")
        if self.max_attempts < 0:
            raise ValueError("max_attempts must be >= 0")

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait before reconnecting after `attempt` prior failures."""
        if attempt < 0:
            raise ValueError("attempt must be >= 0")
        try:
            delay = self.base_delay * (2 ** attempt)
        except OverflowError:
            return self.max_delay
        return min(delay, self.max_delay)

    def is_exhausted(self, attempt: int) -> bool:
        """True once the streak has used up every allowed reconnect."""
        return attempt >= self.max_attempts
