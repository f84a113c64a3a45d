"""Bounded exponential backoff for transient provider errors."""

from dataclasses import dataclass
from ..config.settings import RetrySettings


@dataclass(frozen=True)
class RetryPolicy:
    """How often and how patiently a transient failure is retried."""

    max_attempts: int = 3
    initial_delay: float = 1.0
    multiplier: float = 2.0
    max_delay: float = 30.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.initial_delay < 0:
            raise ValueError("initial_delay must be >= 0")
        if self.multiplier < 1.0:
            raise ValueError("multiplier must be >= 1.0")
        if self.max_delay < 0:
            raise ValueError("max_delay must be >= 0")

    @classmethod
    def from_settings(cls, settings: RetrySettings) -> "RetryPolicy":
        return cls(
            max_attempts=settings.max_attempts,
            initial_delay=settings.initial_delay,
            multiplier=settings.multiplier,
            max_delay=settings.max_delay,
        )


def compute_backoff_delay(retry_number: int, policy: RetryPolicy) -> float:
    """Return the delay before retry N (1-based)."""
    if retry_number <= 0:
        raise ValueError("retry_number must be > 0")
    delay = policy.initial_delay * (policy.multiplier ** (retry_number - 1))
    return min(delay, policy.max_delay)
