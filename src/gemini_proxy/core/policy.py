"""
Retry policy: attempt budget, backoff schedule and status classification.
"""

import random
from dataclasses import dataclass
from typing import Callable, Optional

from .outcomes import AttemptOutcome, ErrorKind, RetryableFailure, Success, TerminalFailure

RATE_LIMITED = 429


def is_2xx(status: int) -> bool:
    return 200 <= status < 300


@dataclass(frozen=True)
class RetryPolicy:
    """Immutable retry configuration.

    Args:
        max_attempts: Total remote calls allowed, the first one included.
        base_delay_ms: Delay before the second attempt, doubled each time.
        timeout_ms: Upper bound for a single attempt.
        jitter_ms: Additive jitter drawn from [0, jitter_ms).
    """

    max_attempts: int = 3
    base_delay_ms: float = 200
    timeout_ms: float = 25_000
    jitter_ms: float = 120

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_delay_ms < 0:
            raise ValueError("base_delay_ms must be >= 0")
        if self.timeout_ms <= 0:
            raise ValueError("timeout_ms must be > 0")
        if self.jitter_ms < 0:
            raise ValueError("jitter_ms must be >= 0")

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000.0

    def backoff_delay_ms(self, attempt: int, rng: Optional[random.Random] = None) -> float:
        """Delay to wait after a retryable failure on ``attempt`` (0-based).

        No ceiling is applied; growth is purely exponential plus jitter.
        """
        rng = rng or random
        return self.base_delay_ms * (2**attempt) + rng.random() * self.jitter_ms

    def is_last(self, attempt: int) -> bool:
        return attempt >= self.max_attempts - 1


def classify_status(
    status: int,
    body: str,
    is_success: Callable[[int], bool] = is_2xx,
) -> AttemptOutcome:
    """Map an upstream HTTP status to an attempt outcome."""
    if is_success(status):
        return Success(status=status, body=body)
    if status == RATE_LIMITED:
        return RetryableFailure(
            status=status,
            kind=ErrorKind.UPSTREAM_RATE_LIMITED,
            cause=f"upstream rate limited ({status})",
            body=body,
        )
    if status >= 500:
        return RetryableFailure(
            status=status,
            kind=ErrorKind.UPSTREAM_SERVER_ERROR,
            cause=f"upstream server error ({status})",
            body=body,
        )
    return TerminalFailure(
        status=status,
        kind=ErrorKind.UPSTREAM_CLIENT_ERROR,
        cause=f"upstream client error ({status})",
        body=body,
    )
