"""Exponential backoff policy for retrying storage uploads."""

import math


class RetryConfig:
    """How many times to try an operation and how long to wait in between.

    ``max_attempts`` counts the first try, so 1 means no retry at all.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        initial_delay: float = 1.0,
        max_delay: float = 300.0,
        backoff_multiplier: float = 2.0,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.initial_delay = initial_delay
        self.max_delay = max_delay
        self.backoff_multiplier = backoff_multiplier

    def calculate_delay(self, attempt: int) -> float:
        """Seconds to wait after failed attempt number ``attempt`` (1-indexed).

        Grows as ``initial_delay * multiplier ** (attempt - 1)``, capped at
        ``max_delay``.
        """
        exponent = max(attempt, 1) - 1
        return min(self.initial_delay * math.pow(self.backoff_multiplier, exponent), self.max_delay)

    def should_retry(self, attempt: int) -> bool:
        """Whether another attempt is allowed after ``attempt`` failed."""
        return attempt < self.max_attempts


NO_RETRY = RetryConfig(max_attempts=1)
