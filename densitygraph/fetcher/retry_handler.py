"""Bounded retry handler with optional exponential backoff."""

import random
import time
from typing import Any, Callable, Optional

from densitygraph.models.data_models import FetchOutcome


def calculate_backoff_delay(
    attempt: int,
    base_delay: float = 0.0,
    max_delay: float = 4.0,
    jitter_max: float = 0.0
) -> float:
    """
    Calculate exponential backoff delay with jitter.

    Formula: min(max_delay, (base_delay * (2 ** attempt)) + random_jitter)

    Args:
        attempt: Retry attempt number (0-indexed)
        base_delay: Base delay in seconds
        max_delay: Maximum delay cap in seconds
        jitter_max: Maximum jitter to add in seconds

    Returns:
        Delay in seconds
    """
    exponential_delay = base_delay * (2 ** attempt)
    jitter = random.uniform(0, jitter_max) if jitter_max > 0 else 0.0
    return min(max_delay, exponential_delay + jitter)


class RetryHandler:
    """
    Runs a callable up to `max_attempts` times.

    Any exception raised by the callable counts as a failed attempt.
    The first successful call wins; after the last failed attempt a
    failure outcome is returned instead of raising.

    The default policy retries immediately (no delay between attempts).
    """

    def __init__(
        self,
        max_attempts: int = 4,
        base_delay: float = 0.0,
        max_delay: float = 4.0,
        jitter_max: float = 0.0,
        sleep: Callable[[float], None] = time.sleep
    ):
        """
        Initialize retry handler.

        Args:
            max_attempts: Attempts per call, including the first
            base_delay: Base delay for exponential backoff
            max_delay: Maximum delay cap
            jitter_max: Maximum jitter to add
            sleep: Sleep function, injectable for tests

        Raises:
            ValueError: If max_attempts is less than 1
        """
        self.max_attempts = self._check_attempts(max_attempts)
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.jitter_max = jitter_max
        self._sleep = sleep

    @staticmethod
    def _check_attempts(max_attempts: int) -> int:
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got: {max_attempts}")
        return max_attempts

    def execute(
        self,
        func: Callable[[], Any],
        max_attempts: Optional[int] = None,
        on_failure: Optional[Callable[[int, Exception], None]] = None
    ) -> FetchOutcome:
        """
        Execute function with retry logic.

        Args:
            func: Zero-argument function to execute
            max_attempts: Overrides the handler's attempt cap for this call
            on_failure: Called with (attempt, exception) after each failed attempt

        Returns:
            FetchOutcome carrying the function result, or an exhausted outcome
        """
        attempts = self.max_attempts if max_attempts is None else self._check_attempts(max_attempts)

        for attempt in range(1, attempts + 1):
            try:
                result = func()
            except Exception as e:
                if on_failure is not None:
                    on_failure(attempt, e)

                if attempt < attempts:
                    delay = calculate_backoff_delay(
                        attempt - 1,
                        self.base_delay,
                        self.max_delay,
                        self.jitter_max
                    )
                    if delay > 0:
                        self._sleep(delay)
                continue

            return FetchOutcome.ok(result, attempts=attempt)

        return FetchOutcome.exhausted(attempts=attempts)
