"""Retry utilities with pluggable backoff using tenacity.

This module provides the retry policy used by the HTTP clients: which
responses are retriable, how long to wait between attempts, and how retries
are logged.

## Components

### StatusClassifier
Classifies HTTP status codes. Only the 5xx class (server-side failures) is
retriable; 4xx and everything else is returned to the caller immediately.

### BackoffStrategy (Protocol)
Computes the wait before the next attempt. Three implementations ship:
- `ConstantBackoff`: the same delay every time
- `LinearBackoff`: delay scaled by the attempt index
- `ExponentialBackoff`: capped exponential growth plus random jitter

### wait_backoff
Adapter turning any `BackoffStrategy` into a tenacity wait strategy.

### create_retry_logger
Factory for tenacity ``before_sleep`` callbacks with structured logging.

### build_retrying / build_async_retrying
Assemble a tenacity controller that retries on retriable *results* only.
Exceptions raised by the wrapped call are never retried.

## Usage

```python
from foundation.retry import ExponentialBackoff, build_retrying

retrying = build_retrying(max_retries=3, backoff=ExponentialBackoff())
response = retrying(session.send, prepared)
```
"""

import asyncio
import logging
import random
import time
from collections.abc import Awaitable, Callable
from typing import Any, Protocol, runtime_checkable

from tenacity import AsyncRetrying, RetryCallState, Retrying, retry_if_result, stop_after_attempt
from tenacity.wait import wait_base

# Status class prefix that marks a response as retriable
RETRIABLE_STATUS_CLASS = "5"

# Defaults for exponential backoff (seconds)
DEFAULT_INITIAL_BACKOFF = 0.002
DEFAULT_MAX_BACKOFF = 0.009
DEFAULT_BACKOFF_FACTOR = 2.0
DEFAULT_MAX_JITTER = 0.002


# =============================================================================
# Status Classification
# =============================================================================


class StatusClassifier:
    """Classify HTTP status codes as retriable or final.

    - 5xx status codes are retriable (server errors)
    - 4xx status codes are NOT retriable (client errors)
    - Anything else is final

    Example:
        ```python
        classifier = StatusClassifier()
        classifier.is_retriable_http_status(503)  # True
        classifier.is_retriable_http_status("404")  # False
        ```
    """

    retriable_status_class: str = RETRIABLE_STATUS_CLASS

    def is_retriable_http_status(self, status: str | int) -> bool:
        """Check if an HTTP status code indicates a retriable error.

        Args:
            status: HTTP status code as string or int.

        Returns:
            True for 5xx server errors, False otherwise.
        """
        status_str = str(status)
        return len(status_str) == 3 and status_str.startswith(self.retriable_status_class)

    def is_retriable_response(self, response: Any) -> bool:
        """Check a response object exposing ``status_code``."""
        status = getattr(response, "status_code", None)
        if status is None:
            return False
        return self.is_retriable_http_status(status)


# =============================================================================
# Backoff Strategies
# =============================================================================


@runtime_checkable
class BackoffStrategy(Protocol):
    """Protocol for computing the wait between attempts.

    Implementations must be safe to share between concurrent callers: any
    state they hold is read-only after construction.
    """

    def next_interval(self, attempt: int) -> float:
        """Return seconds to wait after the given failed attempt.

        Args:
            attempt: 1-based index of the attempt that just failed.
        """
        ...


class ConstantBackoff:
    """Wait the same ``delay`` after every failed attempt."""

    def __init__(self, delay: float = DEFAULT_INITIAL_BACKOFF) -> None:
        if delay < 0:
            raise ValueError("delay must be non-negative")
        self.delay = delay

    def next_interval(self, attempt: int) -> float:
        return self.delay

    def __repr__(self) -> str:
        return f"ConstantBackoff(delay={self.delay})"


class LinearBackoff:
    """Wait ``step * attempt`` after each failed attempt."""

    def __init__(self, step: float = DEFAULT_INITIAL_BACKOFF) -> None:
        if step < 0:
            raise ValueError("step must be non-negative")
        self.step = step

    def next_interval(self, attempt: int) -> float:
        return self.step * attempt

    def __repr__(self) -> str:
        return f"LinearBackoff(step={self.step})"


class ExponentialBackoff:
    """Capped exponential backoff with additive random jitter.

    The wait after attempt ``n`` is
    ``min(initial * factor ** (n - 1), maximum) + uniform(0, max_jitter)``.

    Attributes:
        initial: Wait after the first failed attempt (seconds).
        maximum: Upper bound of the exponential part (seconds).
        factor: Growth factor between attempts.
        max_jitter: Upper bound of the random jitter (seconds).
        rng: Random source, injectable for deterministic tests.
    """

    def __init__(
        self,
        initial: float = DEFAULT_INITIAL_BACKOFF,
        maximum: float = DEFAULT_MAX_BACKOFF,
        factor: float = DEFAULT_BACKOFF_FACTOR,
        max_jitter: float = DEFAULT_MAX_JITTER,
        rng: random.Random | None = None,
    ) -> None:
        if initial < 0:
            raise ValueError("initial must be non-negative")
        if maximum < initial:
            raise ValueError("maximum must be >= initial")
        if factor < 1:
            raise ValueError("factor must be >= 1")
        if max_jitter < 0:
            raise ValueError("max_jitter must be non-negative")
        self.initial = initial
        self.maximum = maximum
        self.factor = factor
        self.max_jitter = max_jitter
        self.rng = rng or random.Random()

    def next_interval(self, attempt: int) -> float:
        base = min(self.initial * (self.factor ** max(attempt - 1, 0)), self.maximum)
        if self.max_jitter == 0:
            return base
        return base + self.rng.uniform(0, self.max_jitter)

    def __repr__(self) -> str:
        return (
            f"ExponentialBackoff(initial={self.initial}, maximum={self.maximum}, "
            f"factor={self.factor}, max_jitter={self.max_jitter})"
        )


class wait_backoff(wait_base):  # noqa: N801 - tenacity naming convention
    """Tenacity wait strategy delegating to a `BackoffStrategy`."""

    def __init__(self, strategy: BackoffStrategy) -> None:
        self.strategy = strategy

    def __call__(self, retry_state: RetryCallState) -> float:
        return self.strategy.next_interval(retry_state.attempt_number)


# =============================================================================
# Retry Logging
# =============================================================================


def create_retry_logger(
    logger: logging.Logger,
    max_attempts: int,
    message: str = "Retriable response, retrying",
) -> Callable[[RetryCallState], None]:
    """Create a retry logging callback for tenacity.

    The callback is suitable for tenacity's ``before_sleep`` parameter and
    logs the attempt number, the upcoming wait and the status code of the
    retriable response.

    Args:
        logger: Logger instance to use for logging.
        max_attempts: Total attempts allowed, included in every record.
        message: Log message.

    Returns:
        Callback function for tenacity's before_sleep parameter.
    """

    def log_retry(retry_state: RetryCallState) -> None:
        if retry_state.outcome is None:
            return

        wait_time = retry_state.next_action.sleep if retry_state.next_action else 0
        extra: dict[str, Any] = {
            "attempt": retry_state.attempt_number,
            "max_attempts": max_attempts,
            "wait_seconds": round(wait_time, 4),
        }

        if retry_state.outcome.failed:
            extra["error_type"] = type(retry_state.outcome.exception()).__name__
        else:
            extra["status_code"] = getattr(retry_state.outcome.result(), "status_code", None)

        logger.warning(message, extra=extra)

    return log_retry


def _return_last_result(retry_state: RetryCallState) -> Any:
    """Hand back the last observed result once the attempts are exhausted."""
    assert retry_state.outcome is not None
    return retry_state.outcome.result()


# =============================================================================
# Retry Controllers
# =============================================================================


def build_retrying(
    max_retries: int,
    backoff: BackoffStrategy,
    logger: logging.Logger | None = None,
    classifier: StatusClassifier | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Retrying:
    """Build a synchronous tenacity controller for response retries.

    The controller makes ``max_retries + 1`` attempts at most. Only results
    the classifier marks as retriable trigger another attempt; exceptions
    propagate immediately. When all attempts return a retriable result, the
    last result is returned instead of raising.

    Args:
        max_retries: Number of retries after the first attempt (>= 0).
        backoff: Strategy computing the wait between attempts.
        logger: Logger for retry records (default: this module's logger).
        classifier: Status classifier (default: `StatusClassifier`).
        sleep: Sleep function, injectable for tests.

    Returns:
        Configured `tenacity.Retrying` instance.

    Raises:
        ValueError: If max_retries is negative.
    """
    if max_retries < 0:
        raise ValueError("max_retries must be non-negative")

    classifier = classifier or StatusClassifier()
    max_attempts = max_retries + 1
    return Retrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_backoff(backoff),
        retry=retry_if_result(classifier.is_retriable_response),
        before_sleep=create_retry_logger(logger or logging.getLogger(__name__), max_attempts),
        retry_error_callback=_return_last_result,
        sleep=sleep,
        reraise=True,
    )


def build_async_retrying(
    max_retries: int,
    backoff: BackoffStrategy,
    logger: logging.Logger | None = None,
    classifier: StatusClassifier | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> AsyncRetrying:
    """Async counterpart of `build_retrying`.

    Backoff waits use ``asyncio.sleep`` so cancelling the calling task aborts
    both an in-flight attempt and a pending wait.
    """
    if max_retries < 0:
        raise ValueError("max_retries must be non-negative")

    classifier = classifier or StatusClassifier()
    max_attempts = max_retries + 1
    return AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_backoff(backoff),
        retry=retry_if_result(classifier.is_retriable_response),
        before_sleep=create_retry_logger(logger or logging.getLogger(__name__), max_attempts),
        retry_error_callback=_return_last_result,
        sleep=sleep,
        reraise=True,
    )
