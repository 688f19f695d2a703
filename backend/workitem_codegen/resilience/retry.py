"""Bounded retry with exponential backoff for every outbound call.

``invoke`` runs an async operation up to ``policy.max_attempts`` times. Each
attempt is raced against ``policy.timeout``; a timeout counts as a retryable
failure of that attempt. Failures the classifier marks fatal stop after the
first attempt. Whatever ends the loop is raised as InvocationError with the
last underlying failure chained.

Waits follow base_delay * 2 ** (attempt - 1), capped at max_delay.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from workitem_codegen.core.config import Settings
from workitem_codegen.core.exceptions import AttemptTimeoutError, InvocationError
from workitem_codegen.resilience.classifier import classify_failure, is_retryable as default_is_retryable

logger = structlog.get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 10.0
    timeout: float | None = 30.0

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("delays must be non-negative")

    @classmethod
    def from_settings(cls, settings: Settings, timeout: float | None = None) -> "RetryPolicy":
        return cls(
            max_attempts=settings.retry_max_attempts,
            base_delay=settings.retry_base_delay,
            max_delay=settings.retry_max_delay,
            timeout=settings.request_timeout if timeout is None else timeout,
        )

    def with_timeout(self, timeout: float | None) -> "RetryPolicy":
        return RetryPolicy(self.max_attempts, self.base_delay, self.max_delay, timeout)


def backoff_delay(policy: RetryPolicy, attempt: int) -> float:
    """Seconds to wait after failed attempt number ``attempt`` (1-based)."""
    return min(policy.base_delay * 2 ** (attempt - 1), policy.max_delay)


def _log_retry(operation: str):
    def before_sleep(retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            "retry_scheduled",
            operation=operation,
            attempt=retry_state.attempt_number,
            sleep_seconds=retry_state.next_action.sleep if retry_state.next_action else 0,
            error=str(exc),
            error_type=type(exc).__name__,
        )

    return before_sleep


async def invoke(
    op: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    *,
    operation: str = "operation",
    is_retryable: Callable[[BaseException], bool] = default_is_retryable,
) -> T:
    """Run ``op`` under ``policy``.

    Args:
        op: Zero-argument coroutine factory; called once per attempt.
        policy: Attempt bound, backoff and per-attempt timeout.
        operation: Name used in logs and in the raised error.
        is_retryable: Predicate deciding whether a failure may be retried.

    Returns:
        The value produced by the first successful attempt.

    Raises:
        InvocationError: All permitted attempts failed, or a non-retryable
            failure occurred. ``__cause__`` is the last underlying failure.
    """
    attempts = 0

    async def attempt() -> T:
        nonlocal attempts
        attempts += 1
        if policy.timeout is None:
            return await op()
        try:
            return await asyncio.wait_for(op(), timeout=policy.timeout)
        except TimeoutError as exc:
            raise AttemptTimeoutError(operation, policy.timeout) from exc

    retrying = AsyncRetrying(
        stop=stop_after_attempt(policy.max_attempts),
        wait=wait_exponential(multiplier=policy.base_delay, exp_base=2, min=0, max=policy.max_delay),
        retry=retry_if_exception(is_retryable),
        before_sleep=_log_retry(operation),
        reraise=True,
    )

    try:
        return await retrying(attempt)
    except Exception as exc:
        raise _exhausted(operation, attempts, exc) from exc


def _exhausted(operation: str, attempts: int, exc: BaseException) -> InvocationError:
    classification = classify_failure(exc)
    logger.error(
        "invocation_failed",
        operation=operation,
        attempts=attempts,
        classification=classification.value,
        error=str(exc),
        error_type=type(exc).__name__,
    )
    return InvocationError(operation, attempts, classification.value, exc)
