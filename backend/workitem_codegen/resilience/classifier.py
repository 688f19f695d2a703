"""Retryable/fatal classification for outbound call failures.

Order of checks:
- Our own RetryableError/FatalError carry their classification explicitly
- Timeouts are retryable
- An HTTP status on the exception (``status_code`` or ``response.status_code``):
  any 4xx is fatal, anything else falls through
- Message markers for auth/permission/missing-resource failures are fatal
- Everything else is retryable
"""

from enum import StrEnum

from workitem_codegen.core.exceptions import FatalError, RetryableError


class FailureClass(StrEnum):
    RETRYABLE = "retryable"
    FATAL = "fatal"


# Matched case-insensitively against str(exc).
_FATAL_MESSAGE_MARKERS: tuple[str, ...] = (
    "unauthorized",
    "forbidden",
    "not found",
    "authentication failed",
    "permission denied",
    "access denied",
    "invalid credentials",
    "invalid api key",
)


def status_code_of(exc: BaseException) -> int | None:
    """HTTP status attached to an exception by httpx, anthropic or our adapters."""
    status = getattr(exc, "status_code", None)
    if status is None:
        response = getattr(exc, "response", None)
        status = getattr(response, "status_code", None)
    return status if isinstance(status, int) else None


def classify_failure(exc: BaseException) -> FailureClass:
    if isinstance(exc, FatalError):
        return FailureClass.FATAL
    if isinstance(exc, (RetryableError, TimeoutError)):
        return FailureClass.RETRYABLE

    status = status_code_of(exc)
    if status is not None and 400 <= status < 500:
        return FailureClass.FATAL

    message = str(exc).lower()
    if any(marker in message for marker in _FATAL_MESSAGE_MARKERS):
        return FailureClass.FATAL

    return FailureClass.RETRYABLE


def is_retryable(exc: BaseException) -> bool:
    return classify_failure(exc) == FailureClass.RETRYABLE
