from workitem_codegen.resilience.classifier import FailureClass, classify_failure, is_retryable
from workitem_codegen.resilience.retry import RetryPolicy, backoff_delay, invoke

__all__ = ["FailureClass", "RetryPolicy", "backoff_delay", "classify_failure", "invoke", "is_retryable"]
