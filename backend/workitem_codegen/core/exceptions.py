class WorkItemCodegenError(Exception):
    """Base exception for the work item codegen application."""

    pass


class RetryableError(WorkItemCodegenError):
    """Raised for transient failures that may succeed on another attempt."""

    pass


class FatalError(WorkItemCodegenError):
    """Raised for failures that will not succeed on retry (bad input, auth, missing resource)."""

    pass


class AttemptTimeoutError(RetryableError):
    """Raised when a single invocation attempt exceeds its timeout."""

    def __init__(self, operation: str, timeout: float):
        self.operation = operation
        self.timeout = timeout
        super().__init__(f"Operation '{operation}' timed out after {timeout}s")


class UnknownWorkItemTypeError(FatalError):
    """Raised when no extraction strategy exists for a work item type."""

    def __init__(self, work_item_type: str):
        self.work_item_type = work_item_type
        super().__init__(f"Unsupported work item type: {work_item_type!r}")


class WorkTrackerError(WorkItemCodegenError):
    """Raised when the work tracker rejects a request or returns an unusable response."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class InvocationError(WorkItemCodegenError):
    """Raised when an outbound operation fails after all permitted attempts.

    The final underlying failure is chained as ``__cause__`` and kept on
    ``last_error``.
    """

    def __init__(self, operation: str, attempts: int, classification: str, last_error: BaseException):
        self.operation = operation
        self.attempts = attempts
        self.classification = classification
        self.last_error = last_error
        super().__init__(
            f"Operation '{operation}' failed after {attempts} attempt(s) ({classification}): {last_error}"
        )


class ConfigurationError(WorkItemCodegenError):
    """Raised when repository or service configuration is missing or invalid."""

    pass
