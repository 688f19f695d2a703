from workitem_codegen.domain.extraction.engine import (
    STRATEGIES,
    ExtractionStrategy,
    error_messages,
    extract,
    has_blocking_errors,
    strategy_for,
    validate,
)

__all__ = [
    "STRATEGIES",
    "ExtractionStrategy",
    "error_messages",
    "extract",
    "has_blocking_errors",
    "strategy_for",
    "validate",
]
