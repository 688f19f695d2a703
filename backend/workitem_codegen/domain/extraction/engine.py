"""Field extraction engine.

Dispatches a normalized work item to the strategy registered for its type.
Validation runs first (common rules, then type rules); extraction always runs
so callers see derived fields alongside the findings. Only an unsupported
type raises.
"""

from collections.abc import Callable
from typing import NamedTuple

import structlog

from workitem_codegen.core.exceptions import UnknownWorkItemTypeError
from workitem_codegen.domain.extraction import bug, task, user_story
from workitem_codegen.domain.extraction.common import validate_common
from workitem_codegen.schemas.extraction import ExtractedFieldSet
from workitem_codegen.schemas.work_items import (
    EnrichedWorkItem,
    FindingSeverity,
    ValidationFinding,
    WorkItemType,
)

logger = structlog.get_logger(__name__)


class ExtractionStrategy(NamedTuple):
    name: str
    validate: Callable[[EnrichedWorkItem], list[ValidationFinding]]
    extract: Callable[[EnrichedWorkItem], ExtractedFieldSet]


STRATEGIES: dict[WorkItemType, ExtractionStrategy] = {
    WorkItemType.USER_STORY: ExtractionStrategy(
        "user_story_requirements", user_story.validate, user_story.extract,
    ),
    WorkItemType.BUG: ExtractionStrategy("bug_fix_analysis", bug.validate, bug.extract),
    WorkItemType.TASK: ExtractionStrategy("task_implementation", task.validate, task.extract),
}


def strategy_for(item: EnrichedWorkItem) -> ExtractionStrategy:
    work_item_type = item.work_item_type
    if work_item_type is None:
        raise UnknownWorkItemTypeError(item.type)
    return STRATEGIES[work_item_type]


def validate(item: EnrichedWorkItem) -> list[ValidationFinding]:
    strategy = strategy_for(item)
    return validate_common(item) + strategy.validate(item)


def extract(item: EnrichedWorkItem) -> tuple[ExtractedFieldSet, list[ValidationFinding]]:
    """Validate and extract the type-specific field set for a work item.

    Deterministic: the same item always yields an equal field set and the
    same findings in the same order.

    Args:
        item: Normalized work item.

    Returns:
        Tuple of (extracted field set, validation findings).

    Raises:
        UnknownWorkItemTypeError: No strategy exists for ``item.type``.
    """
    strategy = strategy_for(item)
    findings = validate_common(item) + strategy.validate(item)
    fields = strategy.extract(item)
    logger.debug(
        "work_item_extracted",
        work_item_id=item.id,
        strategy=strategy.name,
        findings=len(findings),
        blocking=has_blocking_errors(findings),
    )
    return fields, findings


def has_blocking_errors(findings: list[ValidationFinding]) -> bool:
    return any(f.severity == FindingSeverity.ERROR for f in findings)


def error_messages(findings: list[ValidationFinding]) -> list[str]:
    return [f"{f.field}: {f.message}" for f in findings if f.severity == FindingSeverity.ERROR]
