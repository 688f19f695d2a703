"""Normalization of raw tracker records into EnrichedWorkItem."""

from typing import Any

import structlog

from workitem_codegen.domain.text import html_to_text
from workitem_codegen.schemas.work_items import EnrichedWorkItem, RawWorkItem

logger = structlog.get_logger(__name__)

FIELD_TYPE = "System.WorkItemType"
FIELD_TITLE = "System.Title"
FIELD_DESCRIPTION = "System.Description"
FIELD_ACCEPTANCE_CRITERIA = "Microsoft.VSTS.Common.AcceptanceCriteria"
FIELD_REPRO_STEPS = "Microsoft.VSTS.TCM.ReproSteps"
FIELD_ASSIGNED_TO = "System.AssignedTo"
FIELD_AREA_PATH = "System.AreaPath"
FIELD_ITERATION_PATH = "System.IterationPath"
FIELD_STATE = "System.State"
FIELD_PRIORITY = "Microsoft.VSTS.Common.Priority"
FIELD_TAGS = "System.Tags"

# Type-specific fields read by the extraction strategies.
FIELD_SEVERITY = "Microsoft.VSTS.Common.Severity"
FIELD_STORY_POINTS = "Microsoft.VSTS.Scheduling.StoryPoints"
FIELD_EFFORT = "Microsoft.VSTS.Scheduling.Effort"
FIELD_ORIGINAL_ESTIMATE = "Microsoft.VSTS.Scheduling.OriginalEstimate"
FIELD_REMAINING_WORK = "Microsoft.VSTS.Scheduling.RemainingWork"

_MAPPED_FIELDS = frozenset({
    FIELD_TYPE,
    FIELD_TITLE,
    FIELD_DESCRIPTION,
    FIELD_ACCEPTANCE_CRITERIA,
    FIELD_REPRO_STEPS,
    FIELD_ASSIGNED_TO,
    FIELD_AREA_PATH,
    FIELD_ITERATION_PATH,
    FIELD_STATE,
    FIELD_PRIORITY,
    FIELD_TAGS,
})

DEFAULT_PRIORITY = 2


def _assignee_name(value: Any) -> str | None:
    if isinstance(value, dict):
        value = value.get("displayName") or value.get("uniqueName")
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _priority(value: Any) -> int:
    if isinstance(value, bool):
        return DEFAULT_PRIORITY
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return DEFAULT_PRIORITY


def _tags(value: Any) -> tuple[str, ...]:
    if not isinstance(value, str):
        return ()
    return tuple(tag.strip() for tag in value.split(";") if tag.strip())


def _plain(value: Any) -> str | None:
    return html_to_text(value) if isinstance(value, str) else None


def normalize_work_item(raw: RawWorkItem) -> EnrichedWorkItem:
    """Flatten a raw tracker record into an EnrichedWorkItem.

    Rich-text fields are reduced to plain text; absent or blank optional
    fields become None. Fields without a dedicated attribute are kept in
    ``custom_fields`` unchanged.

    Args:
        raw: Record as returned by the tracker.

    Returns:
        Immutable normalized work item.
    """
    fields = raw.fields
    custom_fields = {key: value for key, value in fields.items() if key not in _MAPPED_FIELDS}

    item = EnrichedWorkItem(
        id=raw.id,
        type=str(fields.get(FIELD_TYPE) or "").strip(),
        title=(_plain(fields.get(FIELD_TITLE)) or ""),
        description=_plain(fields.get(FIELD_DESCRIPTION)),
        acceptance_criteria=_plain(fields.get(FIELD_ACCEPTANCE_CRITERIA)),
        reproduction_steps=_plain(fields.get(FIELD_REPRO_STEPS)),
        assigned_to=_assignee_name(fields.get(FIELD_ASSIGNED_TO)),
        area_path=str(fields.get(FIELD_AREA_PATH) or ""),
        iteration_path=str(fields.get(FIELD_ITERATION_PATH) or ""),
        state=str(fields.get(FIELD_STATE) or ""),
        priority=_priority(fields.get(FIELD_PRIORITY, DEFAULT_PRIORITY)),
        tags=_tags(fields.get(FIELD_TAGS)),
        custom_fields=custom_fields,
    )
    logger.debug("work_item_normalized", work_item_id=item.id, work_item_type=item.type)
    return item
