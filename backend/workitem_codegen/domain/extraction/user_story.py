"""User story strategy: acceptance criteria, actor role, business value."""

import re

from workitem_codegen.domain.enrichment import FIELD_STORY_POINTS
from workitem_codegen.domain.extraction.common import common_fields, dedupe, finding, numeric_field
from workitem_codegen.domain.formats import parse_block
from workitem_codegen.schemas.extraction import BlockFormat, ItemKind, ParsedBlock, PriorityTier, UserStoryFields
from workitem_codegen.schemas.work_items import EnrichedWorkItem, FindingSeverity, ValidationFinding

_ROLE = re.compile(r"\bas\s+an?\s+([^,.;\n]+?)(?=\s*(?:,|\.|;|\n|\bI\s+want\b|\bI\s+need\b|\bI\s+can\b|$))", re.IGNORECASE)
_VALUE_PATTERNS = (
    re.compile(r"\bso\s+that\s+(.+?)(?:\.(?:\s|$)|\n|$)", re.IGNORECASE),
    re.compile(r"\bin\s+order\s+to\s+(.+?)(?:\.(?:\s|$)|\n|$)", re.IGNORECASE),
)
_PRIORITY_TAGS = ("critical", "urgent", "mvp", "release-blocker")


def extract_user_role(item: EnrichedWorkItem) -> str | None:
    for text in (item.title, item.description or ""):
        match = _ROLE.search(text)
        if match:
            return match.group(1).strip()
    return None


def extract_business_value(item: EnrichedWorkItem) -> str | None:
    for text in (item.title, item.description or ""):
        for pattern in _VALUE_PATTERNS:
            match = pattern.search(text)
            if match and match.group(1).strip():
                return match.group(1).strip()
    return None


def business_priority(item: EnrichedWorkItem, story_points: float | None) -> PriorityTier:
    """Score priority, priority-flavoured tags and small estimates into a tier."""
    if item.priority <= 1:
        score = 3
    elif item.priority <= 2:
        score = 2
    else:
        score = 1
    if any(marker in tag.lower() for tag in item.tags for marker in _PRIORITY_TAGS):
        score += 2
    if story_points is not None and 0 < story_points <= 3:
        score += 1

    if score >= 5:
        return PriorityTier.HIGH
    if score >= 3:
        return PriorityTier.MEDIUM
    return PriorityTier.LOW


def functional_requirements(item: EnrichedWorkItem, criteria: ParsedBlock) -> tuple[str, ...]:
    requirements = [f"Implement: {item.title.strip()}"] if item.title.strip() else []
    for block_item in criteria.items:
        if block_item.kind in (ItemKind.WHEN, ItemKind.BULLET, ItemKind.STEP):
            requirements.append(block_item.content)
    return dedupe(requirements)


def validate(item: EnrichedWorkItem) -> list[ValidationFinding]:
    findings = []
    if not item.acceptance_criteria:
        findings.append(finding(
            "acceptance_criteria",
            FindingSeverity.WARNING,
            "Acceptance criteria are highly recommended for User Stories to ensure clear requirements",
        ))
    elif parse_block(item.acceptance_criteria).format == BlockFormat.FREE_TEXT:
        findings.append(finding(
            "acceptance_criteria",
            FindingSeverity.INFO,
            "Consider using structured format (Given-When-Then or bullet points) for better clarity",
        ))
    if extract_user_role(item) is None:
        findings.append(finding(
            "description",
            FindingSeverity.INFO,
            'Consider including user role or persona in the description (e.g., "As a user...")',
        ))
    if extract_business_value(item) is None:
        findings.append(finding(
            "description",
            FindingSeverity.INFO,
            'Consider stating the business value (e.g., "...so that I can...")',
        ))
    return findings


def extract(item: EnrichedWorkItem) -> UserStoryFields:
    criteria = parse_block(item.acceptance_criteria)
    story_points = numeric_field(item, FIELD_STORY_POINTS)
    return UserStoryFields(
        **common_fields(item),
        acceptance_criteria=criteria,
        user_role=extract_user_role(item),
        business_value=extract_business_value(item),
        functional_requirements=functional_requirements(item, criteria),
        story_points=story_points,
        business_priority=business_priority(item, story_points),
    )
