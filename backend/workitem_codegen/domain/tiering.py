"""Priority/severity tiering.

A total lookup over (severity, priority) that maps every combination to an
impact tier and an urgency. Priority is clamped to 1..4 and severity labels are
normalized by keyword, so any input resolves to exactly one table entry.
"""

from enum import StrEnum

from workitem_codegen.schemas.extraction import ImpactAssessment, PriorityTier, Urgency


class Severity(StrEnum):
    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


MIN_PRIORITY = 1
MAX_PRIORITY = 4

_H, _M, _L = PriorityTier.HIGH, PriorityTier.MEDIUM, PriorityTier.LOW

# (severity, priority) -> (user impact, urgency)
TIER_TABLE: dict[tuple[Severity, int], tuple[PriorityTier, Urgency]] = {
    (Severity.CRITICAL, 1): (_H, Urgency.IMMEDIATE),
    (Severity.CRITICAL, 2): (_H, Urgency.HIGH),
    (Severity.CRITICAL, 3): (_H, Urgency.HIGH),
    (Severity.CRITICAL, 4): (_M, Urgency.HIGH),
    (Severity.HIGH, 1): (_H, Urgency.HIGH),
    (Severity.HIGH, 2): (_H, Urgency.HIGH),
    (Severity.HIGH, 3): (_M, Urgency.MEDIUM),
    (Severity.HIGH, 4): (_M, Urgency.MEDIUM),
    (Severity.MEDIUM, 1): (_H, Urgency.HIGH),
    (Severity.MEDIUM, 2): (_M, Urgency.MEDIUM),
    (Severity.MEDIUM, 3): (_M, Urgency.MEDIUM),
    (Severity.MEDIUM, 4): (_L, Urgency.LOW),
    (Severity.LOW, 1): (_M, Urgency.MEDIUM),
    (Severity.LOW, 2): (_M, Urgency.MEDIUM),
    (Severity.LOW, 3): (_L, Urgency.LOW),
    (Severity.LOW, 4): (_L, Urgency.LOW),
}


def normalize_severity(raw: str | None) -> Severity:
    """Map a tracker severity label to a Severity.

    Labels such as "1 - Critical" or "3 - medium" match by keyword; anything
    unrecognized, including None, is Medium.
    """
    if not raw:
        return Severity.MEDIUM
    lowered = raw.lower()
    for severity in (Severity.CRITICAL, Severity.HIGH, Severity.MEDIUM, Severity.LOW):
        if severity.value.lower() in lowered:
            return severity
    return Severity.MEDIUM


def clamp_priority(priority: int | None) -> int:
    if priority is None:
        return 2
    return max(MIN_PRIORITY, min(MAX_PRIORITY, int(priority)))


def assess_impact(priority: int | None, severity: str | None) -> ImpactAssessment:
    user_impact, urgency = TIER_TABLE[(normalize_severity(severity), clamp_priority(priority))]
    return ImpactAssessment(user_impact=user_impact, urgency=urgency)
