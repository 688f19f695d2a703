"""Validation and field helpers shared by every extraction strategy."""

from typing import Any

from workitem_codegen.domain.text import contains_word
from workitem_codegen.schemas.work_items import EnrichedWorkItem, FindingSeverity, ValidationFinding

# Fixed component vocabulary, in reporting order.
COMPONENT_VOCABULARY: tuple[str, ...] = (
    "api",
    "ui",
    "database",
    "service",
    "controller",
    "component",
    "auth",
    "cache",
    "queue",
)


def finding(field: str, severity: FindingSeverity, message: str) -> ValidationFinding:
    return ValidationFinding(field=field, severity=severity, message=message)


def validate_common(item: EnrichedWorkItem) -> list[ValidationFinding]:
    findings = []
    if not item.title.strip():
        findings.append(finding("title", FindingSeverity.ERROR, "Title is required and cannot be empty"))
    if not item.description:
        findings.append(finding(
            "description", FindingSeverity.WARNING, "Description is required for code generation",
        ))
    if not item.area_path.strip():
        findings.append(finding(
            "area_path", FindingSeverity.ERROR, "Area path is required to determine target repository",
        ))
    return findings


def common_fields(item: EnrichedWorkItem) -> dict[str, Any]:
    return {
        "id": item.id,
        "title": item.title,
        "description": item.description,
        "area_path": item.area_path,
        "iteration_path": item.iteration_path,
        "state": item.state,
        "priority": item.priority,
        "tags": item.tags,
        "assigned_to": item.assigned_to,
        "component_tags": tag_components(item),
    }


def tag_components(item: EnrichedWorkItem) -> tuple[str, ...]:
    """Whole-word vocabulary matches across title and description."""
    text = f"{item.title} {item.description or ''}"
    return tuple(word for word in COMPONENT_VOCABULARY if contains_word(text, word))


def numeric_field(item: EnrichedWorkItem, *keys: str) -> float | None:
    """First custom field among ``keys`` holding a usable number."""
    for key in keys:
        value = item.custom_fields.get(key)
        if isinstance(value, bool) or value is None or value == "":
            continue
        try:
            return float(value)
        except (TypeError, ValueError):
            continue
    return None


def dedupe(values) -> tuple[str, ...]:
    seen: dict[str, None] = {}
    for value in values:
        cleaned = value.strip()
        if cleaned and cleaned not in seen:
            seen[cleaned] = None
    return tuple(seen)
