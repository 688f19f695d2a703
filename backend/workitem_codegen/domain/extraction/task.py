"""Task strategy: implementation steps, technical notes, specs and estimates."""

import re

from workitem_codegen.domain.enrichment import FIELD_EFFORT, FIELD_ORIGINAL_ESTIMATE, FIELD_REMAINING_WORK
from workitem_codegen.domain.extraction.common import common_fields, dedupe, finding, numeric_field
from workitem_codegen.domain.formats import parse_block
from workitem_codegen.domain.text import contains_any_word, contains_word
from workitem_codegen.schemas.extraction import PriorityTier, TaskDependencies, TaskFields, TechnicalSpecs
from workitem_codegen.schemas.work_items import EnrichedWorkItem, FindingSeverity, ValidationFinding

MIN_DESCRIPTION_LENGTH = 50

TECHNICAL_KEYWORDS = (
    "implement", "create", "update", "delete", "refactor", "optimize",
    "api", "endpoint", "function", "method", "class", "component",
    "database", "query", "service", "integration",
)
DATABASE_KEYWORDS = (
    "database", "table", "collection", "schema", "query", "SQL", "NoSQL", "MongoDB", "PostgreSQL", "MySQL",
)
TECHNOLOGY_KEYWORDS = (
    "TypeScript", "JavaScript", "Node.js", "Express", "React", "Angular", "Vue", "Docker", "Kubernetes",
    "Python", "Java", "C#",
)
PATTERN_KEYWORDS = ("MVC", "Repository", "Factory", "Singleton", "Observer", "Strategy", "middleware", "service")
NOTE_MARKERS = ("consider", "note", "important", "warning", "caution", "remember")
EXTERNAL_MARKERS = ("third-party", "external", "vendor", "partner")

_API_ENDPOINT = re.compile(r"\b(?:GET|POST|PUT|PATCH|DELETE)\s+/[^\s,;]*|(?<![\w/])/api/[^\s,;]*")
_REQUIREMENT_SENTENCE = re.compile(r"[^.!?\n]*\b(?:must|should|need to|required to)\b[^.!?\n]*[.!?]?", re.IGNORECASE)
_SENTENCE = re.compile(r"[^.!?\n]+[.!?]?")
_DEPENDS_ON = re.compile(r"\b(?:depends on|requires|needs)\s+([^.\n]+)", re.IGNORECASE)
_WORK_ITEM_REF = re.compile(r"(?:#|\bwork item\s+|\btask\s+|\bstory\s+)(\d+)\b", re.IGNORECASE)
_DELIVERABLE = re.compile(r"\b(?:deliver|create|implement|build|develop)\s+([^.\n]+)", re.IGNORECASE)

_APPROACHES = (
    ("refactor", "refactoring"),
    ("optimiz", "optimization"),
    ("integrat", "integration"),
    ("create", "new_development"),
    ("implement", "new_development"),
)

_CATEGORIES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("frontend", ("ui", "frontend", "react", "angular", "vue", "page", "form")),
    ("backend", ("api", "backend", "server", "endpoint", "service", "controller")),
    ("database", ("database", "db", "table", "schema", "query", "migration")),
    ("infrastructure", ("deploy", "infrastructure", "docker", "kubernetes", "pipeline")),
    ("testing", ("test", "tests", "testing", "e2e")),
    ("documentation", ("document", "documentation", "readme", "guide")),
    ("refactoring", ("refactor", "cleanup", "optimize", "restructure")),
)
DEFAULT_CATEGORY = "development"

_HIGH_COMPLEXITY = ("integration", "migration", "refactor", "architecture", "performance", "security", "scalability")
_MEDIUM_COMPLEXITY = ("api", "database", "service", "component", "algorithm")
_LOW_COMPLEXITY = ("fix", "update", "change", "add", "remove")


def _effort(item: EnrichedWorkItem) -> float | None:
    return numeric_field(item, FIELD_EFFORT, FIELD_ORIGINAL_ESTIMATE)


def extract_technical_specs(description: str) -> TechnicalSpecs:
    return TechnicalSpecs(
        apis=dedupe(match.group(0) for match in _API_ENDPOINT.finditer(description)),
        databases=tuple(word for word in DATABASE_KEYWORDS if contains_word(description, word)),
        technologies=tuple(
            tech for tech in TECHNOLOGY_KEYWORDS
            if re.search(rf"(?<![\w.#]){re.escape(tech)}(?![\w#])", description, re.IGNORECASE)
        ),
        patterns=tuple(word for word in PATTERN_KEYWORDS if contains_word(description, word)),
        requirements=dedupe(match.group(0) for match in _REQUIREMENT_SENTENCE.finditer(description)),
    )


def extract_technical_notes(description: str) -> tuple[str, ...]:
    """Sentences flagged with consider/note/important/warning-style markers."""
    notes = (
        sentence.group(0)
        for sentence in _SENTENCE.finditer(description)
        if contains_any_word(sentence.group(0), NOTE_MARKERS)
    )
    return dedupe(notes)


def determine_approach(description: str) -> str:
    lowered = description.lower()
    for marker, approach in _APPROACHES:
        if marker in lowered:
            return approach
    return "standard"


def extract_dependencies(description: str) -> TaskDependencies:
    return TaskDependencies(
        technical=dedupe(match.group(1) for match in _DEPENDS_ON.finditer(description)),
        work_items=tuple(dict.fromkeys(int(match.group(1)) for match in _WORK_ITEM_REF.finditer(description))),
        external=tuple(marker for marker in EXTERNAL_MARKERS if marker in description.lower()),
    )


def extract_deliverables(description: str) -> tuple[str, ...]:
    return dedupe(match.group(1) for match in _DELIVERABLE.finditer(description))


def assess_complexity(description: str, effort: float | None) -> PriorityTier:
    lowered = description.lower()
    score = 3 * sum(keyword in lowered for keyword in _HIGH_COMPLEXITY)
    score += 2 * sum(keyword in lowered for keyword in _MEDIUM_COMPLEXITY)
    score += sum(keyword in lowered for keyword in _LOW_COMPLEXITY)
    if effort is not None:
        if effort > 16:
            score += 3
        elif effort > 8:
            score += 2
        elif effort > 4:
            score += 1

    if score >= 8:
        return PriorityTier.HIGH
    if score >= 4:
        return PriorityTier.MEDIUM
    return PriorityTier.LOW


def categorize(item: EnrichedWorkItem) -> str:
    text = f"{item.title} {item.description or ''}"
    for category, keywords in _CATEGORIES:
        if contains_any_word(text, keywords):
            return category
    return DEFAULT_CATEGORY


def validate(item: EnrichedWorkItem) -> list[ValidationFinding]:
    findings = []
    if item.description and len(item.description) < MIN_DESCRIPTION_LENGTH:
        findings.append(finding(
            "description",
            FindingSeverity.WARNING,
            "Task description should be detailed enough to provide clear implementation guidance",
        ))
    if item.description and not any(keyword in item.description.lower() for keyword in TECHNICAL_KEYWORDS):
        findings.append(finding(
            "description",
            FindingSeverity.INFO,
            "Consider adding more technical details about the implementation approach",
        ))
    if _effort(item) is None:
        findings.append(finding(
            "effort", FindingSeverity.INFO, "Consider adding effort estimation for better planning",
        ))
    return findings


def extract(item: EnrichedWorkItem) -> TaskFields:
    description = item.description or ""
    effort = _effort(item)
    return TaskFields(
        **common_fields(item),
        implementation_steps=parse_block(item.description),
        technical_notes=extract_technical_notes(description),
        technical_specs=extract_technical_specs(description),
        approach=determine_approach(description),
        dependencies=extract_dependencies(description),
        deliverables=extract_deliverables(description),
        complexity=assess_complexity(description, effort),
        effort=effort,
        remaining_work=numeric_field(item, FIELD_REMAINING_WORK),
        task_category=categorize(item),
    )
