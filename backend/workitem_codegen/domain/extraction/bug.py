"""Bug strategy: reproduction steps, behaviour, error messages, impact."""

import re

from workitem_codegen.domain.enrichment import FIELD_SEVERITY
from workitem_codegen.domain.extraction.common import common_fields, dedupe, finding
from workitem_codegen.domain.formats import parse_block
from workitem_codegen.domain.text import contains_any_word
from workitem_codegen.domain.tiering import assess_impact, normalize_severity
from workitem_codegen.schemas.extraction import BehaviorAnalysis, BugFields
from workitem_codegen.schemas.work_items import EnrichedWorkItem, FindingSeverity, ValidationFinding

MIN_REPRO_STEPS_LENGTH = 30
MIN_DESCRIPTION_LENGTH = 50

# "Error: ...", "TypeError: ...", "NullPointerException: ..." up to end of line.
_ERROR_MESSAGE = re.compile(r"\b(?:[A-Z][A-Za-z0-9_.]*)?(?:Error|Exception)\s*:\s*[^\n]+", re.IGNORECASE)
_EXPECTED_PATTERNS = (
    re.compile(r"\bexpected(?:\s+(?:result|behaviou?r))?\s*[:\-]?\s*(.+?)(?=\.|\bbut\b|\bhowever\b|\binstead\b|\bactual\b|\n|$)", re.IGNORECASE),
    re.compile(r"\bshould\s+(.+?)(?=\.|\bbut\b|\bhowever\b|\binstead\b|\bactual\b|\n|$)", re.IGNORECASE),
)
_ACTUAL_PATTERNS = (
    re.compile(r"\bactual(?:ly)?(?:\s+(?:result|behaviou?r))?\s*[:\-]?\s*(.+?)(?=\.|\n|$)", re.IGNORECASE),
    re.compile(r"\bcurrently\s+(.+?)(?=\.|\n|$)", re.IGNORECASE),
    re.compile(r"\binstead\s*[,:\-]?\s*(.+?)(?=\.|\n|$)", re.IGNORECASE),
    re.compile(r"\bbut\s+(.+?)(?=\.|\n|$)", re.IGNORECASE),
)

# Checked in order; first matching group wins.
_CATEGORY_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("security", ("security", "vulnerability", "xss", "injection", "csrf")),
    ("ui", ("ui", "interface", "display", "layout", "button", "css", "render")),
    ("data", ("data", "database", "corruption", "query", "sql")),
    ("performance", ("slow", "performance", "timeout", "latency", "memory leak")),
)
DEFAULT_CATEGORY = "functional"


def _first_match(patterns, text: str) -> str | None:
    for pattern in patterns:
        match = pattern.search(text)
        if match and match.group(1).strip():
            return match.group(1).strip()
    return None


def extract_behavior(description: str | None) -> BehaviorAnalysis:
    if not description:
        return BehaviorAnalysis()
    return BehaviorAnalysis(
        expected=_first_match(_EXPECTED_PATTERNS, description),
        actual=_first_match(_ACTUAL_PATTERNS, description),
    )


def extract_error_messages(item: EnrichedWorkItem) -> tuple[str, ...]:
    text = "\n".join(part for part in (item.description, item.reproduction_steps) if part)
    return dedupe(match.group(0) for match in _ERROR_MESSAGE.finditer(text))


def categorize(item: EnrichedWorkItem) -> str:
    text = f"{item.title} {item.description or ''}"
    for category, keywords in _CATEGORY_KEYWORDS:
        if contains_any_word(text, keywords):
            return category
    return DEFAULT_CATEGORY


def validate(item: EnrichedWorkItem) -> list[ValidationFinding]:
    findings = []
    if not item.reproduction_steps:
        findings.append(finding(
            "reproduction_steps",
            FindingSeverity.ERROR,
            "Reproduction steps are essential for understanding and fixing the bug",
        ))
    elif len(item.reproduction_steps) < MIN_REPRO_STEPS_LENGTH:
        findings.append(finding(
            "reproduction_steps",
            FindingSeverity.WARNING,
            "Reproduction steps should be detailed enough to reliably reproduce the issue",
        ))
    if item.description and len(item.description) < MIN_DESCRIPTION_LENGTH:
        findings.append(finding(
            "description",
            FindingSeverity.WARNING,
            "Bug description should clearly explain the issue and its impact",
        ))
    return findings


def extract(item: EnrichedWorkItem) -> BugFields:
    raw_severity = item.custom_fields.get(FIELD_SEVERITY)
    severity = normalize_severity(raw_severity if isinstance(raw_severity, str) else None)
    return BugFields(
        **common_fields(item),
        reproduction_steps=parse_block(item.reproduction_steps),
        behavior=extract_behavior(item.description),
        error_messages=extract_error_messages(item),
        impact=assess_impact(item.priority, severity.value),
        severity=severity.value,
        bug_category=categorize(item),
    )
