"""Parser and validator for generator replies.

Turns noisy generated text into verified structured data. Every public
function returns a ParsedResponse; malformed input is reported through
``errors`` and never raised. When a reply fails validation, ``content`` is
None rather than a partially populated bundle.

Reply shape (camelCase keys; snake_case accepted too):

    {
      "files": [{"path", "content", "language", "type"}],
      "tests": [...same...],
      "documentation": str,
      "dependencies": [str],
      "devDependencies": [str],
      "buildInstructions": str,
      "installationInstructions": str,
      "usageExamples": [str]
    }
"""

import json
from typing import Any

import structlog

from workitem_codegen.parsing import checks
from workitem_codegen.parsing.extraction import extract_code_text, extract_json_text
from workitem_codegen.parsing.similarity import code_similarity
from workitem_codegen.schemas.artifacts import (
    BundleMetadata,
    CodeIssue,
    CodeQualityReport,
    GeneratedFile,
    IssueSeverity,
    ParsedArtifactBundle,
    ParsedResponse,
    ParseOptions,
)
from workitem_codegen.schemas.generation import FileType, ProgrammingLanguage

logger = structlog.get_logger(__name__)

NO_STRUCTURED_DATA = "No structured data found in response"
MIN_FIX_SIMILARITY = 0.5

_REQUIRED_FILE_KEYS = ("path", "content", "language", "type")
_ISSUE_LISTS = {
    "syntax_errors": ("syntaxErrors", "syntax_errors"),
    "linting_issues": ("lintingIssues", "linting_issues"),
    "style_violations": ("styleViolations", "style_violations"),
    "security_issues": ("securityIssues", "security_issues"),
    "performance_warnings": ("performanceWarnings", "performance_warnings"),
}


def _get(data: dict, *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return default


def _load_object(response: str) -> tuple[dict | None, str | None]:
    json_text = extract_json_text(response or "")
    if json_text is None:
        return None, NO_STRUCTURED_DATA
    try:
        data = json.loads(json_text)
    except json.JSONDecodeError as exc:
        return None, f"Invalid JSON format: {exc.msg} (line {exc.lineno}, column {exc.colno})"
    except RecursionError:
        return None, "Invalid JSON format: nesting too deep"
    if not isinstance(data, dict):
        return None, "Structured data must be a JSON object"
    return data, None


# ==================== STRUCTURE VALIDATION ====================


def _validate_file_entry(entry: Any, context: str) -> list[str]:
    if not isinstance(entry, dict):
        return [f"{context}: must be an object"]
    return [
        f"{context}: {key} is required and must be a non-empty string"
        for key in _REQUIRED_FILE_KEYS
        if not isinstance(entry.get(key), str) or not entry[key].strip()
    ]


def validate_bundle_structure(data: dict) -> tuple[list[str], list[str]]:
    """Check the reply object against the documented shape.

    Returns:
        Tuple of (errors, warnings). Any error means the reply is unusable.
    """
    errors: list[str] = []
    warnings: list[str] = []

    files, tests = data.get("files"), data.get("tests")
    if files is None and tests is None:
        errors.append("Response must contain either files or tests")
    for name, entries in (("files", files), ("tests", tests)):
        if entries is None:
            continue
        if not isinstance(entries, list):
            errors.append(f"{name} must be an array")
            continue
        for index, entry in enumerate(entries):
            errors.extend(_validate_file_entry(entry, f"{name}[{index}]"))

    for keys, label in ((("dependencies",), "dependencies"),
                        (("devDependencies", "dev_dependencies"), "devDependencies"),
                        (("usageExamples", "usage_examples"), "usageExamples")):
        value = _get(data, *keys)
        if value is not None and not (isinstance(value, list) and all(isinstance(v, str) for v in value)):
            warnings.append(f"{label} should be an array of strings")

    for keys, label in ((("documentation",), "documentation"),
                        (("buildInstructions", "build_instructions"), "buildInstructions"),
                        (("installationInstructions", "installation_instructions"), "installationInstructions")):
        value = _get(data, *keys)
        if value is not None and not isinstance(value, str):
            warnings.append(f"{label} should be a string")

    return errors, warnings


# ==================== TRANSFORMATION ====================


def _to_generated_file(
    entry: dict,
    *,
    forced_type: FileType | None,
    target_language: ProgrammingLanguage,
    options: ParseOptions,
    context: str,
    warnings: list[str],
) -> GeneratedFile:
    language = checks.resolve_language(entry["language"])
    if language is None:
        warnings.append(
            f"{context}: unknown language '{entry['language']}', using {target_language.value}"
        )
        language = target_language

    if forced_type is not None:
        file_type = forced_type
    else:
        try:
            file_type = FileType(entry["type"].strip().lower())
        except ValueError:
            warnings.append(f"{context}: unknown file type '{entry['type']}', using source")
            file_type = FileType.SOURCE

    content = entry["content"]
    return GeneratedFile(
        path=entry["path"].strip(),
        content=content,
        language=language,
        type=file_type,
        metadata=checks.build_metadata(content, language, options.extract_metadata),
    )


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


def _string(value: Any, default: str | None = "") -> str | None:
    return value if isinstance(value, str) else default


def _to_bundle(
    data: dict,
    target_language: ProgrammingLanguage,
    options: ParseOptions,
    warnings: list[str],
) -> ParsedArtifactBundle:
    files = [
        _to_generated_file(entry, forced_type=None, target_language=target_language,
                           options=options, context=f"files[{index}]", warnings=warnings)
        for index, entry in enumerate(data.get("files") or [])
    ]
    tests = [
        _to_generated_file(entry, forced_type=FileType.TEST, target_language=target_language,
                           options=options, context=f"tests[{index}]", warnings=warnings)
        for index, entry in enumerate(data.get("tests") or [])
    ]
    all_files = files + tests
    return ParsedArtifactBundle(
        files=files,
        tests=tests,
        documentation=_string(data.get("documentation")),
        dependencies=_string_list(data.get("dependencies")),
        dev_dependencies=_string_list(_get(data, "devDependencies", "dev_dependencies")),
        build_instructions=_string(_get(data, "buildInstructions", "build_instructions")),
        installation_instructions=_string(
            _get(data, "installationInstructions", "installation_instructions"), default=None,
        ),
        usage_examples=_string_list(_get(data, "usageExamples", "usage_examples")),
        metadata=BundleMetadata(
            total_files=len(all_files),
            total_lines=sum(f.metadata.lines for f in all_files if f.metadata),
        ),
    )


# ==================== PUBLIC API ====================


def parse_generated_code_response(
    response: str,
    target_language: ProgrammingLanguage,
    options: ParseOptions | None = None,
) -> ParsedResponse[ParsedArtifactBundle]:
    """Parse a code generation reply into an artifact bundle.

    Args:
        response: Raw reply text.
        target_language: Language assumed for entries with an unrecognized language tag.
        options: Post-parse checks to run; all advisory.

    Returns:
        ParsedResponse whose content is the bundle on success, None otherwise.
    """
    options = options or ParseOptions()

    data, error = _load_object(response)
    if error is not None:
        logger.warning("generated_code_unparseable", error=error, response_length=len(response or ""))
        return ParsedResponse[ParsedArtifactBundle](errors=[error])

    errors, warnings = validate_bundle_structure(data)
    if errors:
        logger.warning("generated_code_invalid_structure", errors=errors)
        return ParsedResponse[ParsedArtifactBundle](errors=errors, warnings=warnings)

    bundle = _to_bundle(data, target_language, options, warnings)
    all_files = bundle.all_files()
    if options.validate_paths:
        warnings.extend(checks.path_warnings(all_files))
    if options.validate_syntax:
        warnings.extend(checks.syntax_warnings(all_files))
    if options.max_file_size is not None:
        warnings.extend(checks.size_warnings(all_files, options.max_file_size))
    if options.allowed_extensions is not None:
        warnings.extend(checks.extension_warnings(all_files, options.allowed_extensions))

    return ParsedResponse[ParsedArtifactBundle](content=bundle, warnings=warnings, success=True)


def _issue(raw: Any) -> CodeIssue | None:
    if not isinstance(raw, dict):
        return None
    try:
        severity = IssueSeverity(str(raw.get("severity", "error")).lower())
    except ValueError:
        severity = IssueSeverity.ERROR
    line = raw.get("line")
    column = raw.get("column")
    return CodeIssue(
        type=str(raw.get("type") or "syntax"),
        severity=severity,
        message=str(raw.get("message") or "Unknown issue"),
        file=str(raw.get("file") or "unknown"),
        line=int(line) if isinstance(line, (int, float)) and not isinstance(line, bool) else 1,
        column=int(column) if isinstance(column, (int, float)) and not isinstance(column, bool) else None,
        rule=raw.get("rule") if isinstance(raw.get("rule"), str) else None,
        suggested_fix=_string(_get(raw, "suggestedFix", "suggested_fix"), default=None),
        can_auto_fix=bool(_get(raw, "canAutoFix", "can_auto_fix", default=False)),
    )


def parse_validation_response(response: str) -> ParsedResponse[CodeQualityReport]:
    """Parse a code review reply into a CodeQualityReport."""
    data, error = _load_object(response)
    if error is not None:
        return ParsedResponse[CodeQualityReport](errors=[error])

    errors: list[str] = []
    warnings: list[str] = []
    is_valid = _get(data, "isValid", "is_valid")
    if not isinstance(is_valid, bool):
        errors.append("isValid must be a boolean")
        return ParsedResponse[CodeQualityReport](errors=errors)

    issue_lists: dict[str, list[CodeIssue]] = {}
    for field, keys in _ISSUE_LISTS.items():
        raw = _get(data, *keys)
        if raw is not None and not isinstance(raw, list):
            warnings.append(f"{keys[0]} should be an array")
            raw = []
        issue_lists[field] = [issue for issue in map(_issue, raw or []) if issue is not None]

    score = _get(data, "qualityScore", "quality_score")
    if score is not None and (not isinstance(score, (int, float)) or isinstance(score, bool) or not 0 <= score <= 100):
        warnings.append("qualityScore should be a number between 0 and 100")
    numeric = score if isinstance(score, (int, float)) and not isinstance(score, bool) else 0

    report = CodeQualityReport(
        is_valid=is_valid,
        **issue_lists,
        quality_score=int(max(0, min(100, numeric))),
        suggestions=_string_list(data.get("suggestions")),
        can_auto_fix=bool(_get(data, "canAutoFix", "can_auto_fix", default=False)),
    )
    return ParsedResponse[CodeQualityReport](content=report, warnings=warnings, success=True)


def parse_fixed_code_response(response: str, original_code: str) -> ParsedResponse[str]:
    """Parse a repair reply.

    On an empty reply the original code is returned as content with
    ``success=False`` so callers can keep going with what they had.
    """
    fixed = extract_code_text(response or "")
    if not fixed.strip():
        return ParsedResponse[str](content=original_code, errors=["Fixed code is empty"])

    warnings = []
    if code_similarity(original_code, fixed) < MIN_FIX_SIMILARITY:
        warnings.append("Fixed code is significantly different from original - review carefully")
    return ParsedResponse[str](content=fixed, warnings=warnings, success=True)


def _file_payload(generated: GeneratedFile) -> dict[str, str]:
    return {
        "path": generated.path,
        "content": generated.content,
        "language": generated.language.value,
        "type": generated.type.value,
    }


def serialize_bundle(bundle: ParsedArtifactBundle) -> str:
    """Render a bundle in the reply shape, fenced as ```json.

    Parsing the result with metadata extraction enabled yields an equal bundle.
    """
    payload: dict[str, Any] = {
        "files": [_file_payload(f) for f in bundle.files],
        "tests": [_file_payload(f) for f in bundle.tests],
        "documentation": bundle.documentation,
        "dependencies": bundle.dependencies,
        "devDependencies": bundle.dev_dependencies,
        "buildInstructions": bundle.build_instructions,
        "usageExamples": bundle.usage_examples,
    }
    if bundle.installation_instructions is not None:
        payload["installationInstructions"] = bundle.installation_instructions
    return "```json\n" + json.dumps(payload, indent=2, ensure_ascii=False) + "\n```"
