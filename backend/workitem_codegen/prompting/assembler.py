"""Prompt assembly: combines a work item, its extracted fields and a repository
config into an immutable GenerationPrompt. Pure; no I/O.
"""

from workitem_codegen.schemas.extraction import BugFields, ExtractedFieldSet, TaskFields, UserStoryFields
from workitem_codegen.schemas.generation import (
    GenerationInstructions,
    GenerationPrompt,
    ProgrammingLanguage,
    RepositoryConfig,
)
from workitem_codegen.schemas.work_items import EnrichedWorkItem

BASELINE_REQUIREMENTS: tuple[str, ...] = (
    "Generate complete, production-ready code that implements the work item requirements",
    "Follow the specified coding standards and naming conventions",
    "Include comprehensive error handling and input validation",
    "Generate corresponding unit tests with good coverage",
    "Use the project's existing dependencies where appropriate",
)

USER_STORY_REQUIREMENTS: tuple[str, ...] = (
    "Implement user-facing functionality",
    "Follow acceptance criteria strictly",
    "Include input validation",
    "Consider user experience and accessibility",
)
BUG_REQUIREMENTS: tuple[str, ...] = (
    "Fix the root cause, not just symptoms",
    "Ensure the fix doesn't introduce new issues",
    "Include a regression test that reproduces the reported failure",
)
TASK_REQUIREMENTS: tuple[str, ...] = (
    "Follow technical specifications exactly",
    "Implement efficient and maintainable code",
    "Add appropriate logging",
    "Include unit tests for new functionality",
)

TYPE_PATTERNS: dict[str, tuple[str, ...]] = {
    "User Story": ("MVC", "Repository", "Service Layer"),
    "Bug": ("Error Handling", "Validation", "Testing"),
    "Task": ("Factory", "Strategy", "Observer"),
}

TEST_LIBRARIES: dict[ProgrammingLanguage, tuple[str, ...]] = {
    ProgrammingLanguage.TYPESCRIPT: ("jest",),
    ProgrammingLanguage.JAVASCRIPT: ("jest",),
    ProgrammingLanguage.PYTHON: ("pytest",),
    ProgrammingLanguage.JAVA: ("junit",),
    ProgrammingLanguage.CSHARP: ("xunit",),
}


def _numbered(title: str, entries) -> list[str]:
    entries = list(entries)
    if not entries:
        return []
    return [title, *(f"  {index}. {entry}" for index, entry in enumerate(entries, start=1))]


def _user_story_notes(fields: UserStoryFields) -> list[str]:
    lines = [
        "Generate code that implements the user story requirements:",
        f"- User Role: {fields.user_role or 'General User'}",
        f"- Business Value: {fields.business_value or 'Not stated'}",
        f"- Business Priority: {fields.business_priority.value}",
    ]
    lines += _numbered("- Acceptance Criteria:", fields.acceptance_criteria.contents())
    lines += _numbered("- Functional Requirements:", fields.functional_requirements)
    return ["\n".join(lines)]


def _bug_notes(fields: BugFields) -> list[str]:
    lines = [
        "Generate code that fixes the reported bug:",
        f"- Bug Category: {fields.bug_category}",
        f"- Severity: {fields.severity}",
        f"- Urgency: {fields.impact.urgency.value} (user impact {fields.impact.user_impact.value})",
    ]
    if fields.behavior.expected:
        lines.append(f"- Expected Behavior: {fields.behavior.expected}")
    if fields.behavior.actual:
        lines.append(f"- Actual Behavior: {fields.behavior.actual}")
    lines += _numbered("- Reproduction Steps:", fields.reproduction_steps.contents())
    lines += _numbered("- Error Messages:", fields.error_messages)
    if fields.component_tags:
        lines.append(f"- Affected Components: {', '.join(fields.component_tags)}")
    return ["\n".join(lines)]


def _task_notes(fields: TaskFields) -> list[str]:
    lines = [
        "Generate code that implements the technical task requirements:",
        f"- Task Category: {fields.task_category}",
        f"- Complexity Level: {fields.complexity.value}",
        f"- Approach: {fields.approach}",
    ]
    lines += _numbered("- Technical Requirements:", fields.technical_specs.requirements)
    lines += _numbered("- Implementation Steps:", fields.implementation_steps.contents())
    lines += _numbered("- Expected Deliverables:", fields.deliverables)
    lines += _numbered("- Technical Dependencies:", fields.dependencies.technical)
    lines += _numbered("- Technical Notes:", fields.technical_notes)
    return ["\n".join(lines)]


def build_instructions(fields: ExtractedFieldSet, repo_config: RepositoryConfig) -> GenerationInstructions:
    """Baseline guidance followed by guidance derived from the extracted fields."""
    if isinstance(fields, UserStoryFields):
        type_requirements, notes = USER_STORY_REQUIREMENTS, _user_story_notes(fields)
    elif isinstance(fields, BugFields):
        annotated = (
            f"{BUG_REQUIREMENTS[0]} ({fields.severity} severity {fields.bug_category} bug, "
            f"{fields.impact.urgency.value} urgency)",
        )
        type_requirements, notes = annotated + BUG_REQUIREMENTS[1:], _bug_notes(fields)
    else:
        type_requirements, notes = TASK_REQUIREMENTS, _task_notes(fields)

    context = repo_config.resolved_project_context()
    libraries = dict.fromkeys([*context.dependencies, *TEST_LIBRARIES.get(repo_config.target_language, ())])
    return GenerationInstructions(
        requirements=BASELINE_REQUIREMENTS + type_requirements,
        patterns=TYPE_PATTERNS.get(fields.type, ()),
        preferred_libraries=tuple(libraries),
        style_notes=tuple(notes),
    )


def assemble(item: EnrichedWorkItem, fields: ExtractedFieldSet, repo_config: RepositoryConfig) -> GenerationPrompt:
    """Build the generation request for one work item.

    Templates are filtered to those declared for the item's type; an empty
    selection is valid.
    """
    templates = tuple(t for t in repo_config.code_templates if t.applies_to(item.work_item_type))
    return GenerationPrompt(
        work_item=item,
        fields=fields,
        target_language=repo_config.target_language,
        project_context=repo_config.resolved_project_context(),
        code_templates=templates,
        coding_standards=repo_config.coding_standards,
        instructions=build_instructions(fields, repo_config),
    )
