"""Markdown rendering of generation, validation and fix requests.

Templates live in ``prompting/templates``; the generation template exposes one
macro per section so long prompts can be cut at a section boundary instead of
mid-sentence.
"""

from dataclasses import dataclass, field
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from workitem_codegen.schemas.artifacts import CodeIssue
from workitem_codegen.schemas.generation import CodingStandards, GenerationPrompt, ProgrammingLanguage

PROMPT_TEMPLATE_DIR = Path(__file__).parent / "templates"

TRUNCATION_NOTICE = "[Note: Prompt truncated due to length limits. Focus on the core requirements above.]"
SECTION_SEPARATOR = "\n\n"

FILE_EXTENSIONS: dict[ProgrammingLanguage, str] = {
    ProgrammingLanguage.TYPESCRIPT: "ts",
    ProgrammingLanguage.JAVASCRIPT: "js",
    ProgrammingLanguage.PYTHON: "py",
    ProgrammingLanguage.JAVA: "java",
    ProgrammingLanguage.CSHARP: "cs",
}


@dataclass(frozen=True)
class PromptOptions:
    include_security: bool = False
    include_performance: bool = False
    include_patterns: bool = False
    max_length: int | None = None
    custom_instructions: tuple[str, ...] = field(default_factory=tuple)


class PromptRenderer:
    """Render prompts from the markdown templates."""

    def __init__(self, template_dir: Path = PROMPT_TEMPLATE_DIR):
        self.env = Environment(
            loader=FileSystemLoader(str(template_dir)),
            autoescape=False,  # Markdown should NOT be escaped
            keep_trailing_newline=True,
            undefined=StrictUndefined,
        )

    def generation_sections(self, prompt: GenerationPrompt, options: PromptOptions) -> list[str]:
        macros = self.env.get_template("generation.md.j2").module
        instructions = prompt.instructions
        requirements = list(instructions.requirements)
        if options.include_security:
            requirements.append("Implement security best practices and input sanitization")
        if options.include_performance:
            requirements.append("Optimize for performance and efficient resource usage")
        if options.include_patterns:
            requirements.append("Use appropriate design patterns where beneficial")
        requirements.extend(options.custom_instructions)

        language = prompt.target_language
        sections = [
            macros.header(),
            macros.work_item(prompt.work_item),
            macros.type_details(prompt.fields),
            macros.project_context(prompt.project_context, language.value),
            macros.templates(list(prompt.code_templates)),
            macros.coding_standards(prompt.coding_standards),
            macros.instructions(
                requirements,
                list(instructions.patterns),
                list(instructions.preferred_libraries),
                list(instructions.style_notes),
            ),
            macros.output_format(language.value, FILE_EXTENSIONS.get(language, "txt")),
            macros.footer(),
        ]
        return [str(section).strip() for section in sections]

    def render_generation(self, prompt: GenerationPrompt, options: PromptOptions | None = None) -> str:
        options = options or PromptOptions()
        sections = self.generation_sections(prompt, options)
        full = SECTION_SEPARATOR.join(sections)
        if options.max_length is not None and len(full) > options.max_length:
            return truncate_sections(sections, options.max_length)
        return full

    def render_validation(
        self,
        code: str,
        language: ProgrammingLanguage,
        standards: CodingStandards | None = None,
        options: PromptOptions | None = None,
    ) -> str:
        options = options or PromptOptions()
        return self.env.get_template("validation.md.j2").render(
            code=code,
            language=language.value,
            standards=standards,
            custom_instructions=list(options.custom_instructions),
        )

    def render_fix(
        self,
        code: str,
        issues: list[CodeIssue],
        language: ProgrammingLanguage,
        options: PromptOptions | None = None,
    ) -> str:
        options = options or PromptOptions()
        return self.env.get_template("fix.md.j2").render(
            code=code,
            issues=issues,
            language=language.value,
            custom_instructions=list(options.custom_instructions),
        )


def truncate_sections(sections: list[str], max_length: int) -> str:
    """Keep whole leading sections that fit, then append the truncation notice.

    The result never exceeds ``max_length`` unless even the notice alone is longer.
    """
    budget = max_length - len(SECTION_SEPARATOR) - len(TRUNCATION_NOTICE)
    kept: list[str] = []
    used = 0
    for section in sections:
        extra = len(section) + (len(SECTION_SEPARATOR) if kept else 0)
        if used + extra > budget:
            break
        kept.append(section)
        used += extra
    if not kept:
        return TRUNCATION_NOTICE
    return SECTION_SEPARATOR.join(kept) + SECTION_SEPARATOR + TRUNCATION_NOTICE
