"""Schemas describing a target repository and the generation request built for it."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from workitem_codegen.schemas.extraction import ExtractedFieldSet
from workitem_codegen.schemas.work_items import EnrichedWorkItem, WorkItemType


class ProgrammingLanguage(StrEnum):
    TYPESCRIPT = "typescript"
    JAVASCRIPT = "javascript"
    PYTHON = "python"
    CSHARP = "csharp"
    JAVA = "java"


class FileType(StrEnum):
    SOURCE = "source"
    TEST = "test"
    CONFIG = "config"
    DOCUMENTATION = "documentation"


class TemplateFile(BaseModel):
    name: str
    target_path: str
    content: str
    file_type: FileType = FileType.SOURCE
    language: ProgrammingLanguage
    variables: list[str] = Field(default_factory=list)


class CodeTemplate(BaseModel):
    """Skeleton files offered to the generator for matching work item types."""

    name: str
    description: str = ""
    work_item_types: list[WorkItemType] = Field(default_factory=list)
    template_files: list[TemplateFile] = Field(default_factory=list)
    variables: dict[str, str] = Field(default_factory=dict)
    dependencies: list[str] = Field(default_factory=list)

    def applies_to(self, work_item_type: WorkItemType | None) -> bool:
        return work_item_type is not None and work_item_type in self.work_item_types


class NamingConventions(BaseModel):
    variables: str = "camelCase"
    functions: str = "camelCase"
    classes: str = "PascalCase"
    constants: str = "UPPER_SNAKE_CASE"
    files: str = "camelCase"
    directories: str = "kebab-case"


class FileStructureRule(BaseModel):
    pattern: str
    description: str = ""
    required_structure: list[str] = Field(default_factory=list)
    naming_convention: str = ""
    mandatory: bool = False


class QualityThresholds(BaseModel):
    max_complexity: int = 10
    max_function_length: int = 50
    max_file_length: int = 500
    min_test_coverage: int = 80


class CodingStandards(BaseModel):
    linting_rules: str = "eslint:recommended"
    formatting_config: str = "prettier"
    naming_conventions: NamingConventions = Field(default_factory=NamingConventions)
    file_structure: list[FileStructureRule] = Field(default_factory=list)
    quality_thresholds: QualityThresholds | None = None


class ProjectStructure(BaseModel):
    source_dir: str = "src"
    test_dir: str = "tests"
    config_dir: str | None = None
    docs_dir: str | None = None


class BuildConfig(BaseModel):
    build_command: str
    test_command: str
    start_command: str = ""


class ProjectContext(BaseModel):
    project_name: str
    primary_language: ProgrammingLanguage
    framework: str | None = None
    version: str | None = None
    structure: ProjectStructure = Field(default_factory=ProjectStructure)
    dependencies: list[str] = Field(default_factory=list)
    dev_dependencies: list[str] = Field(default_factory=list)
    build_config: BuildConfig | None = None


class RepositoryConfig(BaseModel):
    """Target repository for generated code, selected by work item area path."""

    id: str
    name: str
    url: str = ""
    default_branch: str = "main"
    target_language: ProgrammingLanguage = ProgrammingLanguage.TYPESCRIPT
    code_templates: list[CodeTemplate] = Field(default_factory=list)
    coding_standards: CodingStandards = Field(default_factory=CodingStandards)
    reviewers: list[str] = Field(default_factory=list)
    area_path_mappings: dict[str, str] = Field(default_factory=dict)
    project_context: ProjectContext | None = None

    def resolved_project_context(self) -> ProjectContext:
        if self.project_context is not None:
            return self.project_context
        return ProjectContext(project_name=self.name, primary_language=self.target_language)


class GenerationInstructions(BaseModel):
    model_config = ConfigDict(frozen=True)

    requirements: tuple[str, ...] = ()
    patterns: tuple[str, ...] = ()
    preferred_libraries: tuple[str, ...] = ()
    style_notes: tuple[str, ...] = ()


class GenerationPrompt(BaseModel):
    """Everything the generator needs for one work item. Immutable once assembled."""

    model_config = ConfigDict(frozen=True)

    work_item: EnrichedWorkItem
    fields: ExtractedFieldSet
    target_language: ProgrammingLanguage
    project_context: ProjectContext
    code_templates: tuple[CodeTemplate, ...] = ()
    coding_standards: CodingStandards
    instructions: GenerationInstructions = Field(default_factory=GenerationInstructions)
