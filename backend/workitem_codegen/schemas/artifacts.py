"""Pydantic schemas for generated artifacts and parser results.

ParsedArtifactBundle is the structured form of a generator reply. The parser
never returns a partial bundle: ParsedResponse.content is None whenever
``success`` is False.
"""

from enum import StrEnum
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

from workitem_codegen.schemas.generation import FileType, ProgrammingLanguage

T = TypeVar("T")


class FileMetadata(BaseModel):
    size: int = Field(description="Content size in bytes (UTF-8)")
    lines: int
    complexity: int | None = None
    dependencies: list[str] | None = None


class GeneratedFile(BaseModel):
    path: str
    content: str
    language: ProgrammingLanguage
    type: FileType
    metadata: FileMetadata | None = None


class BundleMetadata(BaseModel):
    total_files: int = 0
    total_lines: int = 0


class ParsedArtifactBundle(BaseModel):
    files: list[GeneratedFile] = Field(default_factory=list)
    tests: list[GeneratedFile] = Field(default_factory=list)
    documentation: str = ""
    dependencies: list[str] = Field(default_factory=list)
    dev_dependencies: list[str] = Field(default_factory=list)
    build_instructions: str = ""
    installation_instructions: str | None = None
    usage_examples: list[str] = Field(default_factory=list)
    metadata: BundleMetadata = Field(default_factory=BundleMetadata)

    def all_files(self) -> list[GeneratedFile]:
        return [*self.files, *self.tests]


class IssueSeverity(StrEnum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class CodeIssue(BaseModel):
    type: str = "logic"
    severity: IssueSeverity = IssueSeverity.WARNING
    message: str
    file: str = ""
    line: int = 0
    column: int | None = None
    rule: str | None = None
    suggested_fix: str | None = None
    can_auto_fix: bool = False


class CodeQualityReport(BaseModel):
    is_valid: bool = False
    syntax_errors: list[CodeIssue] = Field(default_factory=list)
    linting_issues: list[CodeIssue] = Field(default_factory=list)
    style_violations: list[CodeIssue] = Field(default_factory=list)
    security_issues: list[CodeIssue] = Field(default_factory=list)
    performance_warnings: list[CodeIssue] = Field(default_factory=list)
    quality_score: int = Field(default=0, ge=0, le=100)
    suggestions: list[str] = Field(default_factory=list)
    can_auto_fix: bool = False


class ParseOptions(BaseModel):
    validate_paths: bool = True
    validate_syntax: bool = True
    extract_metadata: bool = True
    max_file_size: int | None = None
    allowed_extensions: list[str] | None = None


class ParsedResponse(BaseModel, Generic[T]):
    content: T | None = None
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    success: bool = False
