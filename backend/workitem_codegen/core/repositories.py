"""Repository configurations and area-path based selection.

Configurations come from the JSON file named by ``REPOSITORIES_FILE`` (a list
of RepositoryConfig objects) or, when unset, a single built-in TypeScript
repository.
"""

import json
from pathlib import Path

import structlog
from pydantic import TypeAdapter, ValidationError

from workitem_codegen.core.config import Settings
from workitem_codegen.core.exceptions import ConfigurationError
from workitem_codegen.schemas.generation import (
    CodeTemplate,
    CodingStandards,
    FileStructureRule,
    FileType,
    ProgrammingLanguage,
    ProjectContext,
    ProjectStructure,
    RepositoryConfig,
    TemplateFile,
)
from workitem_codegen.schemas.work_items import WorkItemType

logger = structlog.get_logger(__name__)

_repository_list = TypeAdapter(list[RepositoryConfig])

DEFAULT_CODING_STANDARDS = CodingStandards(
    file_structure=[
        FileStructureRule(
            pattern="src/**/*.ts",
            description="TypeScript source files",
            required_structure=["src"],
            naming_convention="camelCase",
            mandatory=True,
        ),
        FileStructureRule(
            pattern="tests/**/*.test.ts",
            description="Test files",
            required_structure=["tests"],
            naming_convention="camelCase",
        ),
    ],
)

DEFAULT_TEMPLATES = [
    CodeTemplate(
        name="TypeScript Service",
        description="Service class with an interface",
        work_item_types=[WorkItemType.TASK, WorkItemType.USER_STORY],
        template_files=[
            TemplateFile(
                name="Service",
                target_path="src/services/{{serviceName}}.ts",
                content=(
                    "export interface I{{serviceName}} {}\n\n"
                    "export class {{serviceName}} implements I{{serviceName}} {}\n"
                ),
                file_type=FileType.SOURCE,
                language=ProgrammingLanguage.TYPESCRIPT,
                variables=["serviceName"],
            ),
        ],
        variables={"serviceName": "Derived from the work item title"},
    ),
    CodeTemplate(
        name="Bug Fix",
        description="Targeted fix with a regression test",
        work_item_types=[WorkItemType.BUG],
        template_files=[
            TemplateFile(
                name="Regression test",
                target_path="tests/regression/{{bugFixName}}.test.ts",
                content="describe('{{title}}', () => {\n  it('does not regress', () => {});\n});\n",
                file_type=FileType.TEST,
                language=ProgrammingLanguage.TYPESCRIPT,
                variables=["bugFixName", "title"],
            ),
        ],
        variables={"bugFixName": "Derived from the bug title", "title": "Bug title"},
    ),
]


def default_repository() -> RepositoryConfig:
    return RepositoryConfig(
        id="default",
        name="Default Repository",
        default_branch="main",
        target_language=ProgrammingLanguage.TYPESCRIPT,
        code_templates=DEFAULT_TEMPLATES,
        coding_standards=DEFAULT_CODING_STANDARDS,
        project_context=ProjectContext(
            project_name="Default Repository",
            primary_language=ProgrammingLanguage.TYPESCRIPT,
            framework="Express.js",
            structure=ProjectStructure(source_dir="src", test_dir="tests", config_dir="config", docs_dir="docs"),
        ),
    )


def load_repositories(settings: Settings) -> list[RepositoryConfig]:
    """Load repository configurations named by settings.

    Raises:
        ConfigurationError: The file is unreadable, not JSON, fails validation
            or holds an empty list.
    """
    if not settings.repositories_file:
        return [default_repository()]

    path = Path(settings.repositories_file)
    try:
        repositories = _repository_list.validate_python(json.loads(path.read_text(encoding="utf-8")))
    except (OSError, json.JSONDecodeError, ValidationError) as exc:
        raise ConfigurationError(f"Invalid repositories file {path}: {exc}") from exc
    if not repositories:
        raise ConfigurationError(f"Repositories file {path} defines no repositories")

    logger.info("repositories_loaded", path=str(path), count=len(repositories))
    return repositories


def _ancestors(area_path: str) -> list[str]:
    segments = area_path.split("\\")
    return ["\\".join(segments[:end]) for end in range(len(segments), 0, -1)]


def select_repository(area_path: str, repositories: list[RepositoryConfig]) -> RepositoryConfig:
    """Pick the repository mapped to ``area_path``.

    The most specific mapping wins: the full path first, then each parent
    path. Without any mapping the first repository is the default.

    Raises:
        ConfigurationError: ``repositories`` is empty.
    """
    if not repositories:
        raise ConfigurationError("No repository configuration found")
    for candidate in _ancestors(area_path.strip()) if area_path.strip() else []:
        for repository in repositories:
            if candidate in repository.area_path_mappings:
                return repository
    return repositories[0]
