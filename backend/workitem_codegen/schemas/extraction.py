"""Schemas for the structured field sets produced by the extraction engine.

ExtractedFieldSet is a discriminated union on ``type``; each variant carries the
common work item fields plus its own type-specific fields. Values that could
not be derived are None (or an empty collection), never an empty string.
"""

from enum import StrEnum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field


class BlockFormat(StrEnum):
    """Detected layout of a free-text block, in detection priority order."""

    GHERKIN = "gherkin"
    NUMBERED = "numbered"
    BULLET_POINTS = "bullet_points"
    FREE_TEXT = "free_text"


class ItemKind(StrEnum):
    GIVEN = "given"
    WHEN = "when"
    THEN = "then"
    STEP = "step"
    BULLET = "bullet"
    TEXT = "text"


class BlockItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: ItemKind
    content: str
    number: int | None = None


class ParsedBlock(BaseModel):
    """A free-text block split into ordered items under a single format tag."""

    model_config = ConfigDict(frozen=True)

    format: BlockFormat
    items: tuple[BlockItem, ...] = ()

    def contents(self, kind: ItemKind | None = None) -> list[str]:
        return [item.content for item in self.items if kind is None or item.kind == kind]


class PriorityTier(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Urgency(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    IMMEDIATE = "immediate"


class ImpactAssessment(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_impact: PriorityTier
    urgency: Urgency


class BehaviorAnalysis(BaseModel):
    """Expected vs actual behaviour described in a bug report."""

    model_config = ConfigDict(frozen=True)

    expected: str | None = None
    actual: str | None = None


class TechnicalSpecs(BaseModel):
    model_config = ConfigDict(frozen=True)

    apis: tuple[str, ...] = ()
    databases: tuple[str, ...] = ()
    technologies: tuple[str, ...] = ()
    patterns: tuple[str, ...] = ()
    requirements: tuple[str, ...] = ()


class TaskDependencies(BaseModel):
    model_config = ConfigDict(frozen=True)

    technical: tuple[str, ...] = ()
    work_items: tuple[int, ...] = ()
    external: tuple[str, ...] = ()


class _CommonFields(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    description: str | None = None
    area_path: str = ""
    iteration_path: str = ""
    state: str = ""
    priority: int = 2
    tags: tuple[str, ...] = ()
    assigned_to: str | None = None
    component_tags: tuple[str, ...] = ()


class UserStoryFields(_CommonFields):
    type: Literal["User Story"] = "User Story"
    acceptance_criteria: ParsedBlock
    user_role: str | None = None
    business_value: str | None = None
    functional_requirements: tuple[str, ...] = ()
    story_points: float | None = None
    business_priority: PriorityTier = PriorityTier.MEDIUM


class BugFields(_CommonFields):
    type: Literal["Bug"] = "Bug"
    reproduction_steps: ParsedBlock
    behavior: BehaviorAnalysis = Field(default_factory=BehaviorAnalysis)
    error_messages: tuple[str, ...] = ()
    impact: ImpactAssessment
    severity: str = "Medium"
    bug_category: str = "functional"


class TaskFields(_CommonFields):
    type: Literal["Task"] = "Task"
    implementation_steps: ParsedBlock
    technical_notes: tuple[str, ...] = ()
    technical_specs: TechnicalSpecs = Field(default_factory=TechnicalSpecs)
    approach: str = "standard"
    dependencies: TaskDependencies = Field(default_factory=TaskDependencies)
    deliverables: tuple[str, ...] = ()
    complexity: PriorityTier = PriorityTier.MEDIUM
    effort: float | None = None
    remaining_work: float | None = None
    task_category: str = "development"


ExtractedFieldSet = Annotated[
    UserStoryFields | BugFields | TaskFields,
    Field(discriminator="type"),
]
