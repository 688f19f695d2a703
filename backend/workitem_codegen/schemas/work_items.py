"""Pydantic schemas for work items as received from the tracker and after normalization.

RawWorkItem mirrors the tracker payload (dotted field keys). EnrichedWorkItem is
the flattened, plain-text view every downstream stage reads; it is built once
per run and never mutated.
"""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class WorkItemType(StrEnum):
    """Work item types with an extraction strategy."""

    USER_STORY = "User Story"
    BUG = "Bug"
    TASK = "Task"

    @classmethod
    def resolve(cls, raw: str | None) -> "WorkItemType | None":
        """Match a raw type tag case-insensitively; None when unsupported."""
        if not raw:
            return None
        normalized = " ".join(raw.split()).casefold()
        for member in cls:
            if member.value.casefold() == normalized:
                return member
        return None


class FindingSeverity(StrEnum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class ValidationFinding(BaseModel):
    """A single field-level validation result. Errors block prompt assembly."""

    model_config = ConfigDict(frozen=True)

    field: str
    severity: FindingSeverity
    message: str


class RawWorkItem(BaseModel):
    """Work item record as returned by the tracker's REST API."""

    model_config = ConfigDict(extra="allow")

    id: int
    rev: int = 0
    url: str = ""
    fields: dict[str, Any] = Field(default_factory=dict)


class EnrichedWorkItem(BaseModel):
    """Normalized work item. Optional text fields are None when absent, never ""."""

    model_config = ConfigDict(frozen=True)

    id: int
    type: str = Field(description="Raw type tag, e.g. 'User Story'")
    title: str
    description: str | None = None
    acceptance_criteria: str | None = None
    reproduction_steps: str | None = None
    assigned_to: str | None = None
    area_path: str = ""
    iteration_path: str = ""
    state: str = ""
    priority: int = 2
    tags: tuple[str, ...] = ()
    custom_fields: dict[str, Any] = Field(default_factory=dict)

    @property
    def work_item_type(self) -> WorkItemType | None:
        return WorkItemType.resolve(self.type)
