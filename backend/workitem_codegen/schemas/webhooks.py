"""Request/response schemas for tracker service-hook deliveries."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class WebhookResource(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: int
    work_item_type: str = Field(alias="workItemType")
    fields: dict[str, Any]


class WorkItemWebhookPayload(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    event_type: str = Field(alias="eventType")
    resource: WebhookResource


class WebhookResponse(BaseModel):
    message: str
    work_item_id: int | None = None
    event_type: str | None = None
    stage: str | None = None
    branch_name: str | None = None
    files_generated: int = 0
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
