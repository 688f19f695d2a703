"""Shared test fixtures for all test groups."""

import pytest

from workitem_codegen.core.config import Settings
from workitem_codegen.core.repositories import default_repository
from workitem_codegen.domain.enrichment import normalize_work_item
from workitem_codegen.schemas.work_items import RawWorkItem


def raw_work_item(work_item_id: int, work_item_type: str, **fields) -> RawWorkItem:
    """RawWorkItem with tracker field keys built from short keyword names."""
    keys = {
        "title": "System.Title",
        "description": "System.Description",
        "acceptance_criteria": "Microsoft.VSTS.Common.AcceptanceCriteria",
        "repro_steps": "Microsoft.VSTS.TCM.ReproSteps",
        "area_path": "System.AreaPath",
        "priority": "Microsoft.VSTS.Common.Priority",
        "tags": "System.Tags",
        "severity": "Microsoft.VSTS.Common.Severity",
        "story_points": "Microsoft.VSTS.Scheduling.StoryPoints",
        "effort": "Microsoft.VSTS.Scheduling.Effort",
    }
    payload = {"System.WorkItemType": work_item_type, "System.AreaPath": "Shop"}
    payload.update({keys.get(name, name): value for name, value in fields.items()})
    return RawWorkItem(id=work_item_id, fields=payload)


@pytest.fixture
def make_item():
    """Factory for normalized work items: make_item(42, "Bug", title=..., repro_steps=...)."""

    def factory(work_item_id: int, work_item_type: str, **fields):
        return normalize_work_item(raw_work_item(work_item_id, work_item_type, **fields))

    return factory


@pytest.fixture
def settings():
    """Settings with zero backoff so retry paths run instantly."""
    return Settings(
        _env_file=None,
        environment="test",
        retry_max_attempts=3,
        retry_base_delay=0.0,
        retry_max_delay=0.0,
        request_timeout=1.0,
        generation_timeout=1.0,
        validation_timeout=1.0,
        fix_timeout=1.0,
        azure_devops_org_url="https://dev.azure.com/contoso",
        azure_devops_project="Shop",
        azure_devops_token="pat-token",
        anthropic_api_key="test-key",
        webhook_secret="",
    )


@pytest.fixture
def repository():
    return default_repository()


@pytest.fixture
def make_raw():
    """Factory for raw tracker records: make_raw(42, "Bug", title=...)."""
    return raw_work_item
