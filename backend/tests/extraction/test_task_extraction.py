"""Tests for the Task extraction strategy and strategy dispatch."""
import pytest

from workitem_codegen.core.exceptions import UnknownWorkItemTypeError
from workitem_codegen.domain.extraction import STRATEGIES, extract, strategy_for, validate
from workitem_codegen.schemas.extraction import BlockFormat, PriorityTier, TaskFields
from workitem_codegen.schemas.work_items import FindingSeverity, WorkItemType

pytestmark = pytest.mark.unit

DESCRIPTION = (
    "Implement GET /api/orders endpoint in Express using the Repository pattern. "
    "It must validate input. Note: depends on #123 being merged. Consider caching results."
)


@pytest.fixture
def task(make_item):
    return make_item(9, "Task", title="Orders endpoint", description=DESCRIPTION, effort=6)


class TestTaskExtraction:
    def test_fields(self, task):
        fields, findings = extract(task)

        assert isinstance(fields, TaskFields)
        assert fields.technical_specs.apis == ("GET /api/orders",)
        assert "Express" in fields.technical_specs.technologies
        assert "Repository" in fields.technical_specs.patterns
        assert "It must validate input." in fields.technical_specs.requirements
        assert fields.technical_notes == ("Note: depends on #123 being merged.", "Consider caching results.")
        assert fields.dependencies.work_items == (123,)
        assert fields.approach == "new_development"
        assert fields.effort == 6.0
        assert fields.task_category == "backend"
        assert findings == []

    def test_free_text_implementation_steps(self, task):
        fields, _ = extract(task)
        assert fields.implementation_steps.format == BlockFormat.FREE_TEXT
        assert len(fields.implementation_steps.items) == 4

    def test_numbered_implementation_steps(self, make_item):
        item = make_item(9, "Task", title="Steps", description="1. Create the table\n2. Add the migration")
        fields, _ = extract(item)
        assert fields.implementation_steps.format == BlockFormat.NUMBERED

    def test_high_complexity(self, make_item):
        item = make_item(9, "Task", title="Rework", description="Refactor the integration layer for performance", effort=20)
        fields, _ = extract(item)
        assert fields.complexity == PriorityTier.HIGH
        assert fields.approach == "refactoring"

    def test_missing_effort_is_info(self, make_item):
        item = make_item(9, "Task", title="Orders endpoint", description=DESCRIPTION)
        findings = validate(item)
        assert [(f.field, f.severity) for f in findings] == [("effort", FindingSeverity.INFO)]


class TestStrategyDispatch:
    def test_one_strategy_per_type(self):
        assert set(STRATEGIES) == set(WorkItemType)

    def test_case_insensitive_type(self, make_item):
        assert strategy_for(make_item(1, "user story", title="x")).name == "user_story_requirements"

    def test_unknown_type_raises(self, make_item):
        with pytest.raises(UnknownWorkItemTypeError):
            extract(make_item(1, "Epic", title="x"))
