"""Tests for WorkItemPipeline orchestration with injected fakes."""
import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from workitem_codegen.core.exceptions import InvocationError
from workitem_codegen.integrations import FileChange, GenerationServiceCache
from workitem_codegen.parsing import parse_generated_code_response
from workitem_codegen.schemas.artifacts import ParsedResponse
from workitem_codegen.schemas.generation import ProgrammingLanguage
from workitem_codegen.services import PipelineStage, WorkItemPipeline

pytestmark = pytest.mark.unit

BUG_FIELDS = {"title": "Login fails", "repro_steps": "1. Open app\n2. Click login\n3. See crash"}


def _bundle_response(*paths: str) -> ParsedResponse:
    reply = "```json\n" + json.dumps({
        "files": [
            {"path": path, "content": "export const ok = true;\n", "language": "typescript", "type": "source"}
            for path in paths
        ],
    }) + "\n```"
    return parse_generated_code_response(reply, ProgrammingLanguage.TYPESCRIPT)


@pytest.fixture
def generator():
    fake = MagicMock()
    fake.generate_code = AsyncMock(return_value=_bundle_response("src/auth/login.ts"))
    return fake


@pytest.fixture
def tracker():
    fake = MagicMock()
    fake.get_work_item = AsyncMock()
    fake.add_comment = AsyncMock()
    return fake


@pytest.fixture
def version_control():
    fake = MagicMock()
    fake.create_branch = AsyncMock()
    fake.commit_changes = AsyncMock(return_value="abc123")
    return fake


@pytest.fixture
def pipeline(settings, tracker, generator, version_control, repository):
    return WorkItemPipeline(
        settings=settings,
        tracker=tracker,
        generators=GenerationServiceCache(settings, factory=lambda language, s: generator),
        repositories=[repository],
        version_control=version_control,
    )


class TestProcessItem:
    @pytest.mark.asyncio
    async def test_happy_path(self, pipeline, make_raw, generator, version_control, tracker):
        result = await pipeline.process_item(make_raw(42, "Bug", **BUG_FIELDS))

        assert result.success is True
        assert result.stage == PipelineStage.COMPLETED
        assert result.branch_name == "bugfix/42_login-fails"
        assert result.commit_id == "abc123"
        assert result.bundle.files[0].path == "src/auth/login.ts"

        prompt = generator.generate_code.await_args.args[0]
        assert prompt.work_item.id == 42
        version_control.create_branch.assert_awaited_once_with("default", "bugfix/42_login-fails", "main")
        repo, branch, files, message = version_control.commit_changes.await_args.args
        assert files == [FileChange(path="src/auth/login.ts", content="export const ok = true;\n")]
        assert message.startswith("fix(shop): Login fails")
        tracker.add_comment.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_validation_failure_reports_fields(self, pipeline, make_raw, generator):
        result = await pipeline.process_item(make_raw(42, "Bug", title="Login fails"))

        assert result.success is False
        assert result.stage == PipelineStage.VALIDATION
        assert result.errors == [
            "reproduction_steps: Reproduction steps are essential for understanding and fixing the bug"
        ]
        assert any(f.field == "reproduction_steps" for f in result.findings)
        generator.generate_code.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_type(self, pipeline, make_raw):
        result = await pipeline.process_item(make_raw(1, "Epic", title="Platform"))
        assert result.stage == PipelineStage.VALIDATION
        assert result.errors == ["Unsupported work item type: 'Epic'"]

    @pytest.mark.asyncio
    async def test_invocation_failure_reports_attempts(self, pipeline, make_raw, generator, version_control):
        cause = ConnectionError("reset")
        generator.generate_code.side_effect = InvocationError("generate_code", 3, "retryable", cause)

        result = await pipeline.process_item(make_raw(42, "Bug", **BUG_FIELDS))

        assert result.success is False
        assert result.stage == PipelineStage.INVOCATION
        assert result.attempts == 3
        assert "failed after 3 attempt(s) (retryable)" in result.errors[0]
        version_control.create_branch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_parse_failure_has_no_bundle(self, pipeline, make_raw, generator, version_control):
        generator.generate_code.return_value = parse_generated_code_response(
            "no json here", ProgrammingLanguage.TYPESCRIPT
        )

        result = await pipeline.process_item(make_raw(42, "Bug", **BUG_FIELDS))

        assert result.stage == PipelineStage.PARSING
        assert result.bundle is None
        assert result.errors == ["No structured data found in response"]
        version_control.commit_changes.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unsafe_paths_are_not_committed(self, pipeline, make_raw, generator, version_control):
        generator.generate_code.return_value = _bundle_response("src/ok.ts", "../escape.ts")

        result = await pipeline.process_item(make_raw(42, "Bug", **BUG_FIELDS))

        assert result.success is True
        files = version_control.commit_changes.await_args.args[2]
        assert [f.path for f in files] == ["src/ok.ts"]
        assert any(w.startswith("Skipped ../escape.ts") for w in result.warnings)

    @pytest.mark.asyncio
    async def test_version_control_failure(self, pipeline, make_raw, version_control):
        version_control.create_branch.side_effect = PermissionError("forbidden")

        result = await pipeline.process_item(make_raw(42, "Bug", **BUG_FIELDS))

        assert result.success is False
        assert result.stage == PipelineStage.VERSION_CONTROL
        assert result.attempts == 1

    @pytest.mark.asyncio
    async def test_comment_failure_is_a_warning(self, pipeline, make_raw, tracker):
        tracker.add_comment.side_effect = InvocationError("add_comment", 1, "fatal", RuntimeError("forbidden"))

        result = await pipeline.process_item(make_raw(42, "Bug", **BUG_FIELDS))

        assert result.success is True
        assert any(w.startswith("Could not post work item comment") for w in result.warnings)

    @pytest.mark.asyncio
    async def test_without_version_control(self, settings, generator, tracker, repository, make_raw):
        pipeline = WorkItemPipeline(
            settings=settings.model_copy(update={"post_tracker_comments": False}),
            tracker=tracker,
            generators=GenerationServiceCache(settings, factory=lambda language, s: generator),
            repositories=[repository],
        )

        result = await pipeline.process_item(make_raw(42, "Bug", **BUG_FIELDS))

        assert result.success is True
        assert result.commit_id is None
        tracker.add_comment.assert_not_awaited()


class TestProcess:
    @pytest.mark.asyncio
    async def test_fetches_then_processes(self, pipeline, tracker, make_raw):
        tracker.get_work_item.return_value = make_raw(42, "Bug", **BUG_FIELDS)

        result = await pipeline.process(42)

        tracker.get_work_item.assert_awaited_once_with(42)
        assert result.success is True

    @pytest.mark.asyncio
    async def test_fetch_failure(self, pipeline, tracker):
        tracker.get_work_item.side_effect = InvocationError("get_work_item", 1, "fatal", RuntimeError("not found"))

        result = await pipeline.process(7)

        assert result.success is False
        assert result.stage == PipelineStage.FETCH
        assert result.work_item_id == 7

    @pytest.mark.asyncio
    async def test_process_many_keeps_order(self, pipeline, tracker, make_raw):
        tracker.get_work_item.side_effect = lambda work_item_id: make_raw(work_item_id, "Bug", **BUG_FIELDS)

        results = await pipeline.process_many([3, 1, 2])

        assert [r.work_item_id for r in results] == [3, 1, 2]
        assert all(r.success for r in results)
