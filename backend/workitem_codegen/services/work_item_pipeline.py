"""WorkItemPipeline: turns one tracked work item into a branch with generated code.

Stages, in order:
    fetch -> validation -> invocation -> parsing -> version_control -> completed

A stage that fails ends the run and is reported in PipelineResult.stage.
Validation failures carry field-level findings, invocation failures the
attempt count and final classified error, parse failures the parser's error
list and no partial bundle.
"""

import asyncio
from enum import StrEnum

import structlog
from pydantic import BaseModel, Field

from workitem_codegen.core.config import Settings
from workitem_codegen.core.exceptions import InvocationError, UnknownWorkItemTypeError
from workitem_codegen.core.logging import work_item_context
from workitem_codegen.core.repositories import select_repository
from workitem_codegen.domain.branching import generate_branch_name, generate_commit_message
from workitem_codegen.domain.enrichment import normalize_work_item
from workitem_codegen.domain.extraction import error_messages, extract, has_blocking_errors
from workitem_codegen.integrations.azure_devops import WorkTracker
from workitem_codegen.integrations.generation import GenerationServiceCache
from workitem_codegen.integrations.version_control import FileChange, VersionControl
from workitem_codegen.parsing.path_safety import unsafe_path_reasons
from workitem_codegen.prompting import assemble
from workitem_codegen.resilience import RetryPolicy, invoke
from workitem_codegen.schemas.artifacts import ParsedArtifactBundle
from workitem_codegen.schemas.generation import RepositoryConfig
from workitem_codegen.schemas.work_items import EnrichedWorkItem, FindingSeverity, RawWorkItem, ValidationFinding

logger = structlog.get_logger(__name__)


class PipelineStage(StrEnum):
    FETCH = "fetch"
    VALIDATION = "validation"
    INVOCATION = "invocation"
    PARSING = "parsing"
    VERSION_CONTROL = "version_control"
    COMPLETED = "completed"


class PipelineResult(BaseModel):
    success: bool
    work_item_id: int
    stage: PipelineStage
    branch_name: str | None = None
    commit_id: str | None = None
    bundle: ParsedArtifactBundle | None = None
    findings: list[ValidationFinding] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    attempts: int | None = None


class WorkItemPipeline:
    """Fetch, extract, generate and commit for a single work item.

    Collaborators are injected so tests can supply fakes for the tracker,
    the generation services and version control.

    Args:
        settings: Application settings (retry policy, branch length, comments).
        tracker: Work tracker used to fetch items and post comments.
        generators: Cache of per-language generation services.
        repositories: Candidate target repositories; the first is the default.
        version_control: Branch/commit boundary. Without one, runs stop after parsing.
    """

    def __init__(
        self,
        settings: Settings,
        tracker: WorkTracker,
        generators: GenerationServiceCache,
        repositories: list[RepositoryConfig],
        version_control: VersionControl | None = None,
    ) -> None:
        self.settings = settings
        self.tracker = tracker
        self.generators = generators
        self.repositories = repositories
        self.version_control = version_control
        self.policy = RetryPolicy.from_settings(settings)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def process(self, work_item_id: int) -> PipelineResult:
        """Fetch a work item from the tracker and run it through the pipeline."""
        with work_item_context(work_item_id, trigger="fetch"):
            try:
                raw = await self.tracker.get_work_item(work_item_id)
            except InvocationError as exc:
                logger.error("work_item_fetch_failed", error=str(exc))
                return PipelineResult(
                    success=False,
                    work_item_id=work_item_id,
                    stage=PipelineStage.FETCH,
                    errors=[str(exc)],
                    attempts=exc.attempts,
                )
            return await self.process_item(raw)

    async def process_many(self, work_item_ids: list[int]) -> list[PipelineResult]:
        """Process independent work items concurrently, results in input order."""
        return list(await asyncio.gather(*(self.process(work_item_id) for work_item_id in work_item_ids)))

    async def process_item(self, raw: RawWorkItem) -> PipelineResult:
        item = normalize_work_item(raw)
        log = logger.bind(work_item_id=item.id, work_item_type=item.type)
        repository = select_repository(item.area_path, self.repositories)

        try:
            fields, findings = extract(item)
        except UnknownWorkItemTypeError as exc:
            log.warning("work_item_type_unsupported")
            return PipelineResult(
                success=False,
                work_item_id=item.id,
                stage=PipelineStage.VALIDATION,
                errors=[str(exc)],
            )

        warnings = [f"{f.field}: {f.message}" for f in findings if f.severity == FindingSeverity.WARNING]
        if has_blocking_errors(findings):
            log.warning("work_item_validation_failed", errors=error_messages(findings))
            return PipelineResult(
                success=False,
                work_item_id=item.id,
                stage=PipelineStage.VALIDATION,
                findings=findings,
                errors=error_messages(findings),
                warnings=warnings,
            )

        prompt = assemble(item, fields, repository)
        generator = self.generators.get(repository.target_language)
        try:
            parsed = await generator.generate_code(prompt)
        except InvocationError as exc:
            return PipelineResult(
                success=False,
                work_item_id=item.id,
                stage=PipelineStage.INVOCATION,
                findings=findings,
                errors=[str(exc)],
                warnings=warnings,
                attempts=exc.attempts,
            )

        warnings.extend(parsed.warnings)
        if not parsed.success or parsed.content is None:
            log.warning("generated_code_rejected", errors=parsed.errors)
            return PipelineResult(
                success=False,
                work_item_id=item.id,
                stage=PipelineStage.PARSING,
                findings=findings,
                errors=list(parsed.errors),
                warnings=warnings,
            )

        bundle = parsed.content
        branch_name = generate_branch_name(item, self.settings.branch_name_max_length)
        result = PipelineResult(
            success=True,
            work_item_id=item.id,
            stage=PipelineStage.COMPLETED,
            branch_name=branch_name,
            bundle=bundle,
            findings=findings,
            warnings=warnings,
        )

        if self.version_control is not None:
            try:
                result.commit_id = await self._commit(item, repository, branch_name, bundle, result.warnings)
            except InvocationError as exc:
                result.success = False
                result.stage = PipelineStage.VERSION_CONTROL
                result.errors.append(str(exc))
                result.attempts = exc.attempts
                return result

        if self.settings.post_tracker_comments:
            await self._post_summary(item, result)

        log.info(
            "work_item_processed",
            branch_name=branch_name,
            files=bundle.metadata.total_files,
            warnings=len(result.warnings),
        )
        return result

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _commit(
        self,
        item: EnrichedWorkItem,
        repository: RepositoryConfig,
        branch_name: str,
        bundle: ParsedArtifactBundle,
        warnings: list[str],
    ) -> str:
        changes = []
        for generated in bundle.all_files():
            reasons = unsafe_path_reasons(generated.path)
            if reasons:
                warnings.append(f"Skipped {generated.path}: {'; '.join(reasons)}")
                continue
            changes.append(FileChange(path=generated.path, content=generated.content))

        vcs = self.version_control
        await invoke(
            lambda: vcs.create_branch(repository.id, branch_name, repository.default_branch),
            self.policy,
            operation="create_branch",
        )
        commit_id = await invoke(
            lambda: vcs.commit_changes(repository.id, branch_name, changes, generate_commit_message(item)),
            self.policy,
            operation="commit_changes",
        )
        logger.info(
            "work_item_committed",
            work_item_id=item.id,
            repository=repository.id,
            branch_name=branch_name,
            files=len(changes),
        )
        return commit_id

    async def _post_summary(self, item: EnrichedWorkItem, result: PipelineResult) -> None:
        bundle = result.bundle
        lines = [
            f"Generated {bundle.metadata.total_files} file(s) on branch <b>{result.branch_name}</b>.",
            *(f"- {generated.path}" for generated in bundle.all_files()),
        ]
        try:
            await self.tracker.add_comment(item.id, "<br/>".join(lines))
        except InvocationError as exc:
            # Comment failures never fail the run.
            result.warnings.append(f"Could not post work item comment: {exc}")
            logger.warning("work_item_comment_failed", work_item_id=item.id, error=str(exc))
