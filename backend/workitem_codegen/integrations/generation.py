"""Code generation client backed by the Anthropic Messages API.

GenerationService renders a prompt, invokes the model through the resilient
invocation layer and hands the reply to the artifact parser. One service is
built per target language; GenerationServiceCache keeps them keyed by
language and environment.
"""

from collections.abc import Callable
from typing import Protocol

import anthropic
import structlog

from workitem_codegen.core.config import Settings
from workitem_codegen.core.exceptions import RetryableError
from workitem_codegen.parsing import (
    parse_fixed_code_response,
    parse_generated_code_response,
    parse_validation_response,
)
from workitem_codegen.prompting import PromptOptions, PromptRenderer
from workitem_codegen.resilience import RetryPolicy, invoke
from workitem_codegen.schemas.artifacts import (
    CodeIssue,
    CodeQualityReport,
    ParsedArtifactBundle,
    ParsedResponse,
    ParseOptions,
)
from workitem_codegen.schemas.generation import CodingStandards, GenerationPrompt, ProgrammingLanguage

logger = structlog.get_logger(__name__)

SYSTEM_PROMPT = (
    "You are a senior software engineer. You write production-ready code and tests "
    "that follow the project's conventions, and you answer in exactly the format requested."
)

LANGUAGE_TEMPERATURES: dict[ProgrammingLanguage, float] = {
    ProgrammingLanguage.TYPESCRIPT: 0.7,
    ProgrammingLanguage.JAVASCRIPT: 0.7,
    ProgrammingLanguage.PYTHON: 0.6,
    ProgrammingLanguage.JAVA: 0.5,
    ProgrammingLanguage.CSHARP: 0.5,
}
DEFAULT_TEMPERATURE = 0.7
REVIEW_TEMPERATURE = 0.2


class CodeGenerator(Protocol):
    async def generate_code(
        self, prompt: GenerationPrompt, options: PromptOptions | None = None
    ) -> ParsedResponse[ParsedArtifactBundle]: ...

    async def validate_code(
        self, code: str, language: ProgrammingLanguage, standards: CodingStandards | None = None
    ) -> ParsedResponse[CodeQualityReport]: ...

    async def fix_code(self, code: str, issues: list[CodeIssue], language: ProgrammingLanguage) -> ParsedResponse[str]: ...


class GenerationService:
    """Generation, review and repair requests for one target language."""

    def __init__(
        self,
        language: ProgrammingLanguage,
        settings: Settings,
        client: anthropic.AsyncAnthropic | None = None,
        renderer: PromptRenderer | None = None,
    ):
        self.language = language
        self.settings = settings
        self.model = settings.generation_model
        self.max_tokens = settings.generation_max_tokens
        self.temperature = LANGUAGE_TEMPERATURES.get(language, DEFAULT_TEMPERATURE)
        self.client = client or anthropic.AsyncAnthropic(api_key=settings.anthropic_api_key)
        self.renderer = renderer or PromptRenderer()
        base = RetryPolicy.from_settings(settings)
        self.generation_policy = base.with_timeout(settings.generation_timeout)
        self.validation_policy = base.with_timeout(settings.validation_timeout)
        self.fix_policy = base.with_timeout(settings.fix_timeout)

    async def _complete(self, prompt: str, temperature: float) -> str:
        response = await self.client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            temperature=temperature,
            system=SYSTEM_PROMPT,
            messages=[{"role": "user", "content": prompt}],
        )
        text = "".join(block.text for block in response.content if getattr(block, "type", None) == "text")
        if not text.strip():
            raise RetryableError("Empty response from generation service")
        return text

    async def generate_code(
        self, prompt: GenerationPrompt, options: PromptOptions | None = None
    ) -> ParsedResponse[ParsedArtifactBundle]:
        """Generate source and test files for an assembled prompt.

        Args:
            prompt: Assembled generation request.
            options: Rendering options; ``max_length`` defaults to the configured limit.

        Returns:
            The parser's result for the model reply.

        Raises:
            InvocationError: The model call failed after all permitted attempts.
        """
        options = options or PromptOptions(max_length=self.settings.max_prompt_length)
        text = self.renderer.render_generation(prompt, options)
        logger.info(
            "code_generation_started",
            work_item_id=prompt.work_item.id,
            language=self.language.value,
            prompt_length=len(text),
        )
        reply = await invoke(
            lambda: self._complete(text, self.temperature),
            self.generation_policy,
            operation="generate_code",
        )
        result = parse_generated_code_response(reply, prompt.target_language, ParseOptions())
        logger.info(
            "code_generation_completed",
            work_item_id=prompt.work_item.id,
            success=result.success,
            errors=len(result.errors),
            warnings=len(result.warnings),
        )
        return result

    async def validate_code(
        self, code: str, language: ProgrammingLanguage, standards: CodingStandards | None = None
    ) -> ParsedResponse[CodeQualityReport]:
        text = self.renderer.render_validation(code, language, standards)
        reply = await invoke(
            lambda: self._complete(text, REVIEW_TEMPERATURE),
            self.validation_policy,
            operation="validate_code",
        )
        return parse_validation_response(reply)

    async def fix_code(self, code: str, issues: list[CodeIssue], language: ProgrammingLanguage) -> ParsedResponse[str]:
        text = self.renderer.render_fix(code, issues, language)
        reply = await invoke(
            lambda: self._complete(text, REVIEW_TEMPERATURE),
            self.fix_policy,
            operation="fix_code",
        )
        return parse_fixed_code_response(reply, code)


class GenerationServiceCache:
    """GenerationService instances keyed by ``"{language}-{environment}"``."""

    def __init__(
        self,
        settings: Settings,
        factory: Callable[[ProgrammingLanguage, Settings], CodeGenerator] | None = None,
    ):
        self.settings = settings
        self._factory = factory or GenerationService
        self._services: dict[str, CodeGenerator] = {}

    def key(self, language: ProgrammingLanguage) -> str:
        return f"{language.value}-{self.settings.environment}"

    def get(self, language: ProgrammingLanguage) -> CodeGenerator:
        key = self.key(language)
        service = self._services.get(key)
        if service is None:
            service = self._factory(language, self.settings)
            self._services[key] = service
            logger.debug("generation_service_created", key=key)
        return service

    def clear(self) -> None:
        self._services.clear()

    def __len__(self) -> int:
        return len(self._services)
