"""Tests for the generation client and its per-language cache."""
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from workitem_codegen.core.exceptions import InvocationError
from workitem_codegen.domain.extraction import extract
from workitem_codegen.integrations import GenerationService, GenerationServiceCache
from workitem_codegen.prompting import assemble
from workitem_codegen.schemas.artifacts import CodeIssue
from workitem_codegen.schemas.generation import ProgrammingLanguage

pytestmark = pytest.mark.unit

REPLY = "```json\n" + json.dumps({
    "files": [{
        "path": "src/auth/login.ts",
        "content": "export function login() {\n  return true;\n}\n",
        "language": "typescript",
        "type": "source",
    }],
    "tests": [],
}) + "\n```"


def _message(text: str):
    return SimpleNamespace(content=[SimpleNamespace(type="text", text=text)])


def _client(*texts: str) -> MagicMock:
    client = MagicMock()
    client.messages.create = AsyncMock(side_effect=[_message(text) for text in texts])
    return client


@pytest.fixture
def prompt(make_item, repository):
    item = make_item(42, "Bug", title="Login fails", repro_steps="1. Open app\n2. Click login\n3. See crash")
    fields, _ = extract(item)
    return assemble(item, fields, repository)


class TestGenerationService:
    @pytest.mark.asyncio
    async def test_generate_code(self, settings, prompt):
        client = _client(REPLY)
        service = GenerationService(ProgrammingLanguage.TYPESCRIPT, settings, client=client)

        result = await service.generate_code(prompt)

        assert result.success is True
        assert result.content.files[0].path == "src/auth/login.ts"
        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["model"] == settings.generation_model
        assert kwargs["temperature"] == 0.7
        assert kwargs["messages"][0]["content"].startswith("# Code Generation Request")

    @pytest.mark.parametrize(
        "language,temperature",
        [
            (ProgrammingLanguage.PYTHON, 0.6),
            (ProgrammingLanguage.JAVA, 0.5),
            (ProgrammingLanguage.CSHARP, 0.5),
            (ProgrammingLanguage.JAVASCRIPT, 0.7),
        ],
    )
    def test_language_temperature(self, settings, language, temperature):
        assert GenerationService(language, settings, client=MagicMock()).temperature == temperature

    def test_per_operation_timeouts(self, settings):
        settings = settings.model_copy(update={"generation_timeout": 45.0, "validation_timeout": 20.0, "fix_timeout": 25.0})
        service = GenerationService(ProgrammingLanguage.TYPESCRIPT, settings, client=MagicMock())
        assert service.generation_policy.timeout == 45.0
        assert service.validation_policy.timeout == 20.0
        assert service.fix_policy.timeout == 25.0

    @pytest.mark.asyncio
    async def test_empty_reply_is_retried(self, settings, prompt):
        client = _client("", "  ", REPLY)
        service = GenerationService(ProgrammingLanguage.TYPESCRIPT, settings, client=client)

        result = await service.generate_code(prompt)

        assert result.success is True
        assert client.messages.create.await_count == 3

    @pytest.mark.asyncio
    async def test_exhausted_attempts_raise(self, settings, prompt):
        client = MagicMock()
        client.messages.create = AsyncMock(side_effect=ConnectionError("connection reset"))
        service = GenerationService(ProgrammingLanguage.TYPESCRIPT, settings, client=client)

        with pytest.raises(InvocationError) as exc_info:
            await service.generate_code(prompt)

        assert exc_info.value.attempts == settings.retry_max_attempts
        assert exc_info.value.operation == "generate_code"

    @pytest.mark.asyncio
    async def test_prose_reply_is_a_parse_failure(self, settings, prompt):
        service = GenerationService(ProgrammingLanguage.TYPESCRIPT, settings, client=_client("I cannot do that."))
        result = await service.generate_code(prompt)
        assert result.success is False
        assert result.content is None

    @pytest.mark.asyncio
    async def test_validate_code(self, settings):
        reply = "```json\n" + json.dumps({"isValid": True, "qualityScore": 90}) + "\n```"
        service = GenerationService(ProgrammingLanguage.TYPESCRIPT, settings, client=_client(reply))
        result = await service.validate_code("const a = 1;", ProgrammingLanguage.TYPESCRIPT)
        assert result.content.is_valid is True
        assert result.content.quality_score == 90

    @pytest.mark.asyncio
    async def test_fix_code(self, settings):
        client = _client("```ts\nconst a = 1;\n```")
        service = GenerationService(ProgrammingLanguage.TYPESCRIPT, settings, client=client)
        issue = CodeIssue(message="Missing semicolon", line=1)

        result = await service.fix_code("const a = 1", [issue], ProgrammingLanguage.TYPESCRIPT)

        assert result.success is True
        assert result.content == "const a = 1;"
        assert "Missing semicolon" in client.messages.create.call_args.kwargs["messages"][0]["content"]


class TestGenerationServiceCache:
    def test_reuses_service_per_language_and_environment(self, settings):
        factory = MagicMock(side_effect=lambda language, s: SimpleNamespace(language=language))
        cache = GenerationServiceCache(settings, factory=factory)

        first = cache.get(ProgrammingLanguage.TYPESCRIPT)
        again = cache.get(ProgrammingLanguage.TYPESCRIPT)
        other = cache.get(ProgrammingLanguage.PYTHON)

        assert first is again
        assert other is not first
        assert factory.call_count == 2
        assert cache.key(ProgrammingLanguage.TYPESCRIPT) == "typescript-test"

    def test_clear(self, settings):
        factory = MagicMock(side_effect=lambda language, s: object())
        cache = GenerationServiceCache(settings, factory=factory)
        first = cache.get(ProgrammingLanguage.TYPESCRIPT)

        cache.clear()

        assert len(cache) == 0
        assert cache.get(ProgrammingLanguage.TYPESCRIPT) is not first
