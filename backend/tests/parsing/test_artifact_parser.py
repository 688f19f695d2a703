"""Tests for generator reply parsing."""
import json

import pytest

from workitem_codegen.parsing import (
    NO_STRUCTURED_DATA,
    parse_fixed_code_response,
    parse_generated_code_response,
    parse_validation_response,
    serialize_bundle,
)
from workitem_codegen.schemas.artifacts import IssueSeverity, ParseOptions
from workitem_codegen.schemas.generation import FileType, ProgrammingLanguage

pytestmark = pytest.mark.unit

TS = ProgrammingLanguage.TYPESCRIPT


def _reply(payload: dict, prefix: str = "Here is the code:\n\n") -> str:
    return prefix + "```json\n" + json.dumps(payload, indent=2) + "\n```\n\nLet me know if you need changes."


SERVICE = {
    "path": "src/services/login.ts",
    "content": "import axios from 'axios';\nimport { db } from './db';\n\nexport function login(user: string) {\n  if (!user) {\n    throw new Error('missing');\n  }\n  return axios.post('/login', { user });\n}\n",
    "language": "typescript",
    "type": "source",
}
LOGIN_TEST = {
    "path": "tests/login.test.ts",
    "content": "import { login } from '../src/services/login';\n\ntest('login', () => {\n  expect(login).toBeDefined();\n});\n",
    "language": "typescript",
    "type": "source",
}


class TestParseGeneratedCode:
    def test_prose_only_reply(self):
        result = parse_generated_code_response("Sorry, I cannot help with that request.", TS)
        assert result.success is False
        assert result.content is None
        assert result.errors == [NO_STRUCTURED_DATA]

    def test_fenced_reply(self):
        result = parse_generated_code_response(
            _reply({"files": [SERVICE], "tests": [LOGIN_TEST], "dependencies": ["axios"]}), TS
        )

        assert result.success is True
        assert result.errors == []
        bundle = result.content
        assert [f.path for f in bundle.files] == ["src/services/login.ts"]
        assert bundle.tests[0].type == FileType.TEST
        assert bundle.dependencies == ["axios"]
        assert bundle.metadata.total_files == 2
        assert bundle.files[0].metadata.dependencies == ["axios"]
        assert bundle.files[0].metadata.complexity == 2

    def test_generic_fence_with_object(self):
        reply = "```\n" + json.dumps({"files": [SERVICE]}) + "\n```"
        assert parse_generated_code_response(reply, TS).success is True

    def test_bare_object_in_prose(self):
        reply = "Result: " + json.dumps({"files": [SERVICE]}) + " -- done"
        result = parse_generated_code_response(reply, TS)
        assert result.success is True
        assert result.content.files[0].path == SERVICE["path"]

    def test_invalid_json(self):
        result = parse_generated_code_response('```json\n{"files": [}\n```', TS)
        assert result.success is False
        assert result.content is None
        assert result.errors[0].startswith("Invalid JSON format")

    def test_deeply_nested_json_is_rejected(self):
        payload = '{"files": ' + "[" * 100_000 + "]" * 100_000 + "}"
        result = parse_generated_code_response(f"```json\n{payload}\n```", TS)
        assert result.success is False
        assert result.content is None
        assert result.errors == ["Invalid JSON format: nesting too deep"]

    def test_missing_files_and_tests(self):
        result = parse_generated_code_response(_reply({"documentation": "none"}), TS)
        assert result.errors == ["Response must contain either files or tests"]
        assert result.content is None

    def test_field_level_errors(self):
        broken = {**SERVICE, "path": ""}
        result = parse_generated_code_response(_reply({"files": [SERVICE, SERVICE, broken]}), TS)
        assert result.success is False
        assert result.content is None
        assert result.errors == ["files[2]: path is required and must be a non-empty string"]

    def test_files_must_be_list(self):
        result = parse_generated_code_response(_reply({"files": {"path": "x"}}), TS)
        assert result.errors == ["files must be an array"]

    def test_wrong_optional_types_warn(self):
        result = parse_generated_code_response(_reply({"files": [SERVICE], "dependencies": "axios"}), TS)
        assert result.success is True
        assert "dependencies should be an array of strings" in result.warnings
        assert result.content.dependencies == []

    def test_unknown_language_falls_back(self):
        entry = {**SERVICE, "language": "klingon"}
        result = parse_generated_code_response(_reply({"files": [entry]}), TS)
        assert result.content.files[0].language == TS
        assert any("unknown language" in w for w in result.warnings)

    def test_unsafe_paths_warn(self):
        entries = [{**SERVICE, "path": "/etc/passwd"}, {**SERVICE, "path": "src/../../secrets.ts"}]
        result = parse_generated_code_response(_reply({"files": entries}), TS)
        assert result.success is True
        assert "File path should be relative: /etc/passwd" in result.warnings
        assert "File path contains parent directory references: src/../../secrets.ts" in result.warnings

    def test_bracket_mismatch_warns(self):
        entry = {**SERVICE, "content": "function broken() {\n  return 1;\n"}
        result = parse_generated_code_response(_reply({"files": [entry]}), TS)
        assert result.success is True
        assert f"Potential bracket mismatch in {SERVICE['path']}" in result.warnings

    def test_checks_can_be_disabled(self):
        entry = {**SERVICE, "path": "/abs.ts", "content": "function broken() {"}
        options = ParseOptions(validate_paths=False, validate_syntax=False, extract_metadata=False)
        result = parse_generated_code_response(_reply({"files": [entry]}), TS, options)
        assert result.warnings == []
        assert result.content.files[0].metadata.dependencies is None

    def test_size_and_extension_limits(self):
        options = ParseOptions(max_file_size=10, allowed_extensions=[".py"])
        result = parse_generated_code_response(_reply({"files": [SERVICE]}), TS, options)
        assert f"File exceeds maximum size of 10 bytes: {SERVICE['path']}" in result.warnings
        assert f"File extension not allowed: {SERVICE['path']}" in result.warnings

    def test_backticks_inside_content(self):
        entry = {**SERVICE, "content": "const md = '```ts\\ncode\\n```';\n"}
        result = parse_generated_code_response(_reply({"files": [entry]}), TS)
        assert result.success is True
        assert result.content.files[0].content == entry["content"]


class TestRoundTrip:
    def test_serialize_then_parse_yields_equal_bundle(self):
        first = parse_generated_code_response(
            _reply({
                "files": [SERVICE],
                "tests": [LOGIN_TEST],
                "documentation": "Login service",
                "dependencies": ["axios"],
                "devDependencies": ["jest"],
                "buildInstructions": "npm run build",
                "usageExamples": ["login('dana')"],
            }),
            TS,
        ).content

        second = parse_generated_code_response(serialize_bundle(first), TS)

        assert second.success is True
        assert second.content == first


class TestParseValidation:
    def test_report(self):
        reply = _reply({
            "isValid": False,
            "syntaxErrors": [{"type": "syntax", "severity": "error", "message": "Missing brace", "file": "a.ts", "line": 3}],
            "securityIssues": [{"message": "eval used", "severity": "warning", "file": "a.ts", "line": 9, "canAutoFix": True}],
            "qualityScore": 72,
            "suggestions": ["Add tests"],
            "canAutoFix": True,
        })
        result = parse_validation_response(reply)

        assert result.success is True
        report = result.content
        assert report.is_valid is False
        assert report.syntax_errors[0].severity == IssueSeverity.ERROR
        assert report.security_issues[0].can_auto_fix is True
        assert report.quality_score == 72
        assert report.suggestions == ["Add tests"]

    def test_is_valid_required(self):
        result = parse_validation_response(_reply({"qualityScore": 10}))
        assert result.success is False
        assert result.errors == ["isValid must be a boolean"]

    def test_out_of_range_score_is_clamped(self):
        result = parse_validation_response(_reply({"isValid": True, "qualityScore": 140}))
        assert result.content.quality_score == 100
        assert result.warnings == ["qualityScore should be a number between 0 and 100"]


class TestParseFixedCode:
    ORIGINAL = "function add(a, b) {\n  return a - b;\n}\n"

    def test_fenced_fix(self):
        result = parse_fixed_code_response("Fixed:\n```ts\nfunction add(a, b) {\n  return a + b;\n}\n```", self.ORIGINAL)
        assert result.success is True
        assert result.content == "function add(a, b) {\n  return a + b;\n}"
        assert result.warnings == []

    def test_raw_text_fix(self):
        result = parse_fixed_code_response("function add(a, b) { return a + b; }", self.ORIGINAL)
        assert result.success is True

    def test_empty_reply_keeps_original(self):
        result = parse_fixed_code_response("   ", self.ORIGINAL)
        assert result.success is False
        assert result.content == self.ORIGINAL

    def test_dissimilar_fix_warns(self):
        result = parse_fixed_code_response("```python\nprint('something else entirely')\n```", self.ORIGINAL)
        assert result.success is True
        assert len(result.warnings) == 1
