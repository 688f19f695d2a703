"""Advisory checks and metadata for generated files.

Nothing here rejects a file: every check returns warning strings for the
parser to attach to its result.
"""

import re
from pathlib import PurePath

from workitem_codegen.parsing.path_safety import unsafe_path_reasons
from workitem_codegen.schemas.artifacts import FileMetadata, GeneratedFile
from workitem_codegen.schemas.generation import ProgrammingLanguage

BRACE_LANGUAGES = frozenset({
    ProgrammingLanguage.TYPESCRIPT,
    ProgrammingLanguage.JAVASCRIPT,
    ProgrammingLanguage.JAVA,
    ProgrammingLanguage.CSHARP,
})

_PAIRS = {"(": ")", "[": "]", "{": "}"}
_CLOSERS = {closer: opener for opener, closer in _PAIRS.items()}

_CONTROL_KEYWORDS = ("if", "else", "elif", "for", "while", "switch", "case", "try", "catch", "except", "finally")
_CONTROL_PATTERN = re.compile(r"\b(?:" + "|".join(_CONTROL_KEYWORDS) + r")\b")

_JS_IMPORT = re.compile(r"""(?:\bimport\b[^'"\n;]*?\bfrom\s*|\bimport\s*\(?\s*|\brequire\s*\(\s*)['"]([^'"]+)['"]""")
_PY_IMPORT = re.compile(r"^\s*(?:from\s+([A-Za-z_][\w.]*)\s+import\b|import\s+([A-Za-z_][\w.]*))", re.MULTILINE)
_JAVA_IMPORT = re.compile(r"^\s*import\s+(?:static\s+)?([\w.]+?)(?:\.\*)?\s*;", re.MULTILINE)
_CSHARP_USING = re.compile(r"^\s*using\s+(?:static\s+)?([A-Za-z_][\w.]*)\s*;", re.MULTILINE)

LANGUAGE_ALIASES: dict[str, ProgrammingLanguage] = {
    "ts": ProgrammingLanguage.TYPESCRIPT,
    "tsx": ProgrammingLanguage.TYPESCRIPT,
    "js": ProgrammingLanguage.JAVASCRIPT,
    "jsx": ProgrammingLanguage.JAVASCRIPT,
    "node": ProgrammingLanguage.JAVASCRIPT,
    "py": ProgrammingLanguage.PYTHON,
    "python3": ProgrammingLanguage.PYTHON,
    "c#": ProgrammingLanguage.CSHARP,
    "cs": ProgrammingLanguage.CSHARP,
    "c-sharp": ProgrammingLanguage.CSHARP,
}


def resolve_language(raw: str) -> ProgrammingLanguage | None:
    normalized = raw.strip().lower()
    try:
        return ProgrammingLanguage(normalized)
    except ValueError:
        return LANGUAGE_ALIASES.get(normalized)


def _strip_literals(code: str, language: ProgrammingLanguage) -> str:
    """Blank out string/char literals and comments so brackets inside them are ignored."""
    out = []
    i, n = 0, len(code)
    quotes = ('"', "'", "`") if language in (ProgrammingLanguage.TYPESCRIPT, ProgrammingLanguage.JAVASCRIPT) else ('"', "'")
    while i < n:
        char = code[i]
        if code.startswith("//", i):
            end = code.find("\n", i)
            i = n if end == -1 else end
            continue
        if code.startswith("/*", i):
            end = code.find("*/", i + 2)
            i = n if end == -1 else end + 2
            continue
        if char in quotes:
            i += 1
            while i < n and code[i] != char:
                if code[i] == "\\":
                    i += 1
                elif code[i] == "\n" and char != "`":
                    break
                i += 1
            i += 1
            continue
        out.append(char)
        i += 1
    return "".join(out)


def brackets_balanced(code: str, language: ProgrammingLanguage = ProgrammingLanguage.TYPESCRIPT) -> bool:
    stack: list[str] = []
    for char in _strip_literals(code, language):
        if char in _PAIRS:
            stack.append(char)
        elif char in _CLOSERS:
            if not stack or stack.pop() != _CLOSERS[char]:
                return False
    return not stack


def python_indentation_consistent(code: str) -> bool:
    """Heuristic: no tab/space mixing and every block opener is followed by a deeper line."""
    lines = [line for line in code.splitlines() if line.strip() and not line.lstrip().startswith("#")]
    uses_tabs = any(line[: len(line) - len(line.lstrip())].count("\t") for line in lines)
    uses_spaces = any(" " in line[: len(line) - len(line.lstrip())] for line in lines)
    if uses_tabs and uses_spaces:
        return False

    for current, following in zip(lines, lines[1:]):
        stripped = current.strip()
        if stripped.endswith(":") and not stripped.startswith(("lambda", "@")):
            current_indent = len(current) - len(current.lstrip())
            following_indent = len(following) - len(following.lstrip())
            if following_indent <= current_indent:
                return False
    if lines and lines[-1].strip().endswith(":"):
        return False
    return True


def estimate_complexity(code: str) -> int:
    """Control-flow keyword count plus one."""
    return 1 + len(_CONTROL_PATTERN.findall(code))


def extract_dependencies(code: str, language: ProgrammingLanguage) -> list[str]:
    """External modules imported by ``code``; relative imports are skipped."""
    found: list[str] = []
    if language in (ProgrammingLanguage.TYPESCRIPT, ProgrammingLanguage.JAVASCRIPT):
        found = [m.group(1) for m in _JS_IMPORT.finditer(code) if not m.group(1).startswith(".")]
    elif language == ProgrammingLanguage.PYTHON:
        found = [(m.group(1) or m.group(2)).split(".")[0] for m in _PY_IMPORT.finditer(code)]
    elif language == ProgrammingLanguage.JAVA:
        found = [m.group(1) for m in _JAVA_IMPORT.finditer(code)]
    elif language == ProgrammingLanguage.CSHARP:
        found = [m.group(1) for m in _CSHARP_USING.finditer(code)]
    return list(dict.fromkeys(found))


def build_metadata(content: str, language: ProgrammingLanguage, extract: bool) -> FileMetadata:
    metadata = FileMetadata(size=len(content.encode("utf-8")), lines=len(content.split("\n")))
    if extract:
        metadata.complexity = estimate_complexity(content)
        metadata.dependencies = extract_dependencies(content, language)
    return metadata


def path_warnings(files: list[GeneratedFile]) -> list[str]:
    warnings = []
    for generated in files:
        warnings.extend(unsafe_path_reasons(generated.path))
    return warnings


def syntax_warnings(files: list[GeneratedFile]) -> list[str]:
    warnings = []
    for generated in files:
        if generated.language in BRACE_LANGUAGES:
            if not brackets_balanced(generated.content, generated.language):
                warnings.append(f"Potential bracket mismatch in {generated.path}")
        elif generated.language == ProgrammingLanguage.PYTHON:
            if not python_indentation_consistent(generated.content):
                warnings.append(f"Potential indentation issues in {generated.path}")
    return warnings


def size_warnings(files: list[GeneratedFile], max_file_size: int) -> list[str]:
    return [
        f"File exceeds maximum size of {max_file_size} bytes: {generated.path}"
        for generated in files
        if len(generated.content.encode("utf-8")) > max_file_size
    ]


def extension_warnings(files: list[GeneratedFile], allowed_extensions: list[str]) -> list[str]:
    allowed = {ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in allowed_extensions}
    warnings = []
    for generated in files:
        suffix = PurePath(generated.path).suffix.lower()
        if suffix not in allowed:
            warnings.append(f"File extension not allowed: {generated.path}")
    return warnings
