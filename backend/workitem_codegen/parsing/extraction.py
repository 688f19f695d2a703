"""Locating structured data and code inside free-form generator replies."""

import re

_JSON_FENCE = re.compile(r"```json[^\n]*\n(.*?)\n[ \t]*```", re.IGNORECASE | re.DOTALL)
_ANY_FENCE = re.compile(r"```[^\n]*\n(.*?)\n[ \t]*```", re.DOTALL)


def strip_code_fences(content: str) -> str:
    """Remove one pair of markdown fences wrapping the whole text."""
    content = content.strip()
    if content.startswith("```"):
        first_newline = content.find("\n")
        if first_newline != -1:
            content = content[first_newline + 1 :]
        if content.endswith("```"):
            content = content[:-3].rstrip()
    return content


def first_balanced_object(text: str) -> str | None:
    """Return the first balanced ``{...}`` span, ignoring braces inside JSON strings."""
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for index in range(start, len(text)):
            char = text[index]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue
            if char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    return text[start : index + 1]
        # Unbalanced from this brace; try the next one.
        start = text.find("{", start + 1)
    return None


def extract_json_text(response: str) -> str | None:
    """Find the JSON object in a reply.

    Tried in order: a ```json fenced block, any fenced block whose trimmed body
    is brace-delimited, then the first balanced brace span in the raw text.
    """
    match = _JSON_FENCE.search(response)
    if match and match.group(1).strip():
        return match.group(1).strip()

    for match in _ANY_FENCE.finditer(response):
        body = match.group(1).strip()
        if body.startswith("{") and body.endswith("}"):
            return body

    return first_balanced_object(response)


def extract_code_text(response: str) -> str:
    """Body of the first fenced block, or the whole reply when there is none."""
    match = _ANY_FENCE.search(response)
    if match:
        return match.group(1).strip()
    return strip_code_fences(response)
