"""Edit-distance similarity for comparing original and repaired code."""

import difflib
import re

_WHITESPACE = re.compile(r"\s+")
# Character pairs the exact edit distance may visit before falling back to a line diff.
MAX_EDIT_CELLS = 4_000_000


def normalize_code(code: str) -> str:
    return _WHITESPACE.sub(" ", code).strip().lower()


def levenshtein_distance(a: str, b: str) -> int:
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            current.append(min(
                previous[j] + 1,
                current[j - 1] + 1,
                previous[j - 1] + (char_a != char_b),
            ))
        previous = current
    return previous[-1]


def _normalized_lines(code: str) -> list[str]:
    return [normalize_code(line) for line in code.splitlines() if line.strip()]


def code_similarity(original: str, candidate: str) -> float:
    """Similarity in [0, 1] on whitespace- and case-normalized text; 1.0 means identical.

    Large inputs are compared line by line with ``difflib`` instead of the
    character edit distance.
    """
    left, right = normalize_code(original), normalize_code(candidate)
    if left == right:
        return 1.0
    if len(left) * len(right) > MAX_EDIT_CELLS:
        matcher = difflib.SequenceMatcher(None, _normalized_lines(original), _normalized_lines(candidate))
        return matcher.ratio()
    longest = max(len(left), len(right))
    return 1.0 - levenshtein_distance(left, right) / longest
