"""Plain-text helpers for tracker rich-text fields."""

import html
import re

_BLOCK_TAG = re.compile(r"<\s*(?:br\s*/?|/\s*(?:p|div|li|h[1-6]|tr)|li)\s*>", re.IGNORECASE)
_OPEN_LIST_ITEM = re.compile(r"<\s*li(?:\s[^>]*)?>", re.IGNORECASE)
_TAG = re.compile(r"<[^>]+>")
_SPACES = re.compile(r"[ \t\xa0]+")
_BLANK_RUN = re.compile(r"\n{3,}")


def html_to_text(value: str | None) -> str | None:
    """Reduce an HTML fragment to plain text, keeping block boundaries as newlines.

    Returns None when nothing but whitespace is left.
    """
    if value is None:
        return None
    text = _OPEN_LIST_ITEM.sub("\n", value)
    text = _BLOCK_TAG.sub("\n", text)
    text = _TAG.sub("", text)
    text = html.unescape(text).replace("\r\n", "\n").replace("\r", "\n")
    lines = [_SPACES.sub(" ", line).strip() for line in text.split("\n")]
    text = _BLANK_RUN.sub("\n\n", "\n".join(lines)).strip()
    return text or None


def contains_word(text: str, word: str) -> bool:
    """Case-insensitive whole-word match."""
    return re.search(rf"\b{re.escape(word)}\b", text, re.IGNORECASE) is not None


def contains_any_word(text: str, words) -> bool:
    return any(contains_word(text, word) for word in words)
