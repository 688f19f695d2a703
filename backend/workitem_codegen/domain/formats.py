"""Layout detection and splitting for free-text work item blocks.

Detection order is clause style (Given/When/Then), numbered list, bulleted
list, then free text. The first layout that matches is used for the whole
block; a block is never re-classified.
"""

import re

from workitem_codegen.schemas.extraction import BlockFormat, BlockItem, ItemKind, ParsedBlock

_LIST_MARKER = r"(?:[-*•]\s*|\d+[.)]\s*)?"
_LIST_ITEM = re.compile(r"^\s*(?:[-*•]|\d+[.)])\s+(.+)$")
_CLAUSE_LINE = re.compile(rf"^\s*{_LIST_MARKER}(given|when|then|and|but)\b[\s:,]*(.*)$", re.IGNORECASE)
# Capitalized keywords in the middle of a clause line start a new clause.
_INLINE_CLAUSE = re.compile(r"[\s,;]+(?=(?:When|Then|And|But)\s)")
_NUMBERED_LINE = re.compile(r"^\s*(\d+)[.)]\s+(.+)$")
_BULLET_LINE = re.compile(r"^\s*[-*•]\s+(.+)$")
_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")
_SENTENCE_END = re.compile(r"(?<=[.!?])\s+")

_PRIMARY_CLAUSES = {"given": ItemKind.GIVEN, "when": ItemKind.WHEN, "then": ItemKind.THEN}


def _lines(text: str) -> list[str]:
    return [line.rstrip() for line in text.splitlines() if line.strip()]


def _split_clauses(line: str) -> list[str]:
    if not _CLAUSE_LINE.match(line):
        return [line]
    return [part for part in _INLINE_CLAUSE.split(line) if part.strip()]


def _clause_keywords(text: str) -> set[str]:
    found = set()
    for line in _lines(text):
        for clause in _split_clauses(line):
            match = _CLAUSE_LINE.match(clause)
            if match and match.group(1).lower() in _PRIMARY_CLAUSES:
                found.add(match.group(1).lower())
    return found


def detect_format(text: str | None) -> BlockFormat:
    """Classify a block's layout.

    A single line opening with Given, When or Then (optionally behind a list
    marker) makes the whole block clause style, even when the other lines are
    numbered or bulleted.
    """
    if not text or not text.strip():
        return BlockFormat.FREE_TEXT
    if _clause_keywords(text):
        return BlockFormat.GHERKIN
    lines = _lines(text)
    if any(_NUMBERED_LINE.match(line) for line in lines):
        return BlockFormat.NUMBERED
    if any(_BULLET_LINE.match(line) for line in lines):
        return BlockFormat.BULLET_POINTS
    return BlockFormat.FREE_TEXT


def _append(items: list[BlockItem], extra: str) -> None:
    last = items[-1]
    items[-1] = last.model_copy(update={"content": f"{last.content} {extra.strip()}"})


def _parse_gherkin(text: str) -> list[BlockItem]:
    items: list[BlockItem] = []
    current_kind: ItemKind | None = None
    for line in _lines(text):
        for clause in _split_clauses(line):
            match = _CLAUSE_LINE.match(clause)
            if match is None:
                listed = _LIST_ITEM.match(clause)
                if listed:
                    # List entries mixed into clauses belong to the clause above them.
                    items.append(BlockItem(kind=current_kind or ItemKind.TEXT, content=listed.group(1).strip()))
                elif items:
                    _append(items, clause)
                else:
                    items.append(BlockItem(kind=ItemKind.TEXT, content=clause.strip()))
                continue
            keyword, content = match.group(1).lower(), match.group(2).strip()
            if keyword in _PRIMARY_CLAUSES:
                current_kind = _PRIMARY_CLAUSES[keyword]
            elif current_kind is None:
                # And/But before any primary clause
                current_kind = ItemKind.GIVEN
            if content:
                items.append(BlockItem(kind=current_kind, content=content))
    return items


def _parse_list(text: str, pattern: re.Pattern, kind: ItemKind) -> list[BlockItem]:
    items: list[BlockItem] = []
    for line in _lines(text):
        match = pattern.match(line)
        if match is None:
            # Lines before the first entry are headings; later ones continue the entry.
            if items:
                _append(items, line)
            continue
        if kind == ItemKind.STEP:
            items.append(BlockItem(kind=kind, content=match.group(2).strip(), number=int(match.group(1))))
        else:
            items.append(BlockItem(kind=kind, content=match.group(1).strip()))
    return items


def _parse_free_text(text: str) -> list[BlockItem]:
    items = []
    for paragraph in _PARAGRAPH_BREAK.split(text.strip()):
        flattened = " ".join(paragraph.split())
        for sentence in _SENTENCE_END.split(flattened):
            if sentence.strip():
                items.append(BlockItem(kind=ItemKind.TEXT, content=sentence.strip()))
    return items


def parse_block(text: str | None) -> ParsedBlock:
    """Detect a block's layout and split it into ordered items.

    An empty or missing block is free text with no items.
    """
    block_format = detect_format(text)
    if not text or not text.strip():
        return ParsedBlock(format=block_format)

    if block_format == BlockFormat.GHERKIN:
        items = _parse_gherkin(text)
    elif block_format == BlockFormat.NUMBERED:
        items = _parse_list(text, _NUMBERED_LINE, ItemKind.STEP)
    elif block_format == BlockFormat.BULLET_POINTS:
        items = _parse_list(text, _BULLET_LINE, ItemKind.BULLET)
    else:
        items = _parse_free_text(text)
    return ParsedBlock(format=block_format, items=tuple(items))
