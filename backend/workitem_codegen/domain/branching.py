"""Branch names and commit messages for generated changes."""

import re

from workitem_codegen.schemas.work_items import EnrichedWorkItem, WorkItemType

DEFAULT_MAX_BRANCH_LENGTH = 250
UNTITLED = "untitled"

_NON_ALNUM_RUN = re.compile(r"[^a-z0-9]+")


def sanitize_branch_segment(text: str) -> str:
    """Case-fold and collapse every non-alphanumeric run to a single '-'.

    Idempotent: sanitizing an already sanitized segment returns it unchanged.
    Falls back to "untitled" when nothing is left.
    """
    sanitized = _NON_ALNUM_RUN.sub("-", text.casefold()).strip("-")
    return sanitized or UNTITLED


def branch_prefix(item: EnrichedWorkItem) -> str:
    return "bugfix" if item.work_item_type == WorkItemType.BUG else "feat"


def generate_branch_name(item: EnrichedWorkItem, max_length: int = DEFAULT_MAX_BRANCH_LENGTH) -> str:
    """Build ``{prefix}/{id}_{sanitized-title}``, truncated to ``max_length``.

    Only the title part is shortened; a cut never leaves a trailing '-'.
    """
    head = f"{branch_prefix(item)}/{item.id}_"
    title = sanitize_branch_segment(item.title)
    room = max_length - len(head)
    if room <= 0:
        return head.rstrip("_")[:max_length]
    if len(title) > room:
        title = title[:room].rstrip("-")
    return head + title


def _commit_scope(area_path: str) -> str | None:
    segments = [segment for segment in area_path.split("\\") if segment.strip()]
    if not segments:
        return None
    scope = sanitize_branch_segment(segments[-1])
    return None if scope == UNTITLED else scope


def generate_commit_message(item: EnrichedWorkItem) -> str:
    """Conventional commit message: ``type(scope): title`` plus a work item trailer."""
    commit_type = "fix" if item.work_item_type == WorkItemType.BUG else "feat"
    scope = _commit_scope(item.area_path)
    header = f"{commit_type}({scope}): {item.title.strip()}" if scope else f"{commit_type}: {item.title.strip()}"
    lines = [header]
    if item.description:
        lines.extend(["", item.description.strip()])
    lines.extend(["", f"Work Item #{item.id}"])
    return "\n".join(lines)
