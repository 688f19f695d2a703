"""Path safety checks for generated file paths.

Generated paths must stay relative to the repository root: no absolute
paths, drive letters, UNC prefixes or parent-directory segments.
"""

import re
from pathlib import PurePosixPath

_DRIVE_PREFIX = re.compile(r"^[A-Za-z]:")


def unsafe_path_reasons(path: str) -> list[str]:
    """Describe why ``path`` may not be written under a repository root; empty when safe."""
    if not path or not path.strip():
        return ["File path is empty"]
    reasons = []
    if path.startswith(("/", "\\")) or _DRIVE_PREFIX.match(path):
        reasons.append(f"File path should be relative: {path}")
    if ".." in PurePosixPath(path.replace("\\", "/")).parts:
        reasons.append(f"File path contains parent directory references: {path}")
    return reasons

